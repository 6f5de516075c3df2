import os
import sys
import pathlib

import pytest

# Ensure project root is on sys.path so 'import spsites' works when pytest runs
# from a different working directory without an installed package.
_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

# Deterministic defaults for every app built in tests: no rate limits and no
# background worker (tests drain the job queue themselves).
os.environ.setdefault('SPSITES_RATELIMIT_ENABLED', '0')
os.environ.setdefault('SPSITES_JOB_WORKER', '0')

from spsites import create_app
from spsites.config import AppConfig


@pytest.fixture
def make_app():
    apps = []

    def _make(**overrides):
        config = AppConfig(ratelimit_enabled=False, job_worker=False).with_overrides(**overrides)
        app = create_app(config)
        app.testing = True
        apps.append(app)
        return app

    yield _make
    for app in apps:
        app.extensions['spsites_jobs'].stop_worker()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def jobs(app):
    return app.extensions['spsites_jobs']
