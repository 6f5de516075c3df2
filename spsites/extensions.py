from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Configured per app in create_app() through the RATELIMIT_* config keys
limiter = Limiter(key_func=get_remote_address)


def get_config():
    return current_app.config['SPSITES']


def get_store():
    return current_app.extensions['spsites_store']


def get_jobs():
    return current_app.extensions['spsites_jobs']


def extract_rate_limit() -> str:
    return get_config().extract_rate_limit
