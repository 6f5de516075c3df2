"""Runtime configuration for the site-collection extractor.

All knobs come from ``SPSITES_*`` environment variables and are frozen into
an :class:`AppConfig` once per application / CLI invocation. Components get
the config passed in explicitly instead of reading module state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_PROGRESS_THRESHOLD = 100


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigurationError(name, f'expected an integer, got {raw!r}')
    if value < minimum:
        raise ConfigurationError(name, f'must be >= {minimum}, got {value}')
    return value


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class AppConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    progress_threshold: int = DEFAULT_PROGRESS_THRESHOLD
    max_input_lines: int = 200_000
    summary_ttl: int = 1800
    summary_max: int = 50
    rate_limit: str = '60 per minute'
    extract_rate_limit: str = '30 per minute'
    job_worker: bool = True
    ratelimit_enabled: bool = True
    ratelimit_storage: str = 'memory://'
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    log_max_bytes: int = 5 * 1024 * 1024
    log_backup_count: int = 5
    admin_token: Optional[str] = None
    version: str = '0.1.0'

    def with_overrides(self, **changes) -> 'AppConfig':
        return replace(self, **changes)


def load_config() -> AppConfig:
    """Build an :class:`AppConfig` from the environment.

    Raises :class:`ConfigurationError` for malformed numeric values so a bad
    deployment fails at startup instead of on the first request.
    """
    return AppConfig(
        chunk_size=_env_int('SPSITES_CHUNK_SIZE', DEFAULT_CHUNK_SIZE, minimum=1),
        progress_threshold=_env_int('SPSITES_PROGRESS_THRESHOLD', DEFAULT_PROGRESS_THRESHOLD),
        max_input_lines=_env_int('SPSITES_MAX_INPUT_LINES', 200_000, minimum=1),
        summary_ttl=_env_int('SPSITES_SUMMARY_TTL', 1800),
        summary_max=_env_int('SPSITES_SUMMARY_MAX', 50),
        rate_limit=os.environ.get('SPSITES_RATE_LIMIT', '60 per minute'),
        extract_rate_limit=os.environ.get('SPSITES_EXTRACT_RATE_LIMIT', '30 per minute'),
        job_worker=_env_flag('SPSITES_JOB_WORKER', True),
        ratelimit_enabled=_env_flag('SPSITES_RATELIMIT_ENABLED', True),
        ratelimit_storage=os.environ.get('SPSITES_RATELIMIT_STORAGE', 'memory://'),
        log_level=os.environ.get('SPSITES_LOG_LEVEL', 'INFO').upper(),
        log_file=os.environ.get('SPSITES_LOG_FILE') or None,
        log_max_bytes=_env_int('SPSITES_LOG_MAX_BYTES', 5 * 1024 * 1024, minimum=1),
        log_backup_count=_env_int('SPSITES_LOG_BACKUP_COUNT', 5),
        admin_token=os.environ.get('SPSITES_ADMIN_TOKEN') or None,
        version=os.environ.get('SPSITES_VERSION', '0.1.0'),
    )
