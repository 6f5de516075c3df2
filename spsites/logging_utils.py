import logging
import os
import threading
import time
from logging.handlers import RotatingFileHandler
from typing import Dict, Tuple

from .config import AppConfig

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

_SuppressionKey = Tuple[str, str, int]

_SUPPRESSION_LOCK = threading.Lock()
_SUPPRESSION_STATE: Dict[_SuppressionKey, Dict[str, float]] = {}


def configure_logging(config: AppConfig) -> int:
    """Configure root logging from ``config`` and return the effective level.

    Attaches a RotatingFileHandler when ``log_file`` is set. Safe to call more
    than once (tests build several apps); the file handler is only added once
    per path.
    """
    level = getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    log = logging.getLogger('spsites')
    if config.log_file:
        already = any(
            isinstance(h, RotatingFileHandler) and getattr(h, 'baseFilename', None) == os.path.abspath(config.log_file)
            for h in root.handlers
        )
        if not already:
            try:
                fh = RotatingFileHandler(config.log_file, maxBytes=config.log_max_bytes,
                                         backupCount=config.log_backup_count)
            except OSError as exc:
                log.warning('failed attaching RotatingFileHandler for %s err=%s', config.log_file, exc)
            else:
                fh.setLevel(level)
                fh.setFormatter(logging.Formatter(LOG_FORMAT))
                root.addHandler(fh)
                log.info('RotatingFileHandler attached path=%s max_bytes=%d backups=%d',
                         config.log_file, config.log_max_bytes, config.log_backup_count)
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    return level


def log_suppressed(
    logger: logging.Logger,
    exc: Exception,
    context: str,
    *,
    level: int = logging.WARNING,
    sample: int = 5,
    cooldown: float = 60.0,
) -> int:
    """Log a repeated soft failure without flooding the log.

    The first ``sample`` occurrences per (logger, context, level) are written;
    after that at most one entry per ``cooldown`` seconds. Returns how many
    times the context has been reported, including the muted ones.
    """
    now = time.time()
    key: _SuppressionKey = (logger.name, context, level)
    with _SUPPRESSION_LOCK:
        state = _SUPPRESSION_STATE.setdefault(key, {'count': 0, 'last_emit': 0.0})
        state['count'] += 1
        count = int(state['count'])
        should_emit = count <= sample or (now - state['last_emit']) >= cooldown
        if should_emit:
            state['last_emit'] = now
    if should_emit:
        logger.log(level, '%s err=%s (suppressed=%d)', context, exc, max(0, count - 1), exc_info=True)
    return count


def get_suppressed_snapshot() -> Dict[str, Dict[str, float]]:
    """Copy of the suppression counters, keyed ``logger:context:level``."""
    with _SUPPRESSION_LOCK:
        return {
            f'{name}:{context}:{level}': dict(state)
            for (name, context, level), state in _SUPPRESSION_STATE.items()
        }


def reset_suppressed_state() -> None:
    """Clear suppression counters (tests)."""
    with _SUPPRESSION_LOCK:
        _SUPPRESSION_STATE.clear()
