from flask import Blueprint, jsonify, request
import logging, os

from ..exceptions import UnauthorizedError, ValidationError
from ..extensions import get_config

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'WARN': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


@admin_bp.before_request
def admin_auth():
    token = get_config().admin_token
    if token and request.headers.get('X-Admin-Token') != token:  # open if not set
        raise UnauthorizedError()


@admin_bp.route('/log_level', methods=['GET', 'POST'])
def log_level():
    """Get or update the root/application log level at runtime.

    GET  /admin/log_level -> { level: CURRENT }
    POST /admin/log_level {"level": "DEBUG"} (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    Header X-Admin-Token is required when SPSITES_ADMIN_TOKEN is set.
    """
    current = logging.getLogger().getEffectiveLevel()
    if request.method == 'GET':
        return jsonify({'status': 'ok', 'level': logging.getLevelName(current)})
    data = request.get_json(silent=True) or {}
    lvl = str(data.get('level') or '').upper().strip()
    if lvl not in LEVELS:
        raise ValidationError('level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL')
    logging.getLogger().setLevel(LEVELS[lvl])
    logging.getLogger('spsites').setLevel(LEVELS[lvl])
    os.environ['SPSITES_LOG_LEVEL'] = lvl
    logging.getLogger('spsites.admin').info('log level changed runtime level=%s', lvl)
    return jsonify({'status': 'ok', 'level': lvl})
