import time
from flask import Blueprint, Response, jsonify

from ..extensions import get_config, get_jobs, get_store
from ..metrics import get_content_type, get_metrics

system_bp = Blueprint('system', __name__)

_START_TIME = time.time()


@system_bp.route('/health', methods=['GET'])
def health():
    uptime = time.time() - _START_TIME
    return jsonify({'status': 'ok', 'uptime_seconds': round(uptime, 2)})


@system_bp.route('/version', methods=['GET'])
def version():
    config = get_config()
    uptime = time.time() - _START_TIME
    return jsonify({
        'version': config.version,
        'uptime_seconds': round(uptime, 2),
        'chunk_size': config.chunk_size,
        'progress_threshold': config.progress_threshold,
        'max_input_lines': config.max_input_lines,
        'stored_summaries': len(get_store()),
        'job_worker': config.job_worker,
        'recent_jobs': len(get_jobs().get_recent_jobs(100)),
    })


@system_bp.route('/metrics/prometheus', methods=['GET'])
def metrics_prometheus():
    return Response(get_metrics(), mimetype=get_content_type())
