import logging
from typing import Optional

from flask import Flask, jsonify
from flask_limiter.errors import RateLimitExceeded

from .config import AppConfig, load_config
from .exceptions import SiteExtractorException, error_response, make_error_response
from .extensions import limiter
from .job_queue import ExtractionJobQueue
from .logging_utils import configure_logging
from .runs import RunTracker
from .summary_store import SummaryStore


def create_app(config: Optional[AppConfig] = None):
    config = config or load_config()
    app = Flask(__name__)
    app.config['SPSITES'] = config

    configure_logging(config)
    log = logging.getLogger(__name__)
    log.info('Logging initialized at level %s', config.log_level)

    # Rate limiting (Flask-Limiter reads the RATELIMIT_* keys in init_app)
    app.config['RATELIMIT_ENABLED'] = config.ratelimit_enabled
    app.config['RATELIMIT_DEFAULT'] = config.rate_limit
    app.config['RATELIMIT_STORAGE_URI'] = config.ratelimit_storage
    limiter.init_app(app)
    if not config.ratelimit_enabled:
        log.info('Rate limiting disabled (SPSITES_RATELIMIT_ENABLED=0)')

    store = SummaryStore.from_config(config)
    jobs = ExtractionJobQueue(config, store, RunTracker())
    app.extensions['spsites_store'] = store
    app.extensions['spsites_jobs'] = jobs
    if config.job_worker:
        jobs.start_worker()
    else:
        log.info('Job worker not started (SPSITES_JOB_WORKER=0)')

    @app.errorhandler(SiteExtractorException)
    def _handle_service_error(exc):
        body, status = error_response(exc)
        return jsonify(body), status

    @app.errorhandler(RateLimitExceeded)
    def _handle_rate_limit(exc):
        body = make_error_response('RATE_LIMIT_EXCEEDED', f'Rate limit exceeded: {exc.description}', 429)
        return jsonify(body), 429

    # register blueprints
    from .routes.admin import admin_bp
    from .routes.api_v1 import api_v1
    from .routes.system import system_bp
    from .routes.ui import ui_bp
    app.register_blueprint(ui_bp)
    app.register_blueprint(api_v1)
    app.register_blueprint(system_bp)
    app.register_blueprint(admin_bp)

    rule_paths = sorted({r.rule for r in app.url_map.iter_rules()})
    log.info('Route map initialized count=%d sample=%s', len(rule_paths), rule_paths[:15])
    log.info('spsites %s ready chunk_size=%d progress_threshold=%d max_input_lines=%d',
             config.version, config.chunk_size, config.progress_threshold, config.max_input_lines)
    return app
