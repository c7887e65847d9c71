import logging
import os

from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def _init_logging(app):
    from wastetrack.middleware import RequestIdFilter

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s',
    )
    logging.getLogger(__name__).setLevel(app.config['LOG_LEVEL'])

    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


def _init_sentry(app):
    dsn = app.config.get('SENTRY_DSN')
    if not dsn:
        logger.info('SENTRY_DSN is not set -- error monitoring is disabled.')
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )


def _build_store(app):
    from wastetrack.services import InMemoryStore, SqlAlchemyStore

    backend = app.config['STORE_BACKEND']
    if backend == 'sql':
        return SqlAlchemyStore()
    if backend == 'memory':
        return InMemoryStore()
    raise ValueError(f'Unknown STORE_BACKEND {backend!r}; use "sql" or "memory"')


def _register_error_handlers(app):
    from wastetrack.services import ClassifierError, InvalidReportError, StoreError, UnknownWorkerError

    @app.errorhandler(InvalidReportError)
    def invalid_report_handler(e):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(UnknownWorkerError)
    def unknown_worker_handler(e):
        return jsonify({'error': f'Worker {e} not found'}), 404

    @app.errorhandler(ClassifierError)
    def classifier_handler(e):
        logger.info('Report rejected, image could not be classified: %s', e)
        return jsonify({'error': f'Could not classify image: {e}'}), 422

    @app.errorhandler(StoreError)
    def store_handler(e):
        logger.error('Store unavailable: %s', e)
        return jsonify({'error': 'Storage temporarily unavailable. Please retry.'}), 503

    @app.errorhandler(413)
    def too_large_handler(e):
        return jsonify({'error': 'Upload too large'}), 413

    @app.errorhandler(429)
    def ratelimit_handler(e):
        # Retry-After header is set by Flask-Limiter; read it back.
        retry_after = e.get_headers().get('Retry-After') if hasattr(e, 'get_headers') else None
        retry_after_seconds = int(retry_after) if retry_after else 60
        return jsonify({
            'error': 'Too many requests. Please try again later.',
            'retry_after': retry_after_seconds,
        }), 429


def create_app(config_name=None):
    """Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from wastetrack.config import config
    app.config.from_object(config[config_name])

    _init_logging(app)
    _init_sentry(app)

    # Initialize extensions
    from wastetrack.extensions import limiter
    from wastetrack.middleware import RequestIdMiddleware

    db.init_app(app)
    CORS(app, resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}})
    limiter.init_app(app)
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)

    # Snapshot table
    from wastetrack.models import StoredCollection  # noqa: F401
    with app.app_context():
        db.create_all()

    # Core services, with deferred releases on the background scheduler
    from wastetrack.scheduler import init_scheduler
    from wastetrack.services import EXTENSION_KEY, SchedulerReleaseTimer, Services

    scheduler = init_scheduler(app)
    services = Services(
        _build_store(app),
        release_timer=SchedulerReleaseTimer(scheduler, app) if scheduler else None,
        lock_timeout=app.config['LOCK_TIMEOUT_SECONDS'],
        max_retries=app.config['STORE_MAX_RETRIES'],
    )
    app.extensions[EXTENSION_KEY] = services

    # Register blueprints
    from wastetrack.routes import jobs_bp, reports_bp, workers_bp, zones_bp

    api_prefix = app.config['API_PREFIX']
    app.register_blueprint(reports_bp, url_prefix=f'{api_prefix}/reports')
    app.register_blueprint(jobs_bp, url_prefix=f'{api_prefix}/jobs')
    app.register_blueprint(workers_bp, url_prefix=f'{api_prefix}/workers')
    app.register_blueprint(zones_bp, url_prefix=f'{api_prefix}/zones')

    _register_error_handlers(app)

    from wastetrack.cli import register_cli
    register_cli(app)

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    # Report photos
    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        return send_from_directory(app.config['UPLOAD_FOLDER'], filename)

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy', 'service': 'wastetrack-backend'}, 200

    return app
