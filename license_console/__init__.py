"""Flask application factory for the license console API."""
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from license_console.database import init_db
import os


def _is_production(app):
    return 'production' in (app.config.get('ENV'), app.config.get('FLASK_ENV'), os.getenv('FLASK_ENV'))


def _init_sentry(app):
    dsn = os.getenv('SENTRY_DSN')
    if not dsn or not _is_production(app):
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
        environment=os.getenv('FLASK_ENV', 'production'),
        release=os.getenv('GIT_COMMIT', 'unknown')
    )


def _register_error_handlers(app):
    from license_console.exceptions import ConsoleError
    from license_console.database import get_session

    @app.errorhandler(ConsoleError)
    def handle_console_error(error):
        log = app.logger.error if error.status_code >= 500 else app.logger.warning
        log(f"ConsoleError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        """Routing errors (404, 405, ...) answered as JSON."""
        return jsonify({'status': 'error', 'error': error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception(f"Unhandled exception: {error}")
        session = get_session()
        if session is not None:
            session.rollback()
        return jsonify({'status': 'error', 'error': 'Internal server error'}), 500


def _register_blueprints(app):
    from license_console.blueprints.admin import admin_bp
    from license_console.blueprints.license import license_bp
    from license_console.blueprints.pricing import pricing_bp
    from license_console.blueprints.organizations import organizations_bp
    from license_console.blueprints.invoices import invoices_bp
    from license_console.blueprints.settings import settings_bp
    from license_console.blueprints.stats import stats_bp
    from license_console.blueprints.email import email_bp
    from license_console.blueprints.metrics import metrics_bp

    for blueprint in (admin_bp, license_bp, pricing_bp, organizations_bp, invoices_bp,
                      settings_bp, stats_bp, email_bp, metrics_bp):
        app.register_blueprint(blueprint)


def create_app(config_object='config.Config'):
    """Build the app from a config object path, e.g. 'config.TestingConfig'."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    _init_sentry(app)

    from license_console.services.email_service import init_mail
    init_mail(app)

    from license_console.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    if _is_production(app):
        # Behind Nginx: one proxy hop sets the forwarded headers
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    init_db(app)
    _register_error_handlers(app)
    _register_blueprints(app)

    from license_console.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"Mail via {app.config.get('MAIL_SERVER')} as {app.config.get('MAIL_DEFAULT_SENDER')}")

    return app
