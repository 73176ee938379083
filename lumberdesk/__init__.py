"""Flask application factory."""
from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from lumberdesk.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    from lumberdesk.utils.json_provider import LumberdeskJSONProvider
    app.json = LumberdeskJSONProvider(app)

    # CSRF protection (JSON clients send X-CSRFToken)
    CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'Sessão expirada. Recarregue a página.'}), 400

    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Prometheus instrumentation
    from lumberdesk.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Behind Nginx in production
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    init_db(app)
    if app.config.get('CREATE_TABLES'):
        from lumberdesk.database import create_all
        create_all(app)

    from lumberdesk.middleware import load_user

    @app.before_request
    def before_request_handler():
        """Load the logged-in user and caller for each request."""
        load_user()

    # Error Handlers
    from lumberdesk.exceptions import LumberdeskError

    @app.errorhandler(LumberdeskError)
    def handle_lumberdesk_error(error):
        """Handle application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"LumberdeskError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"LumberdeskError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Não encontrado'}), 404

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'status': 'error', 'message': error.description}), error.code

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception on {request.path}: {error}")
        return jsonify({'status': 'error', 'message': 'Erro interno do servidor'}), 500

    # Register blueprints
    from lumberdesk.blueprints.auth import auth_bp
    from lumberdesk.blueprints.users import users_bp
    from lumberdesk.blueprints.catalog import catalog_bp
    from lumberdesk.blueprints.orders import orders_bp
    from lumberdesk.blueprints.dashboard import dashboard_bp
    from lumberdesk.blueprints.reports import reports_bp
    from lumberdesk.blueprints.audit import audit_bp
    from lumberdesk.blueprints.metrics import metrics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from lumberdesk.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
