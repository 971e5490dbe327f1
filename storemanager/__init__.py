"""Flask application factory."""
from flask import Flask, g, render_template, request, redirect, flash, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from storemanager.database import init_db
import logging
import os


def _wants_json() -> bool:
    return request.is_json or request.accept_mimetypes.best == 'application/json'


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )

    # CSRF protection for every form post
    CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        if _wants_json():
            return jsonify({'status': 'error', 'message': 'Your session has expired. Reload the page.'}), 400
        flash('Your session has expired or the form is invalid. Please try again.', 'warning')
        return redirect(request.referrer or '/')

    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            profiles_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Redis cache
    from storemanager.services.cache_service import init_cache
    init_cache(app)

    # Prometheus metrics instrumentation
    from storemanager.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust the reverse proxy headers
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=1,
            x_proto=1,
            x_host=1,
            x_port=1,
            x_prefix=0
        )

    # Database
    init_db(app)

    # Jinja filters
    from storemanager.utils.formatters import num, money, date_fmt, datetime_fmt
    app.jinja_env.filters['num'] = num
    app.jinja_env.filters['money'] = money
    app.jinja_env.filters['date_fmt'] = date_fmt
    app.jinja_env.filters['datetime_fmt'] = datetime_fmt

    from storemanager.middleware import load_user

    @app.before_request
    def before_request_handler():
        """Load the signed-in user for each request."""
        load_user()

    @app.context_processor
    def inject_store_info():
        return {
            'store_name': app.config.get('STORE_NAME', 'StoreManager Pro'),
            'currency': app.config.get('CURRENCY_SYMBOL', ''),
        }

    # Error Handlers
    from storemanager.exceptions import StoreError

    @app.errorhandler(StoreError)
    def handle_store_error(error):
        """Handle application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"StoreError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"StoreError [{error.status_code}]: {error.message}")

        if _wants_json():
            return jsonify(error.to_dict()), error.status_code

        # Regular requests: flash message and redirect back
        flash(error.message, 'danger')
        return redirect(request.referrer or '/')

    @app.errorhandler(404)
    def not_found_error(error):
        if _wants_json():
            return jsonify({'status': 'error', 'message': 'Not Found'}), 404
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        # 405, 400 and friends keep their own status
        if isinstance(error, HTTPException) and error.code != 500:
            return error

        app.logger.error(f"Unhandled Exception: {error}", exc_info=True)

        if _wants_json():
            return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500
        return render_template('errors/500.html'), 500

    # Register blueprints
    from storemanager.blueprints.auth import auth_bp
    from storemanager.blueprints.main import main_bp
    from storemanager.blueprints.dashboard import dashboard_bp
    from storemanager.blueprints.catalog import catalog_bp
    from storemanager.blueprints.sales import sales_bp
    from storemanager.blueprints.reports import reports_bp
    from storemanager.blueprints.metrics import metrics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(metrics_bp)

    # CLI commands
    from storemanager.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
