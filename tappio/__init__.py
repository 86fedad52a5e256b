import logging
import sys
from flask import Flask, render_template
from werkzeug.middleware.proxy_fix import ProxyFix
from .config import Config
from .models import db
from flask_migrate import Migrate
from dotenv import load_dotenv, find_dotenv

logger = logging.getLogger(__name__)


def _configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def create_app(overrides: dict|None=None):
    # .env in the working directory; real environment variables win
    load_dotenv(find_dotenv(usecwd=True))
    app = Flask(__name__)
    app.config.from_object(Config())
    if overrides:
        app.config.update(overrides)
    _configure_logging(app.config['LOG_LEVEL'])

    db.init_app(app)
    Migrate(app, db)
    # Trust reverse proxy headers (Render/Heroku)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    from .services.auth import load_current_user, current_user, is_admin, ensure_admin
    app.before_request(load_current_user)

    @app.context_processor
    def inject_user():
        user = current_user()
        return {'current_user': user, 'current_user_is_admin': is_admin(user)}

    with app.app_context():
        db.create_all()
        if app.config.get('ADMIN_EMAIL') and app.config.get('ADMIN_PASSWORD'):
            ensure_admin(app.config['ADMIN_EMAIL'], app.config['ADMIN_PASSWORD'])
        else:
            logger.info("No admin account configured (ADMIN_EMAIL/ADMIN_PASSWORD not set)")

    from .routes_public import bp as public_bp
    from .routes_dashboard import bp as dashboard_bp
    from .routes_api import bp as api_bp
    from .routes_admin import bp as admin_bp
    app.register_blueprint(public_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')

    @app.get('/health')
    def health():
        return {'ok': True}

    @app.errorhandler(404)
    def not_found(e):
        return render_template('error.html', status=404, message='Page not found'), 404

    @app.errorhandler(500)
    def server_error(e):
        db.session.rollback()
        logger.error(f"Unhandled error: {getattr(e, 'original_exception', e)}", exc_info=True)
        return render_template('error.html', status=500, message='Something went wrong'), 500

    return app
