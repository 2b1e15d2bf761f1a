from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
from equiptrack.utils.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
login_manager = LoginManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["2000 per day", "300 per hour"],
    storage_uri="memory://"  # Use Redis in production for distributed systems
)


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(config_overrides=None):
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("equiptrack")
    logger.info("Initializing Flask application")

    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite database in instance/
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'equiptrack.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # HTTPS/TLS Configuration
    app.config['ENABLE_HTTPS'] = _env_flag('ENABLE_HTTPS', 'True')
    app.config['FORCE_HTTPS_REDIRECT'] = _env_flag('FORCE_HTTPS_REDIRECT', 'True')
    app.config['SESSION_COOKIE_SECURE'] = _env_flag('SESSION_COOKIE_SECURE', 'True')
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['PERMANENT_SESSION_LIFETIME'] = int(os.environ.get('PERMANENT_SESSION_LIFETIME', '3600'))

    # Workflow configuration
    app.config['OVERDUE_THRESHOLD_HOURS'] = int(os.environ.get('OVERDUE_THRESHOLD_HOURS', '72'))
    app.config['MAINTENANCE_DUE_DAYS'] = int(os.environ.get('MAINTENANCE_DUE_DAYS', '30'))
    app.config['LOST_APPROVAL_VALUE_THRESHOLD'] = float(os.environ.get('LOST_APPROVAL_VALUE_THRESHOLD', '500'))
    app.config['DEFAULT_LOAN_DAYS'] = int(os.environ.get('DEFAULT_LOAN_DAYS', '7'))
    app.config['RESOLVER_CACHE_TTL_SECONDS'] = int(os.environ.get('RESOLVER_CACHE_TTL_SECONDS', '300'))

    # Rate limiting
    app.config['RATELIMIT_ENABLED'] = _env_flag('RATELIMIT_ENABLED', 'True')
    app.config['COMMAND_RATE_LIMIT'] = os.environ.get('COMMAND_RATE_LIMIT', '30 per minute')

    if config_overrides:
        app.config.update(config_overrides)

    # SECURITY: Require SECRET_KEY - no fallback
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    if app.config['ENABLE_HTTPS']:
        logger.info("HTTPS enforcement enabled")
    else:
        logger.warning("HTTPS enforcement DISABLED - Acceptable for development only!")

    # Initialize extensions with app
    db.init_app(app)
    login_manager.init_app(app)
    limiter.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({
            'success': False,
            'message': 'Authentication required',
            'error': 'UNAUTHORIZED'
        }), 401

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from equiptrack.data.core.tenant import Tenant
    from equiptrack.data.core.user import User
    from equiptrack.data.core.location import Location, Category
    from equiptrack.data.equipment.equipment import Equipment
    from equiptrack.data.equipment.transaction import EquipmentTransaction
    from equiptrack.data.equipment.records import MaintenanceRequest, DamageReport
    from equiptrack.data.audit.audit_log import AuditLog
    from equiptrack.data.audit.notification import Notification

    logger.debug("Models imported and registered")

    # One command pipeline per process; owns the resolver's corpus cache
    from equiptrack.buisness.command_pipeline import CommandPipeline
    app.extensions['equiptrack'] = CommandPipeline.from_config(app.config)

    from equiptrack.presentation.routes import init_app as init_routes
    init_routes(app)

    @app.before_request
    def enforce_https():
        """Redirect HTTP requests to HTTPS if HTTPS enforcement is enabled"""
        if app.config.get('ENABLE_HTTPS') and app.config.get('FORCE_HTTPS_REDIRECT'):
            from flask import request, redirect

            if not request.is_secure and not request.headers.get('X-Forwarded-Proto') == 'https':
                url = request.url.replace('http://', 'https://', 1)
                return redirect(url, code=301)

    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
        if app.config.get('ENABLE_HTTPS'):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    logger.info("Flask application initialization complete")

    return app
