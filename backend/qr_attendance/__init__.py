"""QR Attendance Service - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import redis
from zoneinfo import ZoneInfo

__version__ = '1.0.0'

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)
    
    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    
    # Unknown institution timezones fail at startup, not on the first scan
    ZoneInfo(app.config.get('TIMEZONE', 'UTC'))
    
    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)
    
    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))
    
    # Setup logging
    setup_logging(app)
    
    # Register blueprints
    register_blueprints(app)
    
    # Register error handlers
    register_error_handlers(app)
    
    # Setup database
    setup_database(app)
    
    # Add CLI commands
    register_commands(app)
    
    @app.route('/health')
    @limiter.exempt
    def health_check():
        return jsonify({
            'success': True,
            'status': 'healthy',
            'service': 'QR Attendance Service',
            'version': __version__,
            'redis': redis_status(app)
        })
    
    return app

def redis_status(app: Flask) -> str:
    """Reachability of the configured Redis instance."""
    url = app.config.get('REDIS_URL')
    if not url:
        return 'not configured'
    try:
        redis.Redis.from_url(url, socket_connect_timeout=1).ping()
    except redis.RedisError as e:
        app.logger.warning('Redis health check failed: %s', e)
        return 'unavailable'
    return 'ok'

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from qr_attendance.api.auth import auth_bp
    from qr_attendance.api.teacher import teacher_bp
    from qr_attendance.api.student import student_bp
    from qr_attendance.utils.swagger import API_URL, SWAGGER_URL, get_swagger_blueprint, generate_swagger_spec
    
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(teacher_bp, url_prefix='/api/teacher')
    app.register_blueprint(student_bp, url_prefix='/api/student')
    
    @app.route(API_URL)
    def swagger_spec():
        """Serve Swagger/OpenAPI specification."""
        return jsonify(generate_swagger_spec())
    
    app.register_blueprint(get_swagger_blueprint(), url_prefix=SWAGGER_URL)

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from qr_attendance.errors import AttendanceError
    from qr_attendance.utils.helpers import error_response, handle_error
    from werkzeug.exceptions import HTTPException
    
    @app.errorhandler(AttendanceError)
    def handle_attendance_error(e):
        return error_response(e.message, e.status_code, code=e.code, data=e.data)
    
    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return handle_error(e, e.code)
    
    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        app.logger.exception('Unhandled error: %s', e)
        return error_response('Internal server error', 500, code='server_error')
    
    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401, code='unauthenticated')
    
    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401, code='unauthenticated')
    
    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401, code='unauthenticated')

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger('qr_attendance').setLevel(level)
    
    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('qr_attendance').addHandler(file_handler)
        
        app.logger.info('QR Attendance Service startup')

def setup_database(app: Flask) -> None:
    """Import every model so the metadata is complete."""
    with app.app_context():
        from qr_attendance.models import (  # noqa: F401
            User, UserRole, Branch, Subject,
            StudentProfile, TeacherProfile, TeacherSubject,
            LectureSession, AttendanceRecord
        )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click
    
    @app.cli.command()
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')
        
        db.create_all()
        click.echo('Created all tables.')
    
    @app.cli.command()
    def seed_db():
        """Seed database with demo branches, a teacher and a student cohort."""
        from qr_attendance.services.seed_service import SeedService
        
        summary = SeedService.seed_all()
        click.echo(f"Seeded {summary['branches']} branches, {summary['teachers']} teachers "
                   f"and {summary['students']} students.")
    
    @app.cli.command()
    @click.option('--email', prompt='Admin email')
    @click.option('--name', prompt='Admin name')
    @click.password_option()
    def create_admin(email, name, password):
        """Create admin user."""
        from qr_attendance.models.user import UserRole
        from qr_attendance.services.identity_store import IdentityStore
        
        if IdentityStore.find_account_by_email(email):
            raise click.ClickException(f'User {email} already exists')
        
        IdentityStore.create_account(email, password, name, UserRole.ADMIN)
        click.echo(f'Admin user created: {email}')
