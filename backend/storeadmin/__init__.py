from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_list(name: str, default: str):
    return [t.strip() for t in os.getenv(name, default).split(',') if t.strip()]


def _init_db(db_url: str):
    global db_engine, SessionLocal
    if db_url.endswith(':memory:'):
        # one connection shared by every session, otherwise each would get an empty database
        db_engine = create_engine(
            db_url,
            future=True,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))


def _error_body(status: int, title: str, detail: str, **extra):
    body = {'status': status, 'title': title, 'detail': detail}
    body.update(extra)
    return {'error': body}, status


def _register_error_handlers(app: Flask):
    from .services.errors import RbacError, ValidationError

    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, RbacError):
            get_db().rollback()
            if isinstance(e, ValidationError):
                return _error_body(e.status, e.title, str(e), violations=[v.to_dict() for v in e.violations])
            return _error_body(e.status, e.title, str(e))
        if isinstance(e, HTTPException):
            return _error_body(e.code, e.name, e.description)
        app.logger.exception('Unhandled exception')
        return _error_body(500, 'Internal Server Error', 'Unexpected error')


def create_app(config: Optional[Dict[str, Any]] = None):
    app = Flask(__name__)
    app.config.update(
        JWT_SECRET_KEY=os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        DATABASE_URL=os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        RBAC_LOCK_SYSTEM_ROLE_PERMISSIONS=_env_flag('RBAC_LOCK_SYSTEM_ROLE_PERMISSIONS'),
        RBAC_LANGUAGES=_env_list('RBAC_LANGUAGES', 'en,vi,ja'),
    )
    if config:
        # explicit values from tests or callers win over the environment
        app.config.update(config)

    _init_db(app.config['DATABASE_URL'])
    jwt.init_app(app)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _error_body(401, 'Unauthorized', f'Admin bearer token required: {reason}')

    @jwt.invalid_token_loader
    def bad_token(reason):
        return _error_body(401, 'Unauthorized', f'Admin bearer token rejected: {reason}')

    from .routes.roles import roles_bp
    from .routes.permissions import perms_bp
    app.register_blueprint(roles_bp, url_prefix='/iam')
    app.register_blueprint(perms_bp, url_prefix='/iam')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    _register_error_handlers(app)
    return app


def get_db():
    return SessionLocal()
