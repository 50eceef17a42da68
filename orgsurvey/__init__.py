import logging

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from .extensions import db, login_manager, migrate, rq
from .utils.responses import ApiError, failure


def create_app(config_object='config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db, directory="alembic")
    login_manager.init_app(app)
    rq.init_app(app)

    from . import models  # noqa: F401  テーブル定義を登録

    @login_manager.user_loader
    def load_user(user_id):
        from .models.user import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return failure("ログインが必要です", 401)

    from .blueprints.auth import bp as auth_bp
    from .blueprints.organization import bp as organization_bp
    from .blueprints.surveys import bp as surveys_bp
    from .blueprints.problems import bp as problems_bp
    from .blueprints.reports import bp as reports_bp
    from .blueprints.system import bp as system_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(organization_bp, url_prefix="/api")
    app.register_blueprint(surveys_bp, url_prefix="/api")
    app.register_blueprint(problems_bp, url_prefix="/api")
    app.register_blueprint(reports_bp, url_prefix="/api")
    app.register_blueprint(system_bp, url_prefix="/api")

    @app.errorhandler(ApiError)
    def handle_api_error(e):
        db.session.rollback()
        return failure(e.message, e.status, **e.payload)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return failure(e.description or e.name, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        app.logger.exception('Unhandled error on %s %s', request.method, request.path)
        db.session.rollback()
        return failure("サーバーエラーが発生しました", 500)

    @app.get('/api/health')
    def health():
        return {"success": True, "status": "ok"}

    return app
