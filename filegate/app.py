import logging

from flask import Flask, jsonify
from werkzeug.exceptions import BadRequest, HTTPException, RequestEntityTooLarge

from filegate.common import errors
from filegate.common.context import EXTENSION_KEY, GatewayContext
from filegate.common.db import db
from filegate.common.response import fail
from filegate.logging_config import setup_logging
from filegate.routes.admin_routes import admin_bp
from filegate.routes.auth_routes import auth_bp
from filegate.routes.file_routes import file_bp
from filegate.services.storage.factory import build_storage

# 注册模型，保证 create_all 能建表
from filegate.models import bucket, file, user  # noqa: F401

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        limit = app.config.get('MAX_CONTENT_LENGTH')
        return fail(errors.invalid_request(
            f"File too large: upload exceeds the limit of {limit} bytes (field: file).",
            'LIMIT_FILE_SIZE',
        ))

    @app.errorhandler(BadRequest)
    def handle_bad_request(e):
        return fail(errors.invalid_request(f"Malformed request: {e.description}", 'MALFORMED_REQUEST'))

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({"message": e.description, "code": e.name.upper().replace(' ', '_')}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception("Unhandled error")
        return fail(errors.internal(str(e)))


def create_app(config_overrides=None, storage=None):
    app = Flask(__name__)
    app.config.from_object('filegate.config.Config')
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app.config.get('LOG_LEVEL', 'INFO'), app.config.get('LOG_FORMAT', 'text'))

    db.init_app(app)

    # 存储与数据库句柄只在这里构建一次，之后按引用传给各 pipeline
    app.extensions[EXTENSION_KEY] = GatewayContext(
        session=db.session,
        storage=storage or build_storage(app.config),
        public_url_base=app.config['PUBLIC_FILE_URL_BASE'],
    )

    app.register_blueprint(auth_bp)
    app.register_blueprint(file_bp, url_prefix='/file')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    register_error_handlers(app)

    with app.app_context():
        db.create_all()

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host='0.0.0.0', port=5000, threaded=True)
