'''Flask 装配层：注入配置、绑定数据库、注册蓝图和 JSON 错误处理，不启动服务。
会被 run.py、WSGI 服务器和单元测试调用'''
# renobudget/app_factory.py
import os
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from renobudget.db.session import configure_engine
from renobudget.errors import DomainError
from renobudget.logger import get_logger

# 加载环境变量
load_dotenv()

# 获取项目根目录（使用绝对路径）
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

logger = get_logger(__name__)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def default_config() -> dict:
    """从环境变量读取配置"""
    # 确保 SECRET_KEY 是字符串类型（不是 bytes）
    secret_key = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    if isinstance(secret_key, bytes):
        secret_key = secret_key.decode("utf-8")

    db_path = os.path.join(BASE_DIR, "renobudget.db")
    return {
        "SECRET_KEY": secret_key,
        "DATABASE_URL": os.getenv("DATABASE_URL", f"sqlite:///{db_path}"),
        "SEED_ROOMS": _env_flag("SEED_ROOMS", True),
        "ADMIN_EMAIL": os.getenv("ADMIN_EMAIL"),
        "ADMIN_PASSWORD": os.getenv("ADMIN_PASSWORD"),
        "ADMIN_NAME": os.getenv("ADMIN_NAME", "Administrator"),
        "AUTO_INIT": True,
    }


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """应用工厂函数"""
    app = Flask(__name__)

    app.config.update(default_config())
    if config:
        app.config.update(config)
    app.json.sort_keys = False

    # 数据库绑定
    configure_engine(app.config["DATABASE_URL"])
    if app.config["AUTO_INIT"]:
        from renobudget.db.auto_init import auto_init
        auto_init(
            seed_rooms=app.config["SEED_ROOMS"],
            admin_email=app.config["ADMIN_EMAIL"],
            admin_password=app.config["ADMIN_PASSWORD"],
            admin_name=app.config["ADMIN_NAME"],
        )

    # 注册蓝图
    from renobudget.routes.auth import auth_bp
    from renobudget.routes.expenses import expenses_bp
    from renobudget.routes.reports import reports_bp
    from renobudget.routes.rooms import rooms_bp
    from renobudget.routes.timeline import timeline_bp

    app.register_blueprint(rooms_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(timeline_bp)

    # 注册错误处理
    register_error_handlers(app)

    return app


def register_error_handlers(app: Flask) -> None:
    """注册错误处理器，所有错误都以 JSON 返回"""

    @app.errorhandler(DomainError)
    def domain_error(error: DomainError):
        if error.status_code >= 500:
            logger.error("%s: %s", type(error).__name__, error.message)
            return jsonify({"success": False, "error": "Internal server error", "errorType": error.error_type.value}), error.status_code
        return jsonify(error.to_payload()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return jsonify({"success": False, "error": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def internal_error(error: Exception):
        logger.exception("Unhandled error: %s", error)
        return jsonify({"success": False, "error": "Internal server error"}), 500
