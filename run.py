# run.py
"""
run.py
标准 Flask 服务启动脚本（给开发者 / 运维 / CLI 用）
WSGI 部署请直接调用 renobudget.app_factory.create_app
"""
import os

from renobudget.app_factory import create_app
from renobudget.logger import get_logger

logger = get_logger("run")


def main():
    # 1️创建 Flask app（内部完成数据库绑定和自动初始化）
    app = create_app()
    logger.info("📦 Using database: %s", app.config["DATABASE_URL"])

    # 2️启动参数
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "").lower() in ("1", "true")

    # 3️启动服务
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
