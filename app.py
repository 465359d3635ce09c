"""YUANDI 주문·재고 관리 Flask 애플리케이션."""

from __future__ import annotations

from typing import Optional

from flask import Flask

from config import YuandiConfig
from routes import api, auth, track
from services import StaffRepository
from yuandi.db.session import build_engine, build_session_factory, init_db
from yuandi.services import ExchangeRateService, OrderService
from yuandi.services.logging import configure_logging


def create_app(config: Optional[YuandiConfig] = None) -> Flask:
    config = config or YuandiConfig.load()
    app_config = config.app_config
    configure_logging(app_config.log_level)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.json.ensure_ascii = False
    app.config["YUANDI_CONFIG"] = config

    engine = build_engine(app_config.database_url)
    init_db(engine)
    session_factory = build_session_factory(engine)

    staff_repo = StaffRepository(config.staff_file)
    staff_repo.ensure_admin(config.admin_username, config.admin_password)

    components = {
        "staff_repo": staff_repo,
        "order_service": OrderService(session_factory),
        "exchange_rate_service": ExchangeRateService(
            session_factory,
            exim_api_key=app_config.korea_exim_api_key,
            fixer_api_key=app_config.fixer_api_key,
        ),
    }
    app.extensions["yuandi_components"] = components

    app.register_blueprint(auth.auth_bp)
    app.register_blueprint(api.api_bp)
    app.register_blueprint(track.track_bp)

    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
