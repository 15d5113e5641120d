"""花店訂單管理後端 Flask 應用。"""

from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from flowershop.config import AppConfig, load_env
from flowershop.db import session as db
from flowershop.services.cart_service import CartService
from flowershop.services.catalog_service import CatalogService
from flowershop.services.errors import ShopError
from flowershop.services.logging import log_event, set_log_level
from flowershop.services.order_service import OrderService
from flowershop.services.order_states import OrderStateMachine
from flowershop.services.pricing import PricingEngine
from flowershop.services.stock_guard import StockGuard
from routes import admin, api, cart, orders


def _error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ShopError)
    def handle_shop_error(exc: ShopError):
        return _error(exc.message, exc.http_status)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(exc: SQLAlchemyError):
        log_event("error", "db.error", error=type(exc).__name__, detail=str(exc))
        return _error("Server error", 500)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return _error(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        log_event("error", "request.unhandled", error=type(exc).__name__, detail=str(exc))
        return _error("Server error", 500)


def create_app(config: Optional[AppConfig] = None) -> Flask:
    config = config or load_env()
    set_log_level(config.log_level)
    db.configure_engine(config.database_url)
    db.create_all()

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.jwt_secret
    app.config["FLOWERSHOP_CONFIG"] = config

    catalog = CatalogService()
    stock_guard = StockGuard()
    pricing = PricingEngine(catalog, delivery_fee=config.delivery_fee)
    components = {
        "catalog": catalog,
        "pricing": pricing,
        "stock_guard": stock_guard,
        "cart_service": CartService(catalog, stock_guard),
        "order_service": OrderService(pricing, stock_guard),
        "state_machine": OrderStateMachine(stock_guard=stock_guard, requires_receipt=config.requires_receipt),
    }
    app.extensions["flowershop_components"] = components

    app.register_blueprint(api.api_bp)
    app.register_blueprint(orders.orders_bp)
    app.register_blueprint(cart.cart_bp)
    app.register_blueprint(admin.admin_bp)
    _register_error_handlers(app)

    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
