"""公開 API：健康檢查與商品查詢。"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify


api_bp = Blueprint("flowershop_api", __name__, url_prefix="/api")


@api_bp.get("/health")
def health():
    return jsonify({"success": True, "status": "ok"})


@api_bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    catalog = current_app.extensions["flowershop_components"]["catalog"]
    product = catalog.get_product(product_id)
    if not product:
        return jsonify({"success": False, "message": "Product not found"}), 404
    return jsonify({"success": True, "product": product})
