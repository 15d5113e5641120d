"""購物車 API。"""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, g, jsonify, request

from flowershop.auth import auth_required
from flowershop.utils.validators import json_object


cart_bp = Blueprint("flowershop_cart", __name__, url_prefix="/api/cart")


def _cart():
    components: Dict[str, Any] = current_app.extensions["flowershop_components"]
    return components["cart_service"]


@cart_bp.get("")
@auth_required
def get_cart():
    return jsonify({"success": True, "cart": _cart().get_cart(user_id=g.user["id"])})


@cart_bp.post("/add")
@auth_required
def add_to_cart():
    payload = json_object(request.get_json(silent=True))
    count = _cart().add_item(
        user_id=g.user["id"],
        product_id=payload.get("product_id"),
        quantity=payload.get("quantity", 1),
        customization=payload.get("customization"),
    )
    return jsonify({"success": True, "message": "Added to cart", "cartCount": count})


@cart_bp.get("/count")
@auth_required
def cart_count():
    return jsonify({"success": True, "count": _cart().count(user_id=g.user["id"])})


@cart_bp.put("/<int:item_id>")
@auth_required
def update_cart_item(item_id: int):
    payload = json_object(request.get_json(silent=True))
    _cart().update_item(user_id=g.user["id"], item_id=item_id, quantity=payload.get("quantity"))
    return jsonify({"success": True, "message": "Cart updated"})


@cart_bp.delete("/<int:item_id>")
@auth_required
def remove_cart_item(item_id: int):
    _cart().remove_item(user_id=g.user["id"], item_id=item_id)
    return jsonify({"success": True, "message": "Removed from cart"})


@cart_bp.delete("")
@auth_required
def clear_cart():
    _cart().clear(user_id=g.user["id"])
    return jsonify({"success": True, "message": "Cart cleared"})
