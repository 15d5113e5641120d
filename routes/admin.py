"""管理後台 API：訂單狀態、付款確認與銷售統計。"""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from flowershop.auth import admin_only, staff_required
from flowershop.utils.validators import json_object


admin_bp = Blueprint("flowershop_admin", __name__, url_prefix="/api/admin")


def _components() -> Dict[str, Any]:
    return current_app.extensions["flowershop_components"]


@admin_bp.get("/orders")
@staff_required
def list_all_orders():
    orders = _components()["order_service"].list_all_orders(
        status=request.args.get("status") or None,
        payment_status=request.args.get("payment_status") or None,
    )
    return jsonify({"success": True, "orders": orders})


@admin_bp.put("/orders/<int:order_id>/status")
@staff_required
def update_order_status(order_id: int):
    payload = json_object(request.get_json(silent=True))
    status = _components()["state_machine"].set_status(order_id, payload.get("status"))
    return jsonify({"success": True, "message": "Status updated", "status": status})


@admin_bp.put("/orders/<int:order_id>/payment-status")
@staff_required
def update_payment_status(order_id: int):
    payload = json_object(request.get_json(silent=True))
    payment_status = _components()["state_machine"].set_payment_status(order_id, payload.get("payment_status"))
    return jsonify({"success": True, "message": "Payment status updated", "payment_status": payment_status})


@admin_bp.put("/orders/<int:order_id>/confirm-payment")
@staff_required
def confirm_payment(order_id: int):
    payload = json_object(request.get_json(silent=True))
    _components()["state_machine"].confirm_payment(
        order_id,
        payload.get("payment_type"),
        receipt_url=payload.get("receipt_url"),
    )
    return jsonify({"success": True, "message": "Payment confirmed"})


@admin_bp.get("/sales/summary")
@admin_only
def sales_summary():
    return jsonify({"success": True, "summary": _components()["order_service"].sales_summary()})
