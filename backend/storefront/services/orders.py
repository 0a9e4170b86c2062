"""Checkout and order lifecycle rules.

Lifecycle graph:
    PENDING -> PROCESSING -> SHIPPED -> DELIVERED
    PENDING -> CANCELLED
    PROCESSING -> CANCELLED

Stock is reserved when an order is placed and released again on cancel.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, Set
from flask import abort
from sqlalchemy import select
from storefront import get_db
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product

ORDER_TRANSITIONS: Dict[str, Set[str]] = {
    Order.STATUS_PENDING: {Order.STATUS_PROCESSING, Order.STATUS_CANCELLED},
    Order.STATUS_PROCESSING: {Order.STATUS_SHIPPED, Order.STATUS_CANCELLED},
    Order.STATUS_SHIPPED: {Order.STATUS_DELIVERED},
    Order.STATUS_DELIVERED: set(),
    Order.STATUS_CANCELLED: set(),
}

PAYMENT_METHODS = ('cod', 'card', 'bank_transfer')
MAX_LINE_QUANTITY = 99


def can_transition(current: str, target: str) -> bool:
    return target in ORDER_TRANSITIONS.get(current, set())


def assert_can_transition(order: Order, target: str):
    if target not in Order.ALL_STATUSES:
        abort(400, description='status invalid')
    if not can_transition(order.status, target):
        abort(400, description=f'Invalid status transition {order.status} -> {target}')


def _coerce_lines(items: Iterable[Any]) -> Dict[int, int]:
    """Merge cart lines into {product_id: quantity}."""
    lines: Dict[int, int] = {}
    for raw in items:
        if not isinstance(raw, dict):
            abort(400, description='items must be objects')
        try:
            pid = int(raw.get('product_id'))
            qty = int(raw.get('quantity', 1))
        except (TypeError, ValueError):
            abort(400, description='product_id and quantity must be integers')
        if qty < 1 or qty > MAX_LINE_QUANTITY:
            abort(400, description=f'quantity must be between 1 and {MAX_LINE_QUANTITY}')
        lines[pid] = lines.get(pid, 0) + qty
    return lines


def place_order(user_id: int, data: Dict[str, Any]) -> Order:
    items = data.get('items')
    if not isinstance(items, list) or not items:
        abort(400, description='Order must contain at least one product')
    address = data.get('shipping_address')
    if not isinstance(address, dict) or not address.get('line1') or not address.get('city'):
        abort(400, description='shipping_address with line1 and city required')
    payment_method = data.get('payment_method', 'cod')
    if payment_method not in PAYMENT_METHODS:
        abort(400, description='payment_method invalid')
    lines = _coerce_lines(items)
    session = get_db()
    products = {
        p.id: p for p in session.execute(select(Product).where(Product.id.in_(list(lines)))).scalars()
    }
    order = Order(
        user_id=user_id,
        status=Order.STATUS_PENDING,
        payment_method=payment_method,
        shipping_address=address,
    )
    total = 0
    for pid, qty in lines.items():
        product = products.get(pid)
        if not product or not product.is_published:
            session.rollback()
            abort(400, description=f'Product {pid} is not available for purchase')
        if product.stock < qty:
            session.rollback()
            abort(409, description=f'Not enough stock for product "{product.name}"')
        product.stock -= qty
        total += product.price_cents * qty
        order.items.append(OrderItem(
            product_id=product.id,
            product_name=product.name,
            unit_price_cents=product.price_cents,
            quantity=qty,
        ))
    order.total_cents = total
    session.add(order)
    session.commit()
    return order


def _release_stock(order: Order):
    session = get_db()
    ids = [i.product_id for i in order.items if i.product_id is not None]
    if not ids:
        return
    products = {p.id: p for p in session.execute(select(Product).where(Product.id.in_(ids))).scalars()}
    for item in order.items:
        product = products.get(item.product_id)
        if product is not None:
            product.stock += item.quantity


def transition(order: Order, target: str, reason: str | None = None) -> Order:
    assert_can_transition(order, target)
    if target == Order.STATUS_CANCELLED:
        _release_stock(order)
        order.cancel_reason = (reason or 'Cancelled by user')[:255]
        if order.payment_status == Order.PAYMENT_PAID:
            order.payment_status = Order.PAYMENT_REFUNDED
    order.status = target
    get_db().commit()
    return order


def set_payment_status(order: Order, payment_status: str) -> Order:
    if payment_status not in Order.ALL_PAYMENT_STATUSES:
        abort(400, description='payment_status invalid')
    if payment_status == Order.PAYMENT_REFUNDED and order.payment_status != Order.PAYMENT_PAID:
        abort(400, description='Only paid orders can be refunded')
    order.payment_status = payment_status
    get_db().commit()
    return order


def order_json(o: Order) -> Dict[str, Any]:
    return {
        'id': o.id,
        'user_id': o.user_id,
        'status': o.status,
        'payment_status': o.payment_status,
        'payment_method': o.payment_method,
        'shipping_address': o.shipping_address or {},
        'total_cents': o.total_cents,
        'cancel_reason': o.cancel_reason,
        'items': [
            {
                'product_id': i.product_id,
                'product_name': i.product_name,
                'unit_price_cents': i.unit_price_cents,
                'quantity': i.quantity,
            }
            for i in o.items
        ],
        'next_statuses': sorted(ORDER_TRANSITIONS.get(o.status, set())),
    }
