from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from storefront import get_db
from storefront.models.order import Order
from storefront.decorators.auth import require_auth
from storefront.services.policy import current_user_id, assert_owns_record
from storefront.services.orders import place_order, transition, order_json
from storefront.utils.listing import apply_pagination, apply_sort, build_list_payload

orders_bp = Blueprint('orders', __name__)

ORDER_SORT_FIELDS = {
    'total_cents': Order.total_cents,
    'status': Order.status,
    'created_at': Order.created_at,
    'id': Order.id,
}


def get_order_or_404(order_id: int) -> Order:
    o = get_db().execute(select(Order).where(Order.id==order_id)).scalar_one_or_none()
    if not o:
        abort(404)
    return o


@orders_bp.post('')
@require_auth
def create_order():
    order = place_order(current_user_id(), request.json or {})
    return order_json(order), 201


@orders_bp.get('')
@require_auth
def list_my_orders():
    session = get_db()
    q = session.query(Order).filter(Order.user_id==current_user_id())
    if status := request.args.get('status'):
        if status not in Order.ALL_STATUSES:
            abort(400, description='status invalid')
        q = q.filter(Order.status==status)
    q = apply_sort(q, request.args.get('sort'), ORDER_SORT_FIELDS, Order.id)
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([order_json(o) for o in paged_q.all()], total, limit, offset)


@orders_bp.get('/<int:order_id>')
@require_auth
def get_order(order_id: int):
    o = get_order_or_404(order_id)
    assert_owns_record(o.user_id)
    return order_json(o)


@orders_bp.post('/<int:order_id>/cancel')
@require_auth
def cancel_order(order_id: int):
    o = get_order_or_404(order_id)
    assert_owns_record(o.user_id)
    reason = (request.json or {}).get('reason') if request.is_json else None
    return order_json(transition(o, Order.STATUS_CANCELLED, reason))
