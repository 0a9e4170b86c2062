"""Back-office endpoints: catalog management, users and order processing."""
from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from storefront import get_db
from storefront.decorators.auth import require_admin
from storefront.models.brand import Brand
from storefront.models.category import Category
from storefront.models.order import Order
from storefront.models.product import Product
from storefront.models.user import User
from storefront.routes.auth import user_json
from storefront.routes.catalog import product_json, category_json, brand_json, list_products_response
from storefront.routes.orders import get_order_or_404, ORDER_SORT_FIELDS
from storefront.services.orders import transition, set_payment_status, order_json
from storefront.services.policy import current_user_id
from storefront.utils.listing import apply_pagination, apply_sort, build_list_payload, slugify

admin_bp = Blueprint('admin', __name__)

PRODUCT_FIELDS = ('name', 'sku', 'price_cents', 'stock', 'description', 'is_published', 'is_featured', 'category_id', 'brand_id')


def _get_or_404(model, obj_id: int):
    obj = get_db().execute(select(model).where(model.id==obj_id)).scalar_one_or_none()
    if not obj:
        abort(404)
    return obj


def _apply_product_fields(p: Product, data: dict):
    session = get_db()
    for field in PRODUCT_FIELDS:
        if field not in data:
            continue
        val = data[field]
        if field in ('price_cents', 'stock'):
            try:
                val = int(val)
            except (TypeError, ValueError):
                abort(400, description=f'{field} must be int')
            if val < 0:
                abort(400, description=f'{field} cannot be negative')
        elif field in ('is_published', 'is_featured'):
            if not isinstance(val, bool):
                abort(400, description=f'{field} must be boolean')
        elif field in ('category_id', 'brand_id'):
            if val is not None:
                model = Category if field == 'category_id' else Brand
                try:
                    val = int(val)
                except (TypeError, ValueError):
                    abort(400, description=f'{field} must be int')
                if not session.get(model, val):
                    abort(400, description=f'{field} unknown')
        elif field in ('name', 'sku') and not val:
            abort(400, description=f'{field} cannot be empty')
        setattr(p, field, val)


# --- Products ---

@admin_bp.get('/products')
@require_admin
def list_products():
    # drafts included
    return list_products_response(get_db().query(Product))


@admin_bp.post('/products')
@require_admin
def create_product():
    session = get_db()
    data = request.json or {}
    if not data.get('name') or not data.get('sku'):
        abort(400, description='name & sku required')
    slug = data.get('slug') or slugify(data['name'])
    if session.execute(select(Product).where(Product.sku==data['sku'])).scalar_one_or_none():
        abort(409, description='sku exists')
    if session.execute(select(Product).where(Product.slug==slug)).scalar_one_or_none():
        abort(409, description='slug exists')
    p = Product(slug=slug, created_by=current_user_id())
    _apply_product_fields(p, data)
    session.add(p)
    session.commit()
    return product_json(p), 201


@admin_bp.put('/products/<int:product_id>')
@require_admin
def update_product(product_id: int):
    session = get_db()
    p = _get_or_404(Product, product_id)
    data = request.json or {}
    if 'sku' in data and data['sku'] != p.sku:
        if session.execute(select(Product).where(Product.sku==data['sku'])).scalar_one_or_none():
            abort(409, description='sku exists')
    _apply_product_fields(p, data)
    session.commit()
    return product_json(p)


@admin_bp.delete('/products/<int:product_id>')
@require_admin
def delete_product(product_id: int):
    session = get_db()
    p = _get_or_404(Product, product_id)
    session.delete(p)
    session.commit()
    return '', 204


# --- Categories & brands ---

@admin_bp.post('/categories')
@require_admin
def create_category():
    session = get_db()
    data = request.json or {}
    name = (data.get('name') or '').strip()
    if not name:
        abort(400, description='name required')
    slug = data.get('slug') or slugify(name)
    if session.execute(select(Category).where((Category.name==name) | (Category.slug==slug))).scalar_one_or_none():
        abort(409, description='category exists')
    c = Category(name=name, slug=slug, description=data.get('description'))
    session.add(c)
    session.commit()
    return category_json(c), 201


@admin_bp.put('/categories/<int:category_id>')
@require_admin
def update_category(category_id: int):
    session = get_db()
    c = _get_or_404(Category, category_id)
    data = request.json or {}
    if 'name' in data:
        if not data['name']:
            abort(400, description='name cannot be empty')
        c.name = data['name']
    if 'description' in data:
        c.description = data['description']
    session.commit()
    return category_json(c)


@admin_bp.post('/brands')
@require_admin
def create_brand():
    session = get_db()
    data = request.json or {}
    name = (data.get('name') or '').strip()
    if not name:
        abort(400, description='name required')
    slug = data.get('slug') or slugify(name)
    if session.execute(select(Brand).where((Brand.name==name) | (Brand.slug==slug))).scalar_one_or_none():
        abort(409, description='brand exists')
    b = Brand(name=name, slug=slug)
    session.add(b)
    session.commit()
    return brand_json(b), 201


# --- Users ---

@admin_bp.get('/users')
@require_admin
def list_users():
    session = get_db()
    q = session.query(User)
    if role := request.args.get('role'):
        q = q.filter(User.role==role)
    if search := request.args.get('search'):
        q = q.filter(User.email.ilike(f'%{search}%') | User.name.ilike(f'%{search}%'))
    q = apply_sort(q, request.args.get('sort'), {'name': User.name, 'email': User.email, 'id': User.id}, User.id)
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([user_json(u) for u in paged_q.all()], total, limit, offset)


@admin_bp.put('/users/<int:user_id>')
@require_admin
def update_user(user_id: int):
    session = get_db()
    u = _get_or_404(User, user_id)
    data = request.json or {}
    if 'role' in data:
        if data['role'] not in User.ALL_ROLES:
            abort(400, description='role invalid')
        if u.id == current_user_id() and data['role'] != User.ROLE_ADMIN:
            abort(400, description='Cannot remove your own admin role')
        u.role = data['role']
    if 'is_active' in data:
        if not isinstance(data['is_active'], bool):
            abort(400, description='is_active must be boolean')
        if u.id == current_user_id() and not data['is_active']:
            abort(400, description='Cannot deactivate yourself')
        u.is_active = data['is_active']
    if 'name' in data:
        if not data['name']:
            abort(400, description='name cannot be empty')
        u.name = data['name']
    session.commit()
    return user_json(u)


# --- Orders ---

@admin_bp.get('/orders')
@require_admin
def list_orders():
    session = get_db()
    q = session.query(Order)
    if status := request.args.get('status'):
        if status not in Order.ALL_STATUSES:
            abort(400, description='status invalid')
        q = q.filter(Order.status==status)
    if user_id := request.args.get('user_id'):
        try:
            q = q.filter(Order.user_id==int(user_id))
        except ValueError:
            abort(400, description='user_id must be int')
    q = apply_sort(q, request.args.get('sort'), ORDER_SORT_FIELDS, Order.id)
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([order_json(o) for o in paged_q.all()], total, limit, offset)


@admin_bp.post('/orders/<int:order_id>/status')
@require_admin
def update_order_status(order_id: int):
    o = get_order_or_404(order_id)
    data = request.json or {}
    if not data.get('status'):
        abort(400, description='status required')
    return order_json(transition(o, data['status'], data.get('reason')))


@admin_bp.post('/orders/<int:order_id>/payment')
@require_admin
def update_order_payment(order_id: int):
    o = get_order_or_404(order_id)
    data = request.json or {}
    return order_json(set_payment_status(o, data.get('payment_status')))
