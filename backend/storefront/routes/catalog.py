from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, or_
from storefront import get_db
from storefront.models.product import Product
from storefront.models.category import Category
from storefront.models.brand import Brand
from storefront.utils.listing import apply_pagination, apply_sort, build_list_payload, int_arg, bool_arg

cat_bp = Blueprint('catalog', __name__)

PRODUCT_SORT_FIELDS = {
    'price_cents': Product.price_cents,
    'name': Product.name,
    'stock': Product.stock,
    'id': Product.id,
}


def product_json(p: Product):
    return {
        'id': p.id,
        'name': p.name,
        'slug': p.slug,
        'sku': p.sku,
        'price_cents': p.price_cents,
        'stock': p.stock,
        'in_stock': p.stock > 0,
        'category': p.category.slug if p.category else None,
        'brand': p.brand.slug if p.brand else None,
        'description': p.description,
        'is_published': p.is_published,
        'is_featured': p.is_featured,
    }


def category_json(c: Category):
    return {'id': c.id, 'name': c.name, 'slug': c.slug, 'description': c.description}


def brand_json(b: Brand):
    return {'id': b.id, 'name': b.name, 'slug': b.slug}


def filter_products(q):
    """Storefront filters shared by the public and admin product listings."""
    if category := request.args.get('category'):
        q = q.join(Category, Product.category_id==Category.id).filter(Category.slug==category)
    if brand := request.args.get('brand'):
        q = q.join(Brand, Product.brand_id==Brand.id).filter(Brand.slug==brand)
    if search := request.args.get('search'):
        like = f'%{search}%'
        q = q.filter(or_(Product.name.ilike(like), Product.description.ilike(like), Product.sku==search))
    min_price = int_arg('min_price_cents', minimum=0)
    max_price = int_arg('max_price_cents', minimum=0)
    if min_price is not None and max_price is not None and min_price > max_price:
        abort(400, description='min_price_cents cannot exceed max_price_cents')
    if min_price is not None:
        q = q.filter(Product.price_cents >= min_price)
    if max_price is not None:
        q = q.filter(Product.price_cents <= max_price)
    featured = bool_arg('featured')
    if featured is not None:
        q = q.filter(Product.is_featured==featured)
    return q


def list_products_response(q):
    q = filter_products(q)
    q = apply_sort(q, request.args.get('sort'), PRODUCT_SORT_FIELDS, Product.id)
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([product_json(p) for p in paged_q.all()], total, limit, offset)


@cat_bp.get('/products')
def list_products():
    session = get_db()
    q = session.query(Product).filter(Product.is_published.is_(True))
    return list_products_response(q)


@cat_bp.get('/products/<int:product_id>')
def get_product(product_id: int):
    session = get_db()
    p = session.execute(select(Product).where(Product.id==product_id)).scalar_one_or_none()
    if not p or not p.is_published:
        abort(404)
    return product_json(p)


@cat_bp.get('/products/by-slug/<slug>')
def get_product_by_slug(slug: str):
    session = get_db()
    p = session.execute(select(Product).where(Product.slug==slug)).scalar_one_or_none()
    if not p or not p.is_published:
        abort(404)
    return product_json(p)


@cat_bp.get('/categories')
def list_categories():
    session = get_db()
    rows = session.execute(select(Category).order_by(Category.name.asc(), Category.id.asc())).scalars().all()
    return {'data': [category_json(c) for c in rows]}


@cat_bp.get('/brands')
def list_brands():
    session = get_db()
    rows = session.execute(select(Brand).order_by(Brand.name.asc(), Brand.id.asc())).scalars().all()
    return {'data': [brand_json(b) for b in rows]}
