"""Test seeding utilities to reduce duplication.

These helpers create users, catalog rows and auth headers idempotently so
tests sharing the in-memory database do not collide.
"""
from typing import Dict, Optional
from storefront import get_db
from storefront.models.user import User
from storefront.models.category import Category
from storefront.models.brand import Brand
from storefront.models.product import Product
from storefront.utils.listing import slugify

DEFAULT_PASSWORD = 'password123'


def ensure_user(email: str, name: Optional[str] = None, password: str = DEFAULT_PASSWORD, role: str = User.ROLE_CUSTOMER) -> User:
    session = get_db()
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(name=name or email.split('@')[0], email=email, password_hash='', role=role)
        u.set_password(password)
        session.add(u); session.commit(); session.refresh(u)
    return u


def ensure_admin(email: str = 'admin@example.com') -> User:
    return ensure_user(email, name='Admin', role=User.ROLE_ADMIN)


def ensure_category(name: str) -> Category:
    session = get_db()
    c = session.query(Category).filter_by(name=name).one_or_none()
    if not c:
        c = Category(name=name, slug=slugify(name))
        session.add(c); session.commit(); session.refresh(c)
    return c


def ensure_brand(name: str) -> Brand:
    session = get_db()
    b = session.query(Brand).filter_by(name=name).one_or_none()
    if not b:
        b = Brand(name=name, slug=slugify(name))
        session.add(b); session.commit(); session.refresh(b)
    return b


def ensure_product(sku: str, name: str = None, price_cents: int = 1000, stock: int = 10,
                   category: Category = None, brand: Brand = None, published: bool = True) -> Product:
    """Idempotently ensure a Product exists (by SKU). Returns the Product."""
    session = get_db()
    p = session.query(Product).filter_by(sku=sku).one_or_none()
    if not p:
        name = name or sku
        p = Product(
            name=name, slug=slugify(f'{name}-{sku}'), sku=sku, price_cents=price_cents, stock=stock,
            category_id=category.id if category else None, brand_id=brand.id if brand else None,
            is_published=published,
        )
        session.add(p); session.commit(); session.refresh(p)
    return p


def login(client, email: str, password: str = DEFAULT_PASSWORD) -> str:
    resp = client.post('/auth/login', json={'email': email, 'password': password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()['access_token']


def auth_headers(client, email: str, password: str = DEFAULT_PASSWORD) -> Dict[str, str]:
    return {'Authorization': f'Bearer {login(client, email, password)}'}


def admin_headers(client) -> Dict[str, str]:
    admin = ensure_admin()
    return auth_headers(client, admin.email)


__all__ = [
    'ensure_user', 'ensure_admin', 'ensure_category', 'ensure_brand', 'ensure_product',
    'login', 'auth_headers', 'admin_headers', 'DEFAULT_PASSWORD'
]
