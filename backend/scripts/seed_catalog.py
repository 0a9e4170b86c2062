#!/usr/bin/env python
"""Idempotent seed script for a demo storefront catalog.

Usage:
    python backend/scripts/seed_catalog.py                 # seed normally
    python backend/scripts/seed_catalog.py --dry-run       # run logic then rollback (no DB changes)
    python backend/scripts/seed_catalog.py --show-catalog  # print product counts per category after seeding
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, func

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from storefront import create_app, get_db  # type: ignore
from storefront.models.user import Base, User
from storefront.models.category import Category
from storefront.models.brand import Brand
from storefront.models.product import Product
import storefront.models.order  # noqa: F401
from storefront.utils.listing import slugify

CATEGORIES = [
    ('Watches', 'Luxury and everyday timepieces'),
    ('Jewelry', 'Rings, necklaces and bracelets'),
    ('Bags & Wallets', None),
    ('Fragrance', 'Perfume and cologne'),
    ('Home Decor', None),
]

BRANDS = ['Northwind', 'Aurelia', 'Maison Ivo', 'Kestrel']

# (name, sku, price_cents, stock, category, brand, featured)
PRODUCTS = [
    ('Classic Steel Chronograph', 'WAT-001', 1899000, 12, 'Watches', 'Northwind', True),
    ('Slim Leather Dress Watch', 'WAT-002', 899000, 20, 'Watches', 'Aurelia', False),
    ('Gold Hoop Earrings', 'JEW-001', 459000, 35, 'Jewelry', 'Aurelia', True),
    ('Pearl Pendant Necklace', 'JEW-002', 629000, 8, 'Jewelry', 'Maison Ivo', False),
    ('Calfskin Tote', 'BAG-001', 1249000, 5, 'Bags & Wallets', 'Maison Ivo', True),
    ('Bifold Card Wallet', 'BAG-002', 189000, 60, 'Bags & Wallets', 'Kestrel', False),
    ('Eau de Parfum 50ml', 'FRA-001', 329000, 40, 'Fragrance', 'Aurelia', False),
    ('Brass Table Lamp', 'DEC-001', 549000, 0, 'Home Decor', 'Kestrel', False),
]


def ensure_categories(session):
    existing = {c.name for c in session.execute(select(Category)).scalars().all()}
    created = 0
    for name, description in CATEGORIES:
        if name not in existing:
            session.add(Category(name=name, slug=slugify(name), description=description))
            created += 1
    session.flush()
    return created


def ensure_brands(session):
    existing = {b.name for b in session.execute(select(Brand)).scalars().all()}
    created = 0
    for name in BRANDS:
        if name not in existing:
            session.add(Brand(name=name, slug=slugify(name)))
            created += 1
    session.flush()
    return created


def ensure_products(session, admin_id=None):
    categories = {c.name: c for c in session.execute(select(Category)).scalars().all()}
    brands = {b.name: b for b in session.execute(select(Brand)).scalars().all()}
    existing = {p.sku for p in session.execute(select(Product)).scalars().all()}
    created = 0
    for name, sku, price, stock, category, brand, featured in PRODUCTS:
        if sku in existing:
            continue
        if category not in categories or brand not in brands:
            print(f"[WARN] Missing category/brand for {sku}; skipping")
            continue
        session.add(Product(
            name=name, slug=slugify(name), sku=sku, price_cents=price, stock=stock,
            category_id=categories[category].id, brand_id=brands[brand].id,
            is_published=True, is_featured=featured, created_by=admin_id,
        ))
        created += 1
    return created


def ensure_initial_admin(session):
    admin_email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com')
    admin = session.execute(select(User).where(User.email==admin_email)).scalar_one_or_none()
    if not admin:
        admin = User(name='Admin', email=admin_email, password_hash='', role=User.ROLE_ADMIN)
        admin.set_password(os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'))
        session.add(admin)
        session.flush()
        print(f"[INFO] Created initial admin user {admin_email} with temporary password.")
    return admin


def print_catalog_summary(session):
    rows = session.execute(
        select(Category.name, func.count(Product.id))
        .select_from(Category)
        .outerjoin(Product, Product.category_id==Category.id)
        .group_by(Category.name)
        .order_by(Category.name)
    ).all()
    if not rows:
        print("[INFO] No categories present.")
        return
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Category'.ljust(name_w)} | Products")
    print('-' * (name_w + 12))
    for name, cnt in rows:
        print(f"{name.ljust(name_w)} | {str(cnt).rjust(8)}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed demo storefront catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_catalog.py\n  dry run: seed_catalog.py --dry-run\n  show catalog: seed_catalog.py --show-catalog\n""")
    )
    p.add_argument('--show-catalog', action='store_true', help='Print product counts per category after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        # lightweight fallback if migrations not run yet; prefer `alembic upgrade head`
        Base.metadata.create_all(session.get_bind(), checkfirst=True)
        try:
            admin = ensure_initial_admin(session)
            created_c = ensure_categories(session)
            created_b = ensure_brands(session)
            created_p = ensure_products(session, admin.id)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Categories: {created_c}, Brands: {created_b}, Products: {created_p}")
            else:
                session.commit()
                print(f"[OK] Categories created: {created_c}, Brands created: {created_b}, Products created: {created_p}")
            if args.show_catalog:
                print_catalog_summary(session)
        except Exception:
            session.rollback()
            raise
    return 0


if __name__ == '__main__':
    sys.exit(main())
