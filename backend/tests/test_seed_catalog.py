from storefront import get_db
from storefront.models.product import Product
from scripts.seed_catalog import ensure_categories, ensure_brands, ensure_products, ensure_initial_admin, PRODUCTS


def test_seed_is_idempotent(monkeypatch):
    monkeypatch.setenv('SEED_ADMIN_EMAIL', 'seed-admin@example.com')
    session = get_db()
    try:
        admin = ensure_initial_admin(session)
        assert admin.is_admin
        ensure_categories(session)
        ensure_brands(session)
        ensure_products(session, admin.id)
        session.flush()
        seeded = {p.sku for p in session.query(Product).filter(Product.sku.in_([row[1] for row in PRODUCTS]))}
        assert seeded == {row[1] for row in PRODUCTS}
        # second pass creates nothing new
        assert ensure_initial_admin(session).id == admin.id
        assert ensure_categories(session) == 0
        assert ensure_brands(session) == 0
        assert ensure_products(session, admin.id) == 0
    finally:
        session.rollback()
