import os, sys, pytest
# Ensure backend directory is on path so 'storefront' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from storefront import create_app, get_db
from storefront.models.user import Base
# Import all model modules to ensure tables are registered before create_all
import storefront.models.category  # noqa: F401
import storefront.models.brand  # noqa: F401
import storefront.models.product  # noqa: F401
import storefront.models.order  # noqa: F401


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({
        'TESTING': True,
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256',
    })
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
