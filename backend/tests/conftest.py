"""
Pytest fixtures for boutique POS backend tests.

Provides an in-memory database, a test client, the default employees and a
product factory.
"""

import pytest

from boutique_pos import create_app
from boutique_pos.extensions import db
from boutique_pos.services import employee_service, products_service


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
        'ALLOW_OVERSELL': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.config['ALLOW_OVERSELL'] = False

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def employees(db_session):
    """The default roster: Abdulrahman (manager), Heba, Hadeel."""
    employee_service.ensure_default_employees()
    return {e.name: e for e in employee_service.list_employees()}


@pytest.fixture(scope='function')
def employee(employees):
    return employees['Heba']


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(code, inventory={"Red": {"M": 3}}, store_price_cents=..., online_price_cents=...)."""
    def _make(code='ABY-001', inventory=None, store_price_cents=10000, online_price_cents=12000, **fields):
        patch = {
            'product_code': code,
            'name': fields.pop('name', f'Product {code}'),
            'store_price_cents': store_price_cents,
            'online_price_cents': online_price_cents,
            **fields,
        }
        entries = products_service.parse_inventory_spec(inventory=inventory or {})
        return products_service.create_product(patch=patch, inventory=entries)

    return _make


@pytest.fixture(scope='function')
def product(make_product):
    """Abaya in Black (S=2, M=5) and Navy (M=1)."""
    return make_product(inventory={'Black': {'S': 2, 'M': 5}, 'Navy': {'M': 1}})


@pytest.fixture(scope='function')
def stock(db_session):
    """stock(product_id, color, size) -> current on-hand quantity of a variant."""
    from boutique_pos.services.inventory_service import get_variant_quantity

    def _stock(product_id: int, color: str, size: str) -> int:
        db.session.expire_all()
        return get_variant_quantity(product_id, color, size)

    return _stock


@pytest.fixture(scope='function')
def headers(employee):
    """X-Employee-Id (and optional X-Store-Context) headers for the default employee."""
    def _headers(context: str | None = None, who=None) -> dict:
        result = {'X-Employee-Id': str((who or employee).id)}
        if context:
            result['X-Store-Context'] = context
        return result

    return _headers
