"""
Pytest fixtures for ERP Master backend tests.

Provides an application on a throwaway SQLite file, the document store,
a Flask test client and seeded documents for handler-level tests.
"""

from decimal import Decimal

import pytest

from erp_master import create_app
from erp_master.extensions import db
from erp_master.models import Customer, Product, initial_document
from erp_master.services.document_store import get_document_store


PRODUCT_ID = "prod-widget"
CUSTOMER_ID = "0911000000"


def make_product(**overrides) -> Product:
    fields = dict(
        id=PRODUCT_ID,
        name="Widget",
        sku="WID-1",
        barcode="111222333",
        cost_price=Decimal("2"),
        sell_price=Decimal("5"),
        stock=10,
        category="Hardware",
    )
    fields.update(overrides)
    return Product(**fields)


def make_customer(**overrides) -> Customer:
    fields = dict(id=CUSTOMER_ID, name="Abebe Kebede", phone=CUSTOMER_ID)
    fields.update(overrides)
    return Customer(**fields)


def balance(document, account_id: str) -> Decimal:
    return document.find_account(account_id).balance


@pytest.fixture
def document():
    """First-run document plus one product (stock 10, cost 2, sell 5) and one customer."""
    doc = initial_document()
    doc.products.append(make_product())
    doc.customers.append(make_customer())
    return doc


@pytest.fixture
def app_config(tmp_path):
    """Per-test config overrides; tests may update this before `app` is built."""
    return {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'erp_master.sqlite3'}",
        "MIRROR_BACKEND": "none",
        "MIRROR_RECOVER_ON_START": False,
        "MIRROR_DEBOUNCE_SECONDS": 60,
    }


@pytest.fixture
def app(app_config):
    """Create application for testing."""
    app = create_app(app_config)

    with app.app_context():
        db.create_all()
        yield app
        get_document_store().scheduler.cancel()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def store(app):
    return get_document_store()


@pytest.fixture
def seeded_store(store):
    """Store whose committed document holds the seeded product and customer."""
    doc = initial_document()
    doc.products.append(make_product())
    doc.customers.append(make_customer())
    store.replace(doc)
    return store


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
