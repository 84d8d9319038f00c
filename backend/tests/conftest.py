"""
Pytest fixtures for dailyops backend tests.

Provides test database setup, domain fixtures (workers, customers, products,
today's inventory) and test client.
"""

import pytest

from dailyops import create_app
from dailyops.extensions import db
from dailyops.models import Customer, CustomerProduct, InventoryRecord, Product, Worker
from dailyops.time_utils import business_day, utcnow


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BILL_STORAGE_DIR': str(tmp_path_factory.mktemp("bills")),
        'LOG_LEVEL': 'DEBUG',
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

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def today():
    return business_day()


@pytest.fixture(scope='function')
def worker(db_session):
    """Active delivery worker."""
    worker = Worker(first_name="Ramesh", last_name="Patel", phone_number="9000000001")
    db_session.add(worker)
    db_session.commit()
    return worker


@pytest.fixture(scope='function')
def other_worker(db_session):
    worker = Worker(first_name="Suresh", last_name="Verma")
    db_session.add(worker)
    db_session.commit()
    return worker


@pytest.fixture(scope='function')
def customer(db_session):
    """B2C customer with a full address."""
    customer = Customer(
        first_name="Anita",
        last_name="Sharma",
        classification="B2C",
        address1="12 MG Road",
        city="Indore",
        pincode="452001",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def b2b_customer(db_session):
    customer = Customer(first_name="Hotel", last_name="Sayaji", classification="B2B", address1="Vijay Nagar")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def milk(db_session):
    product = Product(name="Milk 500ml", current_price_paise=4000)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def curd(db_session):
    product = Product(name="Curd 200g", current_price_paise=2500)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def milk_inventory(db_session, milk, today):
    """Today's inventory row for Milk 500ml."""
    record = InventoryRecord(product_id=milk.id, business_day=today, ordered_qty=60)
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope='function')
def curd_inventory(db_session, curd, today):
    record = InventoryRecord(product_id=curd.id, business_day=today, ordered_qty=20)
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope='function')
def subscribe(db_session):
    """Factory: create an active subscription directly (bypasses demand recalculation)."""
    def _subscribe(customer, product, quantity=1, from_date=None, thru_date=None):
        subscription = CustomerProduct(
            customer_id=customer.id,
            product_id=product.id,
            quantity=quantity,
            from_date=from_date or utcnow(),
            thru_date=thru_date,
        )
        db_session.add(subscription)
        db_session.commit()
        return subscription
    return _subscribe
