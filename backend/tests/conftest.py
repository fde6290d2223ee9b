"""
Pytest fixtures for bookvoucher backend tests.

Provides test database setup, outlet/user/booklist fixtures, and test client.
"""

import pytest
from bookvoucher import create_app
from bookvoucher.extensions import db
from bookvoucher.models import Booklist, BooklistItem, Outlet, User
from bookvoucher.services.auth_service import hash_password

TEST_GRADES = ["1", "5", "9 BUS01"]


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'GRADE_CATALOGUE': list(TEST_GRADES),
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
def runner(app):
    """Create CLI runner."""
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh database contents for each test."""
    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def outlet(db_session):
    """Hithadhoo Outlet (active)."""
    outlet = Outlet(name="Hithadhoo Outlet", code="OUT-001", active=True)
    db_session.add(outlet)
    db_session.commit()
    return outlet


@pytest.fixture(scope='function')
def other_outlet(db_session):
    """Feydhoo Outlet (active)."""
    outlet = Outlet(name="Feydhoo Outlet", code="OUT-002", active=True)
    db_session.add(outlet)
    db_session.commit()
    return outlet


@pytest.fixture(scope='function')
def admin_user(db_session):
    user = User(
        username="admin",
        name="Administrator",
        role="admin",
        password_hash=hash_password("admin123"),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def staff_user(db_session, outlet):
    """Counter staff working at Hithadhoo Outlet."""
    user = User(
        username="counter",
        name="Counter Staff",
        role="staff",
        outlet_id=outlet.id,
        password_hash=hash_password("staff123"),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def booklist(db_session):
    """Grade 1 bundle priced at 589.00."""
    booklist = Booklist(code="VCH-GR1-ALL", name="Stationary List for Grade 1", grade="Grade 1",
                        total_amount_cents=58900)
    booklist.items.append(BooklistItem(name="Drawing Block (No.80)", quantity=1,
                                       rate_cents=3800, amount_cents=3800))
    booklist.items.append(BooklistItem(name="Pencil (HB)", quantity=4,
                                       rate_cents=600, amount_cents=2400))
    db_session.add(booklist)
    db_session.commit()
    return booklist


def redemption_payload(staff_id: int, booklist_id: int, **overrides) -> dict:
    """Helper to build a camelCase redemption request body."""
    payload = {
        "voucherId": "VCH-0001",
        "staffId": staff_id,
        "date": "2024-01-05",
        "location": "Hithadhoo Outlet",
        "parentName": "Aminath Ali",
        "contactNo": "7771234",
        "studentName": "Ahmed Ali",
        "school": "Nooraanee School",
        "studentClass": "1A",
        "booklistId": booklist_id,
        "hasStationary": True,
        "customization": "standard",
        "deliveryStatus": "pending",
    }
    payload.update(overrides)
    return payload


def stock_payload(**overrides) -> dict:
    """Helper to build a camelCase stock movement request body."""
    payload = {
        "grade": "5",
        "location": "Hithadhoo Outlet",
        "date": "2024-01-05",
        "openingStock": 50,
        "received": 10,
        "redeemed": 5,
    }
    payload.update(overrides)
    return payload
