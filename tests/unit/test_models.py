from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from src.db.base import Base
from src.models import HostedFile, Payment, PaymentStatus, PlanTier, User, utcnow


@pytest.fixture
def db_session():
    """Create test database session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


def make_user(db_session, username="alice"):
    user = User(
        username=username,
        hashed_password="hashed",
        email=f"{username}@example.com",
        plan_expiry=utcnow() + timedelta(days=30),
    )
    db_session.add(user)
    db_session.commit()
    return user


def test_create_user_defaults(db_session):
    user = make_user(db_session)

    assert user.id is not None
    assert user.plan == PlanTier.free
    assert user.storage_used == 0.0
    assert user.storage_limit == 100.0
    assert user.total_files == 0
    assert user.is_admin is False
    assert user.is_protected is False
    assert user.created_at is not None


def test_username_is_unique(db_session):
    make_user(db_session)
    db_session.add(User(
        username="alice",
        hashed_password="hashed",
        email="other@example.com",
        plan_expiry=utcnow(),
    ))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_create_file(db_session):
    user = make_user(db_session)
    hosted = HostedFile(
        owner_id=user.id,
        stored_name="123-abc-report.pdf",
        original_name="report.pdf",
        size_bytes=2048,
        storage_path="/tmp/123-abc-report.pdf",
        public_url="http://localhost:8000/api/v1/files/x/download",
    )
    db_session.add(hosted)
    db_session.commit()

    assert hosted.download_count == 0
    assert hosted.is_public is True
    assert hosted.content_type == "application/octet-stream"
    assert user.files == [hosted]


def test_create_payment(db_session):
    user = make_user(db_session)
    payment = Payment(owner_id=user.id, plan=PlanTier.premium, amount=999)
    db_session.add(payment)
    db_session.commit()

    assert payment.status == PaymentStatus.pending
    assert payment.currency == "INR"
    assert payment.transaction_id is None
    assert user.payments == [payment]
