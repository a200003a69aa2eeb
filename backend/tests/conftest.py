import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_invoices.db")
os.environ.setdefault("REPORTING_CURRENCY", "USD")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import itertools  # noqa: E402
from datetime import datetime, timedelta  # noqa: E402

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.dependencies import get_display_fx_service, get_fx_service  # noqa: E402
from app.main import app  # noqa: E402
from app.models import InvoiceCategory, InvoiceCompany, InvoiceReceiver  # noqa: E402
from app.schemas.invoice import InvoiceCreate  # noqa: E402
from app.services.analytics_service import AnalyticsService  # noqa: E402
from app.services.fx_service import MockFXService  # noqa: E402
from app.services.invoice_service import InvoiceService  # noqa: E402

USER_ID = "user-123"
OTHER_USER_ID = "other-user-456"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fx() -> MockFXService:
    return MockFXService()


@pytest.fixture()
def invoice_service(db, fx) -> InvoiceService:
    return InvoiceService(db, fx)


@pytest.fixture()
def analytics_service(db) -> AnalyticsService:
    return AnalyticsService(db)


@pytest.fixture()
def client(fx):
    app.dependency_overrides[get_fx_service] = lambda: fx
    app.dependency_overrides[get_display_fx_service] = lambda: fx
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def user_id() -> str:
    return USER_ID


@pytest.fixture()
def headers() -> dict:
    return {"X-User-Id": USER_ID}


@pytest.fixture()
def make_category(db):
    def _make(name: str, user_id: str = USER_ID, color: str = "#123456") -> InvoiceCategory:
        category = InvoiceCategory(user_id=user_id, name=name, color=color)
        db.add(category)
        db.commit()
        return category
    return _make


@pytest.fixture()
def make_company(db):
    def _make(name: str, user_id: str = USER_ID) -> InvoiceCompany:
        company = InvoiceCompany(user_id=user_id, name=name)
        db.add(company)
        db.commit()
        return company
    return _make


@pytest.fixture()
def make_receiver(db):
    def _make(name: str, user_id: str = USER_ID, is_organization: bool = False) -> InvoiceReceiver:
        receiver = InvoiceReceiver(user_id=user_id, name=name, is_organization=is_organization)
        db.add(receiver)
        db.commit()
        return receiver
    return _make


@pytest.fixture()
def make_invoice(db, invoice_service):
    """
    Create an invoice with a single item through the service. created_at is
    rewritten afterwards when given, so the invoice lands in a chosen bucket.
    """
    billing_starts = itertools.count()

    def _make(
        title: str,
        amount: float,
        currency: str = "USD",
        status: str = "unpaid",
        user_id: str = USER_ID,
        created_at=None,
        **fields
    ):
        # Distinct billing dates keep unrelated test invoices from matching as duplicates
        fields.setdefault("invoice_started_at", datetime(2026, 1, 1) + timedelta(hours=next(billing_starts)))
        payload = InvoiceCreate(
            title=title,
            currency=currency,
            status=status,
            items=[{"description": f"{title} item", "quantity": 1, "unit_price": amount}],
            **fields
        )
        result = invoice_service.create_invoice(user_id, payload)
        assert not result.is_duplicate
        invoice = result.invoice
        if created_at is not None:
            invoice.created_at = created_at
            db.commit()
        return invoice
    return _make
