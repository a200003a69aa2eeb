"""
Seed script to generate synthetic categories, companies, receivers and
multi-currency invoices for demo purposes
"""
import sys
import os
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables from .env file if it exists
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / '.env')

from sqlalchemy.orm import Session
from app.database import SessionLocal, engine, Base
from app.models.category import InvoiceCategory
from app.models.company import InvoiceCompany
from app.models.receiver import InvoiceReceiver
from app.schemas.invoice import InvoiceCreate, InvoiceItemCreate
from app.services.fx_service import MockFXService
from app.services.invoice_service import InvoiceService
from app.utils.periods import utcnow
from datetime import timedelta
from faker import Faker

fake = Faker()

SEED_USER_ID = os.getenv("SEED_USER_ID", "demo-user")

CATEGORIES = [
    ("Utilities", "#3B82F6"),
    ("Software", "#10B981"),
    ("Rent", "#F59E0B"),
    ("Travel", "#EF4444"),
    ("Consulting", "#8B5CF6"),
]

# Fixed demo rates into USD so seeded totals are reproducible
DEMO_RATES = {
    ("HKD", "USD"): 0.128,
    ("EUR", "USD"): 1.1,
    ("GBP", "USD"): 1.27,
}


def create_categories(db: Session) -> list:
    """Create the standard spending categories"""
    categories = []
    for name, color in CATEGORIES:
        category = InvoiceCategory(
            user_id=SEED_USER_ID,
            name=name,
            description=fake.sentence(nb_words=6),
            color=color
        )
        db.add(category)
        categories.append(category)
    db.commit()
    return categories


def create_companies(db: Session, count: int = 6) -> list:
    """Create synthetic issuing companies"""
    companies = []
    for _ in range(count):
        company = InvoiceCompany(
            user_id=SEED_USER_ID,
            name=fake.company(),
            address=fake.address(),
            email=fake.company_email(),
            tax_id=fake.bothify(text='##-#######')
        )
        db.add(company)
        companies.append(company)
    db.commit()
    return companies


def create_receivers(db: Session, count: int = 3) -> list:
    """Create synthetic receivers, people and organizations"""
    receivers = []
    for i in range(count):
        is_organization = i == 0
        receiver = InvoiceReceiver(
            user_id=SEED_USER_ID,
            name=fake.company() if is_organization else fake.name(),
            is_organization=is_organization
        )
        db.add(receiver)
        receivers.append(receiver)
    db.commit()
    return receivers


def create_invoices(db: Session, categories: list, companies: list, receivers: list, count: int = 40) -> list:
    """Create invoices through the service so totals and conversions are real"""
    service = InvoiceService(db, MockFXService(DEMO_RATES))
    now = utcnow()
    invoices = []

    for i in range(count):
        currency = fake.random_element(elements=('USD', 'USD', 'HKD', 'EUR', 'GBP'))
        started_at = now - timedelta(days=fake.random_int(min=1, max=360))
        items = [
            InvoiceItemCreate(
                description=fake.catch_phrase(),
                quantity=float(fake.random_int(min=1, max=10)),
                unit_price=round(fake.random.uniform(5.0, 400.0), 2)
            )
            for _ in range(fake.random_int(min=1, max=4))
        ]

        payload = InvoiceCreate(
            title=f"{fake.bs().title()} #{i + 1}",
            description=fake.sentence(nb_words=10),
            currency=currency,
            invoice_started_at=started_at,
            invoice_ended_at=started_at + timedelta(days=30),
            due_date=started_at + timedelta(days=45),
            category_id=fake.random_element(elements=categories).id,
            company_id=fake.random_element(elements=companies).id,
            receiver_id=fake.random_element(elements=receivers).id,
            status=fake.random_element(elements=('paid', 'paid', 'unpaid', 'overdue')),
            tags=fake.random_elements(elements=('monthly', 'recurring', 'urgent', 'tax'), length=2, unique=True),
            items=items
        )
        result = service.create_invoice(SEED_USER_ID, payload)
        if result.is_duplicate:
            continue

        # Spread creation dates so time-bucketed analytics have something to show
        result.invoice.created_at = started_at
        db.commit()
        invoices.append(result.invoice)

    return invoices


def main():
    """Main seeding function"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print("Creating categories...")
        categories = create_categories(db)
        print(f"Created {len(categories)} categories")

        print("Creating companies...")
        companies = create_companies(db)
        print(f"Created {len(companies)} companies")

        print("Creating receivers...")
        receivers = create_receivers(db)
        print(f"Created {len(receivers)} receivers")

        print("Creating invoices...")
        invoices = create_invoices(db, categories, companies, receivers)
        print(f"Created {len(invoices)} invoices")

        print("\nSeeding complete!")
        print(f"Summary for user '{SEED_USER_ID}':")
        print(f"  - Categories: {len(categories)}")
        print(f"  - Companies: {len(companies)}")
        print(f"  - Receivers: {len(receivers)}")
        print(f"  - Invoices: {len(invoices)}")

    except Exception as e:
        print(f"Error during seeding: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
