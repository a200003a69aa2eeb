import importlib.util
from pathlib import Path

import pytest
from sqlalchemy import inspect, text

from app.database import engine
from app.models import InvoiceCategory

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "reset_database.py"


@pytest.fixture()
def reset_script():
    spec = importlib.util.spec_from_file_location("reset_database", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    yield module
    with engine.begin() as conn:
        conn.execute(text("DROP TABLE IF EXISTS alembic_version"))


def test_reset_replaces_unversioned_tables_with_migrated_schema(reset_script, db, make_category):
    make_category("Utilities")
    assert reset_script.current_revision() is None

    assert reset_script.reset_database(assume_yes=True) is True

    assert reset_script.current_revision() == "001_initial"
    assert "invoice_tag_mappings" in inspect(engine).get_table_names()
    assert db.query(InvoiceCategory).count() == 0


def test_reset_goes_through_downgrade_when_stamped(reset_script, db, make_category):
    reset_script.reset_database(assume_yes=True)
    make_category("Rent")

    reset_script.reset_database(assume_yes=True)

    assert reset_script.current_revision() == "001_initial"
    assert db.query(InvoiceCategory).count() == 0


def test_reset_can_be_declined(reset_script, db, make_category, monkeypatch):
    make_category("Travel")
    monkeypatch.setattr("builtins.input", lambda prompt: "no")

    assert reset_script.reset_database() is False
    assert db.query(InvoiceCategory).count() == 1
