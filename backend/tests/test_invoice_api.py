from datetime import timedelta

import pytest

from app.models import InvoiceItem, InvoiceTag
from app.schemas.invoice import InvoiceCreate
from app.utils.periods import utcnow


def invoice_payload(**overrides) -> dict:
    payload = {
        "title": "Cloud hosting",
        "description": "Monthly compute bill",
        "currency": "usd",
        "items": [
            {"description": "Compute", "quantity": 2, "unit_price": 40},
            {"description": "Storage", "unit_price": 20},
        ],
    }
    payload.update(overrides)
    return payload


def create_invoice(client, headers, **overrides) -> dict:
    response = client.post("/api/invoices", json=invoice_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["invoice"]


def test_service_info_and_health(client):
    assert client.get("/").json()["message"] == "Invoice Ledger API"
    assert client.get("/health").json() == {"status": "healthy"}


def test_owner_header_is_required(client):
    assert client.get("/api/invoices").status_code == 401
    assert client.post("/api/invoices", json=invoice_payload()).status_code == 401


def test_create_invoice_computes_totals(client, headers, user_id):
    invoice = create_invoice(client, headers, tags=["cloud", "monthly", "cloud"])

    assert invoice["user_id"] == user_id
    assert invoice["currency"] == "USD"
    assert invoice["status"] == "unpaid"
    assert invoice["amount"] == 100
    assert invoice["target_amount"] == 100
    assert [item["amount"] for item in invoice["items"]] == [80, 20]
    assert invoice["items"][1]["quantity"] == 1
    assert [tag["name"] for tag in invoice["tags"]] == ["cloud", "monthly"]


def test_create_rejects_derived_and_invalid_fields(client, headers):
    bad_currency = client.post("/api/invoices", json=invoice_payload(currency="dollars"), headers=headers)
    bad_status = client.post("/api/invoices", json=invoice_payload(status="void"), headers=headers)

    assert bad_currency.status_code == 422
    assert bad_status.status_code == 422


def test_create_rejects_foreign_category(client, headers, make_category):
    foreign = make_category("Not mine", user_id="other-user-456")

    response = client.post("/api/invoices", json=invoice_payload(category_id=foreign.id), headers=headers)

    assert response.status_code == 400
    assert "Category" in response.json()["detail"]


def test_invoices_are_scoped_to_owner(client, headers):
    invoice = create_invoice(client, headers)
    stranger = {"X-User-Id": "other-user-456"}

    assert client.get(f"/api/invoices/{invoice['id']}", headers=stranger).status_code == 404
    assert client.put(f"/api/invoices/{invoice['id']}", json={"title": "Mine"}, headers=stranger).status_code == 404
    assert client.delete(f"/api/invoices/{invoice['id']}", headers=stranger).status_code == 404
    assert client.get(
        f"/api/invoices/{invoice['id']}/items/{invoice['items'][0]['id']}", headers=stranger
    ).status_code == 404
    assert client.get("/api/invoices", headers=stranger).json()["total"] == 0


def test_update_invoice_fields_and_tags(client, headers, make_category):
    category = make_category("Infrastructure")
    invoice = create_invoice(client, headers, tags=["cloud"])

    response = client.put(
        f"/api/invoices/{invoice['id']}",
        json={"title": "Cloud hosting (Q3)", "category_id": category.id, "tags": ["infra"]},
        headers=headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Cloud hosting (Q3)"
    assert body["description"] == "Monthly compute bill"
    assert body["category"]["name"] == "Infrastructure"
    assert [tag["name"] for tag in body["tags"]] == ["infra"]
    assert body["amount"] == 100


def test_update_currency_through_api(client, headers, fx):
    fx.set_rate("HKD", "USD", 0.125)
    invoice = create_invoice(client, headers)

    response = client.put(f"/api/invoices/{invoice['id']}", json={"currency": "HKD"}, headers=headers)

    body = response.json()
    assert body["currency"] == "HKD"
    assert body["amount"] == 100
    assert body["target_amount"] == 12.5
    assert all(item["fx_rate_used"] == 0.125 for item in body["items"])


def test_status_update(client, headers):
    invoice = create_invoice(client, headers)

    paid = client.patch(f"/api/invoices/{invoice['id']}/status", json={"status": "paid"}, headers=headers)
    invalid = client.patch(f"/api/invoices/{invoice['id']}/status", json={"status": "lost"}, headers=headers)

    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"
    assert invalid.status_code == 422


def test_delete_invoice_removes_items_and_mappings(client, headers, db):
    invoice = create_invoice(client, headers, tags=["cloud"])

    response = client.delete(f"/api/invoices/{invoice['id']}", headers=headers)

    assert response.status_code == 204
    assert client.get(f"/api/invoices/{invoice['id']}", headers=headers).status_code == 404
    assert db.query(InvoiceItem).filter(InvoiceItem.invoice_id == invoice["id"]).count() == 0
    # Tags themselves survive; only the mapping goes away
    assert db.query(InvoiceTag).filter(InvoiceTag.name == "cloud").count() == 1


def test_item_lifecycle_keeps_totals(client, headers, fx):
    fx.set_rate("HKD", "USD", 0.125)
    invoice = create_invoice(client, headers, currency="HKD", items=[])
    base = f"/api/invoices/{invoice['id']}/items"

    added = client.post(base, json={"description": "Fee", "quantity": 1, "unit_price": 10}, headers=headers)
    assert added.status_code == 201
    item = added.json()
    assert item["target_amount"] == 1.25

    overridden = client.put(f"{base}/{item['id']}", json={"target_amount": 90}, headers=headers)
    assert overridden.json()["target_amount"] == 90
    assert overridden.json()["fx_rate_used"] == 9
    assert client.get(f"/api/invoices/{invoice['id']}", headers=headers).json()["target_amount"] == 90

    recalculated = client.put(
        f"{base}/{item['id']}",
        json={"target_amount": 50, "auto_calculate_target_currency": True},
        headers=headers
    )
    assert recalculated.json()["target_amount"] == 1.25

    fetched = client.get(f"{base}/{item['id']}", headers=headers)
    assert fetched.json()["description"] == "Fee"

    assert client.delete(f"{base}/{item['id']}", headers=headers).status_code == 204
    assert client.get(f"{base}/{item['id']}", headers=headers).status_code == 404
    refreshed = client.get(f"/api/invoices/{invoice['id']}", headers=headers).json()
    assert refreshed["amount"] == 0
    assert refreshed["target_amount"] == 0


def test_item_must_belong_to_invoice(client, headers):
    first = create_invoice(client, headers)
    second = create_invoice(client, headers, title="Other", items=[{"description": "X", "unit_price": 7}])

    response = client.get(f"/api/invoices/{second['id']}/items/{first['items'][0]['id']}", headers=headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Invoice item not found"


def test_list_filters_sorting_and_pagination(client, headers, make_company):
    company = make_company("Acme")
    create_invoice(client, headers, title="Alpha", items=[{"description": "a", "unit_price": 30}])
    create_invoice(client, headers, title="Bravo", company_id=company.id, status="paid",
                   items=[{"description": "b", "unit_price": 10}])
    create_invoice(client, headers, title="Charlie", items=[{"description": "c", "unit_price": 20}])

    by_amount = client.get("/api/invoices", params={"sort_by": "amount", "sort_order": "asc"}, headers=headers)
    assert [invoice["title"] for invoice in by_amount.json()["data"]] == ["Bravo", "Charlie", "Alpha"]

    page = client.get("/api/invoices", params={"sort_by": "title", "limit": 2, "offset": 1}, headers=headers).json()
    assert page["total"] == 3
    assert page["limit"] == 2
    assert page["offset"] == 1
    assert [invoice["title"] for invoice in page["data"]] == ["Bravo", "Alpha"]

    paid = client.get("/api/invoices", params={"status": "paid"}, headers=headers).json()
    assert [invoice["title"] for invoice in paid["data"]] == ["Bravo"]

    by_company = client.get("/api/invoices", params={"company_id": company.id}, headers=headers).json()
    assert by_company["total"] == 1

    by_keyword = client.get("/api/invoices", params={"keyword": "arli"}, headers=headers).json()
    assert [invoice["title"] for invoice in by_keyword["data"]] == ["Charlie"]


@pytest.mark.parametrize("params", [{"sort_by": "vendor"}, {"sort_order": "sideways"}, {"status": "void"}])
def test_list_rejects_unknown_options(client, headers, params):
    response = client.get("/api/invoices", params=params, headers=headers)

    assert response.status_code == 400
    assert "Valid values" in response.json()["detail"]


def test_search_matches_title_and_description(client, headers):
    create_invoice(client, headers, title="Electricity", description="Power bill",
                   items=[{"description": "kWh", "unit_price": 60}])
    create_invoice(client, headers, title="Water", description="Utility bill",
                   items=[{"description": "m3", "unit_price": 25}])

    power = client.get("/api/invoices/search", params={"q": "power"}, headers=headers).json()
    bills = client.get("/api/invoices/search", params={"q": "bill"}, headers=headers).json()

    assert [invoice["title"] for invoice in power] == ["Electricity"]
    assert len(bills) == 2
    assert client.get("/api/invoices/search", headers=headers).status_code == 422


def test_overdue_lists_unpaid_past_due(client, headers):
    past = (utcnow() - timedelta(days=3)).isoformat()
    future = (utcnow() + timedelta(days=3)).isoformat()
    create_invoice(client, headers, title="Late", due_date=past, items=[{"description": "a", "unit_price": 1}])
    create_invoice(client, headers, title="Paid late", due_date=past, status="paid",
                   items=[{"description": "b", "unit_price": 2}])
    create_invoice(client, headers, title="Not due", due_date=future, items=[{"description": "c", "unit_price": 3}])

    overdue = client.get("/api/invoices/overdue", headers=headers).json()

    assert [invoice["title"] for invoice in overdue] == ["Late"]


def test_tags_are_reused_by_name(db, invoice_service, user_id):
    first = create_service_invoice(invoice_service, user_id, "First", ["shared"])
    second = create_service_invoice(invoice_service, user_id, "Second", ["shared", "extra"])

    assert first.tags[0].id == second.tags[1].id
    assert db.query(InvoiceTag).filter(InvoiceTag.user_id == user_id).count() == 2

    cleared = invoice_service.set_invoice_tags(user_id, second.id, [])
    assert cleared.tags == []


def create_service_invoice(invoice_service, user_id, title, tags):
    payload = InvoiceCreate(title=title, tags=tags, items=[{"description": title, "unit_price": len(title)}])
    return invoice_service.create_invoice(user_id, payload).invoice


def test_set_tags_by_id(client, headers, db, user_id):
    invoice = create_invoice(client, headers, tags=["cloud", "monthly"])
    cloud, monthly = invoice["tags"]
    foreign = InvoiceTag(user_id="other-user-456", name="not-mine", color="#000000")
    db.add(foreign)
    db.commit()
    url = f"/api/invoices/{invoice['id']}/tags"

    swapped = client.put(url, json={"tag_ids": [monthly["id"], monthly["id"]]}, headers=headers)
    assert swapped.status_code == 200
    assert [tag["name"] for tag in swapped.json()["tags"]] == ["monthly"]

    rejected = client.put(url, json={"tag_ids": [cloud["id"], foreign.id]}, headers=headers)
    assert rejected.status_code == 400
    assert str(foreign.id) in rejected.json()["detail"]
    unchanged = client.get(f"/api/invoices/{invoice['id']}", headers=headers).json()
    assert [tag["name"] for tag in unchanged["tags"]] == ["monthly"]

    cleared = client.put(url, json={"tag_ids": []}, headers=headers)
    assert cleared.json()["tags"] == []
    assert db.query(InvoiceTag).filter(InvoiceTag.user_id == user_id).count() == 2

    stranger = {"X-User-Id": "other-user-456"}
    assert client.put(url, json={"tag_ids": [foreign.id]}, headers=stranger).status_code == 404
