import pytest
from bson import ObjectId

from app.resources import EXPENSE
from conftest import iso_days_from_now


def expense_payload(**overrides) -> dict:
    payload = {
        "userId": "user-1",
        "amount": 42.5,
        "category": "food",
        "description": "Groceries",
        "dateIncurred": "2026-02-12T18:00:00Z",
    }
    payload.update(overrides)
    return payload


def test_create_expense_coerces_amount_and_stamps_created_at(client, persistence) -> None:
    res = client.post("/expenses/add", json=expense_payload(amount="12.50"))
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Expense added successfully"
    assert body["expenseId"] == body["id"]

    stored = persistence.find_by_id(EXPENSE, ObjectId(body["id"]))
    assert stored["amount"] == 12.5
    assert isinstance(stored["amount"], float)
    assert stored["createdAt"] is not None

    rows = client.get("/expenses/user-1").json()
    assert rows[0]["amount"] == 12.5
    assert rows[0]["createdAt"]
    assert rows[0]["dateIncurred"].startswith("2026-02-12T18:00:00")


def test_create_expense_accepts_plain_date(client) -> None:
    res = client.post("/expenses/add", json=expense_payload(dateIncurred="2026-01-15"))
    assert res.status_code == 201


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": "abc"},
        {"amount": "NaN"},
        {"amount": True},
        {"dateIncurred": "not-a-date"},
        {"category": "   "},
    ],
)
def test_create_expense_invalid_values_return_400(client, overrides) -> None:
    res = client.post("/expenses/add", json=expense_payload(**overrides))
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.parametrize("missing", ["userId", "amount", "category", "description", "dateIncurred"])
def test_create_expense_missing_field_returns_400(spy_client, spy, missing) -> None:
    payload = expense_payload()
    del payload[missing]
    res = spy_client.post("/expenses/add", json=payload)
    assert res.status_code == 400
    spy.insert.assert_not_called()


def test_update_expense(client) -> None:
    expense_id = client.post("/expenses/add", json=expense_payload()).json()["id"]

    res = client.put(
        f"/expenses/update/{expense_id}",
        json={"amount": 60, "category": "dining", "description": "Dinner", "dateIncurred": iso_days_from_now(-1)},
    )
    assert res.status_code == 200
    updated = res.json()["updatedExpense"]
    assert updated["id"] == expense_id
    assert updated["amount"] == 60.0
    assert updated["category"] == "dining"
    assert updated["userId"] == "user-1"
    assert updated["createdAt"]


def test_update_expense_rejects_future_date(client) -> None:
    expense_id = client.post("/expenses/add", json=expense_payload()).json()["id"]
    res = client.put(
        f"/expenses/update/{expense_id}",
        json={"amount": 10, "category": "food", "description": "Later", "dateIncurred": iso_days_from_now(3)},
    )
    assert res.status_code == 400
    assert res.json()["error"]["details"][0]["field"] == "dateIncurred"


@pytest.mark.parametrize("amount", [0, -5, "-1.5"])
def test_update_expense_rejects_non_positive_amount(client, amount) -> None:
    expense_id = client.post("/expenses/add", json=expense_payload()).json()["id"]
    res = client.put(
        f"/expenses/update/{expense_id}",
        json={"amount": amount, "category": "food", "description": "x", "dateIncurred": iso_days_from_now(-1)},
    )
    assert res.status_code == 400


def test_update_expense_unknown_id_returns_404(client) -> None:
    res = client.put(
        f"/expenses/update/{ObjectId()}",
        json={"amount": 10, "category": "food", "description": "x", "dateIncurred": iso_days_from_now(-1)},
    )
    assert res.status_code == 404


def test_update_expense_malformed_id_returns_400(client) -> None:
    res = client.put("/expenses/update/zzz", json={"amount": 10})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_ID"


def test_delete_expense(client) -> None:
    expense_id = client.post("/expenses/add", json=expense_payload()).json()["id"]
    assert client.delete(f"/expenses/delete/{expense_id}").status_code == 204
    assert client.delete(f"/expenses/delete/{expense_id}").status_code == 404
    assert client.delete("/expenses/delete/bad-id").status_code == 400
