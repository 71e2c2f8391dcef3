import pytest
from bson import ObjectId

INCOME = {"userId": "user-1", "amount": 2500, "source": "Salary"}


def test_create_and_list_income(client) -> None:
    res = client.post("/income/add", json=INCOME)
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Income added successfully"
    assert body["incomeId"] == body["id"]
    assert ObjectId.is_valid(body["id"])

    list_res = client.get("/income/user-1")
    assert list_res.status_code == 200
    rows = list_res.json()
    assert len(rows) == 1
    assert rows[0] == {"id": body["id"], "userId": "user-1", "amount": 2500.0, "source": "Salary"}


def test_list_is_scoped_to_user(client) -> None:
    client.post("/income/add", json=INCOME)
    client.post("/income/add", json={**INCOME, "userId": "user-2", "source": "Bonus"})

    rows = client.get("/income/user-2").json()
    assert [row["source"] for row in rows] == ["Bonus"]


def test_list_without_records_returns_empty_array(client) -> None:
    res = client.get("/income/nobody")
    assert res.status_code == 200
    assert res.json() == []


@pytest.mark.parametrize("missing", ["userId", "amount", "source"])
def test_create_missing_field_returns_400_without_store_call(spy_client, spy, missing) -> None:
    payload = {k: v for k, v in INCOME.items() if k != missing}
    res = spy_client.post("/income/add", json=payload)
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == missing
    spy.insert.assert_not_called()


@pytest.mark.parametrize("amount", [0, True, False])
def test_create_rejects_non_positive_or_boolean_amount(spy_client, spy, amount) -> None:
    res = spy_client.post("/income/add", json={**INCOME, "amount": amount})
    assert res.status_code == 400
    assert res.json()["error"]["details"][0]["field"] == "amount"
    spy.insert.assert_not_called()


def test_update_income(client) -> None:
    income_id = client.post("/income/add", json=INCOME).json()["id"]

    res = client.put(f"/income/update/{income_id}", json={"amount": "3000", "source": "Salary raise"})
    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Income updated successfully"
    assert body["updatedIncome"]["amount"] == 3000.0
    assert body["updatedIncome"]["source"] == "Salary raise"
    assert body["updatedIncome"]["userId"] == "user-1"


def test_update_requires_amount_and_source(client) -> None:
    income_id = client.post("/income/add", json=INCOME).json()["id"]
    res = client.put(f"/income/update/{income_id}", json={"amount": 10})
    assert res.status_code == 400


def test_update_malformed_id_is_checked_before_body(spy_client, spy) -> None:
    res = spy_client.put("/income/update/not-an-id", json={})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_ID"
    spy.update_by_id.assert_not_called()


def test_update_unknown_id_returns_404(client) -> None:
    res = client.put(f"/income/update/{ObjectId()}", json={"amount": 1, "source": "Gift"})
    assert res.status_code == 404
    assert res.json()["error"] == {"code": "NOT_FOUND", "message": "Income not found", "details": []}


def test_delete_twice(client) -> None:
    income_id = client.post("/income/add", json=INCOME).json()["id"]

    first = client.delete(f"/income/delete/{income_id}")
    assert first.status_code == 204
    assert first.content == b""

    second = client.delete(f"/income/delete/{income_id}")
    assert second.status_code == 404
    assert client.get("/income/user-1").json() == []


def test_delete_malformed_id_returns_400(spy_client, spy) -> None:
    res = spy_client.delete("/income/delete/123")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_ID"
    spy.delete_by_id.assert_not_called()
