import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.user_dao import UserDAO
from utils.app_config import Settings


@pytest.fixture
def api(clock):
    db = DatabaseManager(":memory:")
    app = create_app(settings=Settings(), db=db, clock=clock)
    users = UserDAO(db)
    alice = users.create("alice@example.com")
    bob = users.create("bob@example.com")
    with TestClient(app) as client:
        client.alice = {"X-User-Id": str(alice.id)}
        client.bob = {"X-User-Id": str(bob.id)}
        client.bob_category = CategoryDAO(db).create(bob.id, "Bob's", "EXPENSE").id
        yield client
    db.close()


def _category(api):
    resp = api.post("/categories", json={"name": "Housing", "type": "EXPENSE"}, headers=api.alice)
    assert resp.status_code == 201
    return resp.json()["id"]


def _rule_body(category_id, **overrides):
    body = {
        "frequency": "MONTHLY",
        "interval": 1,
        "amount": 100,
        "currency": "USD",
        "type": "EXPENSE",
        "startDate": "2024-01-01T12:00:00.000Z",
        "categoryId": category_id,
        "description": "Rent",
    }
    body.update(overrides)
    return body


def _create_rule(api, **overrides):
    resp = api.post("/recurring", json=_rule_body(_category(api), **overrides), headers=api.alice)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(api):
    assert api.get("/health").json() == {"status": "ok"}


def test_requests_without_known_user_are_unauthorized(api):
    assert api.get("/recurring").status_code == 401
    assert api.get("/recurring", headers={"X-User-Id": "999"}).status_code == 401


def test_create_rule_serializes_camel_case_noon_dates(api):
    rule = _create_rule(api)

    assert rule["startDate"] == "2024-01-01T12:00:00.000Z"
    assert rule["endDate"] is None
    assert rule["categoryName"] == "Housing"
    assert rule["isActive"] is True
    assert rule["supersedesRuleId"] is None


def test_create_rule_keeps_calendar_day_of_offset_datetimes(api):
    rule = _create_rule(api, startDate="2024-01-01T23:30:00-05:00")
    assert rule["startDate"] == "2024-01-01T12:00:00.000Z"


@pytest.mark.parametrize("overrides", [
    {"interval": 0},
    {"amount": 0},
    {"currency": "US"},
    {"frequency": "HOURLY"},
    {"startDate": "not-a-date"},
    {"endDate": "2023-12-31"},
])
def test_create_rule_validation(api, overrides):
    resp = api.post("/recurring", json=_rule_body(_category(api), **overrides), headers=api.alice)
    assert resp.status_code == 422


def test_create_rule_with_foreign_category(api):
    resp = api.post("/recurring", json=_rule_body(api.bob_category), headers=api.alice)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Category not found or unauthorized"


def test_occurrences_end_to_end(api):
    rule = _create_rule(api)
    approved = api.post(
        "/recurring/approve",
        json={"ruleId": rule["id"], "date": "2024-01-02"},
        headers=api.alice,
    )
    assert approved.status_code == 200
    assert approved.json()["date"] == "2024-01-02T12:00:00.000Z"
    assert approved.json()["recurringRuleId"] == rule["id"]

    resp = api.get(
        "/recurring/occurrences",
        params={"from": "2023-12-01", "to": "2024-04-01"},
        headers=api.alice,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert [(o["date"], o["status"]) for o in body] == [
        ("2024-01-01T12:00:00.000Z", "PAID"),
        ("2024-02-01T12:00:00.000Z", "OVERDUE"),
        ("2024-03-01T12:00:00.000Z", "OVERDUE"),
        ("2024-04-01T12:00:00.000Z", "UPCOMING"),
    ]
    assert body[0]["transactionId"] == approved.json()["id"]
    assert body[0]["ruleId"] == rule["id"]


def test_occurrences_default_window(api):
    _create_rule(api, startDate="2024-06-01")
    body = api.get("/recurring/occurrences", headers=api.alice).json()
    # clock is 2024-03-15, so the default window ends 2024-06-15
    assert [o["date"] for o in body] == ["2024-06-01T12:00:00.000Z"]


def test_skip_and_unskip(api):
    rule = _create_rule(api)
    params = {"from": "2024-02-01", "to": "2024-02-28"}

    for _ in range(2):
        resp = api.post(
            "/recurring/skip", json={"ruleId": rule["id"], "date": "2024-02-01"}, headers=api.alice,
        )
        assert resp.json() == {"success": True}
    statuses = [o["status"] for o in api.get("/recurring/occurrences", params=params, headers=api.alice).json()]
    assert statuses.count("SKIPPED") == 1

    api.post(
        "/recurring/skip",
        json={"ruleId": rule["id"], "date": "2024-02-01", "action": "unskip"},
        headers=api.alice,
    )
    statuses = [o["status"] for o in api.get("/recurring/occurrences", params=params, headers=api.alice).json()]
    assert "SKIPPED" not in statuses


def test_update_future_forks(api):
    rule = _create_rule(api)

    resp = api.put(
        f"/recurring/{rule['id']}",
        json=_rule_body(rule["categoryId"], amount=200, updateMode="future"),
        headers=api.alice,
    )

    assert resp.status_code == 200
    new_rule = resp.json()
    assert new_rule["id"] != rule["id"]
    assert new_rule["startDate"] == "2024-03-15T12:00:00.000Z"
    assert new_rule["supersedesRuleId"] == rule["id"]

    rules = {r["id"]: r for r in api.get("/recurring", headers=api.alice).json()}
    assert rules[rule["id"]]["isActive"] is False
    assert rules[rule["id"]]["endDate"] == "2024-03-15T12:00:00.000Z"

    history = api.get(f"/recurring/{new_rule['id']}/history", headers=api.alice).json()
    assert [r["id"] for r in history] == [rule["id"], new_rule["id"]]


def test_update_all_in_place(api):
    rule = _create_rule(api)
    resp = api.put(
        f"/recurring/{rule['id']}",
        json=_rule_body(rule["categoryId"], description="Flat"),
        headers=api.alice,
    )
    assert resp.json()["id"] == rule["id"]
    assert resp.json()["description"] == "Flat"


def test_delete_rule(api):
    rule = _create_rule(api)

    assert api.delete(f"/recurring/{rule['id']}", headers=api.bob).status_code == 404
    assert api.delete(f"/recurring/{rule['id']}", headers=api.alice).status_code == 204
    assert api.get(f"/recurring/{rule['id']}", headers=api.alice).status_code == 404


def test_categories_and_merchants(api):
    _category(api)
    dup = api.post("/categories", json={"name": "housing", "type": "EXPENSE"}, headers=api.alice)
    assert dup.status_code == 400

    merchant = api.post("/merchants", json={"name": "Landlord"}, headers=api.alice)
    assert merchant.status_code == 201
    names = [m["name"] for m in api.get("/merchants", headers=api.alice).json()]
    assert names == ["Landlord"]
    assert api.get("/merchants", headers=api.bob).json() == []
