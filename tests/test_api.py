import pytest
from sqlalchemy import func, select

from app.models.shared_expense import SharedExpense

BASE = "/api/v1/shared-budgets"


async def create_trip(client, users, auth_headers, members=None):
    res = await client.post(
        BASE,
        json={
            "name": "Trip",
            "totalAmount": 1000,
            "members": members or ["bob@example.com", users.carol],
        },
        headers=auth_headers(users.alice),
    )
    assert res.status_code == 201, res.text
    return res.json()


@pytest.mark.asyncio
async def test_health(client):
    res = await client.get("/api/v1/system/health")
    assert res.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client, users, auth_headers):
    res = await client.get(BASE)
    assert res.status_code == 401

    res = await client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_create_and_list_budget(client, users, auth_headers):
    budget = await create_trip(client, users, auth_headers)

    assert budget["name"] == "Trip"
    assert budget["totalAmount"] == 1000
    assert budget["createdBy"] == users.alice
    assert budget["categoryIds"] == []
    assert {m["userId"]: m["role"] for m in budget["members"]} == {
        users.alice: "owner",
        users.bob: "member",
        users.carol: "member",
    }

    res = await client.get(BASE, headers=auth_headers(users.carol))
    assert res.status_code == 200
    listed = res.json()
    assert [b["id"] for b in listed] == [budget["id"]]
    assert listed[0]["spent"] == 0
    assert listed[0]["remaining"] == 1000

    res = await client.get(BASE, headers=auth_headers(users.dave))
    assert res.json() == []


@pytest.mark.asyncio
async def test_create_budget_errors(client, users, auth_headers):
    res = await client.post(
        BASE,
        json={"name": "Trip", "totalAmount": 100, "members": ["ghost@example.com"]},
        headers=auth_headers(users.alice),
    )
    assert res.status_code == 404

    res = await client.post(
        BASE,
        json={"name": "Trip", "members": [users.bob]},
        headers=auth_headers(users.alice),
    )
    assert res.status_code == 400

    res = await client.post(
        BASE,
        json={"name": "Trip", "totalAmount": -1, "members": [users.bob]},
        headers=auth_headers(users.alice),
    )
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_two_member_expense_and_suggested_settlement(client, users, auth_headers):
    budget = await create_trip(client, users, auth_headers, members=["bob@example.com"])
    bid = budget["id"]

    res = await client.post(
        f"{BASE}/{bid}/expenses",
        json={
            "amount": 100,
            "category": "Food",
            "description": "Groceries",
            "paidBy": "alice@example.com",
            "splitAmong": [users.alice, "bob@example.com"],
        },
        headers=auth_headers(users.alice),
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["paidBy"] == users.alice
    assert body["splitAmong"] == [users.alice, users.bob]
    assert body["perPerson"] == 50
    assert isinstance(body["transactionId"], int)

    res = await client.get(f"{BASE}/{bid}/balances", headers=auth_headers(users.bob))
    assert res.json() == {
        "budgetId": bid,
        "settled": False,
        "balances": [
            {"userId": users.alice, "amount": 50.0},
            {"userId": users.bob, "amount": -50.0},
        ],
    }

    res = await client.get(f"{BASE}/{bid}/settlements", headers=auth_headers(users.bob))
    assert res.status_code == 200
    assert res.json() == [{"from": users.bob, "to": users.alice, "amount": 50.0}]

    res = await client.post(
        f"{BASE}/{bid}/settle",
        json={"fromUserId": users.bob, "toUserId": "alice@example.com", "amount": 50},
        headers=auth_headers(users.bob),
    )
    assert res.status_code == 200, res.text
    settlement = res.json()
    assert settlement["fromUserId"] == users.bob
    assert settlement["toUserId"] == users.alice
    assert settlement["createdBy"] == users.bob

    res = await client.get(f"{BASE}/{bid}/settlements", headers=auth_headers(users.alice))
    assert res.json() == []

    res = await client.get(f"{BASE}/{bid}/settlements/history", headers=auth_headers(users.alice))
    assert [s["id"] for s in res.json()] == [settlement["id"]]

    res = await client.get(BASE, headers=auth_headers(users.bob))
    assert res.json()[0]["spent"] == 100
    assert res.json()[0]["remaining"] == 900


@pytest.mark.asyncio
async def test_expense_with_non_member_split_creates_nothing(client, users, auth_headers, session_factory):
    budget = await create_trip(client, users, auth_headers)

    res = await client.post(
        f"{BASE}/{budget['id']}/expenses",
        json={
            "amount": 60,
            "category": "Food",
            "paidBy": users.alice,
            "splitAmong": [users.alice, "dave@example.com"],
        },
        headers=auth_headers(users.alice),
    )
    assert res.status_code == 400

    async with session_factory() as session:
        assert await session.scalar(select(func.count(SharedExpense.id))) == 0


@pytest.mark.asyncio
async def test_expense_errors(client, users, auth_headers):
    budget = await create_trip(client, users, auth_headers)
    url = f"{BASE}/{budget['id']}/expenses"
    payload = {"amount": 10, "category": "Food", "paidBy": users.alice, "splitAmong": [users.alice]}

    res = await client.post(url, json=payload, headers=auth_headers(users.dave))
    assert res.status_code == 404

    res = await client.post(f"{BASE}/9999/expenses", json=payload, headers=auth_headers(users.alice))
    assert res.status_code == 404

    res = await client.post(url, json={**payload, "splitAmong": []}, headers=auth_headers(users.alice))
    assert res.status_code == 400

    res = await client.post(url, json={**payload, "amount": 0}, headers=auth_headers(users.alice))
    assert res.status_code == 400

    res = await client.post(url, json={"amount": 10}, headers=auth_headers(users.alice))
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_settle_with_non_member_payer(client, users, auth_headers):
    budget = await create_trip(client, users, auth_headers)

    res = await client.post(
        f"{BASE}/{budget['id']}/settle",
        json={"fromUserId": "dave@example.com", "toUserId": users.alice, "amount": 10},
        headers=auth_headers(users.alice),
    )
    assert res.status_code == 400
    assert "not a member" in res.json()["detail"]


@pytest.mark.asyncio
async def test_summary_and_expense_listing(client, users, auth_headers):
    budget = await create_trip(client, users, auth_headers)
    bid = budget["id"]

    for amount, category in [(90, "Food"), (30, "Travel"), (12.34, "Food")]:
        res = await client.post(
            f"{BASE}/{bid}/expenses",
            json={
                "amount": amount,
                "category": category,
                "paidBy": users.alice,
                "splitAmong": [users.alice, users.bob, users.carol],
            },
            headers=auth_headers(users.alice),
        )
        assert res.status_code == 201, res.text

    res = await client.get(f"{BASE}/{bid}/summary", headers=auth_headers(users.carol))
    summary = res.json()
    assert summary["budgetId"] == bid
    assert summary["totalSpent"] == 132.34
    assert summary["byCategory"] == {"Food": 102.34, "Travel": 30.0}
    assert summary["transactionCount"] == 3

    res = await client.get(f"{BASE}/{bid}/expenses", headers=auth_headers(users.bob))
    expenses = res.json()
    assert len(expenses) == 3
    assert {e["category"] for e in expenses} == {"Food", "Travel"}
    assert all(e["paidBy"] == users.alice for e in expenses)

    res = await client.get(f"{BASE}/{bid}/summary", headers=auth_headers(users.dave))
    assert res.status_code == 404
