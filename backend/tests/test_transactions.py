"""Transaction endpoint tests."""

import pytest
from httpx import AsyncClient


async def _create_portfolio(client: AsyncClient, headers: dict, portfolio_id: str = "p1") -> str:
    """Helper to create a portfolio, returning its id."""
    resp = await client.post(
        "/api/v1/portfolios/",
        json={"id": portfolio_id, "name": "Test Portfolio"},
        headers=headers,
    )
    assert resp.status_code == 200
    return resp.json()["id"]


@pytest.mark.asyncio
async def test_create_transaction(client: AsyncClient, auth_headers: dict):
    """Test creating a transaction."""
    portfolio_id = await _create_portfolio(client, auth_headers)

    response = await client.post(
        f"/api/v1/portfolios/{portfolio_id}/transactions",
        json={
            "id": "t1",
            "stock_symbol": " nabil ",
            "type": "IPO",
            "quantity": 10,
            "price": 100,
            "date": 1700000000000,
        },
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "t1"
    assert data["portfolio_id"] == portfolio_id
    assert data["stock_symbol"] == "NABIL"
    assert data["type"] == "IPO"
    assert data["quantity"] == 10
    assert data["price"] == 100
    assert data["date"] == 1700000000000


@pytest.mark.asyncio
async def test_create_transaction_without_id_or_date(client: AsyncClient, auth_headers: dict):
    portfolio_id = await _create_portfolio(client, auth_headers)

    response = await client.post(
        f"/api/v1/portfolios/{portfolio_id}/transactions",
        json={"stock_symbol": "NICA", "type": "SECONDARY_BUY", "quantity": "5", "price": "820.5"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"]
    assert data["price"] == 820.5
    assert isinstance(data["date"], int)


@pytest.mark.asyncio
async def test_retried_upsert_changes_nothing(client: AsyncClient, auth_headers: dict):
    """An identical retry keeps one row and does not move updated_at."""
    portfolio_id = await _create_portfolio(client, auth_headers)
    payload = {
        "id": "t-retry",
        "stock_symbol": "NABIL",
        "type": "SECONDARY_BUY",
        "quantity": 3,
        "price": 500,
        "date": 1700000000000,
    }

    first = await client.post(
        f"/api/v1/portfolios/{portfolio_id}/transactions", json=payload, headers=auth_headers
    )
    second = await client.post(
        f"/api/v1/portfolios/{portfolio_id}/transactions", json=payload, headers=auth_headers
    )
    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["updated_at"] == second.json()["updated_at"]

    list_resp = await client.get(
        f"/api/v1/portfolios/{portfolio_id}/transactions", headers=auth_headers
    )
    assert len(list_resp.json()) == 1


@pytest.mark.asyncio
async def test_upsert_overwrites_fields(client: AsyncClient, auth_headers: dict):
    portfolio_id = await _create_portfolio(client, auth_headers)
    url = f"/api/v1/portfolios/{portfolio_id}/transactions"
    base = {"id": "t1", "stock_symbol": "NABIL", "type": "IPO", "price": 100, "date": 1700000000000}

    await client.post(url, json={**base, "quantity": 10}, headers=auth_headers)
    response = await client.post(url, json={**base, "quantity": 25}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["quantity"] == 25

    list_resp = await client.get(url, headers=auth_headers)
    assert [t["quantity"] for t in list_resp.json()] == [25]


@pytest.mark.asyncio
async def test_list_transactions_newest_first(client: AsyncClient, auth_headers: dict):
    """Test listing transactions."""
    portfolio_id = await _create_portfolio(client, auth_headers)
    url = f"/api/v1/portfolios/{portfolio_id}/transactions"

    for i, date in enumerate([1700000000000, 1700000500000, 1700000100000]):
        await client.post(
            url,
            json={
                "id": f"t{i}",
                "stock_symbol": "NABIL",
                "type": "SECONDARY_BUY",
                "quantity": 1,
                "price": 100,
                "date": date,
            },
            headers=auth_headers,
        )

    response = await client.get(url, headers=auth_headers)
    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == ["t1", "t2", "t0"]


@pytest.mark.asyncio
async def test_delete_transaction(client: AsyncClient, auth_headers: dict):
    """Test deleting a transaction."""
    portfolio_id = await _create_portfolio(client, auth_headers)
    url = f"/api/v1/portfolios/{portfolio_id}/transactions"
    await client.post(
        url,
        json={"id": "t1", "stock_symbol": "NABIL", "type": "BONUS", "quantity": 2, "price": 0},
        headers=auth_headers,
    )

    response = await client.delete(f"{url}/t1", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["success"] is True

    list_resp = await client.get(url, headers=auth_headers)
    assert list_resp.json() == []

    # Already gone
    response = await client.delete(f"{url}/t1", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_all_transactions(client: AsyncClient, auth_headers: dict):
    portfolio_id = await _create_portfolio(client, auth_headers)
    url = f"/api/v1/portfolios/{portfolio_id}/transactions"
    for i in range(3):
        await client.post(
            url,
            json={"stock_symbol": "NABIL", "type": "SECONDARY_BUY", "quantity": 1, "price": 100},
            headers=auth_headers,
        )

    response = await client.delete(url, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["deleted_count"] == 3

    list_resp = await client.get(url, headers=auth_headers)
    assert list_resp.json() == []

    # The portfolio itself survives
    portfolios = await client.get("/api/v1/portfolios/", headers=auth_headers)
    assert [p["id"] for p in portfolios.json()] == [portfolio_id]


@pytest.mark.asyncio
async def test_transaction_validation(client: AsyncClient, auth_headers: dict):
    portfolio_id = await _create_portfolio(client, auth_headers)
    url = f"/api/v1/portfolios/{portfolio_id}/transactions"
    valid = {"stock_symbol": "NABIL", "type": "IPO", "quantity": 10, "price": 100}

    # Unknown type
    response = await client.post(url, json={**valid, "type": "NOT_A_TYPE"}, headers=auth_headers)
    assert response.status_code == 422

    # Non-positive quantity
    response = await client.post(url, json={**valid, "quantity": 0}, headers=auth_headers)
    assert response.status_code == 422

    # Negative price
    response = await client.post(url, json={**valid, "price": -1}, headers=auth_headers)
    assert response.status_code == 422

    # Blank symbol
    response = await client.post(url, json={**valid, "stock_symbol": "  "}, headers=auth_headers)
    assert response.status_code == 422

    list_resp = await client.get(url, headers=auth_headers)
    assert list_resp.json() == []


@pytest.mark.asyncio
async def test_transactions_of_other_users_portfolio(
    client: AsyncClient, auth_headers: dict, other_headers: dict
):
    portfolio_id = await _create_portfolio(client, auth_headers)
    url = f"/api/v1/portfolios/{portfolio_id}/transactions"
    await client.post(
        url,
        json={"id": "t1", "stock_symbol": "NABIL", "type": "IPO", "quantity": 10, "price": 100},
        headers=auth_headers,
    )

    assert (await client.get(url, headers=other_headers)).status_code == 404
    response = await client.post(
        url,
        json={"stock_symbol": "NABIL", "type": "IPO", "quantity": 1, "price": 1},
        headers=other_headers,
    )
    assert response.status_code == 404
    assert (await client.delete(f"{url}/t1", headers=other_headers)).status_code == 404
    assert (await client.delete(url, headers=other_headers)).status_code == 404

    list_resp = await client.get(url, headers=auth_headers)
    assert len(list_resp.json()) == 1


@pytest.mark.asyncio
async def test_transaction_id_cannot_move_between_portfolios(
    client: AsyncClient, auth_headers: dict, other_headers: dict
):
    """Upserting an existing transaction id into another portfolio is refused."""
    first = await _create_portfolio(client, auth_headers, "p1")
    await client.post(
        f"/api/v1/portfolios/{first}/transactions",
        json={"id": "t1", "stock_symbol": "NABIL", "type": "IPO", "quantity": 10, "price": 100},
        headers=auth_headers,
    )
    foreign = await _create_portfolio(client, other_headers, "p-other")

    response = await client.post(
        f"/api/v1/portfolios/{foreign}/transactions",
        json={"id": "t1", "stock_symbol": "NABIL", "type": "IPO", "quantity": 99, "price": 1},
        headers=other_headers,
    )
    assert response.status_code == 404

    list_resp = await client.get(f"/api/v1/portfolios/{first}/transactions", headers=auth_headers)
    assert list_resp.json()[0]["quantity"] == 10
