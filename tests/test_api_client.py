"""
Tests for ExpenseApiClient.

The HTTP session is mocked; responses are real requests.Response objects
so status handling and JSON decoding run exactly as in production.
"""

import json
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import requests

from expense_tracker.models.expense import ExpenseDraft, RecurringExpenseDraft
from expense_tracker.services.api import (
    ExpenseApiClient,
    MalformedResponseError,
    NetworkError,
    ServerRejectedError,
)


BASE_URL = "http://api.test/api"

USER = {"id": 7, "name": "Ana", "email": "ana@example.com", "createdAt": "2024-01-02T03:04:05Z"}


def make_response(status_code=200, body=None, content_type="application/json"):
    response = requests.Response()
    response.status_code = status_code
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
        response.headers["Content-Type"] = content_type
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = content_type
    response.encoding = "utf-8"
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return ExpenseApiClient(base_url=BASE_URL + "/", session=session)


def sent(session):
    """(method, url, kwargs) of the last request."""
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


class TestAuthEndpoints:
    """register, login, me."""

    @pytest.mark.asyncio
    async def test_login(self, client, session):
        session.request.return_value = make_response(200, {"token": "abc", "user": USER})

        auth = await client.login("ana@example.com", "secreto1")

        assert auth.token == "abc"
        assert auth.user.name == "Ana"
        assert auth.user.created_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        method, url, kwargs = sent(session)
        assert (method, url) == ("POST", "http://api.test/api/auth/login")
        assert kwargs["json"] == {"email": "ana@example.com", "password": "secreto1"}
        assert "Authorization" not in kwargs["headers"]

    @pytest.mark.asyncio
    async def test_register_sends_name(self, client, session):
        session.request.return_value = make_response(201, {"token": "abc", "user": USER})

        await client.register("Ana", "ana@example.com", "secreto1")

        method, url, kwargs = sent(session)
        assert url.endswith("/auth/register")
        assert kwargs["json"]["name"] == "Ana"

    @pytest.mark.asyncio
    async def test_login_without_token_is_malformed(self, client, session):
        session.request.return_value = make_response(200, {"user": USER})

        with pytest.raises(MalformedResponseError):
            await client.login("ana@example.com", "secreto1")

    @pytest.mark.asyncio
    async def test_me_sends_bearer_token(self, client, session):
        session.request.return_value = make_response(200, {"user": USER})

        user = await client.me("abc")

        assert user.id == 7
        _, url, kwargs = sent(session)
        assert url == "http://api.test/api/auth/me"
        assert kwargs["headers"]["Authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_me_rejected(self, client, session):
        session.request.return_value = make_response(401, {"error": "Token inválido"})

        with pytest.raises(ServerRejectedError) as exc_info:
            await client.me("abc")

        assert exc_info.value.status_code == 401
        assert str(exc_info.value) == "Token inválido"


class TestErrorMessages:
    """How failures are turned into user-facing messages."""

    @pytest.mark.asyncio
    async def test_server_error_uses_body_error(self, client, session):
        session.request.return_value = make_response(500, {"error": "boom"})

        with pytest.raises(ServerRejectedError, match="^boom$"):
            await client.list_expenses("abc")

    @pytest.mark.asyncio
    async def test_details_are_appended(self, client, session):
        session.request.return_value = make_response(
            400, {"error": "Datos inválidos", "details": "amount must be positive"}
        )

        with pytest.raises(ServerRejectedError) as exc_info:
            await client.create_expense(
                "abc",
                ExpenseDraft(name="Pizza", tag="Comida", amount=Decimal("-1"),
                             expense_date=date(2024, 3, 15)),
            )

        assert str(exc_info.value) == "Datos inválidos (amount must be positive)"
        assert exc_info.value.details == "amount must be positive"

    @pytest.mark.asyncio
    async def test_generic_message_without_json(self, client, session):
        session.request.return_value = make_response(502, b"<html>Bad gateway</html>", "text/html")

        with pytest.raises(ServerRejectedError) as exc_info:
            await client.delete_expense("abc", 3)

        assert str(exc_info.value) == "El servidor respondió 502 al intentar DELETE /expenses/3"

    @pytest.mark.asyncio
    async def test_network_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(NetworkError) as exc_info:
            await client.list_recurring_expenses("abc")

        assert str(exc_info.value) == (
            "No se pudo contactar al servidor (GET /monthly-expenses): connection refused"
        )


class TestExpenseEndpoints:
    """Expense and recurring expense endpoints."""

    @pytest.mark.asyncio
    async def test_list_expenses_parses_amounts_and_dates(self, client, session):
        session.request.return_value = make_response(200, {"expenses": [
            {"id": 1, "name": "Pizza", "tag": "Comida", "amount": 1000, "date": "2024-03-15T00:00:00Z"},
            {"id": 2, "name": "Cine", "tag": "Ocio", "amount": 12.5, "date": "2024-03-10"},
        ]})

        expenses = await client.list_expenses("abc")

        assert [e.id for e in expenses] == [1, 2]
        assert expenses[0].expense_date == date(2024, 3, 15)
        assert expenses[1].amount == Decimal("12.5")

    @pytest.mark.asyncio
    async def test_list_expenses_date_bounds(self, client, session):
        session.request.return_value = make_response(200, {"expenses": []})

        await client.list_expenses("abc", date(2024, 3, 1), date(2024, 3, 31))

        _, _, kwargs = sent(session)
        assert kwargs["params"] == {"from": "2024-03-01", "to": "2024-03-31"}

    @pytest.mark.asyncio
    async def test_malformed_items_are_skipped(self, client, session):
        session.request.return_value = make_response(200, {"expenses": [
            {"id": 1, "name": "Pizza", "tag": "Comida", "amount": 1000, "date": "2024-03-15"},
            {"id": 2, "name": "Sin fecha"},
            "basura",
        ]})

        expenses = await client.list_expenses("abc")

        assert [e.id for e in expenses] == [1]

    @pytest.mark.asyncio
    async def test_non_json_success_is_empty(self, client, session):
        session.request.return_value = make_response(200, b"ok", "text/plain")

        assert await client.list_expenses("abc") == []

    @pytest.mark.asyncio
    async def test_delete_accepts_no_content(self, client, session):
        session.request.return_value = make_response(204)

        assert await client.delete_recurring_expense("abc", 4) is None
        method, url, _ = sent(session)
        assert (method, url) == ("DELETE", "http://api.test/api/monthly-expenses/4")

    @pytest.mark.asyncio
    async def test_create_expense_payload(self, client, session):
        session.request.return_value = make_response(201, {"expense": {
            "id": 9, "name": "Pizza", "tag": "Comida", "amount": 1000, "date": "2024-03-15",
        }})

        expense = await client.create_expense(
            "abc",
            ExpenseDraft(name=" Pizza ", tag="Comida", amount=Decimal("1000"),
                         expense_date=date(2024, 3, 15)),
        )

        assert expense.id == 9
        _, _, kwargs = sent(session)
        assert kwargs["json"] == {
            "name": "Pizza", "tag": "Comida", "amount": 1000.0, "date": "2024-03-15",
        }
        assert kwargs["headers"]["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_create_recurring_expense(self, client, session):
        session.request.return_value = make_response(201, {"monthlyExpense": {
            "id": 3, "name": "Internet", "tag": "Servicios", "amount": 5000,
        }})

        recurring = await client.create_recurring_expense(
            "abc",
            RecurringExpenseDraft(name="Internet", tag="Servicios", amount=Decimal("5000")),
        )

        assert recurring.id == 3
        assert recurring.last_applied_at is None
        assert recurring.last_expense_id is None

    @pytest.mark.asyncio
    async def test_apply_returns_both_entities(self, client, session):
        session.request.return_value = make_response(200, {
            "expense": {"id": 10, "name": "Internet", "tag": "Servicios",
                        "amount": 5000, "date": "2024-03-15"},
            "monthlyExpense": {"id": 3, "name": "Internet", "tag": "Servicios", "amount": 5000,
                               "lastAppliedAt": "2024-03-15T10:30:00.123456789Z",
                               "lastExpenseId": 10},
        })

        result = await client.apply_recurring_expense("abc", 3)

        assert result.expense.id == 10
        assert result.recurring_expense.last_expense_id == 10
        assert result.recurring_expense.last_applied_at == datetime(
            2024, 3, 15, 10, 30, 0, 123456, tzinfo=timezone.utc
        )
        method, url, _ = sent(session)
        assert (method, url) == ("POST", "http://api.test/api/monthly-expenses/3/apply")
