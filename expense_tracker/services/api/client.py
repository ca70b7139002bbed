"""
Expense API Client

DESIGN DECISION: One thin client wraps every endpoint of the expense API.
It is responsible for:
1. Building URLs from the configured base URL
2. Attaching the bearer token and JSON body
3. Turning transport failures and non-2xx answers into typed exceptions
4. Converting response bodies into our pydantic models

The client is stateless with respect to the session: the token is passed
on every call, so the orchestrator stays the single owner of auth state.

Requests are made with `requests` in a worker thread, which lets callers
await several of them concurrently with asyncio.gather.

CRITICAL: Malformed success bodies (not JSON, wrong shape) are treated as
empty, never as errors. Only auth responses, which are useless without a
token or user, raise MalformedResponseError.
"""

import asyncio
from datetime import date
from typing import Any, Optional, Type, TypeVar

import requests
import structlog
from pydantic import BaseModel, ValidationError

from expense_tracker.config import get_settings
from expense_tracker.models.expense import (
    AppliedRecurringExpense,
    AuthResponse,
    AuthUser,
    Expense,
    ExpenseDraft,
    RecurringExpense,
    RecurringExpenseDraft,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

JSON_CONTENT_TYPE = "application/json"


class ApiError(Exception):
    """Base exception for API errors. str(error) is shown to the user."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NetworkError(ApiError):
    """The server could not be reached at all."""
    pass


class ServerRejectedError(ApiError):
    """The server answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        details: Optional[str] = None,
    ):
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class MalformedResponseError(ApiError):
    """A response we cannot do without was missing or had the wrong shape."""
    pass


def _is_json(response: requests.Response) -> bool:
    return JSON_CONTENT_TYPE in response.headers.get("content-type", "")


class ExpenseApiClient:
    """
    Client for the expense REST API.

    IMPORTANT BOUNDARIES:
    1. This client never touches client state; it only returns data
    2. It never retries; a failure is reported once
    3. Error messages are ready to be shown to the user as-is
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings().api
        self._base_url = (base_url or settings.base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.timeout_seconds
        self._session = session
        self._logger = structlog.get_logger("expense_tracker.api")

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _error_message(
        self,
        response: requests.Response,
        method: str,
        path: str,
    ) -> tuple[str, Optional[str]]:
        """
        Build the user-facing message for a non-2xx response.

        Uses the body's "error" when present, falling back to a generic
        status message, and appends "details" in parentheses.
        """
        message = ""
        details = None

        if _is_json(response):
            try:
                data = response.json()
            except ValueError:
                data = None
            if isinstance(data, dict):
                if isinstance(data.get("error"), str):
                    message = data["error"]
                if isinstance(data.get("details"), str) and data["details"].strip():
                    details = data["details"]

        if not message:
            message = (
                f"El servidor respondió {response.status_code} "
                f"al intentar {method} {path}"
            )
        if details:
            message = f"{message} ({details})"

        return message, details

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        payload: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Optional[Any]:
        """
        Perform one blocking HTTP request and decode its JSON body.

        Returns None for 204 and for bodies that are not JSON.

        Raises:
            NetworkError: Transport-level failure
            ServerRejectedError: Non-2xx status
        """
        method = method.upper()
        headers = {}
        if payload is not None:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._logger.debug("api_request", method=method, path=path)

        try:
            response = self._get_session().request(
                method,
                f"{self._base_url}{path}",
                headers=headers,
                json=payload,
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            reason = str(e) or "Error desconocido"
            raise NetworkError(
                f"No se pudo contactar al servidor ({method} {path}): {reason}"
            ) from e

        if not response.ok:
            message, details = self._error_message(response, method, path)
            self._logger.warning(
                "api_request_rejected",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise ServerRejectedError(message, response.status_code, details)

        if response.status_code == 204 or not _is_json(response):
            return None

        try:
            return response.json()
        except ValueError:
            self._logger.warning("api_malformed_json", method=method, path=path)
            return None

    async def _call(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        payload: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Optional[Any]:
        """Run a request in a worker thread so callers can gather them."""
        return await asyncio.to_thread(self._request, method, path, token, payload, params)

    def _field(self, body: Any, key: str) -> Any:
        if isinstance(body, dict):
            return body.get(key)
        return None

    def _parse_model(self, model: Type[ModelT], data: Any, what: str) -> Optional[ModelT]:
        """Validate one object, treating a bad shape as absent."""
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            self._logger.warning("api_malformed_item", item=what, error=str(e))
            return None

    def _parse_list(self, model: Type[ModelT], data: Any, what: str) -> list[ModelT]:
        """Validate a list, skipping items with a bad shape."""
        if not isinstance(data, list):
            if data is not None:
                self._logger.warning("api_malformed_list", item=what)
            return []
        items = []
        for raw in data:
            parsed = self._parse_model(model, raw, what)
            if parsed is not None:
                items.append(parsed)
        return items

    # =========================================================================
    # AUTH
    # =========================================================================

    def _parse_auth(self, body: Any, path: str) -> AuthResponse:
        auth = self._parse_model(AuthResponse, body, "auth")
        if auth is None:
            raise MalformedResponseError(
                f"Respuesta inválida del servidor al intentar POST {path}"
            )
        return auth

    async def register(self, name: str, email: str, password: str) -> AuthResponse:
        """Create an account. The server answers with a token and the user."""
        body = await self._call(
            "POST",
            "/auth/register",
            payload={"name": name, "email": email, "password": password},
        )
        return self._parse_auth(body, "/auth/register")

    async def login(self, email: str, password: str) -> AuthResponse:
        body = await self._call(
            "POST",
            "/auth/login",
            payload={"email": email, "password": password},
        )
        return self._parse_auth(body, "/auth/login")

    async def me(self, token: str) -> AuthUser:
        """Validate a token by fetching the user it belongs to."""
        body = await self._call("GET", "/auth/me", token=token)
        user = self._parse_model(AuthUser, self._field(body, "user"), "user")
        if user is None:
            raise MalformedResponseError(
                "Respuesta inválida del servidor al intentar GET /auth/me"
            )
        return user

    # =========================================================================
    # EXPENSES
    # =========================================================================

    async def list_expenses(
        self,
        token: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Expense]:
        """List the user's expenses, optionally bounded server-side."""
        params = {}
        if date_from:
            params["from"] = date_from.isoformat()
        if date_to:
            params["to"] = date_to.isoformat()

        body = await self._call("GET", "/expenses", token=token, params=params or None)
        return self._parse_list(Expense, self._field(body, "expenses"), "expense")

    async def create_expense(self, token: str, draft: ExpenseDraft) -> Optional[Expense]:
        body = await self._call("POST", "/expenses", token=token, payload=draft.to_payload())
        return self._parse_model(Expense, self._field(body, "expense"), "expense")

    async def delete_expense(self, token: str, expense_id: int) -> None:
        await self._call("DELETE", f"/expenses/{expense_id}", token=token)

    # =========================================================================
    # RECURRING EXPENSES
    # =========================================================================

    async def list_recurring_expenses(self, token: str) -> list[RecurringExpense]:
        body = await self._call("GET", "/monthly-expenses", token=token)
        return self._parse_list(
            RecurringExpense,
            self._field(body, "monthlyExpenses"),
            "monthly_expense",
        )

    async def create_recurring_expense(
        self,
        token: str,
        draft: RecurringExpenseDraft,
    ) -> Optional[RecurringExpense]:
        body = await self._call(
            "POST",
            "/monthly-expenses",
            token=token,
            payload=draft.to_payload(),
        )
        return self._parse_model(
            RecurringExpense,
            self._field(body, "monthlyExpense"),
            "monthly_expense",
        )

    async def apply_recurring_expense(
        self,
        token: str,
        recurring_id: int,
    ) -> AppliedRecurringExpense:
        """
        Materialize a recurring expense for today.

        The server creates the Expense and stamps the template in one
        transaction and returns both.
        """
        body = await self._call("POST", f"/monthly-expenses/{recurring_id}/apply", token=token)
        return AppliedRecurringExpense(
            expense=self._parse_model(Expense, self._field(body, "expense"), "expense"),
            recurring_expense=self._parse_model(
                RecurringExpense,
                self._field(body, "monthlyExpense"),
                "monthly_expense",
            ),
        )

    async def delete_recurring_expense(self, token: str, recurring_id: int) -> None:
        await self._call("DELETE", f"/monthly-expenses/{recurring_id}", token=token)
