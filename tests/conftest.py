"""
Shared fixtures.

FakeApiClient stands in for the expense API: it keeps users, tokens,
expenses and recurring expenses in memory and answers the same calls as
ExpenseApiClient, so flows can be tested without a server.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.models.expense import (
    AppliedRecurringExpense,
    AuthResponse,
    AuthUser,
    Expense,
    ExpenseDraft,
    RecurringExpense,
    RecurringExpenseDraft,
)
from expense_tracker.orchestrator import ExpenseTracker
from expense_tracker.services.api import ServerRejectedError
from expense_tracker.services.storage import InMemoryTokenStorage


FIXED_NOW = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)


class FixedClock:
    """A clock the test can move."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeApiClient:
    """In-memory expense API."""

    def __init__(self, clock: FixedClock):
        self._clock = clock
        self._passwords: dict[str, str] = {}
        self._users: dict[str, AuthUser] = {}
        self._tokens: dict[str, AuthUser] = {}
        self._expenses: dict[int, list[Expense]] = {}
        self._recurring: dict[int, list[RecurringExpense]] = {}
        self._next_id = 1
        self._failures: dict[str, Exception] = {}
        self.calls: list[str] = []

    # Test controls

    def fail(self, operation: str, error: Exception) -> None:
        """Make every call to `operation` raise `error`."""
        self._failures[operation] = error

    def recover(self, operation: str) -> None:
        self._failures.pop(operation, None)

    def count(self, operation: str) -> int:
        return self.calls.count(operation)

    def seed_user(self, name: str, email: str, password: str) -> str:
        """Create an account directly and return a valid token for it."""
        return self._create_account(name, email, password).token

    def seed_expense(self, token: str, **fields) -> Expense:
        user = self._tokens[token]
        expense = Expense(id=self._new_id(), **fields)
        self._expenses[user.id].append(expense)
        return expense

    # Internals

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        error = self._failures.get(operation)
        if error is not None:
            raise error

    def _user(self, token: str) -> AuthUser:
        user = self._tokens.get(token)
        if user is None:
            raise ServerRejectedError("Token inválido", 401)
        return user

    def _create_account(self, name: str, email: str, password: str) -> AuthResponse:
        user = AuthUser(id=self._new_id(), name=name, email=email, created_at=self._clock())
        self._users[email] = user
        self._passwords[email] = password
        self._expenses[user.id] = []
        self._recurring[user.id] = []
        return self._issue_token(user)

    def _issue_token(self, user: AuthUser) -> AuthResponse:
        token = f"token-{user.id}-{len(self._tokens) + 1}"
        self._tokens[token] = user
        return AuthResponse(token=token, user=user)

    # API surface

    async def register(self, name: str, email: str, password: str) -> AuthResponse:
        self._enter("register")
        if email in self._users:
            raise ServerRejectedError("El email ya está registrado", 409)
        return self._create_account(name, email, password)

    async def login(self, email: str, password: str) -> AuthResponse:
        self._enter("login")
        if self._passwords.get(email) != password:
            raise ServerRejectedError("Credenciales inválidas", 401)
        return self._issue_token(self._users[email])

    async def me(self, token: str) -> AuthUser:
        self._enter("me")
        return self._user(token)

    async def list_expenses(self, token: str, date_from=None, date_to=None) -> list[Expense]:
        self._enter("list_expenses")
        return list(self._expenses[self._user(token).id])

    async def create_expense(self, token: str, draft: ExpenseDraft) -> Optional[Expense]:
        self._enter("create_expense")
        user = self._user(token)
        expense = Expense(
            id=self._new_id(),
            name=draft.name,
            tag=draft.tag,
            amount=draft.amount,
            expense_date=draft.expense_date,
        )
        self._expenses[user.id].append(expense)
        return expense

    async def delete_expense(self, token: str, expense_id: int) -> None:
        self._enter("delete_expense")
        user = self._user(token)
        self._expenses[user.id] = [e for e in self._expenses[user.id] if e.id != expense_id]
        self._recurring[user.id] = [
            r.model_copy(update={"last_expense_id": None, "last_applied_at": None})
            if r.last_expense_id == expense_id else r
            for r in self._recurring[user.id]
        ]

    async def list_recurring_expenses(self, token: str) -> list[RecurringExpense]:
        self._enter("list_recurring_expenses")
        return list(self._recurring[self._user(token).id])

    async def create_recurring_expense(
        self,
        token: str,
        draft: RecurringExpenseDraft,
    ) -> Optional[RecurringExpense]:
        self._enter("create_recurring_expense")
        user = self._user(token)
        recurring = RecurringExpense(
            id=self._new_id(),
            name=draft.name,
            tag=draft.tag,
            amount=draft.amount,
        )
        self._recurring[user.id].insert(0, recurring)
        return recurring

    async def apply_recurring_expense(
        self,
        token: str,
        recurring_id: int,
    ) -> AppliedRecurringExpense:
        self._enter("apply_recurring_expense")
        user = self._user(token)
        now = self._clock()
        for index, recurring in enumerate(self._recurring[user.id]):
            if recurring.id == recurring_id:
                break
        else:
            raise ServerRejectedError("Gasto recurrente no encontrado", 404)

        expense = Expense(
            id=self._new_id(),
            name=recurring.name,
            tag=recurring.tag,
            amount=recurring.amount,
            expense_date=now.date(),
        )
        stamped = recurring.model_copy(update={
            "last_applied_at": now,
            "last_expense_id": expense.id,
        })
        self._expenses[user.id].append(expense)
        self._recurring[user.id][index] = stamped
        return AppliedRecurringExpense(expense=expense, recurring_expense=stamped)

    async def delete_recurring_expense(self, token: str, recurring_id: int) -> None:
        self._enter("delete_recurring_expense")
        user = self._user(token)
        self._recurring[user.id] = [r for r in self._recurring[user.id] if r.id != recurring_id]


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def fake_api(clock):
    return FakeApiClient(clock)


@pytest.fixture
def token_storage():
    return InMemoryTokenStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def tracker(fake_api, token_storage, audit_logger, clock):
    return ExpenseTracker(
        api_client=fake_api,
        token_storage=token_storage,
        audit_logger=audit_logger,
        clock=clock,
    )
