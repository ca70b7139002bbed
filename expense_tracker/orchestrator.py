"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Session (stored token → validate → sync, or login/register → sync)
2. Synchronization (expenses + recurring expenses, fetched concurrently)
3. Mutations (create/delete expense, create/apply/delete recurring expense)
4. Dashboard reads (period filter, totals, tags)

DESIGN DECISION: The orchestrator enforces the boundaries:
- State changes only through reducers, and only after the server confirmed
- Every failure becomes a message in state; no operation raises to the UI
- Every step is audited

This is the only place that performs I/O; everything it calls into is
either a service (API, token storage) or a pure function.
"""

import asyncio
from collections.abc import Callable
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from expense_tracker import reducers
from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.config import get_settings
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.expense import (
    AuthMode,
    AuthUser,
    ExpenseSummary,
    Period,
    RecurringExpense,
)
from expense_tracker.models.state import TrackerState
from expense_tracker.queries import available_tags, summarize_expenses
from expense_tracker.services.api import ApiError, ExpenseApiClient
from expense_tracker.services.storage import (
    LocalFileTokenStorage,
    StorageError,
    TokenStorageInterface,
)
from expense_tracker.validation import (
    ALREADY_APPLIED_MESSAGE,
    can_apply_recurring_expense,
    validate_auth_form,
    validate_expense_form,
    validate_recurring_form,
)


Clock = Callable[[], datetime]


def default_clock() -> datetime:
    """Now, in the configured timezone or local time."""
    tz = get_settings().app.tzinfo
    if tz is not None:
        return datetime.now(tz)
    return datetime.now().astimezone()


def _message(error: Exception, fallback: str) -> str:
    return str(error) or fallback


class ExpenseTracker:
    """
    Owns the client state and runs every user-facing operation.

    Flow:
    1. bootstrap() → stored token? validate with /auth/me : login screen
    2. login()/register() → store token → fetch_all_data()
    3. add/apply/delete → server first, then reducer
    4. summary() → filter + aggregate the cached list for the period

    Overlapping operations are not serialized; the last one to finish wins.
    """

    def __init__(
        self,
        api_client: Optional[ExpenseApiClient] = None,
        token_storage: Optional[TokenStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
    ):
        self._api = api_client or ExpenseApiClient()
        self._token_storage = token_storage or LocalFileTokenStorage()
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock or default_clock
        self._state = reducers.initial_state(self.today())

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    def _dispatch(self, reducer, *args, **kwargs) -> TrackerState:
        self._state = reducer(self._state, *args, **kwargs)
        return self._state

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    # =========================================================================
    # SESSION MANAGER
    # =========================================================================

    async def bootstrap(self) -> TrackerState:
        """
        Restore the persisted session, if any.

        Without a stored token the login screen is shown right away.
        """
        try:
            token = self._token_storage.get_token()
        except StorageError as e:
            await self._audit_logger.log_error("token_storage_read", str(e))
            token = None

        if not token:
            return self._dispatch(reducers.initialization_finished)

        return await self.initialize_session(token)

    async def initialize_session(
        self,
        token: str,
        user: Optional[AuthUser] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TrackerState:
        """
        Adopt a token: persist it, resolve the user, then synchronize.

        When no user is given the token is validated with /auth/me. Any
        failure here clears the token and returns to the login screen.
        A sync failure does not; it only shows an error.
        """
        correlation_id = correlation_id or create_correlation_id()
        restoring = user is None

        self._dispatch(reducers.session_started, token)
        try:
            self._token_storage.set_token(token)
            if user is None:
                user = await self._api.me(token)
            self._dispatch(reducers.user_loaded, user)

            if restoring:
                await self._audit_logger.log(
                    AuditEventBuilder.session_restored(user.id, correlation_id)
                )

            await self.fetch_all_data(token, correlation_id=correlation_id)
        except (ApiError, StorageError) as e:
            message = _message(e, "No se pudo iniciar sesión")
            await self._audit_logger.log(
                AuditEventBuilder.session_restore_failed(message, correlation_id)
            )
            self._dispatch(reducers.session_failed, message)
            await self._forget_token()
        finally:
            self._dispatch(reducers.initialization_finished)

        return self._state

    async def _forget_token(self) -> None:
        try:
            self._token_storage.clear_token()
        except StorageError as e:
            # The in-memory session is gone either way
            await self._audit_logger.log_error("token_storage_clear", str(e))

    async def submit_auth(self) -> TrackerState:
        """Submit the login or register form, depending on the auth mode."""
        state = self._state
        form = state.auth_form
        mode = state.auth_mode
        correlation_id = create_correlation_id()

        problem = validate_auth_form(form, mode)
        if problem:
            return self._dispatch(reducers.auth_failed, problem)

        self._dispatch(reducers.auth_submitted)
        try:
            if mode == AuthMode.LOGIN:
                response = await self._api.login(form.email, form.password)
            else:
                response = await self._api.register(form.name, form.email, form.password)
        except ApiError as e:
            message = _message(e, "No se pudo completar la acción")
            state = self._dispatch(reducers.auth_failed, message)
            await self._audit_logger.log(
                AuditEventBuilder.auth_failed(mode.value, message, correlation_id)
            )
            return state

        await self.initialize_session(response.token, response.user, correlation_id)
        state = self._dispatch(reducers.auth_succeeded)
        await self._audit_logger.log(
            AuditEventBuilder.user_authenticated(
                user_id=response.user.id,
                email=response.user.email,
                registered=mode == AuthMode.REGISTER,
                correlation_id=correlation_id,
            )
        )
        return state

    async def login(self, email: str, password: str) -> TrackerState:
        self._dispatch(reducers.auth_mode_selected, AuthMode.LOGIN)
        self._dispatch(reducers.auth_form_updated, email=email, password=password)
        return await self.submit_auth()

    async def register(self, name: str, email: str, password: str) -> TrackerState:
        self._dispatch(reducers.auth_mode_selected, AuthMode.REGISTER)
        self._dispatch(reducers.auth_form_updated, name=name, email=email, password=password)
        return await self.submit_auth()

    async def logout(self) -> TrackerState:
        """Forget the token and every cached entity."""
        user_id = self._state.user.id if self._state.user else None
        await self._forget_token()
        await self._audit_logger.log(AuditEventBuilder.user_logged_out(user_id))
        return self._dispatch(reducers.logged_out)

    # =========================================================================
    # DATA SYNCHRONIZER
    # =========================================================================

    async def fetch_all_data(
        self,
        token: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TrackerState:
        """
        Reload both lists from the server, concurrently.

        Both must succeed; otherwise the previous lists are kept and an
        error is shown.
        """
        token = token or self._state.token
        if not token:
            return self._state
        correlation_id = correlation_id or create_correlation_id()

        self._dispatch(reducers.sync_started)
        try:
            expenses, recurring_expenses = await asyncio.gather(
                self._api.list_expenses(token),
                self._api.list_recurring_expenses(token),
            )
        except ApiError as e:
            message = _message(e, "No se pudo sincronizar con el servidor")
            await self._audit_logger.log(AuditEventBuilder.sync_failed(message, correlation_id))
            return self._dispatch(reducers.sync_failed, message)

        await self._audit_logger.log(
            AuditEventBuilder.data_synced(len(expenses), len(recurring_expenses), correlation_id)
        )
        return self._dispatch(reducers.sync_succeeded, expenses, recurring_expenses)

    # =========================================================================
    # MUTATION OPERATIONS
    # =========================================================================

    async def _mutation_failed(
        self,
        operation: str,
        error: ApiError,
        fallback: str,
        correlation_id: UUID,
        entity_id: Optional[int] = None,
    ) -> TrackerState:
        message = _message(error, fallback)
        state = self._dispatch(reducers.error_raised, message)
        await self._audit_logger.log(
            AuditEventBuilder.mutation_failed(operation, message, correlation_id, entity_id)
        )
        return state

    async def add_expense(self) -> TrackerState:
        """Submit the new-expense form. Incomplete forms are ignored."""
        token = self._state.token
        if not token:
            return self._state
        draft = validate_expense_form(self._state.expense_form)
        if draft is None:
            return self._state

        correlation_id = create_correlation_id()
        try:
            expense = await self._api.create_expense(token, draft)
        except ApiError as e:
            return await self._mutation_failed(
                "create_expense", e, "No se pudo crear el gasto", correlation_id
            )

        state = self._dispatch(reducers.expense_added, expense, self.today())
        if expense is not None:
            await self._audit_logger.log(
                AuditEventBuilder.expense_created(
                    expense.id, expense.name, str(expense.amount), correlation_id
                )
            )
        return state

    async def add_recurring_expense(self) -> TrackerState:
        """Submit the recurring-expense form. Incomplete forms are ignored."""
        token = self._state.token
        if not token:
            return self._state
        draft = validate_recurring_form(self._state.recurring_form)
        if draft is None:
            return self._state

        correlation_id = create_correlation_id()
        try:
            recurring = await self._api.create_recurring_expense(token, draft)
        except ApiError as e:
            return await self._mutation_failed(
                "create_recurring_expense",
                e,
                "No se pudo crear el gasto recurrente",
                correlation_id,
            )

        state = self._dispatch(reducers.recurring_expense_added, recurring)
        if recurring is not None:
            await self._audit_logger.log(
                AuditEventBuilder.recurring_expense_created(
                    recurring.id, recurring.name, str(recurring.amount), correlation_id
                )
            )
        return state

    async def apply_recurring_expense(self, recurring_id: int) -> TrackerState:
        """
        Materialize a recurring expense for today.

        Refused locally, without calling the server, when it was already
        applied this calendar month.
        """
        token = self._state.token
        if not token:
            return self._state
        recurring = self._state.find_recurring(recurring_id)
        if recurring is None:
            return self._state

        correlation_id = create_correlation_id()
        if not self.can_apply(recurring):
            await self._audit_logger.log(
                AuditEventBuilder.recurring_apply_blocked(
                    recurring.id,
                    recurring.last_applied_at.isoformat() if recurring.last_applied_at else None,
                    correlation_id,
                )
            )
            return self._dispatch(reducers.error_raised, ALREADY_APPLIED_MESSAGE)

        try:
            result = await self._api.apply_recurring_expense(token, recurring_id)
        except ApiError as e:
            return await self._mutation_failed(
                "apply_recurring_expense",
                e,
                "No se pudo aplicar el gasto recurrente",
                correlation_id,
                recurring_id,
            )

        state = self._dispatch(reducers.recurring_expense_applied, recurring_id, result)
        await self._audit_logger.log(
            AuditEventBuilder.recurring_expense_applied(
                recurring_id,
                result.expense.id if result.expense else None,
                correlation_id,
            )
        )
        return state

    async def delete_expense(self, expense_id: int) -> TrackerState:
        """Delete an expense and release any recurring expense pointing at it."""
        token = self._state.token
        if not token:
            return self._state

        correlation_id = create_correlation_id()
        try:
            await self._api.delete_expense(token, expense_id)
        except ApiError as e:
            return await self._mutation_failed(
                "delete_expense", e, "No se pudo eliminar el gasto", correlation_id, expense_id
            )

        released = [
            item.id
            for item in self._state.recurring_expenses
            if item.last_expense_id == expense_id
        ]
        state = self._dispatch(reducers.expense_deleted, expense_id)
        await self._audit_logger.log(
            AuditEventBuilder.expense_deleted(expense_id, released, correlation_id)
        )
        return state

    async def delete_recurring_expense(self, recurring_id: int) -> TrackerState:
        token = self._state.token
        if not token:
            return self._state

        correlation_id = create_correlation_id()
        try:
            await self._api.delete_recurring_expense(token, recurring_id)
        except ApiError as e:
            return await self._mutation_failed(
                "delete_recurring_expense",
                e,
                "No se pudo eliminar el gasto recurrente",
                correlation_id,
                recurring_id,
            )

        state = self._dispatch(reducers.recurring_expense_deleted, recurring_id)
        await self._audit_logger.log(
            AuditEventBuilder.recurring_expense_deleted(recurring_id, correlation_id)
        )
        return state

    # =========================================================================
    # FORM / FILTER INPUT
    # =========================================================================

    def toggle_auth_mode(self) -> TrackerState:
        return self._dispatch(reducers.auth_mode_toggled)

    def update_auth_form(self, **fields: str) -> TrackerState:
        return self._dispatch(reducers.auth_form_updated, **fields)

    def update_expense_form(self, **fields: str) -> TrackerState:
        return self._dispatch(reducers.expense_form_updated, **fields)

    def update_recurring_form(self, **fields: str) -> TrackerState:
        return self._dispatch(reducers.recurring_form_updated, **fields)

    def select_period(self, period: Period) -> TrackerState:
        return self._dispatch(reducers.period_selected, period)

    def set_custom_range(self, start: Optional[date], end: Optional[date]) -> TrackerState:
        return self._dispatch(reducers.custom_range_set, start, end)

    def dismiss_error(self) -> TrackerState:
        return self._dispatch(reducers.error_dismissed)

    # =========================================================================
    # FILTER / AGGREGATION
    # =========================================================================

    def summary(self) -> ExpenseSummary:
        """Filtered expenses, total and per-tag subtotals for the period."""
        return summarize_expenses(
            self._state.expenses,
            self._state.period_filter,
            self.today(),
        )

    def available_tags(self) -> list[str]:
        return available_tags(self._state.expenses, self._state.recurring_expenses)

    def can_apply(self, recurring: RecurringExpense) -> bool:
        return can_apply_recurring_expense(recurring, self.now())


def create_app_components(
    token_storage: Optional[TokenStorageInterface] = None,
) -> ExpenseTracker:
    """
    Factory function to create the application.

    Args:
        token_storage: Where to keep the session token.
                      Defaults to the configured local file.

    Returns:
        A tracker wired to the configured API, not yet bootstrapped
    """
    return ExpenseTracker(
        api_client=ExpenseApiClient(),
        token_storage=token_storage or LocalFileTokenStorage(),
        audit_logger=AuditLogger(),
    )
