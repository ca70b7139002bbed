"""
Streamlit Frontend for Expense Tracker

Two screens, chosen from the tracker state:
1. Login / register card while there is no session
2. Dashboard with the period summary, the expense list and the
   recurring expenses once signed in

DESIGN PRINCIPLES:
1. The UI never mutates data itself; it calls the tracker and re-renders
2. Every failure shows up as the tracker's error message
3. Nothing changes on screen until the server confirmed it
"""

import asyncio
from datetime import date

import streamlit as st

from expense_tracker.audit import configure_logging
from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.formatting import (
    apply_button_label,
    format_currency,
    format_expense_date,
)
from expense_tracker.models.expense import AuthMode, Period
from expense_tracker.models.state import Screen
from expense_tracker.orchestrator import ExpenseTracker, create_app_components


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="wide",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


PERIOD_LABELS = {
    Period.DAY: "Día",
    Period.WEEK: "Semana",
    Period.MONTH: "Mes",
    Period.YEAR: "Año",
    Period.CUSTOM: "Custom",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_tracker() -> ExpenseTracker:
    """One tracker per browser session."""
    if "tracker" not in st.session_state:
        st.session_state.tracker = create_app_components()
    return st.session_state.tracker


def main():
    """Main application entry point."""
    status = validate_all_settings()
    problems = [name for name in ("api", "session", "app") if not status.get(name, False)]
    if problems:
        for name in problems:
            st.error(f"Configuración inválida ({name}): {status.get(f'{name}_error')}")
        st.markdown("Revisa el archivo `.env`; ver `.env.example`.")
        st.stop()

    configure_logging(get_settings().app.log_level)
    tracker = get_tracker()

    if tracker.state.screen == Screen.LOADING:
        with st.spinner("Cargando..."):
            run_async(tracker.bootstrap())

    if tracker.state.screen == Screen.DASHBOARD:
        render_dashboard(tracker)
    else:
        render_auth_page(tracker)


def render_auth_page(tracker: ExpenseTracker):
    """Render the login / register card."""
    state = tracker.state
    registering = state.auth_mode == AuthMode.REGISTER

    st.title("Crea tu cuenta" if registering else "Inicia Sesión")

    if state.global_error:
        st.error(state.global_error)

    with st.form("auth_form"):
        name = ""
        if registering:
            name = st.text_input("Nombre", value=state.auth_form.name)
        email = st.text_input("Email", value=state.auth_form.email)
        password = st.text_input("Contraseña", value=state.auth_form.password, type="password")
        submitted = st.form_submit_button(
            "Registrarme" if registering else "Ingresar",
            type="primary",
        )

    if submitted:
        tracker.update_auth_form(name=name, email=email, password=password)
        with st.spinner("Procesando..."):
            run_async(tracker.submit_auth())
        st.rerun()

    if state.auth_error:
        st.error(state.auth_error)

    prompt = "¿Ya tienes cuenta?" if registering else "¿No tienes cuenta?"
    st.markdown(prompt)
    if st.button("Inicia sesión" if registering else "Regístrate"):
        tracker.toggle_auth_mode()
        st.rerun()


def render_dashboard(tracker: ExpenseTracker):
    """Render the signed-in dashboard."""
    state = tracker.state

    col1, col2 = st.columns([4, 1])
    with col1:
        st.title(f"Hola, {state.user.name}")
        st.caption(state.user.email)
    with col2:
        if st.button("Cerrar sesión"):
            run_async(tracker.logout())
            st.rerun()

    if state.global_error:
        st.error(state.global_error)
        if st.button("Cerrar", key="dismiss_error"):
            tracker.dismiss_error()
            st.rerun()

    if state.syncing:
        st.info("Sincronizando con el backend...")

    render_summary(tracker)
    st.markdown("---")

    col1, col2 = st.columns(2)
    with col1:
        render_expense_form(tracker)
    with col2:
        render_recurring_section(tracker)


def render_summary(tracker: ExpenseTracker):
    """Period selector, totals and the filtered expense list."""
    state = tracker.state
    st.subheader("Resumen de Gastos")

    periods = list(Period)
    period = st.radio(
        "Período",
        options=periods,
        index=periods.index(state.period_filter.period),
        format_func=lambda p: PERIOD_LABELS[p],
        horizontal=True,
    )
    if period != state.period_filter.period:
        tracker.select_period(period)
        st.rerun()

    if period == Period.CUSTOM:
        col1, col2 = st.columns(2)
        with col1:
            start = st.date_input("Desde", value=state.period_filter.custom_start)
        with col2:
            end = st.date_input("Hasta", value=state.period_filter.custom_end)
        if (start, end) != (state.period_filter.custom_start, state.period_filter.custom_end):
            tracker.set_custom_range(start, end)
            st.rerun()

    summary = tracker.summary()

    col1, col2 = st.columns([1, 2])
    with col1:
        st.markdown("**Total del período**")
        st.markdown(
            f'<div class="big-number">{format_currency(summary.total)}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown("**Por Etiqueta**")
        for tag, subtotal in summary.by_tag.items():
            st.markdown(f"- {tag}: {format_currency(subtotal)}")

    st.markdown(f"### Gastos ({summary.count})")
    if not summary.expenses:
        st.info("No hay gastos en este período")
        return

    for expense in summary.expenses:
        col1, col2, col3 = st.columns([4, 2, 1])
        with col1:
            st.markdown(f"**{expense.name}** · {expense.tag}")
            st.caption(format_expense_date(expense.expense_date))
        with col2:
            st.markdown(format_currency(expense.amount))
        with col3:
            if st.button("🗑️", key=f"delete_expense_{expense.id}"):
                run_async(tracker.delete_expense(expense.id))
                st.rerun()


def render_expense_form(tracker: ExpenseTracker):
    """The new-expense form."""
    form = tracker.state.expense_form
    st.subheader("Agregar Gasto")

    with st.form("expense_form"):
        name = st.text_input("Nombre", value=form.name)
        tag = st.text_input("Etiqueta", value=form.tag)
        amount = st.text_input("Monto", value=form.amount)
        day = st.date_input(
            "Fecha",
            value=date.fromisoformat(form.date) if form.date else tracker.today(),
        )
        submitted = st.form_submit_button("Agregar", type="primary")

    if submitted:
        tracker.update_expense_form(
            name=name,
            tag=tag,
            amount=amount,
            date=day.isoformat() if day else "",
        )
        run_async(tracker.add_expense())
        st.rerun()

    tags = tracker.available_tags()
    if tags:
        st.caption("Etiquetas: " + ", ".join(tags))


def render_recurring_section(tracker: ExpenseTracker):
    """Monthly templates: the form and the list with apply/delete."""
    state = tracker.state
    form = state.recurring_form
    st.subheader("Gastos Recurrentes Mensuales")

    with st.form("recurring_form"):
        name = st.text_input("Nombre", value=form.name)
        tag = st.text_input("Etiqueta", value=form.tag)
        amount = st.text_input("Monto", value=form.amount)
        submitted = st.form_submit_button("Agregar Recurrente", type="primary")

    if submitted:
        tracker.update_recurring_form(name=name, tag=tag, amount=amount)
        run_async(tracker.add_recurring_expense())
        st.rerun()

    for recurring in state.recurring_expenses:
        can_apply = tracker.can_apply(recurring)
        col1, col2, col3 = st.columns([4, 2, 1])
        with col1:
            st.markdown(f"**{recurring.name}** · {recurring.tag}")
            st.caption(format_currency(recurring.amount))
        with col2:
            if st.button(
                apply_button_label(can_apply),
                key=f"apply_recurring_{recurring.id}",
                disabled=not can_apply,
            ):
                run_async(tracker.apply_recurring_expense(recurring.id))
                st.rerun()
        with col3:
            if st.button("🗑️", key=f"delete_recurring_{recurring.id}"):
                run_async(tracker.delete_recurring_expense(recurring.id))
                st.rerun()


if __name__ == "__main__":
    main()
