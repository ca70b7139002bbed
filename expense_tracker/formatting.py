"""Display helpers shared by the UI and the tests."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

SPANISH_MONTHS = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

APPLY_LABEL = "Aplicar"
APPLIED_LABEL = "Aplicado"


def format_currency(amount: Decimal) -> str:
    """$1000.00: two decimals, no thousands separator."""
    value = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"${value}"


def format_expense_date(day: date) -> str:
    """Long Spanish date, e.g. '5 de marzo, 2024'."""
    return f"{day.day} de {SPANISH_MONTHS[day.month - 1]}, {day.year}"


def apply_button_label(can_apply: bool) -> str:
    return APPLY_LABEL if can_apply else APPLIED_LABEL
