"""
Expense Tracker - Client Package

A personal expense-tracking client that talks to a remote REST API.
Users sign in, record one-off expenses, keep monthly recurring expenses
and see totals for the selected period.

DESIGN PRINCIPLES:
1. The server owns every entity; we only cache what it confirmed
2. Fail visibly: every failure becomes a readable message, never a crash
3. All client state lives in one immutable object, changed by reducers
4. Every user action is auditable
5. Token storage is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
