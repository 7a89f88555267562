"""
Fund Ledger

Personal-finance ledger with ownership-scoped access to fund sources,
budgets and their transactions.
"""

__version__ = "1.0.0"
