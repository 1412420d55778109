"""
Personal Finance Ledger

Named monetary accounts per user, atomic transfers between them and an
append-only transaction history. All monetary values use Decimal.
"""

__version__ = "1.0.0"
