"""Expense validation package."""

from splitter.validation.validator import ExpenseValidator

__all__ = ["ExpenseValidator"]
