"""Group summary queries."""

from splitter.queries.summary import GroupSummaryBuilder, format_total, group_by_currency

__all__ = ["GroupSummaryBuilder", "format_total", "group_by_currency"]
