"""Utility functions for billsense."""

from billsense.utils.date_parser import parse_date
from billsense.utils.amount_parser import parse_amount
from billsense.utils.formatting import format_duration, round_hours

__all__ = ["parse_date", "parse_amount", "format_duration", "round_hours"]
