"""Click parameter types for money amounts and dates."""

import click

from billsense.utils.amount_parser import parse_amount
from billsense.utils.date_parser import parse_date


class AmountType(click.ParamType):
    """Money amount such as "1,250.00" or "$99", parsed to Decimal."""

    name = "amount"

    def convert(self, value, param, ctx):
        if not isinstance(value, str):
            return value
        try:
            return parse_amount(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class DateType(click.ParamType):
    """Date as YYYY-MM-DD or a relative phrase like "yesterday"."""

    name = "date"

    def convert(self, value, param, ctx):
        if not isinstance(value, str):
            return value
        try:
            return parse_date(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


AMOUNT = AmountType()
DATE = DateType()
