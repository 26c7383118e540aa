"""Utility functions for bankrecon."""

from bankrecon.utils.date_parser import parse_date, parse_statement_date, parse_ofx_date
from bankrecon.utils.amount_parser import parse_amount, to_money

__all__ = ["parse_date", "parse_statement_date", "parse_ofx_date", "parse_amount", "to_money"]
