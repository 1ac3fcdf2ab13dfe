from __future__ import annotations

from .encoder import dumps, to_jsonable
from .formatter import format_balance_table
from .generator import BalanceReport, generate_report

__all__ = [
    "BalanceReport",
    "dumps",
    "format_balance_table",
    "generate_report",
    "to_jsonable",
]
