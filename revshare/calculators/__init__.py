"""
Calculators Package

Provides all calculation components for partner revenue-share summaries.
"""

from .balance import BalanceCalculator
from .breakdown import BreakdownCalculator
from .monthly import MonthlySeriesBuilder
from .splits import SplitResolver

__all__ = [
    "SplitResolver",
    "BreakdownCalculator",
    "BalanceCalculator",
    "MonthlySeriesBuilder",
]
