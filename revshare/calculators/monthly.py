"""
Monthly Series Builder

Buckets the partner's share by the month each engagement landed.
"""

from decimal import Decimal

from ..models import Engagement, MonthlyPoint, PartnerClientBreakdown
from .breakdown import contributing_engagements


class MonthlySeriesBuilder:
    """Builds an ascending month -> partner share series."""

    def build(
        self,
        breakdown: list[PartnerClientBreakdown],
        engagements: list[Engagement],
    ) -> list[MonthlyPoint]:
        """
        Each contributing engagement adds profit_us * row.split_partner to
        its month. Months with no activity are not emitted.

        An engagement reached through two rows is counted once per row.
        """
        monthly: dict[str, Decimal] = {}

        for row in breakdown:
            for engagement in contributing_engagements(engagements, row.client_id):
                month = engagement.month_key
                if not month:
                    continue
                share = engagement.profit_us * row.split_partner
                monthly[month] = monthly.get(month, Decimal("0")) + share

        # YYYY-MM keys sort chronologically as strings
        return [MonthlyPoint(month=month, amount=monthly[month]) for month in sorted(monthly)]
