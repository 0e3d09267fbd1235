"""
Breakdown Calculator

Computes the per-client profit split for a partner.
"""

from decimal import Decimal

from ..models import (
    AppSplit, Assignment, Engagement, Partner, PartnerClientBreakdown
)
from .splits import SplitResolver

UNKNOWN_CLIENT = "Unknown"


def contributing_engagements(engagements: list[Engagement], client_id: str) -> list[Engagement]:
    """Engagements of a client whose status counts toward revenue."""
    if client_id is None:
        return []
    return [e for e in engagements if e.client_id == client_id and e.contributes]


class BreakdownCalculator:
    """Builds one breakdown row per assignment, in assignment order."""

    def calculate(
        self,
        partner: Partner,
        assignments: list[Assignment],
        engagements: list[Engagement],
        app_splits: list[AppSplit] | None = None,
    ) -> list[PartnerClientBreakdown]:
        resolver = SplitResolver(app_splits)
        return [
            self._calculate_row(partner, assignment, engagements, resolver)
            for assignment in assignments
        ]

    def _calculate_row(
        self,
        partner: Partner,
        assignment: Assignment,
        engagements: list[Engagement],
        resolver: SplitResolver,
    ) -> PartnerClientBreakdown:
        base = resolver.base_split(partner, assignment)

        total_profit = Decimal("0")
        partner_share = Decimal("0")
        owner_share = Decimal("0")
        has_app_split = False

        for engagement in contributing_engagements(engagements, assignment.client_id):
            split_partner, split_owner, app_specific = resolver.for_engagement(engagement, base)
            has_app_split = has_app_split or app_specific

            total_profit += engagement.profit_us
            partner_share += engagement.profit_us * split_partner
            owner_share += engagement.profit_us * split_owner

        split_partner, split_owner = base
        if has_app_split and total_profit != 0:
            # Profit-weighted average of the per-app splits
            split_partner = partner_share / total_profit
            split_owner = owner_share / total_profit

        return PartnerClientBreakdown(
            client_id=assignment.client_id,
            client_name=assignment.client_name or UNKNOWN_CLIENT,
            total_profit=total_profit,
            partner_share=partner_share,
            owner_share=owner_share,
            split_partner=split_partner,
            split_owner=split_owner,
            override=assignment.has_override or has_app_split,
        )
