"""
Split Resolver

Decides which split fractions apply to an engagement.
"""

from decimal import Decimal

from ..models import AppSplit, Assignment, Engagement, Partner


class SplitResolver:
    """
    Resolves split fractions with the precedence:
    1) app-specific split, 2) assignment override, 3) partner default.

    Fractions are returned as supplied. They are never clamped or
    normalized to sum to 1.
    """

    def __init__(self, app_splits: list[AppSplit] | None = None):
        self._by_app = {split.app_id: split for split in app_splits or []}

    def base_split(self, partner: Partner, assignment: Assignment) -> tuple[Decimal, Decimal]:
        """Assignment override or partner default, resolved per side."""
        return (
            assignment.effective_split_partner(partner),
            assignment.effective_split_owner(partner),
        )

    def app_split(self, engagement: Engagement) -> AppSplit | None:
        if not engagement.app_id:
            return None
        return self._by_app.get(engagement.app_id)

    def for_engagement(
        self, engagement: Engagement, base: tuple[Decimal, Decimal]
    ) -> tuple[Decimal, Decimal, bool]:
        """Return (split_partner, split_owner, app_specific) for one engagement."""
        split = self.app_split(engagement)
        if split is None:
            return base[0], base[1], False
        # A side left null on the app split keeps the base fraction
        split_partner = split.split_partner if split.split_partner is not None else base[0]
        split_owner = split.split_owner if split.split_owner is not None else base[1]
        return split_partner, split_owner, True
