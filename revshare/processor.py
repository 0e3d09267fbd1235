"""
Partner Processor - Main Orchestrator

Coordinates the revenue-share pipeline through discrete, testable steps.
"""

import logging
from typing import Any, Dict, List, Optional

from .calculators import BalanceCalculator, BreakdownCalculator, MonthlySeriesBuilder
from .models import (
    AppSplit, Assignment, Engagement, MonthlyPoint, Partner, PartnerBalance,
    PartnerClientBreakdown, PartnerInput, PartnerSummary, Payment
)
from .output import OutputBuilder
from .store import RowStore

logger = logging.getLogger(__name__)

# Table names in the hosted database
PARTNERS_TABLE = "client_partners"
ASSIGNMENTS_TABLE = "client_partner_assignments"
CLIENT_APPS_TABLE = "client_apps"
PAYMENTS_TABLE = "partner_payments"
APP_SPLITS_TABLE = "partner_app_splits"
CLIENTS_TABLE = "clients"


class PartnerNotFoundError(LookupError):
    """No partner row exists for the requested id."""


class PartnerProcessor:
    """
    Main orchestrator for partner summaries.

    Pipeline:
    1. Build per-client breakdown
    2. Reduce into balance
    3. Bucket partner share by month
    4. Build output
    """

    def __init__(self):
        self.breakdown_calculator = BreakdownCalculator()
        self.balance_calculator = BalanceCalculator()
        self.monthly_builder = MonthlySeriesBuilder()
        self.output_builder = OutputBuilder()

    def process(self, input_data: PartnerInput) -> PartnerSummary:
        partner = input_data.partner
        assignments = filter_assignments_by_partner(input_data.assignments, partner.id)

        # Step 1: Breakdown per assigned client
        breakdown = self.breakdown_calculator.calculate(
            partner, assignments, input_data.engagements, input_data.app_splits
        )

        # Step 2: Balance against the payment ledger
        balance = self.balance_calculator.calculate(partner.id, breakdown, input_data.payments)

        # Step 3: Monthly series
        monthly = self.monthly_builder.build(breakdown, input_data.engagements)

        return PartnerSummary(
            partner=partner,
            balance=balance,
            breakdown=breakdown,
            monthly=monthly,
            payments=input_data.payments,
        )

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process a partner from raw row dictionaries.

        Convenience method for API usage.
        """
        input_data = PartnerInput.from_dict(data)
        return self.output_builder.build(self.process(input_data))

    def summarize_from_store(self, store: RowStore, partner_id: str) -> Dict[str, Any]:
        """Fetch the partner's rows and run the pipeline."""
        input_data = load_partner_input(store, partner_id)
        logger.info(
            f"Summarizing partner {partner_id}: {len(input_data.assignments)} assignments, "
            f"{len(input_data.payments)} payments"
        )
        return self.output_builder.build(self.process(input_data))


def load_partner_input(store: RowStore, partner_id: str) -> PartnerInput:
    """Fetch every row the pipeline needs for one partner."""
    partner_row = store.find_one(PARTNERS_TABLE, id=partner_id)
    if partner_row is None:
        raise PartnerNotFoundError(f"Partner not found: {partner_id}")

    assignment_rows = store.select(
        ASSIGNMENTS_TABLE, filters={"partner_id": partner_id}, order_by="assigned_at"
    )
    client_ids = {row.get("client_id") for row in assignment_rows if row.get("client_id")}

    # Embed the client name the way a joined select would
    for row in assignment_rows:
        if "client" not in row and "clients" not in row:
            row["client"] = store.find_one(CLIENTS_TABLE, id=row.get("client_id"))

    engagement_rows = [
        row
        for client_id in sorted(client_ids)
        for row in store.select(CLIENT_APPS_TABLE, filters={"client_id": client_id})
    ]
    payment_rows = store.select(
        PAYMENTS_TABLE, filters={"partner_id": partner_id}, order_by="paid_at", descending=True
    )
    split_rows = store.select(APP_SPLITS_TABLE, filters={"partner_id": partner_id})

    return PartnerInput(
        partner=Partner.from_dict(partner_row),
        assignments=[Assignment.from_dict(row) for row in assignment_rows],
        engagements=[Engagement.from_dict(row) for row in engagement_rows],
        payments=[Payment.from_dict(row) for row in payment_rows],
        app_splits=[AppSplit.from_dict(row) for row in split_rows],
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def filter_assignments_by_partner(
    assignments: Optional[List[Assignment]], partner_id: str
) -> List[Assignment]:
    if not assignments:
        return []
    return [assignment for assignment in assignments if assignment.partner_id == partner_id]


def build_partner_breakdown(
    partner: Partner,
    assignments: List[Assignment],
    engagements: List[Engagement],
    app_splits: Optional[List[AppSplit]] = None,
) -> List[PartnerClientBreakdown]:
    """Per-client profit split for a partner, one row per assignment."""
    return BreakdownCalculator().calculate(partner, assignments, engagements, app_splits)


def calculate_partner_balance(
    partner: Partner,
    assignments: List[Assignment],
    engagements: List[Engagement],
    payments: List[Payment],
    app_splits: Optional[List[AppSplit]] = None,
) -> PartnerBalance:
    """Partner share minus total paid. Positive means the partner is owed money."""
    breakdown = build_partner_breakdown(partner, assignments, engagements, app_splits)
    return BalanceCalculator().calculate(partner.id, breakdown, payments)


def build_monthly_series(
    breakdown: List[PartnerClientBreakdown], engagements: List[Engagement]
) -> List[MonthlyPoint]:
    return MonthlySeriesBuilder().build(breakdown, engagements)
