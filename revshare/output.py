"""
Output Builder

Constructs the JSON-ready response from a partner summary.
"""

from decimal import Decimal

from .models import (
    IngestionResult, MonthlyPoint, PartnerBalance, PartnerClientBreakdown,
    PartnerSummary, Payment
)


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


def to_fraction(value: Decimal) -> float:
    """Split fractions keep 4 decimal places for display."""
    return round(float(value), 4)


class OutputBuilder:
    """Builds the final output response."""

    def build(self, summary: PartnerSummary) -> dict:
        partner = summary.partner
        return {
            "partner": {
                "id": partner.id,
                "name": partner.name,
                "default_split_partner": to_fraction(partner.default_split_partner),
                "default_split_owner": to_fraction(partner.default_split_owner),
                "contact_info": partner.contact_info,
                "notes": partner.notes,
            },
            "clients_count": summary.clients_count,
            "balance": self.build_balance(summary.balance),
            "breakdown": [self.build_breakdown_row(row) for row in summary.breakdown],
            "monthly": [self.build_monthly_point(point) for point in summary.monthly],
            "payments": [self._build_payment(payment) for payment in summary.payments],
        }

    def build_balance(self, balance: PartnerBalance) -> dict:
        return {
            "partner_id": balance.partner_id,
            "total_profit": to_money(balance.total_profit),
            "partner_share": to_money(balance.partner_share),
            "owner_share": to_money(balance.owner_share),
            "total_paid": to_money(balance.total_paid),
            "balance": to_money(balance.balance),
        }

    def build_breakdown_row(self, row: PartnerClientBreakdown) -> dict:
        return {
            "client_id": row.client_id,
            "client_name": row.client_name,
            "total_profit": to_money(row.total_profit),
            "partner_share": to_money(row.partner_share),
            "owner_share": to_money(row.owner_share),
            "split_partner": to_fraction(row.split_partner),
            "split_owner": to_fraction(row.split_owner),
            "override": row.override,
        }

    def build_monthly_point(self, point: MonthlyPoint) -> dict:
        return {"month": point.month, "amount": to_money(point.amount)}

    def _build_payment(self, payment: Payment) -> dict:
        return {
            "id": payment.id,
            "amount": to_money(payment.amount),
            "note": payment.note,
            "paid_at": payment.paid_at,
        }


def ingestion_to_dict(result: IngestionResult) -> dict:
    """Response body for a processed webhook delivery."""
    return {
        "success": result.success,
        "clientId": result.client_id,
        "clientCreated": result.client_created,
        "possibleDuplicateId": result.possible_duplicate_id,
        "duplicateDelivery": result.duplicate_delivery,
        "requestId": result.request_id,
        "logs": result.logs,
    }
