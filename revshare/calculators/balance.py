"""
Balance Calculator

Reduces a breakdown and the payment ledger into the partner's balance.
"""

from decimal import Decimal

from ..models import PartnerBalance, PartnerClientBreakdown, Payment


class BalanceCalculator:
    """Calculates what is still owed to a partner."""

    def calculate(
        self,
        partner_id: str,
        breakdown: list[PartnerClientBreakdown],
        payments: list[Payment],
    ) -> PartnerBalance:
        """
        Balance = Partner Share - Total Paid

        No floor is applied: a negative balance records an advance payment.
        """
        total_profit = sum((row.total_profit for row in breakdown), start=Decimal("0"))
        partner_share = sum((row.partner_share for row in breakdown), start=Decimal("0"))
        owner_share = sum((row.owner_share for row in breakdown), start=Decimal("0"))
        total_paid = sum((payment.amount for payment in payments), start=Decimal("0"))

        return PartnerBalance(
            partner_id=partner_id,
            total_profit=total_profit,
            partner_share=partner_share,
            owner_share=owner_share,
            total_paid=total_paid,
            balance=partner_share - total_paid,
        )
