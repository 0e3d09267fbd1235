"""
PARTNER REVENUE-SHARE ENGINE
Split, balance and monthly series for referral partners, plus webhook
ingestion of inbound leads.
"""

from .models import PartnerInput, PartnerSummary
from .processor import (
    PartnerNotFoundError,
    PartnerProcessor,
    build_monthly_series,
    build_partner_breakdown,
    calculate_partner_balance,
    filter_assignments_by_partner,
)

__all__ = [
    'PartnerProcessor',
    'PartnerInput',
    'PartnerSummary',
    'PartnerNotFoundError',
    'build_partner_breakdown',
    'calculate_partner_balance',
    'build_monthly_series',
    'filter_assignments_by_partner',
]
