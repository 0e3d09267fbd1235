"""
Webhook ingestion: inbound leads become deduplicated clients plus requests.
"""

from .handlers import handle_calendly_event, handle_google_forms_submission
from .names import FirstTokenSplitter, LastTokenSplitter, NameSplitter
from .reconciler import IngestionError, LeadReconciler, merge_missing_fields
from .validators import LeadValidationError

__all__ = [
    "handle_calendly_event",
    "handle_google_forms_submission",
    "LeadReconciler",
    "merge_missing_fields",
    "IngestionError",
    "LeadValidationError",
    "NameSplitter",
    "FirstTokenSplitter",
    "LastTokenSplitter",
]
