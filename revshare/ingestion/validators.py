"""
Input validation for inbound leads.
"""

from ..models import Lead


class LeadValidationError(ValueError):
    """Inbound event is missing a required field."""


class LeadValidator:
    """Validates a parsed lead before any store call is made."""

    def validate(self, lead: Lead) -> None:
        if not (lead.first_name or "").strip():
            raise LeadValidationError("Missing name")
