"""
Lead Reconciler

Turns an inbound lead into a deduplicated client plus a tracked request:

1. Validate, then skip events whose request is already recorded
2. Match existing client by email, then phone (or create one)
3. Fill blanks on the matched client (additive only)
4. Assign tier (non-fatal)
5. Create request
"""

from typing import Optional

from ..models import IngestionResult, Lead
from ..store import DuplicateRowError, RowStore, StoreError
from .calendly import SOURCE as CALENDLY_SOURCE
from .log_trail import LogTrail
from .names import find_similar_client
from .validators import LeadValidator

CLIENTS_TABLE = "clients"
REQUESTS_TABLE = "requests"
TIER_PROCEDURE = "assign_auto_tier"


class IngestionError(Exception):
    """A fatal store failure while ingesting a lead. Carries the log trail."""

    def __init__(self, message: str, logs: list[dict]):
        super().__init__(message)
        self.logs = logs


def merge_missing_fields(existing: dict, lead: Lead) -> dict:
    """
    Changes that fill blanks on an existing client from the lead.

    Never overwrites a non-null value on the existing row.
    """
    changes = {}
    if lead.email and not existing.get("email"):
        changes["email"] = lead.email
    if lead.phone and not existing.get("contact"):
        changes["contact"] = lead.phone
    if lead.last_name and not existing.get("surname"):
        changes["surname"] = lead.last_name
    return changes


class LeadReconciler:
    """
    Idempotent per-event ingestion against the row store.

    flag_similar_names runs a fuzzy name search when no email/phone match
    exists and records the best hit in the request notes for manual review.
    """

    def __init__(
        self,
        store: RowStore,
        validator: Optional[LeadValidator] = None,
        flag_similar_names: bool = False,
        log_trail_size: int = 10,
    ):
        self.store = store
        self.validator = validator or LeadValidator()
        self.flag_similar_names = flag_similar_names
        self.log_trail_size = log_trail_size

    def reconcile(self, lead: Lead, trail: Optional[LogTrail] = None) -> IngestionResult:
        """
        Raises LeadValidationError for a bad lead and IngestionError when a
        client or request write fails.
        """
        trail = trail or LogTrail(__name__)

        # Step 1: Validate
        self.validator.validate(lead)
        trail.info(f"Processing {lead.source} lead", {
            "name": lead.display_name,
            "email": lead.email,
            "phone": lead.phone,
        })

        try:
            # Redelivery of an already recorded event touches nothing
            delivered = self.find_delivered_request(lead)
            if delivered is not None:
                trail.info("Request already recorded for this event", {"requestId": delivered["id"]})
                return IngestionResult(
                    client_id=delivered.get("client_id"),
                    client_created=False,
                    request_id=delivered["id"],
                    logs=trail.tail(self.log_trail_size),
                    duplicate_delivery=True,
                )

            # Step 2-3: Match or create client
            client_id, client_created = self._match_or_create_client(lead, trail)

            possible_duplicate = None
            if client_created and self.flag_similar_names:
                possible_duplicate = self._flag_similar_client(lead, client_id, trail)

            # Step 4: Tier assignment
            self._assign_tier(client_id, trail)

            # Step 5: Request
            request_id, duplicate_delivery = self._create_request(lead, client_id, possible_duplicate, trail)
        except StoreError as e:
            trail.error("Webhook processing failed", {"error": str(e), "code": e.code})
            raise IngestionError(str(e), trail.tail(self.log_trail_size)) from e

        return IngestionResult(
            client_id=client_id,
            client_created=client_created,
            request_id=request_id,
            logs=trail.tail(self.log_trail_size),
            possible_duplicate_id=possible_duplicate["id"] if possible_duplicate else None,
            duplicate_delivery=duplicate_delivery,
        )

    def find_delivered_request(self, lead: Lead) -> Optional[dict]:
        if not lead.external_id:
            return None
        return self.store.find_one(REQUESTS_TABLE, external_form_id=lead.external_id)

    def find_existing_client(self, lead: Lead, trail: LogTrail) -> Optional[dict]:
        """Exact email match first, then exact phone match."""
        if lead.email:
            client = self.store.find_one(CLIENTS_TABLE, email=lead.email)
            if client:
                trail.info("Found existing client by email", {"clientId": client["id"]})
                return client
        if lead.phone:
            client = self.store.find_one(CLIENTS_TABLE, contact=lead.phone)
            if client:
                trail.info("Found existing client by phone", {"clientId": client["id"]})
                return client
        return None

    def _match_or_create_client(self, lead: Lead, trail: LogTrail) -> tuple[str, bool]:
        existing = self.find_existing_client(lead, trail)
        if existing:
            self._fill_blanks(existing, lead, trail)
            return existing["id"], False

        try:
            created = self.store.insert(CLIENTS_TABLE, {
                "name": lead.first_name,
                "surname": lead.last_name,
                "email": lead.email,
                "contact": lead.phone,
                "trusted": False,
                "tier_id": None,
            })
        except DuplicateRowError:
            # Another delivery created the same client between lookup and insert
            existing = self.find_existing_client(lead, trail)
            if existing is None:
                raise
            trail.info("Client created concurrently, reusing it", {"clientId": existing["id"]})
            self._fill_blanks(existing, lead, trail)
            return existing["id"], False

        trail.info("Created new client", {"clientId": created["id"], "name": lead.first_name})
        return created["id"], True

    def _fill_blanks(self, existing: dict, lead: Lead, trail: LogTrail) -> None:
        changes = merge_missing_fields(existing, lead)
        if not changes:
            return
        try:
            self.store.update(CLIENTS_TABLE, existing["id"], changes)
        except StoreError as e:
            trail.warn("Error updating client", {"error": str(e)})
        else:
            trail.info("Updated client with new information", {"fields": sorted(changes)})

    def _flag_similar_client(self, lead: Lead, client_id: str, trail: LogTrail) -> Optional[dict]:
        try:
            candidates = [
                row for row in self.store.select(CLIENTS_TABLE) if row.get("id") != client_id
            ]
        except StoreError as e:
            trail.warn("Error fetching clients for name matching", {"error": str(e)})
            return None

        match = find_similar_client(lead.first_name, lead.last_name, candidates)
        if match is None:
            trail.info("No name match found", {"searchedName": lead.display_name})
            return None

        client, method, confidence = match
        trail.info("Potential existing client by name", {
            "clientId": client["id"],
            "method": method,
            "confidence": round(confidence, 2),
        })
        return {"id": client["id"], "client": client, "method": method, "confidence": confidence}

    def _assign_tier(self, client_id: str, trail: LogTrail) -> None:
        try:
            self.store.call_procedure(TIER_PROCEDURE, p_client_id=client_id)
        except StoreError as e:
            trail.warn("Error assigning tier", {"error": str(e)})
        else:
            trail.info("Assigned tier to client")

    def _create_request(
        self,
        lead: Lead,
        client_id: str,
        possible_duplicate: Optional[dict],
        trail: LogTrail,
    ) -> tuple[str, bool]:
        notes = lead.notes or ""
        if possible_duplicate:
            client = possible_duplicate["client"]
            dup_name = f"{client.get('name') or ''} {client.get('surname') or ''}".strip()
            hint = (
                f"POTENTIAL DUPLICATE CLIENT - {dup_name} (ID: {client['id']}) - "
                f"matched by {possible_duplicate['method']} "
                f"(confidence: {round(possible_duplicate['confidence'] * 100)}%) - review and merge manually"
            )
            notes = f"{notes}\n{hint}" if notes else hint

        row = {
            "client_id": client_id,
            "name": lead.display_name,
            "email": lead.email,
            "contact": lead.phone,
            "request_type": lead.request_type,
            "status": lead.request_status,
            "webhook_source": lead.source,
            "webhook_payload": lead.payload,
            "notes": notes or None,
            "external_form_id": lead.external_id,
        }
        if lead.source == CALENDLY_SOURCE:
            # Booking requests keep the split name, form requests the full name
            row["name"] = lead.first_name
            row["surname"] = lead.last_name
        if lead.requested_apps:
            row["requested_apps_raw"] = lead.requested_apps

        try:
            created = self.store.insert(REQUESTS_TABLE, row)
        except DuplicateRowError:
            existing = None
            if lead.external_id:
                existing = self.store.find_one(REQUESTS_TABLE, external_form_id=lead.external_id)
            if existing is None:
                raise
            trail.info("Request already recorded for this event", {"requestId": existing["id"]})
            return existing["id"], True

        trail.info("Created request", {"requestId": created["id"], "type": lead.request_type})
        return created["id"], False
