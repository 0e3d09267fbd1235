"""
Calendly booking events.
"""

import json

from ..models import Lead
from .names import FirstTokenSplitter, NameSplitter

SOURCE = "calendly"
PROCESSED_EVENT = "invitee.created"


def is_processed_event(event: dict) -> bool:
    """Only new bookings create requests; cancellations and the rest are ignored."""
    return event.get("event") == PROCESSED_EVENT


def parse_calendly_event(event: dict, name_splitter: NameSplitter | None = None) -> Lead:
    """Turn an invitee.created event into a Lead."""
    splitter = name_splitter or FirstTokenSplitter()
    payload = event.get("payload") or {}
    invitee = payload.get("invitee") or {}
    scheduled_event = payload.get("scheduled_event") or {}

    full_name = (invitee.get("name") or "").strip()
    first_name, last_name = splitter.split(full_name)

    invitee_uuid = invitee.get("uuid")
    questions = invitee.get("questions_and_answers") or []

    note_lines = [
        f"Calendly Event: {scheduled_event.get('name')}",
        f"Scheduled: {scheduled_event.get('start_time')}",
        f"Event UUID: {scheduled_event.get('uuid')}",
    ]
    if questions:
        note_lines.append(f"Q&A: {json.dumps(questions)}")

    return Lead(
        source=SOURCE,
        external_id=f"calendly_{invitee_uuid}" if invitee_uuid else None,
        full_name=full_name,
        first_name=first_name,
        last_name=last_name,
        email=invitee.get("email") or None,
        phone=invitee.get("text_reminder_number") or None,
        notes="\n".join(note_lines),
        request_type="onboarding",
        request_status="scheduled",
        payload=event,
    )
