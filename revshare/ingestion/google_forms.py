"""
Google Forms submissions forwarded by an Apps Script trigger.

The script posts the form id, name, timestamp and a mapping of
question id -> {question, answer}. Common fields may also be sent at the
top level, which take precedence over the responses.
"""

import json

from ..models import Lead
from .names import FirstTokenSplitter, NameSplitter

SOURCE = "google_forms"

# Keywords matched against question text, Italian first
FIRST_NAME_KEYS = ["nome", "name", "first name"]
LAST_NAME_KEYS = ["cognome", "surname", "last name"]
FULL_NAME_KEYS = ["nome e cognome", "full name", "name"]
EMAIL_KEYS = ["email", "mail", "e-mail"]
PHONE_KEYS = ["telefono", "phone", "cellulare", "contact", "contatto"]
APPS_KEYS = ["app richieste", "app", "apps", "applicazioni", "bonus"]
NOTES_KEYS = ["note", "notes", "messaggio", "message", "altro"]


def _answer_text(answer) -> str:
    if isinstance(answer, list):
        return ", ".join(str(item) for item in answer)
    return str(answer or "")


def extract_field(responses: dict, possible_keys: list[str]) -> str | None:
    """
    First non-blank answer whose question mentions one of the keys
    (case-insensitive) or whose question id equals the key.
    """
    for key in possible_keys:
        lower_key = key.lower()
        for question_id, response in (responses or {}).items():
            question = (response.get("question") or "").lower()
            if lower_key in question or question_id == key:
                answer = _answer_text(response.get("answer")).strip()
                if answer:
                    return answer
    return None


def parse_google_forms_submission(payload: dict, name_splitter: NameSplitter | None = None) -> Lead:
    """Turn a form submission into a Lead."""
    splitter = name_splitter or FirstTokenSplitter()
    responses = payload.get("responses") or {}

    first_name = extract_field(responses, FIRST_NAME_KEYS) or ""
    last_name = extract_field(responses, LAST_NAME_KEYS) or ""
    if payload.get("name"):
        full_name = payload["name"]
    elif first_name and last_name:
        full_name = f"{first_name} {last_name}"
    else:
        full_name = first_name or last_name or extract_field(responses, FULL_NAME_KEYS) or ""
    full_name = full_name.strip()

    if not first_name and full_name:
        first_name, parsed_last = splitter.split(full_name)
        last_name = last_name or parsed_last or ""

    email = payload.get("email") or extract_field(responses, EMAIL_KEYS)
    phone = payload.get("phone") or payload.get("contact") or extract_field(responses, PHONE_KEYS)
    requested_apps = payload.get("requestedApps") or extract_field(responses, APPS_KEYS)
    if isinstance(requested_apps, list):
        requested_apps = ", ".join(requested_apps)
    form_notes = payload.get("notes") or extract_field(responses, NOTES_KEYS)

    form_id = payload.get("formId")
    note_lines = [
        f"Google Form: {payload.get('formName')}",
        f"Form ID: {form_id}",
    ]
    if email:
        note_lines.append(f"Email: {email}")
    if form_notes:
        note_lines.append(f"Notes: {form_notes}")
    note_lines.append(f"Full responses: {json.dumps(responses)}")

    return Lead(
        source=SOURCE,
        external_id=f"google_forms_{form_id}_{payload.get('timestamp')}" if form_id else None,
        full_name=full_name,
        first_name=first_name,
        last_name=last_name or None,
        email=email or None,
        phone=phone or None,
        notes="\n".join(note_lines),
        requested_apps=requested_apps or None,
        request_type="submitted_form",
        request_status="new",
        payload=payload,
    )
