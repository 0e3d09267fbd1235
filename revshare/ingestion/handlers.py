"""
Webhook entry points, one per source.

Each handler takes the parsed JSON body and a row store and returns
(status_code, body) so the Flask app and the Lambda handler share them.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from ..output import ingestion_to_dict
from ..store import RowStore
from .calendly import is_processed_event, parse_calendly_event
from .google_forms import parse_google_forms_submission
from .log_trail import LogTrail
from .names import NameSplitter
from .reconciler import IngestionError, LeadReconciler
from .validators import LeadValidationError

logger = logging.getLogger(__name__)


def _ingest(
    lead_parser,
    body: Dict[str, Any],
    store: RowStore,
    trail: LogTrail,
    name_splitter: Optional[NameSplitter],
    flag_similar_names: bool,
    log_trail_size: int,
) -> Tuple[int, Dict[str, Any]]:
    reconciler = LeadReconciler(
        store, flag_similar_names=flag_similar_names, log_trail_size=log_trail_size
    )
    try:
        lead = lead_parser(body, name_splitter)
        result = reconciler.reconcile(lead, trail)
    except LeadValidationError as e:
        trail.warn(str(e))
        return 400, {"error": str(e), "logs": trail.tail(log_trail_size)}
    except IngestionError as e:
        return 500, {"error": str(e), "logs": e.logs}
    except Exception as e:
        logger.error(f"Unexpected webhook error: {str(e)}", exc_info=True)
        trail.error("Webhook processing failed", {"error": str(e)})
        return 500, {"error": "Internal server error", "logs": trail.tail(log_trail_size)}

    return 200, ingestion_to_dict(result)


def handle_calendly_event(
    event: Dict[str, Any],
    store: RowStore,
    name_splitter: Optional[NameSplitter] = None,
    log_trail_size: int = 10,
) -> Tuple[int, Dict[str, Any]]:
    trail = LogTrail(__name__)
    trail.info("Received Calendly webhook", {"event": event.get("event")})

    if not is_processed_event(event):
        trail.info(f"Ignoring event type: {event.get('event')}")
        return 200, {"message": "Event ignored"}

    return _ingest(parse_calendly_event, event, store, trail, name_splitter, False, log_trail_size)


def handle_google_forms_submission(
    payload: Dict[str, Any],
    store: RowStore,
    name_splitter: Optional[NameSplitter] = None,
    log_trail_size: int = 10,
) -> Tuple[int, Dict[str, Any]]:
    trail = LogTrail(__name__)
    trail.info("Received Google Forms webhook", {
        "formId": payload.get("formId"),
        "formName": payload.get("formName"),
    })
    return _ingest(
        parse_google_forms_submission, payload, store, trail, name_splitter, True, log_trail_size
    )
