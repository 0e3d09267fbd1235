"""
AWS Lambda handler for the Partner Revenue-Share API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import binascii
import json
import logging
import re

from revshare import PartnerNotFoundError, PartnerProcessor
from revshare.config import Settings
from revshare.ingestion import handle_calendly_event, handle_google_forms_submission
from revshare.store import StoreError, SupabaseRowStore

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

settings = Settings.from_env()

# Initialize processor (reused across warm invocations)
processor = PartnerProcessor()

# Row store, created on first use and reused across warm invocations
store = None

CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Headers": "authorization,x-client-info,apikey,content-type",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

SUMMARY_PATH = re.compile(r"^/partners/(?P<partner_id>[^/]+)/summary$")

WEBHOOKS = {
    "/webhooks/calendly": handle_calendly_event,
    "/webhooks/google-forms": handle_google_forms_submission,
}


def get_store():
    global store
    if store is None:
        store = SupabaseRowStore.from_credentials(settings.supabase_url, settings.supabase_service_key)
    return store


def _cors_headers(event):
    """Echo the request origin when it is allowed, else the first allowed origin."""
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
    request_origin = headers.get("origin")
    allowed = settings.allowed_origins
    if "*" in allowed or request_origin in allowed:
        origin = request_origin or "*"
    else:
        origin = allowed[0]
    return {**CORS_HEADERS, "Access-Control-Allow-Origin": origin}


def _response(event, status_code, body):
    return {"statusCode": status_code, "headers": _cors_headers(event), "body": json.dumps(body)}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - GET /partners/{id}/summary
    - POST /webhooks/calendly
    - POST /webhooks/google-forms
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": _cors_headers(event), "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    # Route to appropriate handler
    summary_match = SUMMARY_PATH.match(path)
    if path == "/health" and http_method == "GET":
        return handle_health(event)
    elif path == "/api" and http_method == "GET":
        return handle_api_info(event)
    elif summary_match and http_method == "GET":
        return handle_partner_summary(event, summary_match.group("partner_id"))
    elif path in WEBHOOKS and http_method == "POST":
        return handle_webhook(event, WEBHOOKS[path])
    else:
        return _response(event, 404, {"error": "Not found", "path": path})


def handle_health(event):
    """Health check endpoint."""
    return _response(event, 200, {"status": "healthy", "environment": settings.environment})


def handle_api_info(event):
    """API information endpoint."""
    return _response(
        event,
        200,
        {
            "status": "ok",
            "message": "Partner Revenue-Share API",
            "version": "1.0",
            "environment": settings.environment,
            "runtime": "AWS Lambda",
            "endpoints": {
                "partner_summary": "/partners/{partner_id}/summary [GET]",
                "calendly_webhook": "/webhooks/calendly [POST]",
                "google_forms_webhook": "/webhooks/google-forms [POST]",
                "health": "/health [GET]",
            },
        },
    )


def handle_partner_summary(event, partner_id):
    """Balance, breakdown and monthly series for one partner."""
    try:
        result = processor.summarize_from_store(get_store(), partner_id)
        return _response(event, 200, result)

    except PartnerNotFoundError as e:
        logger.info(f"Partner lookup failed: {str(e)}")
        return _response(event, 404, {"error": str(e), "status": "not_found"})

    except StoreError as e:
        logger.error(f"Store error: {str(e)}")
        return _response(event, 500, {"error": str(e), "status": "failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected summary error: {str(e)}", exc_info=True)
        return _response(event, 500, {"error": "An unexpected error occurred", "status": "failed"})


def handle_webhook(event, handler):
    """Run one webhook delivery through its source handler."""
    body = event.get("body", "")
    if isinstance(body, str):
        if not body:
            return _response(event, 400, {"error": "No input data provided"})
        try:
            # Handle base64 encoded body (API Gateway)
            if event.get("isBase64Encoded"):
                body = base64.b64decode(body, validate=True).decode("utf-8")
            input_data = json.loads(body)
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.error(f"Body decode error: {str(e)}")
            return _response(event, 400, {"error": "Invalid body"})
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error: {str(e)}")
            return _response(event, 400, {"error": f"Invalid JSON: {str(e)}"})
    else:
        input_data = body

    if not isinstance(input_data, dict) or not input_data:
        return _response(event, 400, {"error": "No input data provided"})

    try:
        row_store = get_store()
    except StoreError as e:
        logger.error(f"Store unavailable: {str(e)}")
        return _response(event, 500, {"error": str(e)})

    status, result = handler(input_data, row_store, log_trail_size=settings.log_trail_size)
    return _response(event, status, result)
