"""Tests for AWS Lambda handler."""

import base64
import json

import pytest

import lambda_handler as handler_module
from lambda_handler import lambda_handler
from revshare.store import InMemoryRowStore


@pytest.fixture
def store(monkeypatch):
    store = InMemoryRowStore(
        {
            "client_partners": [
                {"id": "p1", "name": "Luca", "default_split_partner": 0.5, "default_split_owner": 0.5},
            ],
            "clients": [{"id": "c1", "name": "Mario", "surname": "Rossi", "email": "mario@example.com", "contact": None}],
            "client_partner_assignments": [
                {"id": "a1", "partner_id": "p1", "client_id": "c1", "split_partner_override": 0.6, "split_owner_override": None},
            ],
            "client_apps": [
                {"client_id": "c1", "status": "completed", "profit_us": 200, "completed_at": "2025-04-11"},
            ],
            "partner_payments": [{"id": "pay1", "partner_id": "p1", "amount": 20, "paid_at": "2025-04-20"}],
            "requests": [],
        },
        unique_columns={"requests": ["external_form_id"]},
    )
    store.register_procedure("assign_auto_tier", lambda p_client_id: None)
    monkeypatch.setattr(handler_module, "store", store)
    return store


@pytest.fixture
def calendly_payload():
    return {
        "event": "invitee.created",
        "payload": {
            "invitee": {"uuid": "inv-1", "name": "Mario Rossi", "email": "mario@example.com", "text_reminder_number": "+39111"},
            "scheduled_event": {"uuid": "se-1", "name": "Onboarding", "start_time": "2025-06-01T10:00:00Z"},
        },
    }


class TestLambdaHandler:
    """Test the Lambda handler routes and responses."""

    def test_health_check(self):
        """GET /health returns healthy status."""
        event = {"httpMethod": "GET", "path": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "healthy"

    def test_api_info(self):
        """GET /api returns API information."""
        event = {"httpMethod": "GET", "path": "/api"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "ok"
        assert "endpoints" in body

    def test_cors_preflight(self):
        """OPTIONS requests return CORS headers."""
        event = {"httpMethod": "OPTIONS", "path": "/webhooks/calendly"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert "Access-Control-Allow-Origin" in response["headers"]
        assert "Access-Control-Allow-Methods" in response["headers"]

    def test_cors_echoes_request_origin(self):
        event = {"httpMethod": "OPTIONS", "path": "/webhooks/calendly", "headers": {"Origin": "https://forms.example.com"}}
        response = lambda_handler(event, None)

        assert response["headers"]["Access-Control-Allow-Origin"] == "https://forms.example.com"

    def test_not_found(self):
        """Unknown paths return 404."""
        event = {"httpMethod": "GET", "path": "/unknown"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 404

    def test_http_api_format(self):
        """Supports HTTP API v2 event format."""
        event = {"requestContext": {"http": {"method": "GET"}}, "rawPath": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200


class TestPartnerSummaryRoute:

    def test_summary(self, store):
        event = {"httpMethod": "GET", "path": "/partners/p1/summary"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["balance"]["partner_share"] == 120.0
        assert body["balance"]["owner_share"] == 100.0
        assert body["balance"]["balance"] == 100.0
        assert body["monthly"] == [{"month": "2025-04", "amount": 120.0}]

    def test_unknown_partner_is_404(self, store):
        event = {"httpMethod": "GET", "path": "/partners/nope/summary"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 404
        assert json.loads(response["body"])["status"] == "not_found"


class TestWebhookRoutes:

    def test_calendly_success(self, store, calendly_payload):
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": json.dumps(calendly_payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["success"] == True
        assert body["clientId"] == "c1"
        assert body["clientCreated"] == False
        assert body["requestId"] == store.tables["requests"][0]["id"]
        assert 0 < len(body["logs"]) <= 10

    def test_calendly_ignored_event(self, store, calendly_payload):
        calendly_payload["event"] = "invitee.canceled"
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": json.dumps(calendly_payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"message": "Event ignored"}
        assert store.tables["requests"] == []

    def test_calendly_missing_name(self, store, calendly_payload):
        calendly_payload["payload"]["invitee"]["name"] = ""
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": json.dumps(calendly_payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["error"] == "Missing name"
        assert "logs" in body

    def test_google_forms_creates_client(self, store):
        payload = {
            "formId": "f1",
            "formName": "Bonus",
            "timestamp": "2025-06-02T08:00:00Z",
            "responses": {
                "q1": {"question": "Nome", "answer": "Giulia"},
                "q2": {"question": "Cognome", "answer": "Neri"},
                "q3": {"question": "Telefono", "answer": "+39222"},
            },
        }
        event = {"httpMethod": "POST", "path": "/webhooks/google-forms", "body": json.dumps(payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["clientCreated"] == True
        request = store.tables["requests"][0]
        assert request["webhook_source"] == "google_forms"
        assert request["external_form_id"] == "google_forms_f1_2025-06-02T08:00:00Z"

    def test_base64_body(self, store, calendly_payload):
        encoded = base64.b64encode(json.dumps(calendly_payload).encode("utf-8")).decode("ascii")
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": encoded, "isBase64Encoded": True}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200

    def test_base64_body_not_utf8(self, store):
        encoded = base64.b64encode(b"\xff\xfe{").decode("ascii")
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": encoded, "isBase64Encoded": True}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error"] == "Invalid body"
        assert store.tables["requests"] == []

    def test_invalid_base64_body(self, store):
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": "%%not-base64%%", "isBase64Encoded": True}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error"] == "Invalid body"

    def test_json_array_body(self, store):
        event = {"httpMethod": "POST", "path": "/webhooks/google-forms", "body": "[1, 2]"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400

    def test_form_redelivery_without_contact_details(self, store):
        payload = {"formId": "f1", "name": "Anna Bianchi", "responses": {}}
        event = {"httpMethod": "POST", "path": "/webhooks/google-forms", "body": json.dumps(payload)}

        first = json.loads(lambda_handler(event, None)["body"])
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        second = json.loads(response["body"])
        assert second["clientCreated"] == False
        assert second["duplicateDelivery"] == True
        assert second["clientId"] == first["clientId"]
        assert second["requestId"] == first["requestId"]
        assert len(store.tables["clients"]) == 2
        assert len(store.tables["requests"]) == 1
        assert store.tables["requests"][0]["client_id"] == second["clientId"]

    def test_empty_body(self, store):
        """POST with empty body returns 400."""
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": ""}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        assert "error" in json.loads(response["body"])

    def test_invalid_json(self, store):
        """POST with invalid JSON returns 400."""
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": "not valid json"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        assert "Invalid JSON" in json.loads(response["body"])["error"]

    def test_missing_credentials(self, monkeypatch, calendly_payload):
        monkeypatch.setattr(handler_module, "store", None)
        monkeypatch.setattr(handler_module.settings, "supabase_url", "")
        event = {"httpMethod": "POST", "path": "/webhooks/calendly", "body": json.dumps(calendly_payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 500
        assert json.loads(response["body"])["error"] == "Missing Supabase credentials"
