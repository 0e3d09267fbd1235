from flask import Flask, request, jsonify
from flask_cors import CORS
from revshare import PartnerNotFoundError, PartnerProcessor
from revshare.config import Settings
from revshare.ingestion import handle_calendly_event, handle_google_forms_submission
from revshare.store import StoreError, SupabaseRowStore
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = Settings.from_env()

app = Flask(__name__)

# Enable CORS (dashboard and form scripts call the API cross-origin)
CORS(app, origins=settings.allowed_origins)

# Initialize the partner processor
processor = PartnerProcessor()


def get_store():
    """Row store for this app; tests put one in app.config['ROW_STORE']."""
    store = app.config.get("ROW_STORE")
    if store is None:
        store = SupabaseRowStore.from_credentials(settings.supabase_url, settings.supabase_service_key)
        app.config["ROW_STORE"] = store
    return store


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Partner Revenue-Share API",
        "version": "1.0",
        "endpoints": {
            "partner_summary": "/partners/<partner_id>/summary [GET]",
            "calendly_webhook": "/webhooks/calendly [POST]",
            "google_forms_webhook": "/webhooks/google-forms [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy", "environment": settings.environment}), 200


@app.route("/partners/<partner_id>/summary", methods=["GET"])
def partner_summary(partner_id):
    """
    Balance, per-client breakdown and monthly series for one partner
    """
    try:
        store = get_store()
        result = processor.summarize_from_store(store, partner_id)
        return jsonify(result), 200

    except PartnerNotFoundError as e:
        logger.info(f"Partner lookup failed: {str(e)}")
        return jsonify({"error": str(e), "status": "not_found"}), 404

    except StoreError as e:
        logger.error(f"Store error: {str(e)}")
        return jsonify({"error": str(e), "status": "failed"}), 500

    except Exception as e:
        # Unexpected errors
        logger.error(f"Summary error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred",
            "status": "failed"
        }), 500


def _run_webhook(handler):
    input_data = request.get_json(force=True, silent=True)
    if not isinstance(input_data, dict) or not input_data:
        return jsonify({"error": "No input data provided"}), 400

    try:
        store = get_store()
    except StoreError as e:
        logger.error(f"Store unavailable: {str(e)}")
        return jsonify({"error": str(e)}), 500

    status, body = handler(input_data, store, log_trail_size=settings.log_trail_size)
    return jsonify(body), status


@app.route("/webhooks/calendly", methods=["POST"])
def calendly_webhook():
    """Calendly invitee events"""
    return _run_webhook(handle_calendly_event)


@app.route("/webhooks/google-forms", methods=["POST"])
def google_forms_webhook():
    """Google Forms submissions"""
    return _run_webhook(handle_google_forms_submission)


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=settings.port, debug=False)
