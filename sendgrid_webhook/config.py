"""
Webhook Configuration — Environment-based settings.

Everything here is read once at import time and treated as immutable.
"""

import os

# ── Server ────────────────────────────────────────────────
WEBHOOK_HOST = os.environ.get("SENDGRID_WEBHOOK_HOST", "127.0.0.1")
WEBHOOK_PORT = int(os.environ.get("SENDGRID_WEBHOOK_PORT", "8787"))
LOG_LEVEL = os.environ.get("SENDGRID_WEBHOOK_LOG_LEVEL", "INFO").upper()

# ── Inbound auth ──────────────────────────────────────────
API_KEY_PARAM = "apikey"

# ── Ingestion API (Statsig) ───────────────────────────────
INGESTION_BASE_URL = os.environ.get(
    "SENDGRID_WEBHOOK_INGESTION_URL",
    "https://events.statsigapi.net",
).rstrip("/")
INGESTION_TIMEOUT_S = float(os.environ.get("SENDGRID_WEBHOOK_TIMEOUT_S", "10"))
API_KEY_HEADER = "statsig-api-key"

LOG_EVENT_ENDPOINT = "log_event"
LOG_EXPOSURE_ENDPOINT = "log_custom_exposure"
