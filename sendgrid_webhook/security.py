"""
Inbound auth — the ingestion API key rides in the webhook URL.

SendGrid cannot add custom headers to event webhook posts, so the key is
configured as ``?apikey=...`` on the webhook URL and relayed as-is.
"""

from typing import Mapping, Optional

from . import config as cfg


def extract_api_key(query_params: Mapping[str, str]) -> Optional[str]:
    """Return the API key from the query string, or None if missing/empty."""
    api_key = query_params.get(cfg.API_KEY_PARAM)
    return api_key or None


def mask_api_key(api_key: Optional[str]) -> str:
    """Loggable form of an API key: prefix plus last four characters."""
    if not api_key:
        return "-"
    if len(api_key) <= 8:
        return "****"
    prefix = api_key.split("-", 1)[0] if "-" in api_key[:10] else ""
    return f"{prefix}-****{api_key[-4:]}" if prefix else f"****{api_key[-4:]}"
