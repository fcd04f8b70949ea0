"""
Webhook CLI — SendGrid → Statsig webhook adapter.

Usage:
    python3 -m sendgrid_webhook start            Start webhook server (foreground)
    python3 -m sendgrid_webhook config           Show effective configuration
    python3 -m sendgrid_webhook hash <email>     Print the stable ID for an email
    python3 -m sendgrid_webhook convert <file>   Dry run: convert a payload, no forwarding
    python3 -m sendgrid_webhook test <apikey>    Send a sample event to the running server
"""

import asyncio
import json
import logging
import sys

from . import __version__
from . import config as cfg

logging.basicConfig(
    level=getattr(logging, cfg.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("sendgrid_webhook")

SAMPLE_PAYLOAD = [
    {
        "email": "example@test.com",
        "timestamp": 1513299569,
        "event": "delivered",
        "sg_event_id": "sg_event_id_sample",
        "sg_message_id": "sg_message_id_sample",
        "singlesend_name": "welcome_subject/test",
        "category": ["cat facts"],
    },
    {
        "email": "example@test.com",
        "timestamp": 1513299570,
        "event": "open",
        "useragent": "Mozilla/5.0",
        "singlesend_name": "welcome_subject/test",
    },
]


async def cmd_start():
    """Start the webhook server."""
    import uvicorn

    print(f"SendGrid Statsig Webhook v{__version__}")
    print(f"  Host: {cfg.WEBHOOK_HOST}:{cfg.WEBHOOK_PORT}")
    print(f"  Ingestion API: {cfg.INGESTION_BASE_URL}")
    print(f"  Endpoint: POST /?{cfg.API_KEY_PARAM}=<statsig server key>")
    print()

    config = uvicorn.Config(
        "sendgrid_webhook.server:app",
        host=cfg.WEBHOOK_HOST,
        port=cfg.WEBHOOK_PORT,
        log_level=cfg.LOG_LEVEL.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


def cmd_config():
    """Print the effective configuration."""
    print("Webhook Configuration")
    print("=" * 55)
    print(f"  Listen:          {cfg.WEBHOOK_HOST}:{cfg.WEBHOOK_PORT}")
    print(f"  Ingestion API:   {cfg.INGESTION_BASE_URL}")
    print(f"  Timeout:         {cfg.INGESTION_TIMEOUT_S}s")
    print(f"  Log level:       {cfg.LOG_LEVEL}")
    print(f"  Event endpoint:  /v1/{cfg.LOG_EVENT_ENDPOINT}")
    print(f"  Exposure endpoint: /v1/{cfg.LOG_EXPOSURE_ENDPOINT}")


def cmd_hash(email: str):
    """Print the stable ID an email maps to."""
    from .hashing import stable_id

    print(stable_id(email))


def cmd_convert(path: str):
    """Convert a payload file (or '-' for stdin) and print what would be sent."""
    from .exposures import build_exposures
    from .normalizer import convert_batch

    if path == "-":
        raw = sys.stdin.read()
    else:
        with open(path, encoding="utf-8") as f:
            raw = f.read()
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        print(f"Invalid JSON: {exc}")
        sys.exit(1)

    events = convert_batch(payload)
    if not events:
        print("No recognizable events (server would respond 406)")
        sys.exit(1)

    exposures = build_exposures(events)
    print(json.dumps({
        "events": [evt.to_dict() for evt in events],
        "exposures": [exp.to_dict() for exp in exposures],
    }, indent=2, ensure_ascii=False))


async def cmd_test(api_key: str):
    """Send a sample SendGrid batch to the running server."""
    import httpx

    base_url = f"http://{cfg.WEBHOOK_HOST}:{cfg.WEBHOOK_PORT}"

    async with httpx.AsyncClient(timeout=10) as client:
        try:
            resp = await client.get(f"{base_url}/health")
            data = resp.json()
            print(f"Server: {data.get('status', 'unknown')} (uptime: {data.get('uptime_s', 0)}s)")
        except httpx.HTTPError as e:
            print(f"Server not reachable at {base_url}: {e}")
            print("Start the server first: python3 -m sendgrid_webhook start")
            return

        resp = await client.post(
            f"{base_url}/webhook",
            params={cfg.API_KEY_PARAM: api_key},
            json=SAMPLE_PAYLOAD,
        )
        print(f"  POST /webhook -> {resp.status_code} {resp.text[:200]}")


def main():
    if len(sys.argv) < 2:
        print("Usage: python3 -m sendgrid_webhook <command>")
        print()
        print("Commands:")
        print("  start            Start webhook server (foreground)")
        print("  config           Show effective configuration")
        print("  hash <email>     Print the stable ID for an email")
        print("  convert <file>   Convert a payload without forwarding ('-' = stdin)")
        print("  test <apikey>    Send a sample event to the running server")
        sys.exit(1)

    cmd = sys.argv[1]
    args = sys.argv[2:]
    commands = {
        "start": (cmd_start, 0),
        "config": (cmd_config, 0),
        "hash": (cmd_hash, 1),
        "convert": (cmd_convert, 1),
        "test": (cmd_test, 1),
    }

    entry = commands.get(cmd)
    if not entry:
        print(f"Unknown command: {cmd}")
        sys.exit(1)

    handler, nargs = entry
    if len(args) != nargs:
        print(f"'{cmd}' expects {nargs} argument(s), got {len(args)}")
        sys.exit(1)

    import inspect
    if inspect.iscoroutinefunction(handler):
        asyncio.run(handler(*args))
    else:
        handler(*args)


if __name__ == "__main__":
    main()
