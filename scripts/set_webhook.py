#!/usr/bin/env python3
"""
Register the Telegram bot webhook.

Points the bot at <REMOTE_PATH>/telegram using TELEGRAM_BOT_TOKEN.
Both are read through the service settings, so `.env` and the
environment behave exactly as they do for the API.
"""

import sys
import json
from typing import Optional

import httpx

from storefront.core.config import get_settings

TELEGRAM_API = "https://api.telegram.org"


def set_webhook(token: str, webhook_url: str, client: Optional[httpx.Client] = None) -> bool:
    """Call setWebhook; returns True when Telegram accepted it"""
    endpoint = f"{TELEGRAM_API}/bot{token}/setWebhook"
    http = client or httpx.Client(timeout=30.0)
    try:
        response = http.post(
            endpoint,
            json={"url": webhook_url, "drop_pending_updates": True},
        )
    finally:
        if client is None:
            http.close()

    try:
        payload = response.json()
    except ValueError:
        payload = None

    if response.status_code >= 400:
        print(f"✗ Telegram API responded with HTTP {response.status_code} {response.reason_phrase}")
        if payload:
            print(json.dumps(payload, indent=2))
        return False

    if not payload or not payload.get("ok"):
        print("✗ Webhook set failed!")
        if payload:
            print(json.dumps(payload, indent=2))
        return False

    return True


def main() -> int:
    settings = get_settings()

    if not settings.telegram_bot_token:
        print("✗ Missing TELEGRAM_BOT_TOKEN environment variable.")
        return 1
    webhook_url = settings.webhook_url
    if not webhook_url:
        print("✗ Missing REMOTE_PATH environment variable.")
        return 1

    try:
        ok = set_webhook(settings.telegram_bot_token, webhook_url)
    except httpx.HTTPError as e:
        print("✗ Unexpected error while setting webhook.")
        print(e)
        return 1

    if not ok:
        return 1

    print(webhook_url)
    print("✓ Webhook set successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
