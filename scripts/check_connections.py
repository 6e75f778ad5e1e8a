#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB and the notification relays are reachable.
Usage: python scripts/check_connections.py
"""
import smtplib
import sys
sys.path.insert(0, ".")

import requests

from internhub.core.config import get_settings
from internhub.db.mongodb import check_mongo_connection, create_mongo_client


def main():
    settings = get_settings()
    print("=" * 50)
    print("INTERNHUB - CONNECTION CHECK")
    print("=" * 50)

    # MongoDB
    print("\n[1] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    client = create_mongo_client(settings)
    try:
        if check_mongo_connection(client):
            print("    MongoDB: CONNECTED")
        else:
            print("    MongoDB: FAILED")
    finally:
        client.close()

    # SMTP relay
    print("\n[2] Checking SMTP relay...")
    if settings.email_enabled:
        print(f"    Host: {settings.smtp_host}:{settings.smtp_port}")
        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port,
                              timeout=settings.notification_timeout_seconds) as server:
                server.noop()
            print("    SMTP: CONNECTED")
        except (OSError, smtplib.SMTPException) as e:
            print(f"    SMTP: FAILED ({e})")
    else:
        print("    SMTP: not configured (email delivery disabled)")

    # Push relay
    print("\n[3] Checking push relay...")
    if settings.push_relay_url:
        print(f"    URL: {settings.push_relay_url}")
        try:
            requests.get(settings.push_relay_url, timeout=settings.notification_timeout_seconds)
            print("    Push relay: REACHABLE")
        except requests.RequestException as e:
            print(f"    Push relay: FAILED ({e})")
    else:
        print("    Push relay: not configured (push disabled)")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
