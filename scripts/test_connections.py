#!/usr/bin/env python3
"""
Connection Test Script

Run this to verify MongoDB, SMTP and the token secrets are configured.
Usage: python scripts/test_connections.py
"""
import smtplib
import ssl
import sys
sys.path.insert(0, '.')

from app.db.mongodb import test_mongo_connection
from app.core.config import get_settings


def test_smtp(settings) -> bool:
    context = ssl.create_default_context()
    try:
        if settings.smtp_use_tls:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as server:
                server.starttls(context=context)
                if settings.smtp_user and settings.smtp_password:
                    server.login(settings.smtp_user, settings.smtp_password)
        else:
            with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context, timeout=15) as server:
                if settings.smtp_user and settings.smtp_password:
                    server.login(settings.smtp_user, settings.smtp_password)
    except (smtplib.SMTPException, OSError) as e:
        print(f"    Error: {e}")
        return False
    return True


def main():
    settings = get_settings()
    print("=" * 50)
    print("WORKIFY JOB PORTAL - CONNECTION TEST")
    print("=" * 50)

    # Test MongoDB
    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    ✅ MongoDB: CONNECTED")
    else:
        print("    ❌ MongoDB: FAILED")

    # Test SMTP (only if a host is set)
    print("\n[2] Testing SMTP...")
    if settings.smtp_host:
        print(f"    Host: {settings.smtp_host}:{settings.smtp_port}")
        if test_smtp(settings):
            print("    ✅ SMTP: CONNECTED")
        else:
            print("    ❌ SMTP: FAILED")
    else:
        print("    ⚠️  SMTP: host not configured (reset emails are only logged)")

    # Token secrets
    print("\n[3] Checking token secrets...")
    for name in ("access_token_secret", "refresh_token_secret"):
        if getattr(settings, name):
            print(f"    ✅ {name.upper()}: set")
        else:
            print(f"    ❌ {name.upper()}: missing (login and refresh will fail)")

    print("\n" + "=" * 50)
    print("Connection test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
