#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB and SMTP settings before starting the API.
Usage: python scripts/check_connections.py
"""
from projectify.core.config import get_settings
from projectify.db.mongodb import create_mongo_client, get_mongo_db, test_mongo_connection
from projectify.services.email_client import SmtpMailer


def main():
    settings = get_settings()
    print("=" * 50)
    print("PROJECTIFY - CONNECTION CHECK")
    print("=" * 50)

    # MongoDB
    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    client = create_mongo_client(settings)
    try:
        if test_mongo_connection(get_mongo_db(client, settings)):
            print("    ✅ MongoDB: CONNECTED")
        else:
            print("    ❌ MongoDB: FAILED")
    finally:
        client.close()

    # SMTP (only if configured)
    print("\n[2] Testing SMTP...")
    if settings.smtp_configured:
        print(f"    Server: {settings.smtp_server}:{settings.smtp_port}")
        if SmtpMailer(settings).test_connection():
            print("    ✅ SMTP: CONNECTED")
        else:
            print("    ❌ SMTP: FAILED")
    else:
        print("    ⚠️  SMTP: not configured (notification emails will be skipped)")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
