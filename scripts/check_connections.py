#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB and the media host settings.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from app.core.config import get_settings
from app.db.mongodb import init_mongo_indexes, test_mongo_connection


def main():
    settings = get_settings()
    print("=" * 50)
    print("CAMPUS MARKETPLACE - CONNECTION CHECK")
    print("=" * 50)

    # MongoDB
    print("\n[1] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    MongoDB: CONNECTED")
        init_mongo_indexes()
        print("    Indexes: OK")
    else:
        print("    MongoDB: FAILED")

    # Cloudinary (uploads are skipped when not configured)
    print("\n[2] Checking Cloudinary settings...")
    if settings.cloudinary_configured:
        print(f"    Cloud name: {settings.cloudinary_cloud_name}")
    else:
        print("    Cloudinary: not configured, uploads will fail")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
