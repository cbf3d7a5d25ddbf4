#!/usr/bin/env python3
"""Run the document expiration sweep once.

Usage:
    python scripts/check_expirations.py [--days 30]

Meant to be called by an external scheduler (cron, a k8s CronJob). This script:
1. Sends "expiring soon" notices for documents inside the window
2. Marks documents past their expiry date as expired
"""

import asyncio
import sys
from argparse import ArgumentParser
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog
from thiqax.config.database import SessionLocal, init_db
from thiqax.config.settings import settings
from thiqax.errors import APIError
from thiqax.middleware.logging import configure_logging
from thiqax.services.documents import DocumentIntegrationService

configure_logging()
logger = structlog.get_logger()


async def main():
    parser = ArgumentParser(description="Notify about and expire documents")
    parser.add_argument(
        "--days",
        type=int,
        default=settings.EXPIRY_NOTICE_DAYS,
        help=f"Notice window in days (default: {settings.EXPIRY_NOTICE_DAYS})",
    )
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        result = await DocumentIntegrationService(db).check_document_expirations(days_threshold=args.days)
    except APIError as e:
        logger.error("Expiration sweep failed", error=e.message)
        print(f"\nError: {e.message}")
        sys.exit(1)
    finally:
        db.close()

    print(f"Processed: {result['processedCount']}")
    print(f"Notified:  {result['notifiedCount']}")
    print(f"Expired:   {result['expiredCount']}")


if __name__ == "__main__":
    asyncio.run(main())
