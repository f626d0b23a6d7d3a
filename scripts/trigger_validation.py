#!/usr/bin/env python3
"""
Trigger a validation run from the command line.

Runs the pipeline for one validation request and prints the run summary
as JSON.

Usage:
    python scripts/trigger_validation.py <validation_request_id> [--provider google|azure]
    python scripts/trigger_validation.py --create-tables
"""

import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from modules.validation.core.exceptions import (
    ConfigurationError,
    ValidationRequestNotFoundError,
)
from modules.validation.engine import ValidationEngine
from src.database.connection import close_engine, create_tables
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


async def main(validation_request_id: int = None, provider: str = None, setup: bool = False) -> int:
    try:
        if setup:
            await create_tables()
            if validation_request_id is None:
                return 0

        try:
            summary = await ValidationEngine().run(validation_request_id, provider_override=provider)
        except ValidationRequestNotFoundError as e:
            logger.error(str(e))
            return 2
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            return 3

        print(json.dumps(summary.to_dict(), indent=2))
        return 0 if summary.status.value in ("completed", "pending") else 1
    finally:
        await close_engine()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Run unit validation for a validation request')
    parser.add_argument('validation_request_id', type=int, nargs='?', help='Validation request ID')
    parser.add_argument('--provider', default=None, help='Provider override (google, azure)')
    parser.add_argument('--create-tables', action='store_true', help='Create database tables first')
    args = parser.parse_args()

    if args.validation_request_id is None and not args.create_tables:
        parser.error('validation_request_id is required')

    sys.exit(asyncio.run(main(args.validation_request_id, args.provider, args.create_tables)))
