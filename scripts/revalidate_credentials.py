"""Re-validate every stored API key for a user.

Checks each stored key against its provider and persists definitive
outcomes (valid / invalid). Transient failures leave the row untouched.
Also settles legacy 'pending' rows that still hold a key.

Usage:
    python -m scripts.revalidate_credentials --user user_123
    python -m scripts.revalidate_credentials --user user_123 --json
"""

import argparse
import asyncio
import json
import logging
import sys
from collections import Counter

from src.credentials import create_resolver
from src.credentials.exceptions import CredentialsError
from src.logging_config import LogContext, configure_logging

logger = logging.getLogger(__name__)


async def revalidate(user_id: str, as_json: bool) -> int:
    resolver = create_resolver()
    with LogContext(user_id=user_id):
        reports = await resolver.revalidate_all(user_id)

    counts = Counter(r.action for r in reports)
    if as_json:
        print(json.dumps({
            "user_id": user_id,
            "summary": {"total": len(reports), **counts},
            "results": [
                {
                    "provider": r.provider.value,
                    "action": r.action,
                    "old_status": r.old_status.value,
                    "new_status": r.new_status.value,
                    "reason": r.reason,
                }
                for r in reports
            ],
        }, indent=2))
    else:
        for r in reports:
            print(
                f"{r.provider.value:12s} {r.action:10s} "
                f"{r.old_status.value} -> {r.new_status.value}  {r.reason}"
            )
        logger.info(
            "Processed %d providers: %d updated, %d refreshed, %d skipped, %d unchanged, %d errors",
            len(reports), counts["updated"], counts["refreshed"],
            counts["skipped"], counts["unchanged"], counts["error"],
        )
    return 0


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--user", required=True, help="User ID whose keys to re-check")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    args = parser.parse_args()

    configure_logging()
    try:
        sys.exit(asyncio.run(revalidate(args.user, args.json)))
    except CredentialsError as e:
        logger.error("Revalidation failed: %s", e.message, extra={"error_kind": type(e).__name__})
        sys.exit(1)


if __name__ == "__main__":
    main()
