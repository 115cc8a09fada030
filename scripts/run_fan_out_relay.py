"""
Drain the fan-out outbox once from CLI.
"""

from __future__ import annotations

import argparse
import json

from app.config import get_fan_out_relay_settings
from app.services.fan_out_relay import FanOutRelay


def main() -> int:
    parser = argparse.ArgumentParser(description="Create destination requests for pending fan-out signals.")
    parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=None,
        help="Maximum number of outbox messages to process. Defaults to FAN_OUT_RELAY_BATCH_SIZE.",
    )
    args = parser.parse_args()

    settings = get_fan_out_relay_settings()
    relay = FanOutRelay(batch_size=settings.batch_size, max_attempts=settings.max_attempts)
    summary = relay.process_pending(limit=args.limit)

    payload = {
        "claimed": summary.claimed,
        "dispatched": summary.dispatched,
        "discarded": summary.discarded,
        "failed": summary.failed,
        "deferred": summary.deferred,
    }
    print(json.dumps(payload, indent=2))
    return 1 if summary.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
