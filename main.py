"""
Consultation scheduler entry point.

Prints availability for a service type or launches the offline console demo.
Both modes run against the in-memory collaborators with seeded demo
appointments.

Usage:
    Availability: python main.py availability <service_id>
    Console mode: python main.py console [--scenario booking|promo|race]
"""

import asyncio
import json
import logging
import sys

from consult_scheduler.config import settings

logger = logging.getLogger(__name__)

USAGE = (
    "Usage:\n"
    "  python main.py availability <service_id>\n"
    "  python main.py console [--scenario booking|promo|race]"
)


async def _print_availability(service_id: str) -> int:
    from consult_scheduler.bootstrap import build_services

    services = build_services(settings)
    status, body = await services.api.get_availability(service_id)
    print(json.dumps(body, indent=2))
    logger.debug("Availability for service %s returned %d", service_id, status)
    return 0 if status == 200 else 1


def _run_availability_mode(args: list[str]) -> int:
    if not args:
        print(USAGE, file=sys.stderr)
        return 2
    return asyncio.run(_print_availability(args[0]))


def _run_console_mode(args: list[str]) -> int:
    """Start the offline console demo."""
    from console_demo import main as console_main

    console_main(args)
    return 0


if __name__ == "__main__":
    mode = sys.argv[1] if len(sys.argv) > 1 else ""
    if mode == "availability":
        sys.exit(_run_availability_mode(sys.argv[2:]))
    elif mode == "console":
        sys.exit(_run_console_mode(sys.argv[2:]))
    else:
        print(USAGE, file=sys.stderr)
        sys.exit(2)
