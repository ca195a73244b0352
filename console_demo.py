"""
Offline console demo: browse availability, validate promo codes, and book a
consultation without any external services.

Runs the real resolver, promo engine, orchestrator, and notification worker
against the in-memory collaborators with a deterministic set of existing
appointments. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario promo
    python console_demo.py --scenario race
"""

import argparse
import asyncio
from typing import Any, Optional

from consult_scheduler.bootstrap import SchedulerServices, build_services
from consult_scheduler.config import settings

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_CUSTOMER = {
    "name": "Jane Smith",
    "email": "jane.smith@example.com",
    "phone": "(312) 555-0142",
}


class ConsoleSession:
    """Drives the scheduler from the terminal."""

    SCENARIOS = ("booking", "promo", "race")
    MAX_SLOTS_SHOWN = 8

    def __init__(self, services: Optional[SchedulerServices] = None) -> None:
        self.services = services or build_services(settings)
        self.api = self.services.api

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def warn(self, text: str) -> None:
        print(f"{YELLOW}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  CONSULTATION SCHEDULER - {title}{RESET}")
        print(f"{BOLD}  Business: {settings.business_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _footer(self, text: str) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {text}{RESET}")
        print(f"{DIM}  Jobs scheduled: {len(self.services.field_service.scheduled_jobs())}{RESET}")
        print(f"{DIM}  Messages sent: {len(self.services.messaging.sent)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    # ------------------------------------------------------------------ #
    # Shared steps
    # ------------------------------------------------------------------ #

    def show_services(self) -> list[dict[str, Any]]:
        _, body = self.api.list_service_types()
        for service in body["data"]:
            self.say(f"  [{service['id']}] {service['label']}: {service['description']}")
        return body["data"]

    async def show_availability(self, service_id: str) -> list[dict[str, Any]]:
        """Print the first few open slots and return them in display order."""
        status, body = await self.api.get_availability(service_id)
        if not body["success"]:
            self.warn(f"  {body['error']} (status {status})")
            return []

        slots = [slot for entry in body["data"] for slot in entry["slots"]]
        self.system_log(f"{len(body['data'])} dates, {len(slots)} slots open")
        for i, slot in enumerate(slots[: self.MAX_SLOTS_SHOWN], start=1):
            self.say(f"  {i}. {slot['start']}  technician {slot['technician_id']}")
        return slots

    def _booking_payload(
        self, service_id: str, slot: dict[str, Any], promo_code: Optional[str] = None, **customer: str
    ) -> dict[str, Any]:
        service = self.services.catalog.get_service_type(service_id)
        return {
            **DEMO_CUSTOMER,
            **customer,
            "start_time": slot["start"],
            "end_time": slot["end"],
            "technician_id": slot["technician_id"],
            "job_type_id": service.job_type_id,
            "promo_code": promo_code,
            "summary": service.label,
        }

    async def book(self, payload: dict[str, Any]) -> dict[str, Any]:
        status, body = await self.api.submit_booking(payload)
        if body["success"]:
            price = f" for {body['final_price']} {body['currency']}" if "final_price" in body else ""
            self.say(f"  Booked {body['id']} with technician {body['technician_id']}{price}")
        else:
            self.warn(f"  Booking rejected ({status}): {body['error']}")
        return body

    async def deliver_confirmations(self) -> None:
        already_sent = len(self.services.messaging.sent)
        processed = await self.services.worker.drain()
        self.system_log(f"Notification worker processed {processed} message(s)")
        for recipient, content in self.services.messaging.sent[already_sent:]:
            self.system_log(f"SMS to {recipient}: {content}")

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    async def scenario_booking(self) -> None:
        self.say("Services on offer:")
        self.show_services()

        print(f"\n{BLUE}[Customer] {RESET}Show me times for a DIY Plumbing Consult")
        slots = await self.show_availability("1")
        if not slots:
            return

        print(f"\n{BLUE}[Customer] {RESET}I'll take the first one, with code SAVE20")
        await self.book(self._booking_payload("1", slots[0], promo_code="SAVE20"))
        await self.deliver_confirmations()

        print(f"\n{BLUE}[Customer] {RESET}Can I book that same time again?")
        await self.book(self._booking_payload("1", slots[0]))

    async def scenario_promo(self) -> None:
        for code in ("SAVE20", "halfoff", "WELCOME5", "NOPE"):
            print(f"\n{BLUE}[Customer] {RESET}Does {code} work?")
            status, body = await self.api.validate_promo_code({"code": code})
            if body.get("valid"):
                self.say(
                    f"  Yes: {body['discount_amount']} off {body['original_price']}, "
                    f"you pay {body['final_price']} {body['currency']}"
                )
            else:
                self.warn(f"  No: {body.get('error')} (status {status})")

    async def scenario_race(self) -> None:
        slots = await self.show_availability("3")
        if not slots:
            return

        slot = slots[0]
        self.system_log(f"Two customers submit {slot['start']} with technician {slot['technician_id']}")
        first = self._booking_payload("3", slot)
        second = self._booking_payload(
            "3", slot, name="Sam Jones", email="sam@example.com", phone="312-555-0199"
        )
        await asyncio.gather(self.book(first), self.book(second))
        await self.deliver_confirmations()

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        handler = getattr(self, f"scenario_{scenario}", None)
        if scenario not in self.SCENARIOS or handler is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        await handler()
        self._footer(f"Scenario '{scenario}' complete.")

    # ------------------------------------------------------------------ #
    # Interactive mode
    # ------------------------------------------------------------------ #

    async def run(self) -> None:
        self._banner("Console Demo")
        print(f"{BOLD}  Type 'quit' to exit{RESET}\n")

        while True:
            self.show_services()
            service_id = self._ask("Service id")
            if service_id is None:
                break
            slots = await self.show_availability(service_id)
            if not slots:
                continue

            choice = self._ask(f"Slot number (1-{min(len(slots), self.MAX_SLOTS_SHOWN)})")
            if choice is None:
                break
            if not choice.isdigit() or not 1 <= int(choice) <= min(len(slots), self.MAX_SLOTS_SHOWN):
                self.warn("  Please pick one of the listed slots.")
                continue

            customer = {}
            for field_name in ("name", "email", "phone"):
                value = self._ask(field_name.capitalize())
                if value is None:
                    return
                customer[field_name] = value
            promo_code = self._ask("Promo code (optional)") or None

            await self.book(
                self._booking_payload(service_id, slots[int(choice) - 1], promo_code, **customer)
            )
            await self.deliver_confirmations()

        print(f"\n{DIM}Session ended.{RESET}")

    @staticmethod
    def _ask(prompt: str) -> Optional[str]:
        answer = input(f"\n{BLUE}{prompt}: {RESET}").strip()
        if answer.lower() in ("quit", "exit", "q"):
            return None
        return answer


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=list(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args(argv)

    session = ConsoleSession()
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
