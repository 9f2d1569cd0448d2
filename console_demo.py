"""
Console chat: talk to the dialogue controller from a terminal.

Uses the same controller as the HTTP endpoint, so Wit.ai and Gemini keys
must be configured. The catalog is the in-memory sample list unless
DATABASE_URL is set.

Usage:
    python console_demo.py
    python console_demo.py --scenario consult
    python console_demo.py --scenario brand
"""

import argparse
import asyncio
import uuid
from typing import Optional

from phonebot.config import settings
from phonebot.conversation.controller import DialogueController, build_controller
from phonebot.schemas.chat_schema import Reply

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """One chat session driven from the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "brand": [
            "Có sản phẩm nào của Samsung không?",
            "Galaxy S23",
            "Galaxy S23 có khuyến mãi gì không?",
            "Bảo hành bao lâu?",
        ],
        "consult": [
            "Tư vấn iPhone 14",
            "chụp ảnh",
            "20 triệu",
            "camera",
            "tím",
        ],
        "price": [
            "Có điện thoại nào dưới 10 triệu không?",
            "So sánh iPhone 14 và Galaxy S23",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, controller: Optional[DialogueController] = None) -> None:
        self.controller = controller or build_controller(settings)
        self.session_id = f"console-{uuid.uuid4().hex[:8]}"

    def bot_say(self, reply: Reply) -> None:
        print(f"{GREEN}{BOLD}[Bot]{RESET} {GREEN}{reply.text}{RESET}")
        if reply.image_url:
            self.system_log(f"Image: {reply.image_url}")
        for card in reply.products or []:
            self.system_log(f"{card.name} ({card.brand}) {card.price:,} VNĐ".replace(",", "."))
        if reply.show_buttons:
            self.system_log("Buttons: [Đặt mua] [Xem thêm]")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _state(self) -> str:
        context = self.controller.store.get(self.session_id)
        return context.state.value if context else "idle"

    async def _send(self, message: str) -> None:
        reply = await self.controller.handle_message(self.session_id, message)
        self.bot_say(reply)
        self.system_log(f"State: {self._state()}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  PHONE STORE CHATBOT - {title}{RESET}")
        print(f"{BOLD}  Store: {settings.business.store_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    async def _play(self, steps: list[str]) -> None:
        for step in steps:
            print(f"\n{BLUE}[Khách] {RESET}{step}")
            await self._send(step)

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        asyncio.run(self._play(steps))
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def _loop(self) -> None:
        while True:
            user_input = (await asyncio.to_thread(input, f"\n{BLUE}[Khách] {RESET}")).strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if len(user_input) > self.MAX_INPUT_LENGTH:
                print(f"{YELLOW}Message too long, keep it under {self.MAX_INPUT_LENGTH} characters.{RESET}")
                continue
            await self._send(user_input)

    def run(self) -> None:
        self._banner("Console")
        print(f"{BOLD}  Type 'quit' to exit{RESET}")
        self.system_log(f"Session: {self.session_id}")
        try:
            asyncio.run(self._loop())
        except (KeyboardInterrupt, EOFError):
            print(f"\n{DIM}Session ended.{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Phone store chatbot console")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        help="Auto-play a scripted conversation instead of reading from stdin",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
