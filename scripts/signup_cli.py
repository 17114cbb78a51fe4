"""Terminal waitlist signup — walks through the modal's steps in a shell.

Usage: python -m scripts.signup_cli [hero_section|bottom_section]
Ctrl-D or "q" dismisses the modal (partial save).
"""

import asyncio
import sys

from credupi.analytics.tracker import get_analytics_sink
from credupi.gateway.sheets import get_gateway
from credupi.logging_setup import configure_logging
from credupi.schemas.flow import FlowStep
from credupi.schemas.waitlist import IntentOption, UserTypeOption
from credupi.storage.cache import get_entry_cache
from credupi.waitlist.controller import SignupFlowController, StepBlockedError

QUESTIONS = {
    FlowStep.INTENT: ("Why do you want to build a credit score?", list(IntentOption)),
    FlowStep.USER_TYPE: ("Tell us about yourself", list(UserTypeOption)),
}


async def ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def choose(title: str, options: list) -> str:
    print(f"\n{title}")
    for i, option in enumerate(options, start=1):
        print(f"  {i}. {option.value}")
    answer = await ask("Choose 1-4 (q to close): ")
    if answer.lower() == "q":
        raise EOFError
    if answer.isdigit() and 1 <= int(answer) <= len(options):
        return options[int(answer) - 1].value
    return ""


async def run(cta_location: str) -> None:
    gateway = get_gateway()
    cache = get_entry_cache()
    analytics = get_analytics_sink()
    controller = SignupFlowController(gateway=gateway, cache=cache, analytics=analytics)
    controller.open(cta_location)

    try:
        while controller.state.step != FlowStep.DONE:
            step = controller.state.step
            if step in QUESTIONS:
                title, options = QUESTIONS[step]
                value = await choose(title, options)
                if not value:
                    continue
                if step == FlowStep.INTENT:
                    controller.select_intent(value)
                else:
                    controller.select_user_type(value)
            else:
                raw = await ask(f"\nEnter your phone number {controller.country_code} ")
                if raw.lower() == "q":
                    raise EOFError
                controller.input_phone(raw)
            try:
                await controller.advance()
            except StepBlockedError as e:
                print(f"  ✗ {e.reason}")

        print("\nYou're on the list! 🎉")
        print("We'll text you when CredUPI is ready. Thanks for your interest!")
    except (EOFError, KeyboardInterrupt):
        print("\nClosed.")
    finally:
        controller.close()
        await controller.drain()
        await gateway.aclose()
        await analytics.aclose()
        await cache.aclose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(run(sys.argv[1] if len(sys.argv) > 1 else "hero_section"))
