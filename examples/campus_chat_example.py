"""Terminal chat against a running assistant proxy.

Demonstrates:
- Starting a SessionController on a fresh thread
- Answering function tool calls with @tool functions
- Rendering streamed replies through the on_update hook
- Suggested questions that are only sent once

Usage:
    pip install -e ".[otel]"  # only needed for --trace
    OPENAI_ASSISTANT_ID=asst_... uvicorn assistant_chat.server:create_app --factory
    uv run examples/campus_chat_example.py --url http://localhost:8000 --trace
"""

import argparse
import asyncio

from assistant_chat.controller import SessionController
from assistant_chat.message import DisplayMessage, DisplayRole
from assistant_chat.tools import function_call_handler, tool
from assistant_chat.transport import ProxyTransport

SUGGESTED_QUESTIONS = [
    "Where is the admin block?",
    "How do I register for courses?",
    "HOD of All Department",
    "Unilag Portal Url",
]


def setup_tracing(service_name: str):
    from opentelemetry import trace
    from opentelemetry.sdk.resources import SERVICE_NAME, Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        SimpleSpanProcessor, ConsoleSpanExporter,
    )
    from assistant_chat.instrumentation import instrument

    provider = TracerProvider(
        resource=Resource({SERVICE_NAME: service_name})
    )
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    instrument()


@tool
def office_hours(office: str):
    """Opening hours for a campus office."""
    return f"The {office} is open 8am to 4pm, Monday to Friday."


def format_message(message: DisplayMessage) -> str:
    if message.role == DisplayRole.CODE:
        return "\n".join(
            f"{i}. {line}" for i, line in enumerate(message.text.split("\n"), 1)
        )
    return message.text


class TerminalView:
    """Prints each new message header once and streams the last one's tail."""

    def __init__(self):
        self.count = 0
        self.printed = ""

    def __call__(self, messages: list[DisplayMessage]):
        if not messages:
            self.count = 0
            self.printed = ""
            return
        if len(messages) > self.count:
            print(f"\n{messages[-1].role.value.title()}: ", end="")
            self.count = len(messages)
            self.printed = ""
        last = messages[-1]
        if last.role == DisplayRole.USER:
            return
        text = format_message(last)
        if text.startswith(self.printed):
            print(text[len(self.printed):], end="", flush=True)
        else:
            # Annotations rewrote earlier text.
            print(f"\n{text}", end="", flush=True)
        self.printed = text


async def main():
    parser = argparse.ArgumentParser(description="Campus assistant chat")
    parser.add_argument("--url", default="http://localhost:8000")
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--trace", action="store_true")
    args = parser.parse_args()

    if args.trace:
        setup_tracing("campus-chat")

    async with ProxyTransport(args.url) as transport:
        controller = SessionController(
            transport,
            handler=function_call_handler([office_hours]),
            run_timeout=args.timeout,
            on_update=TerminalView(),
        )
        await controller.start()

        print("Campus Assistant\n")
        for i, question in enumerate(SUGGESTED_QUESTIONS, 1):
            print(f"  /{i} {question}")
        print("  /new  start a new chat")

        while True:
            try:
                user_input = input("\n> ")
            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!")
                break

            if user_input == "/new":
                await controller.new_thread()
                continue
            choice = user_input.removeprefix("/")
            if choice.isdigit() and 0 < int(choice) <= len(SUGGESTED_QUESTIONS):
                await controller.send_suggestion(SUGGESTED_QUESTIONS[int(choice) - 1])
            else:
                await controller.send(user_input)
            print()


if __name__ == "__main__":
    asyncio.run(main())
