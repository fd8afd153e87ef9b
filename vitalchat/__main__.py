import argparse
import asyncio
import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler

from vitalchat.config import VALID_PROVIDERS, AISettings
from vitalchat.errors import VitalChatError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def log_handler() -> RichHandler:
    """Rich log handler writing to stderr, away from answers on stdout."""
    from vitalchat.ui.console import theme

    return RichHandler(
        console=Console(stderr=True, theme=theme),
        rich_tracebacks=True,
        show_path=False,
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[log_handler()],
    )


def _default_log_level() -> str:
    level = os.getenv("LOG_LEVEL", "WARNING").upper()
    return level if level in LOG_LEVELS else "WARNING"


def settings_from_args(args: argparse.Namespace) -> AISettings:
    """Apply environment and command-line overrides to the default settings."""
    settings = AISettings(enable_reasoning=args.show_reasoning)
    return settings.with_overrides(
        provider=args.provider or os.getenv("VITALCHAT_PROVIDER"),
        api_url=args.api_url or os.getenv("VITALCHAT_API_URL"),
        model=args.model or os.getenv("VITALCHAT_MODEL"),
        api_key=(
            args.api_key
            or os.getenv("VITALCHAT_API_KEY")
            or os.getenv("OPENAI_API_KEY")
        ),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="VitalChat - streaming AI assistant with separated reasoning"
    )
    parser.add_argument(
        "--provider", choices=VALID_PROVIDERS, default=None,
        help="Model provider (default: openai, or $VITALCHAT_PROVIDER)",
    )
    parser.add_argument(
        "--model", default=None,
        help="Model name (e.g. gpt-4o, llama3)",
    )
    parser.add_argument(
        "--api-url", default=None,
        help="Base URL of the provider API",
    )
    parser.add_argument(
        "--api-key", default=None,
        help="API key (default: $VITALCHAT_API_KEY or $OPENAI_API_KEY)",
    )
    parser.add_argument(
        "--system", default=None, metavar="PROMPT",
        help="System prompt for the conversation",
    )
    parser.add_argument(
        "--show-reasoning", action="store_true",
        help="Expand the model's reasoning instead of collapsing it",
    )
    parser.add_argument(
        "--list-models", action="store_true",
        help="List the provider's models and exit",
    )
    parser.add_argument(
        "--test-connection", action="store_true",
        help="Check that the provider is reachable and exit",
    )
    parser.add_argument(
        "--log-level", default=_default_log_level(),
        type=str.upper, choices=LOG_LEVELS,
        help="Logging level (default: WARNING, or $LOG_LEVEL)",
    )
    parser.add_argument(
        "prompt", nargs="*",
        help="One-shot prompt (otherwise enters interactive mode)",
    )
    return parser


def main():
    args = build_parser().parse_args()
    configure_logging(args.log_level)

    try:
        settings = settings_from_args(args)
    except VitalChatError as exc:
        print(f"Error: {exc}")
        sys.exit(2)

    from vitalchat.providers.factory import create_backend
    from vitalchat.ui.console import console
    from vitalchat.ui.renderer import FrameRenderer

    backend = create_backend(settings)
    renderer = FrameRenderer(console, show_reasoning=settings.enable_reasoning)

    if args.list_models:
        asyncio.run(_list_models(backend, console))
    elif args.test_connection:
        ok = asyncio.run(_test_connection(backend, console))
        sys.exit(0 if ok else 1)
    elif args.prompt:
        prompt = " ".join(args.prompt)
        ok = asyncio.run(_one_shot(backend, renderer, prompt, args.system))
        sys.exit(0 if ok else 1)
    else:
        from vitalchat.app import ChatApp
        from vitalchat.ui.input_prompt import RichInput

        provider = settings.provider()
        renderer.banner(settings.active_provider, provider.selected_model)
        app = ChatApp(
            backend, RichInput(console), renderer=renderer, system_prompt=args.system
        )
        asyncio.run(app.run())


async def _list_models(backend, console):
    try:
        for model in await backend.list_models():
            console.print(model)
    finally:
        await backend.close()


async def _test_connection(backend, console) -> bool:
    from vitalchat.ui.components import connection_line

    try:
        status = await backend.test_connection()
    finally:
        await backend.close()
    console.print(connection_line(backend.name, status))
    return status.success


async def _one_shot(backend, renderer, prompt, system_prompt) -> bool:
    """Stream a single answer and exit."""
    from vitalchat.app import ChatApp
    from vitalchat.input.base import InputSource

    class _NoInput(InputSource):
        async def get_prompt(self):
            return None

    app = ChatApp(backend, _NoInput(), renderer=renderer, system_prompt=system_prompt)
    try:
        frame = await app.ask(prompt)
    finally:
        await backend.close()
    return frame is not None


if __name__ == "__main__":
    main()
