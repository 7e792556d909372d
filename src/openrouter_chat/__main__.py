"""CLI entrypoint for openrouter-chat."""

from __future__ import annotations

import argparse
from importlib import metadata
from typing import Sequence

from .app import OpenRouterChatApp
from .config import ensure_config_dir

DISTRIBUTION = "openrouter-chat"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openrouter-chat", description="Chat with OpenRouter models from the terminal"
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Ensure the config directory exists, handle CLI flags, and run the app."""
    args = _build_parser().parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version(DISTRIBUTION)
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"openrouter-chat {version}")
        return

    ensure_config_dir()
    OpenRouterChatApp().run()


if __name__ == "__main__":
    main()
