"""One-off script for checking a live /api/generate backend."""

from __future__ import annotations

import argparse
import asyncio

from config.settings import load_config
from modules.generation.client import GenerationClient
from modules.generation.options import size_choices, style_choices
from modules.ui.panel import ImageGenerationPanel, OutcomeKind
from modules.utils.logging import setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send one generation request to the configured backend.")
    parser.add_argument("prompt", nargs="?", default="a lighthouse on a cliff at dusk")
    parser.add_argument("--style", choices=list(style_choices()), default=None)
    parser.add_argument("--size", choices=list(size_choices()), default=None)
    parser.add_argument("--num", type=int, default=1)
    parser.add_argument("--env", default=None, help="path to a .env file")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config = load_config(args.env)
    setup_logging(config)

    panel = ImageGenerationPanel(GenerationClient(config), max_results=config.max_results)
    outcome = asyncio.run(panel.submit(args.prompt, args.style, args.size, args.num))

    print("Endpoint:", config.generate_url)
    print("Status:", outcome.message)
    if outcome.kind is OutcomeKind.SUCCESS:
        for image in outcome.images:
            print("-", image.id, image.url)
    else:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
