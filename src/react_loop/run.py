# run.py
# Entry point. Config and wiring only. No logic lives here.
#
# Swap the model string for any OpenRouter-supported model.
# https://openrouter.ai/models

import asyncio
import logging
import sys

from rich.logging import RichHandler

from react_loop import display
from react_loop.config import load_config
from react_loop.harness import LoopController, openrouter_generator
from react_loop.tools import default_toolkit

MODEL = "meta-llama/llama-3.2-3b-instruct"
SYSTEM_PROMPT = "You are a helpful assistant. Be concise and cite sources when you search."

# Test prompts: one requiring search, one memory round-trip, one direct.
PROMPTS = [
    "What is the latest stable release of Python, and when did it come out?",
    "Remember that my favourite editor is Helix, then tell me which editor I prefer.",
    "What is the capital of Japan?",
]


async def _run(prompts: list[str]) -> None:
    controller = LoopController(config=load_config(), on_step=display.render_step)
    toolkit = default_toolkit()
    generate = openrouter_generator(MODEL)

    display.banner(MODEL, toolkit.available())

    for prompt in prompts:
        display.prompt_received(prompt)
        await controller.run_loop(prompt, toolkit, generate, SYSTEM_PROMPT)
        display.session_summary(controller.session)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=display.console, show_path=False)],
    )
    prompts = sys.argv[1:] or PROMPTS
    try:
        asyncio.run(_run(prompts))
    except KeyboardInterrupt:
        display.console.print("[red]Interrupted.[/red]")


if __name__ == "__main__":
    main()
