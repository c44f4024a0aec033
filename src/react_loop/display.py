# display.py
# All terminal output for the ReAct loop demo.
#
# This module owns presentation entirely. harness.py never formats strings;
# run.py hands render_step to the controller as its on_step observer.
#
# Colour language:
#   cyan    : scaffolding / loop events
#   magenta : ReAct internals (Thought / Action / Observation)
#   green   : final answer
#   red     : errors, repeats, halts

import json

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from react_loop.models import SessionSnapshot, Step, StepType

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        value = value[:max_len] + "…"
    return escape(value)


# ---------------------------------------------------------------------------
# Run entry
# ---------------------------------------------------------------------------


def banner(model: str, tools: list[str]) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]ReAct Loop[/bold cyan]\n"
            "[dim]Reason → Act → Observe, bounded and cancellable[/dim]\n\n"
            f"[dim]Model :[/dim] [white]{model}[/white]\n"
            f"[dim]Tools :[/dim] [white]{', '.join(tools) or 'none'}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def prompt_received(prompt: str) -> None:
    console.print()
    console.print(Rule("[cyan]NEW REQUEST[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{escape(prompt)}[/white]",
            title=_label("USER PROMPT", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


def react_thought(step: Step) -> None:
    console.print(f"  [magenta]Thought[/magenta]  [dim white]{_mono(step.content, 200)}[/dim white]")


def react_action(step: Step) -> None:
    console.print(
        f"  [magenta]Action[/magenta]   [bold white]{escape(step.tool or '')}[/bold white]"
        f"  [dim]{escape(json.dumps(step.args or {}, default=str))}[/dim]"
    )


def react_observation(step: Step) -> None:
    timing = f" [dim]({step.duration_ms}ms)[/dim]" if step.duration_ms is not None else ""
    console.print(f"  [magenta]Observe[/magenta]  [white]{_mono(step.content, 140)}[/white]{timing}")


def loop_error(step: Step) -> None:
    console.print(
        Panel(
            f"[bold red]{escape(step.content)}[/bold red]",
            title=_label("ERROR", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


def final_result(result: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[white]{escape(result)}[/white]",
            title=_label("RESULT", "green"),
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


_RENDERERS = {
    StepType.THOUGHT: react_thought,
    StepType.ACTION: react_action,
    StepType.OBSERVATION: react_observation,
    StepType.ERROR: loop_error,
    StepType.FINAL: lambda step: final_result(step.content),
}


def render_step(step: Step) -> None:
    """on_step observer: print one trace entry as it is recorded."""
    _RENDERERS[step.type](step)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def session_summary(session: SessionSnapshot) -> None:
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="dim",
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("Step", justify="center", width=6)
    table.add_column("Type", width=12)
    table.add_column("Tool", width=14)
    table.add_column("ms", justify="right", width=8)
    table.add_column("Content", style="dim white")

    for step in session.steps:
        table.add_row(
            str(step.id),
            step.type.value,
            step.tool or "",
            "" if step.duration_ms is None else str(step.duration_ms),
            _mono(step.content.replace("\n", " "), 60),
        )

    console.print(
        Panel(
            table,
            title="[dim]SESSION SUMMARY[/dim]",
            subtitle=(
                f"[dim]{session.status.value} · {session.iteration} iteration(s) · "
                f"{session.elapsed_ms}ms[/dim]"
            ),
            border_style="dim",
            padding=(0, 1),
        )
    )
