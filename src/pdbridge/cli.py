"""pdbridge command line entry point."""

from __future__ import annotations

import asyncio
import math
from pathlib import Path

import typer

from pdbridge.api import pd
from pdbridge.config import get_settings
from pdbridge.logging_utils import configure_logging
from pdbridge.runtime import run_bridge
from pdbridge.types import Value

app = typer.Typer(
    name="pdbridge",
    help="Run a Python script behind a Pure Data object over stdin/stdout.",
    add_completion=False,
)


def parse_atom(text: str) -> Value:
    """Turn one host creation argument into a number when it looks like one."""

    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return text
    return number if math.isfinite(number) else text


@app.command(context_settings={"ignore_unknown_options": True})
def run(
    script: Path | None = typer.Argument(None, help="Path of the user script to load"),  # noqa: B008
    args: list[str] | None = typer.Argument(None, help="Creation arguments exposed as pd.args"),  # noqa: B008
    inlets: int | None = typer.Option(None, "--inlets", min=1, help="Number of host inlets"),
    outlets: int | None = typer.Option(None, "--outlets", min=1, help="Number of host outlets"),
    max_record_bytes: int | None = typer.Option(None, "--max-record-bytes", min=1, help="Maximum size of one record"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level for stderr diagnostics"),
    traces: bool | None = typer.Option(None, "--traces/--no-traces", help="Attach tracebacks to handler errors"),
) -> None:
    settings = get_settings(
        inlets=inlets,
        outlets=outlets,
        max_record_bytes=max_record_bytes,
        log_level=log_level,
        include_traces=traces,
    )
    configure_logging(level=settings.log_level, profile=settings.log_format)
    arguments = tuple(parse_atom(item) for item in args or [])
    try:
        code = asyncio.run(run_bridge(settings, script, arguments=arguments, api=pd))
    except KeyboardInterrupt:
        code = 130
    raise typer.Exit(code)


def main() -> None:
    app()
