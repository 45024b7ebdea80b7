"""CLI commands for contextpipe."""

import json
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from contextpipe import __version__, __logo__

app = typer.Typer(
    name="contextpipe",
    help=f"{__logo__} contextpipe - Context-window management for LLM agents",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} contextpipe v{__version__}")
        raise typer.Exit()


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """contextpipe - Context-window management for LLM agents."""
    ctx.obj = {"verbose": verbose}
    _configure_logging("DEBUG" if verbose else "WARNING")


def _read_snapshot(path: Path):
    from contextpipe.context.snapshot import ContextSnapshot

    if not path.exists():
        console.print(f"[red]Snapshot file not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid snapshot JSON: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print("[red]Snapshot must be a JSON object[/red]")
        raise typer.Exit(1)
    return ContextSnapshot.from_dict(data)


@app.command()
def run(
    ctx: typer.Context,
    snapshot_path: Path = typer.Option(..., "--snapshot", "-s", help="Snapshot JSON file"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config JSON file"),
    hook: str = typer.Option("pre_llm", "--hook", help="Pipeline to run"),
    output: Path = typer.Option(None, "--output", "-o", help="Write result to file"),
):
    """Run a context pipeline over a snapshot."""
    from contextpipe.config.loader import load_config
    from contextpipe.context.estimator import get_estimator
    from contextpipe.pipeline import ContextPipeline, ManagerFactory
    from contextpipe.providers.litellm_provider import LiteLLMInferenceClient

    config = load_config(config_path)
    if not (ctx.obj or {}).get("verbose"):
        _configure_logging(config.log_level)
    snapshot = _read_snapshot(snapshot_path)
    estimator = get_estimator(config.estimator)

    specs = config.pipeline.managers_for(hook)
    if not specs:
        console.print(f"[yellow]No managers configured for hook '{hook}'[/yellow]")
        raise typer.Exit(1)

    client = LiteLLMInferenceClient(
        api_key=config.provider.api_key or None,
        api_base=config.provider.api_base,
    )
    factory = ManagerFactory(
        client=client,
        estimator=estimator,
        summarization_timeout=config.summarization_timeout_seconds,
    )
    try:
        pipeline = ContextPipeline.from_config(config.pipeline, hook, factory)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    tokens_before = snapshot.estimated_token_count(estimator)
    pipeline.run(snapshot)
    tokens_after = snapshot.estimated_token_count(estimator)

    result = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result)
        console.print(f"[green]✓[/green] Wrote snapshot to {output}")
    else:
        console.print_json(result)

    console.print(
        f"[dim]{len(pipeline)} manager(s), tokens: {tokens_before} -> {tokens_after}[/dim]"
    )


@app.command()
def estimate(
    snapshot_path: Path = typer.Option(..., "--snapshot", "-s", help="Snapshot JSON file"),
    estimator_name: str = typer.Option("character", "--estimator", "-e", help="character or tiktoken"),
):
    """Show a token breakdown for a snapshot."""
    from contextpipe.context.estimator import get_estimator

    snapshot = _read_snapshot(snapshot_path)
    estimator = get_estimator(estimator_name)

    rows = [
        ("System prompt", 1 if snapshot.system_prompt else 0, estimator.count(snapshot.system_prompt)),
        ("User prompt", 1 if snapshot.user_prompt else 0, estimator.count(snapshot.user_prompt)),
        (
            "Chat history",
            len(snapshot.chat_history),
            sum(estimator.count(i.input) + estimator.count(i.response) for i in snapshot.chat_history),
        ),
        (
            "Structured history",
            len(snapshot.structured_chat_history),
            sum(
                estimator.count(b.text)
                for m in snapshot.structured_chat_history
                for b in m.content or []
            ),
        ),
        (
            "Tool interactions",
            len(snapshot.tool_interactions),
            sum(estimator.count(t) for t in snapshot.tool_interaction_texts()),
        ),
    ]

    table = Table(title=f"Token estimate ({estimator.name})")
    table.add_column("Component", style="cyan")
    table.add_column("Items", justify="right")
    table.add_column("Tokens", justify="right", style="green")
    for name, items, tokens in rows:
        table.add_row(name, str(items), str(tokens))
    table.add_row("Total", "", str(snapshot.estimated_token_count(estimator)), style="bold")

    console.print(table)


if __name__ == "__main__":
    app()
