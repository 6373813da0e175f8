"""codeassistant CLI - AI-powered coding assistant."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from codeassistant import __version__
from codeassistant.config import DEFAULT_LLM_MODEL, DEFAULT_LLM_PROVIDER
from codeassistant.errors import CodeAssistantError
from codeassistant.llm import LLMConfig
from codeassistant.logging import configure_logging

app = typer.Typer(
    name="ca",
    help="AI-powered coding assistant.",
    no_args_is_help=True,
)

console = Console()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"ca {__version__}")
        raise typer.Exit()


def _fail(error: CodeAssistantError) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    return typer.Exit(1)


def _format_duration(delta: timedelta) -> str:
    seconds = int(delta.total_seconds())
    hours, rem = divmod(seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def _relative(path: Path | str, root: Path) -> str:
    path = Path(path)
    return str(path.relative_to(root)) if path.is_relative_to(root) else str(path)


@app.callback()
def main(
    ctx: typer.Context,
    llm_provider: Annotated[
        str,
        typer.Option(envvar="CA_LLM_PROVIDER", help="LLM provider to use (e.g. openai, ollama, anthropic)"),
    ] = DEFAULT_LLM_PROVIDER,
    llm_model: Annotated[
        str,
        typer.Option(envvar="CA_LLM_MODEL", help="LLM model name (e.g. gpt-4, llama3)"),
    ] = DEFAULT_LLM_MODEL,
    llm_api_key: Annotated[
        Optional[str],
        typer.Option(envvar="CA_LLM_API_KEY", help="API key for the LLM provider (if required)"),
    ] = None,
    llm_endpoint: Annotated[
        Optional[str],
        typer.Option(envvar="CA_LLM_ENDPOINT", help="Custom endpoint for the LLM provider (if applicable)"),
    ] = None,
    llm_max_tokens: Annotated[
        Optional[int],
        typer.Option(envvar="CA_LLM_MAX_TOKENS", min=1, help="Maximum tokens for completion"),
    ] = None,
    llm_max_retries: Annotated[
        Optional[int],
        typer.Option(envvar="CA_LLM_MAX_RETRIES", min=0, help="Maximum number of retries for API calls"),
    ] = None,
    llm_temperature: Annotated[
        Optional[float],
        typer.Option(envvar="CA_LLM_TEMPERATURE", min=0.0, max=2.0, help="LLM temperature"),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(envvar="CA_LOG_LEVEL", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    ] = "WARNING",
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """ca - record AI-assisted code changes as session steps."""
    if log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(
            f"must be one of {', '.join(LOG_LEVELS)}", param_hint="--log-level"
        )
    configure_logging(log_level)

    config = LLMConfig(
        provider=llm_provider,
        model=llm_model,
        api_key=llm_api_key or None,
        endpoint=llm_endpoint or None,
        max_tokens=llm_max_tokens,
        max_retries=llm_max_retries,
        temperature=llm_temperature,
    )
    ctx.obj = config.with_defaults()


# ── Session commands ─────────────────────────────────────────────


@app.command("start-session")
def start_session(
    name: Annotated[str, typer.Option("--name", "-n", help="Name of the session to start")],
) -> None:
    """Start a new coding session in the current directory."""
    from codeassistant.session.store import SessionStore

    try:
        session = SessionStore(Path.cwd()).start(name)
    except CodeAssistantError as e:
        raise _fail(e)

    console.print(f"[green]Session started:[/green] {escape(session.name)}")


app.command("ss", hidden=True, help="Alias for start-session.")(start_session)


@app.command("end-session")
def end_session() -> None:
    """Archive the current session to historical storage."""
    from codeassistant.session.store import SessionStore

    store = SessionStore(Path.cwd())
    try:
        archive = store.end()
        session = store.load_archive(archive)
    except CodeAssistantError as e:
        raise _fail(e)

    duration = session.completed_at - session.created_at
    console.print(f'Session "{escape(session.name)}" lasted {_format_duration(duration)}')
    console.print(f"[green]Session ended and archived:[/green] {archive.name}")


@app.command("review")
def review() -> None:
    """Show session progress and the recorded steps."""
    from codeassistant.session.store import SessionStore

    cwd = Path.cwd()
    try:
        session = SessionStore(cwd).load()
    except CodeAssistantError as e:
        raise _fail(e)

    age = datetime.now(timezone.utc) - session.created_at
    console.print(f"[bold]{escape(session.name)}[/bold] [dim]({session.id})[/dim]")
    console.print(f"Started {_format_duration(age)} ago, {len(session.steps)} step(s)")

    if not session.steps:
        console.print("[dim]No steps recorded yet. Apply a change with:[/dim]")
        console.print('  ca code "<prompt>" --files <file>')
        return

    table = Table(title="Steps")
    table.add_column("Step", style="cyan", justify="right")
    table.add_column("Time")
    table.add_column("Prompt", style="green")
    table.add_column("Files")
    table.add_column("Flags", style="dim")

    for step in session.steps:
        flags = ", ".join(name for name, on in step.command.flags.items() if on)
        table.add_row(
            str(step.id),
            step.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
            escape(step.command.prompt),
            escape("\n".join(_relative(f, cwd) for f in step.command.applied_files)),
            flags,
        )

    console.print(table)


@app.command("history")
def history() -> None:
    """List archived sessions for the current directory."""
    from codeassistant.session.store import SessionStore

    store = SessionStore(Path.cwd())
    archives = store.list_archives()
    if not archives:
        console.print("[dim]No archived sessions.[/dim]")
        return

    table = Table(title="Archived Sessions")
    table.add_column("File", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Steps", justify="right")
    table.add_column("Duration")

    for archive in archives:
        try:
            session = store.load_archive(archive)
        except CodeAssistantError as e:
            table.add_row(archive.name, f"[red]{escape(str(e))}[/red]", "", "")
            continue
        duration = ""
        if session.completed_at:
            duration = _format_duration(session.completed_at - session.created_at)
        table.add_row(archive.name, escape(session.name), str(len(session.steps)), duration)

    console.print(table)


# ── Code commands ────────────────────────────────────────────────


@app.command("code")
def code(
    ctx: typer.Context,
    prompt: Annotated[str, typer.Argument(help="What to change")],
    files: Annotated[
        Optional[list[Path]],
        typer.Option("--files", "-f", help="File to modify (repeatable)"),
    ] = None,
    per_file: Annotated[
        bool, typer.Option("--per-file", help="Apply the prompt to each file individually")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Preview AI-generated changes without modifying files")
    ] = False,
    revise: Annotated[
        bool, typer.Option("--revise", help="Redo the last step with a new prompt, recorded as a new step")
    ] = False,
) -> None:
    """Apply AI modifications to code and record them as a session step."""
    from codeassistant.editor.modifier import render_diff
    from codeassistant.editor.workflow import run_code_command

    cwd = Path.cwd()
    config: LLMConfig = ctx.obj
    try:
        result = run_code_command(
            cwd,
            config,
            prompt,
            files or [],
            per_file=per_file,
            dry_run=dry_run,
            revise=revise,
        )
    except CodeAssistantError as e:
        raise _fail(e)

    if dry_run:
        if not result.changed:
            console.print("[yellow]No changes suggested.[/yellow]")
        for path in result.changed:
            diff = render_diff(_relative(path, cwd), result.current[path], result.modifications[path])
            console.print(f"[bold]Changes for {escape(_relative(path, cwd))}:[/bold]")
            console.print(Syntax(diff, "diff", theme="ansi_dark"))
        return

    for path in result.modifications:
        icon = "[green]✓[/green]" if path in result.changed else "[dim]=[/dim]"
        console.print(f"  {icon} {escape(_relative(path, cwd))}")
    console.print(f"[green]Recorded step {result.step.id}[/green]")


@app.command("rollback")
def rollback(
    step: Annotated[int, typer.Option("--step", "-s", min=1, help="Step to roll back")],
) -> None:
    """Restore the files of a step to their contents before it ran."""
    from codeassistant.editor.workflow import rollback_step

    cwd = Path.cwd()
    try:
        restored = rollback_step(cwd, step)
    except CodeAssistantError as e:
        raise _fail(e)

    console.print(f"[green]Rolled back step {step}:[/green]")
    for path in restored:
        console.print(f"  {escape(_relative(path, cwd))}")
