"""Entry point for chatmemory CLI."""

import json
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chatmemory import __version__
from chatmemory.config import Config, MemoryConfig, load_config
from chatmemory.logging.transcript import ContextTranscript, create_transcript_paths
from chatmemory.memory.context import ContextMemoryManager, MemoryStats
from chatmemory.messages import ChatMessage, InvalidMessageError, parse_messages

app = typer.Typer(
    name="chatmemory",
    help="Inspect how chat history is trimmed into an LLM context window",
)
console = Console()

YAML_EXTENSIONS = {".yaml", ".yml"}

# Characters of message content shown in tables
PREVIEW_LENGTH = 60


def load_history(history_path: Path) -> list[ChatMessage]:
    """Load an exported message history.

    Args:
        history_path: JSON or YAML file holding a list of message records,
            or an object with a ``messages`` list.

    Returns:
        Parsed messages, oldest first.

    Raises:
        InvalidMessageError: If the file layout or a record is malformed.
    """
    with open(history_path, encoding="utf-8") as f:
        if history_path.suffix.lower() in YAML_EXTENSIONS:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if isinstance(data, dict):
        data = data.get("messages")
    if not isinstance(data, list):
        raise InvalidMessageError("History must be a list of messages or a 'messages' list")

    return parse_messages(data)


def build_memory_config(
    app_config: Config,
    max_messages: int | None,
    max_tokens: int | None,
    enable_summary: bool | None = None,
) -> MemoryConfig:
    """Apply command line overrides to the configured memory settings."""
    overrides: dict[str, Any] = {}
    if max_messages is not None:
        overrides["max_messages"] = max_messages
    if max_tokens is not None:
        overrides["max_tokens"] = max_tokens
    if enable_summary is not None:
        overrides["enable_summary"] = enable_summary
    return app_config.memory.merged(overrides)


def open_transcript(
    app_config: Config,
    session_name: str,
    transcript_dir: Path | None,
    no_transcript: bool,
) -> ContextTranscript | None:
    """Create the transcript for a command unless disabled."""
    if no_transcript:
        return None

    t_dir = transcript_dir or app_config.logging.transcript_dir
    t_dir.mkdir(parents=True, exist_ok=True)

    json_path, md_path = create_transcript_paths(t_dir, session_name)
    return ContextTranscript(
        json_path=json_path if app_config.logging.enable_json else None,
        markdown_path=md_path if app_config.logging.enable_markdown else None,
        session_title=session_name,
    )


def fail(
    message: str,
    transcript: ContextTranscript | None = None,
    error_type: str = "error",
) -> NoReturn:
    """Report an error and exit with status 1."""
    console.print(f"[red]Error:[/red] {escape(message)}")
    if transcript:
        transcript.log_error(error_type, message)
    raise typer.Exit(1)


def read_history_or_exit(
    history_path: Path,
    transcript: ContextTranscript | None = None,
) -> list[ChatMessage]:
    """Load a history file, exiting with a readable error on failure."""
    try:
        return load_history(history_path)
    except InvalidMessageError as e:
        fail(str(e), transcript, "invalid_message")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        fail(f"Cannot read {history_path}: {e}", transcript, "history")


def load_config_or_exit(config: str | None) -> Config:
    """Load configuration, exiting with a readable error on failure."""
    try:
        return load_config(Path(config) if config else None)
    except (ValidationError, yaml.YAMLError) as e:
        fail(f"Invalid configuration: {e}")


def print_messages(messages: list[ChatMessage], title: str) -> None:
    """Print messages as a table."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Id")
    table.add_column("Role")
    table.add_column("Content")

    for index, msg in enumerate(messages, start=1):
        style = "green" if msg.role == "user" else "blue"
        content = msg.content
        if len(content) > PREVIEW_LENGTH:
            content = content[:PREVIEW_LENGTH] + "..."
        table.add_row(
            str(index),
            escape(msg.id),
            f"[{style}]{msg.role}[/{style}]",
            escape(content),
        )

    console.print(table)


def print_stats(stats: MemoryStats) -> None:
    """Print memory statistics."""
    console.print(f"  Total messages: {stats.total_messages}")
    console.print(f"  User messages: {stats.user_messages}")
    console.print(f"  Assistant messages: {stats.assistant_messages}")
    console.print(f"  Estimated tokens: {stats.estimated_tokens}")
    if stats.earliest_message_time and stats.latest_message_time:
        console.print(
            f"  Time range: {stats.earliest_message_time.isoformat()}"
            f" - {stats.latest_message_time.isoformat()}"
        )


ConfigOption = Annotated[
    str | None,
    typer.Option("--config", "-c", help="Path to config YAML file"),
]
HistoryArgument = Annotated[
    Path,
    typer.Argument(
        help="Message history exported from the session store (.json, .yaml)",
        exists=True,
        dir_okay=False,
    ),
]
TranscriptDirOption = Annotated[
    Path | None,
    typer.Option("--transcript-dir", "-t", help="Directory for transcripts"),
]
NoTranscriptOption = Annotated[
    bool,
    typer.Option("--no-transcript", help="Disable transcript logging"),
]


@app.command()
def optimize(
    history: HistoryArgument,
    config: ConfigOption = None,
    max_messages: Annotated[
        int | None,
        typer.Option("--max-messages", "-m", help="Maximum messages in the context"),
    ] = None,
    max_tokens: Annotated[
        int | None,
        typer.Option("--max-tokens", "-k", help="Maximum estimated tokens in the context"),
    ] = None,
    system_prompt: Annotated[
        str | None,
        typer.Option("--system-prompt", "-s", help="System prompt to prepend"),
    ] = None,
    summary: Annotated[
        bool | None,
        typer.Option("--summary/--no-summary", help="Summarize history outside the window"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the request turns as JSON"),
    ] = False,
    transcript_dir: TranscriptDirOption = None,
    no_transcript: NoTranscriptOption = False,
) -> None:
    """Show the context window that would be sent to the model."""
    app_config = load_config_or_exit(config)
    try:
        memory_config = build_memory_config(app_config, max_messages, max_tokens, summary)
    except ValidationError as e:
        fail(f"Invalid configuration: {e}")

    transcript = open_transcript(app_config, history.stem, transcript_dir, no_transcript)
    manager = ContextMemoryManager(memory_config, transcript=transcript)

    try:
        messages = read_history_or_exit(history, transcript)
        if as_json:
            turns = manager.build_request_messages(messages, system_prompt)
            typer.echo(json.dumps([t.as_dict() for t in turns], ensure_ascii=False, indent=2))
            return

        optimized = manager.optimize_context(messages)
        console.print(f"[bold blue]chatmemory[/bold blue] - {history.name}")
        console.print(
            f"  Budget: {memory_config.max_messages} messages, "
            f"{memory_config.max_tokens} tokens"
        )
        console.print(f"  Kept {len(optimized)} of {len(messages)} messages")
        console.print()
        if system_prompt and memory_config.keep_system_messages:
            panel = Panel(escape(system_prompt), title="System prompt", border_style="magenta")
            console.print(panel)
        print_messages(optimized, "Context window")
        print_stats(manager.get_memory_stats(optimized))

        dropped_summary = manager.summarize_dropped(messages, kept=optimized)
        if dropped_summary:
            panel = Panel(escape(dropped_summary), title="Dropped history", border_style="yellow")
            console.print(panel)
    finally:
        if transcript:
            transcript.finalize()


@app.command()
def stats(
    history: HistoryArgument,
    config: ConfigOption = None,
) -> None:
    """Show statistics for a message history."""
    app_config = load_config_or_exit(config)
    messages = read_history_or_exit(history)
    manager = ContextMemoryManager(app_config.memory)

    console.print(f"[bold blue]chatmemory[/bold blue] - {history.name}")
    print_stats(manager.get_memory_stats(messages))


@app.command()
def keywords(
    text: Annotated[str, typer.Argument(help="Text to extract keywords from")],
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum keywords to return"),
    ] = 5,
) -> None:
    """Extract the most frequent keywords from text."""
    manager = ContextMemoryManager()
    found = manager.extract_keywords(text, limit)

    if not found:
        console.print("[yellow]No keywords found[/yellow]")
        return

    for keyword in found:
        typer.echo(keyword)


@app.command()
def search(
    history: HistoryArgument,
    terms: Annotated[
        list[str] | None,
        typer.Argument(help="Keywords to search for"),
    ] = None,
    from_text: Annotated[
        str | None,
        typer.Option("--from-text", "-f", help="Extract keywords from this text instead"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum messages to return"),
    ] = 5,
    config: ConfigOption = None,
    transcript_dir: TranscriptDirOption = None,
    no_transcript: NoTranscriptOption = False,
) -> None:
    """Find the history messages most relevant to some keywords."""
    app_config = load_config_or_exit(config)
    transcript = open_transcript(app_config, history.stem, transcript_dir, no_transcript)
    manager = ContextMemoryManager(app_config.memory, transcript=transcript)

    try:
        messages = read_history_or_exit(history, transcript)
        search_terms = list(terms or [])
        if from_text:
            search_terms.extend(manager.extract_keywords(from_text))
        if not search_terms:
            fail("Provide keywords or --from-text", transcript, "usage")

        results = manager.search_relevant_memories(messages, search_terms, limit)
        console.print(f"Keywords: {escape(', '.join(search_terms))}")
        if not results:
            console.print("[yellow]No relevant messages[/yellow]")
            return
        print_messages(results, f"{len(results)} relevant messages")
    finally:
        if transcript:
            transcript.finalize()


@app.command()
def summary(
    history: HistoryArgument,
    config: ConfigOption = None,
    transcript_dir: TranscriptDirOption = None,
    no_transcript: NoTranscriptOption = False,
) -> None:
    """Print a digest of a message history."""
    app_config = load_config_or_exit(config)
    transcript = open_transcript(app_config, history.stem, transcript_dir, no_transcript)
    manager = ContextMemoryManager(app_config.memory, transcript=transcript)

    try:
        messages = read_history_or_exit(history, transcript)
        text = manager.generate_summary(messages)
        if not text:
            console.print("[yellow]History is empty[/yellow]")
            return
        typer.echo(text)
    finally:
        if transcript:
            transcript.finalize()


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]chatmemory[/bold] {__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
