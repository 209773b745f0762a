"""Transcript logging for memory manager decisions."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO


@dataclass
class TranscriptEntry:
    """A single entry in the transcript."""

    timestamp: str
    sequence: int
    entry_type: str  # "optimization", "search", "summary", "config_update", "error"
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class ContextTranscript:
    """Dual-format transcript (JSON + Markdown) of context decisions.

    Records what the memory manager kept, found and summarized for a
    session. Without paths the entries are only kept in memory.
    """

    def __init__(
        self,
        json_path: Path | None = None,
        markdown_path: Path | None = None,
        session_title: str | None = None,
    ) -> None:
        """Initialize the transcript.

        Args:
            json_path: Path for JSON transcript output.
            markdown_path: Path for Markdown transcript output.
            session_title: Title of the chat session.
        """
        self.json_path = json_path
        self.markdown_path = markdown_path
        self.session_title = session_title
        self._entries: list[TranscriptEntry] = []
        self._sequence = 0
        self._md_file: TextIO | None = None
        self._start_time = datetime.now()

        # Keep file open for streaming writes during session
        if markdown_path:
            markdown_path.parent.mkdir(parents=True, exist_ok=True)
            self._md_file = open(markdown_path, "w", encoding="utf-8")  # noqa: SIM115
            self._write_markdown_header()

    def _write_markdown_header(self) -> None:
        """Write the markdown file header."""
        if self._md_file is None:
            return

        title = self.session_title or "Context Memory Transcript"
        self._md_file.write(f"# {title}\n\n")
        self._md_file.write(f"Started: {self._start_time.isoformat()}\n\n")
        self._md_file.write("---\n\n")
        self._md_file.flush()

    def log_optimization(
        self,
        input_count: int,
        count_kept: int,
        token_kept: int,
        balanced_kept: int,
        estimated_tokens: int,
    ) -> None:
        """Log one context optimization.

        Args:
            input_count: Messages in the full history.
            count_kept: Messages left after the message-count limit.
            token_kept: Messages left after the token budget.
            balanced_kept: Messages left after conversation balancing.
            estimated_tokens: Estimated tokens of the final context.
        """
        self._add_entry(
            "optimization",
            f"Kept {balanced_kept} of {input_count} messages",
            {
                "input_count": input_count,
                "count_kept": count_kept,
                "token_kept": token_kept,
                "balanced_kept": balanced_kept,
                "estimated_tokens": estimated_tokens,
            },
        )

        if self._md_file:
            self._md_file.write(f"### Optimization {self._sequence}\n\n")
            self._md_file.write(
                f"- Input: {input_count} messages\n"
                f"- After count limit: {count_kept}\n"
                f"- After token budget: {token_kept}\n"
                f"- After balancing: {balanced_kept} (~{estimated_tokens} tokens)\n\n"
            )
            self._md_file.flush()

    def log_search(self, keywords: list[str], result_ids: list[str]) -> None:
        """Log a relevance search.

        Args:
            keywords: Keywords searched for.
            result_ids: Ids of the returned messages, best first.
        """
        self._add_entry(
            "search",
            ", ".join(keywords),
            {"result_ids": result_ids},
        )

        if self._md_file:
            found = ", ".join(f"`{i}`" for i in result_ids) or "none"
            self._md_file.write(f"**Search:** {', '.join(keywords)} -> {found}\n\n")
            self._md_file.flush()

    def log_summary(self, summary: str) -> None:
        """Log a generated summary.

        Args:
            summary: The generated summary.
        """
        self._add_entry("summary", summary)

        if self._md_file:
            self._md_file.write(f"---\n\n*[Summary {self._sequence}]*\n\n")
            self._md_file.write(f"> {summary.replace(chr(10), chr(10) + '> ')}\n\n")
            self._md_file.write("---\n\n")
            self._md_file.flush()

    def log_config_update(self, changes: dict[str, Any]) -> None:
        """Log a configuration change.

        Args:
            changes: Fields that were updated.
        """
        self._add_entry(
            "config_update",
            ", ".join(f"{key}={value}" for key, value in changes.items()),
            dict(changes),
        )

        if self._md_file:
            self._md_file.write(f"*[Config: {self._entries[-1].content}]*\n\n")
            self._md_file.flush()

    def log_error(self, error_type: str, message: str) -> None:
        """Log an error.

        Args:
            error_type: Type of error.
            message: Error message.
        """
        self._add_entry("error", message, {"error_type": error_type})

        if self._md_file:
            self._md_file.write(f"> **Error ({error_type}):** {message}\n\n")
            self._md_file.flush()

    def _add_entry(
        self,
        entry_type: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._sequence += 1
        self._entries.append(
            TranscriptEntry(
                timestamp=datetime.now().isoformat(),
                sequence=self._sequence,
                entry_type=entry_type,
                content=content,
                metadata=metadata or {},
            )
        )

    def get_entries(self) -> list[TranscriptEntry]:
        """Get all transcript entries.

        Returns:
            List of transcript entries.
        """
        return self._entries.copy()

    def finalize(self) -> None:
        """Finalize and close transcript files."""
        end_time = datetime.now()

        if self.json_path:
            self.json_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.json_path, "w", encoding="utf-8") as f:
                json.dump(
                    {
                        "session_title": self.session_title,
                        "start_time": self._start_time.isoformat(),
                        "end_time": end_time.isoformat(),
                        "total_entries": len(self._entries),
                        "entries": [asdict(e) for e in self._entries],
                    },
                    f,
                    indent=2,
                    ensure_ascii=False,
                )

        if self._md_file:
            self._md_file.write("\n---\n\n")
            self._md_file.write(f"Completed: {end_time.isoformat()}\n")
            self._md_file.write(f"Total entries: {len(self._entries)}\n")
            self._md_file.close()
            self._md_file = None

    def __enter__(self) -> "ContextTranscript":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.finalize()


def create_transcript_paths(
    base_dir: Path,
    session_name: str,
    session_id: str | None = None,
) -> tuple[Path, Path]:
    """Create paths for transcript files.

    Args:
        base_dir: Base directory for transcripts.
        session_name: Name of the chat session.
        session_id: Optional session identifier.

    Returns:
        Tuple of (json_path, markdown_path).
    """
    if session_id is None:
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    # Sanitize session name for filename
    safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in session_name)

    json_path = base_dir / f"{safe_name}_{session_id}.json"
    markdown_path = base_dir / f"{safe_name}_{session_id}.md"

    return json_path, markdown_path
