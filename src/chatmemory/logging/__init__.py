"""Memory transcript logging."""

from chatmemory.logging.transcript import (
    ContextTranscript,
    TranscriptEntry,
    create_transcript_paths,
)

__all__ = [
    "ContextTranscript",
    "TranscriptEntry",
    "create_transcript_paths",
]
