"""Heuristic token estimation.

The estimate is an approximation for budgeting the context window, not a
model tokenizer. Do not rely on it for billing. A provider-specific
tokenizer can be plugged into the memory manager through the
``TokenEstimator`` protocol.
"""

import math
import re
from typing import Protocol

CHINESE_CHAR_PATTERN = re.compile(r"[\u4e00-\u9fa5]")

# ECMAScript whitespace; str.split() also breaks on \x1c-\x1f and \x85 but not on \ufeff
WHITESPACE_CHARS = r"\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
WORD_SEPARATORS = re.compile(f"[{WHITESPACE_CHARS}]+")

# Tokens per Chinese character
CHINESE_CHAR_WEIGHT = 1.5


class TokenEstimator(Protocol):
    """Callable mapping message content to an estimated token count."""

    def __call__(self, text: str) -> int: ...


def estimate_tokens(text: str) -> int:
    """Estimate the token count of text.

    Each CJK unified ideograph counts as 1.5 tokens and every remaining
    whitespace-delimited word counts as one. Words are split on the
    ECMAScript whitespace set so counts match the chat front end.

    Args:
        text: Text to estimate.

    Returns:
        Estimated token count, 0 for empty text.
    """
    chinese_chars = len(CHINESE_CHAR_PATTERN.findall(text))
    remainder = CHINESE_CHAR_PATTERN.sub("", text)
    english_words = sum(1 for word in WORD_SEPARATORS.split(remainder) if word)
    return math.ceil(chinese_chars * CHINESE_CHAR_WEIGHT + english_words)
