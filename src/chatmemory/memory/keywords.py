"""Keyword extraction over free text."""

import re
from collections import Counter

from chatmemory.memory.tokens import WHITESPACE_CHARS

STOPWORDS: frozenset[str] = frozenset(
    {
        # Chinese function words
        "的", "了", "是", "在", "我", "有", "和", "就", "不", "人",
        "都", "一", "个", "上", "也", "很", "到", "说", "要", "去",
        "你", "会", "着", "没", "看", "好", "自己", "这", "那",
        # English function words
        "the", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "can", "a", "an", "and",
        "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    }
)  # fmt: skip

# Whitespace plus common Latin and CJK punctuation
TOKEN_SEPARATORS = re.compile(f"[{WHITESPACE_CHARS},。，、;；:：!！?？.]+")


def extract_keywords(text: str, limit: int = 5) -> list[str]:
    """Extract the most frequent keywords from text.

    Tokens of one character or less and stopwords are discarded. Ties keep
    the order in which tokens first appear.

    Args:
        text: Text to analyse.
        limit: Maximum number of keywords to return.

    Returns:
        Keywords ordered by descending frequency.
    """
    if limit <= 0:
        return []

    words = [
        word
        for word in TOKEN_SEPARATORS.split(text.lower())
        if len(word) > 1 and word not in STOPWORDS
    ]

    # Counter preserves first-seen order and sorted() is stable
    ranked = sorted(Counter(words).items(), key=lambda item: -item[1])
    return [word for word, _ in ranked[:limit]]
