"""
Heuristic summary and keyword extraction used when no text-generation
provider has enriched an item.
"""

from __future__ import annotations

import re


_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_MAX_SUMMARY_CHARS = 200
_MAX_KEYWORDS = 8
_MIN_KEYWORD_LENGTH = 4

_STOPWORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
        "has", "had", "do", "does", "did", "will", "would", "could", "should",
        "may", "might", "can", "this", "that", "these", "those", "i", "you",
        "he", "she", "it", "we", "they", "me", "him", "her", "us", "them",
    }
)


def fallback_summary(content: str) -> str:
    """First sentence of *content*, trimmed to 200 characters; empty for blank content."""
    if not content or not content.strip():
        return ""

    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(content) if s.strip()]
    if sentences:
        first = sentences[0]
        if len(first) > _MAX_SUMMARY_CHARS:
            return first[:_MAX_SUMMARY_CHARS] + "..."
        return first

    text = content.strip()
    return text[:_MAX_SUMMARY_CHARS] + ("..." if len(text) > _MAX_SUMMARY_CHARS else "")


def fallback_keywords(content: str, *, max_keywords: int = _MAX_KEYWORDS) -> list[str]:
    """First unique non-stopword words longer than three characters."""
    if not content or not content.strip():
        return []

    keywords: list[str] = []
    for word in _NON_WORD_RE.sub(" ", content.lower()).split():
        if len(word) < _MIN_KEYWORD_LENGTH or word in _STOPWORDS:
            continue
        if word not in keywords:
            keywords.append(word)
        if len(keywords) >= max_keywords:
            break
    return keywords
