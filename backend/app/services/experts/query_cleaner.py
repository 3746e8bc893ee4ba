"""
Natural-language question to keyword topic.

"what is the role of vitamins in cancer" -> "vitamins cancer". Short
keyword-style input ("CAR-T lymphoma") is passed through untouched.
"""
import re

FILLER_WORDS = frozenset({
    "what", "is", "are", "was", "were", "the", "a", "an", "of", "in", "on", "at",
    "to", "for", "with", "by", "how", "does", "do", "can", "could", "would",
    "should", "may", "might", "will", "when", "where", "which", "who", "why",
    "benefit", "benefits", "effect", "effects", "role", "evidence", "about",
    "related", "regarding", "concerning", "between", "among", "during", "into",
    "from", "than", "that", "this", "and", "or", "but", "if", "as", "it", "its",
    "not", "no", "yes", "just", "only", "also", "even", "so", "such", "there",
    "their", "them", "then", "been", "being", "have", "has", "had", "did", "done",
    "get", "gets", "got", "need", "needs", "used", "using", "show", "shows",
    "shown", "find", "finding", "found", "help", "helps", "work", "works",
    "working", "use",
})

MAX_KEYWORD_STYLE_WORDS = 5
MIN_WORD_LENGTH = 2

_PUNCTUATION = re.compile(r"[^\w]")


def _bare(word: str) -> str:
    return _PUNCTUATION.sub("", word.lower())


def clean_topic(query: str) -> str:
    """Strip question and filler words from a free-text query."""
    trimmed = " ".join(query.split())
    words = trimmed.split(" ") if trimmed else []

    if len(words) <= MAX_KEYWORD_STYLE_WORDS and not any(_bare(w) in FILLER_WORDS for w in words):
        return trimmed

    keywords = []
    for word in words:
        bare = _bare(word)
        if len(bare) < MIN_WORD_LENGTH or bare in FILLER_WORDS:
            continue
        keywords.append(word)

    return " ".join(keywords) or trimmed
