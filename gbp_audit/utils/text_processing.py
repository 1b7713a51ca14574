"""Text processing utilities for review and post analysis."""

import re
from collections import Counter
from typing import Iterable

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:'[a-z]+)?")
_PUNCT_RE = re.compile(r"[^\w\s]")

# Small exclusion list applied to single-word terms.
STOPWORDS: frozenset[str] = frozenset(
    ["this", "that", "were", "have", "been", "they", "with", "would"]
)


def tokenize(text: str) -> list[str]:
    """Lower-case *text* and split it on whitespace and punctuation.

    Apostrophes inside a word are kept so that contractions such as
    ``didn't`` stay a single token.
    """
    return _TOKEN_RE.findall(text.lower())


def normalize_words(text: str) -> list[str]:
    """Lower-case, strip punctuation, and split on whitespace."""
    return _PUNCT_RE.sub("", text.lower()).split()


def significant_terms(text: str) -> list[str]:
    """Words longer than three characters that are not stopwords."""
    return [w for w in normalize_words(text) if len(w) > 3 and w not in STOPWORDS]


def extract_bigrams(words: list[str]) -> list[str]:
    """Adjacent word pairs where both words are longer than three characters."""
    bigrams = []
    for first, second in zip(words, words[1:]):
        if len(first) > 3 and len(second) > 3:
            bigrams.append(f"{first} {second}")
    return bigrams


def top_repeated(counter: Counter, limit: int) -> list[str]:
    """Return up to *limit* keys seen more than once, most frequent first.

    ``Counter.most_common`` keeps insertion order for equal counts, so ties
    resolve to whichever term appeared first.
    """
    return [term for term, count in counter.most_common() if count > 1][:limit]


def term_frequencies(texts: Iterable[str]) -> Counter:
    """Corpus-wide raw term frequency over significant terms."""
    counter: Counter = Counter()
    for text in texts:
        counter.update(significant_terms(text))
    return counter
