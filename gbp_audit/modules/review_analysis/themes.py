"""Term-frequency theme and key-phrase extraction."""

from collections import Counter
from typing import Iterable

from gbp_audit.results import ThemeExtract
from gbp_audit.utils.text_processing import (
    extract_bigrams,
    normalize_words,
    significant_terms,
    top_repeated,
)

_THEMES_PER_REVIEW = 3
_TOP_BIGRAMS = 5
_TOP_WORDS = 5
_MAX_PHRASES = 10

# Bucket boundaries on the sentiment score.
_BUCKET_THRESHOLD = 0.2


def review_themes(text: str, corpus_tf: Counter) -> list[str]:
    """Top terms of one review, ranked by how common they are across all reviews."""
    terms = list(dict.fromkeys(significant_terms(text)))
    # sorted() is stable, so equal frequencies keep first-occurrence order.
    ranked = sorted(terms, key=lambda t: corpus_tf[t], reverse=True)
    return ranked[:_THEMES_PER_REVIEW]


def bucket_for(score: float) -> str:
    if score > _BUCKET_THRESHOLD:
        return "positive"
    if score < -_BUCKET_THRESHOLD:
        return "negative"
    return "neutral"


def key_phrases(texts: Iterable[str], source: str) -> ThemeExtract:
    """Repeated bigrams first, then repeated single words, for one bucket."""
    texts = list(texts)
    word_counts = Counter(significant_terms(" ".join(texts)))
    bigram_counts: Counter = Counter()
    for text in texts:
        bigram_counts.update(extract_bigrams(normalize_words(text)))

    phrases = top_repeated(bigram_counts, _TOP_BIGRAMS) + top_repeated(word_counts, _TOP_WORDS)
    return ThemeExtract(source=source, terms=tuple(phrases[:_MAX_PHRASES]))
