"""Stemmed polarity lexicon used by the review sentiment scorer."""

import logging
from collections import defaultdict

logger = logging.getLogger(__name__)

# VADER valences live in [-4, 4]; dividing by this maps them into [-1, 1].
_VADER_SCALE = 4.0

# Lazy-load the stemmer and lexicon so importing the package stays cheap.
_stemmer = None
_lexicon: dict[str, float] | None = None


def _get_stemmer():
    """Return the shared Porter stemmer."""
    global _stemmer
    if _stemmer is None:
        from nltk.stem.porter import PorterStemmer
        _stemmer = PorterStemmer()
    return _stemmer


def stem(token: str) -> str:
    return _get_stemmer().stem(token)


def get_lexicon() -> dict[str, float]:
    """Return the polarity lexicon keyed by Porter stem.

    Built once from the VADER lexicon.  Several surface forms can share a
    stem ("loved", "loves", "lovely"); their polarities are averaged.
    """
    global _lexicon
    if _lexicon is None:
        from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

        raw = SentimentIntensityAnalyzer().lexicon
        buckets: dict[str, list[float]] = defaultdict(list)
        for word, valence in raw.items():
            # Skip emoticons and multi-word entries; tokens never contain them.
            if not word.isalpha():
                continue
            buckets[stem(word)].append(float(valence) / _VADER_SCALE)
        _lexicon = {key: sum(vals) / len(vals) for key, vals in buckets.items()}
        logger.info("Sentiment lexicon loaded: %d stems from %d entries", len(_lexicon), len(raw))
    return _lexicon


def polarity(token: str) -> float:
    """Polarity of an already-stemmed token, 0.0 when unknown."""
    return get_lexicon().get(token, 0.0)
