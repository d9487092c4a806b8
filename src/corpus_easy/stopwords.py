# src/corpus_easy/stopwords.py

import logging
from collections.abc import Iterable
from functools import lru_cache
from importlib import resources
from pathlib import Path

logger = logging.getLogger(__name__)

NLTK_PREFIX = "nltk:"


@lru_cache(maxsize=None)
def smart_stopwords() -> frozenset[str]:
    """The SMART information-retrieval stopword list shipped with the package."""
    text = resources.files("corpus_easy").joinpath("data/smart.txt").read_text(encoding="utf-8")
    return frozenset(line.strip() for line in text.splitlines() if line.strip())


@lru_cache(maxsize=None)
def nltk_stopwords(language: str) -> frozenset[str]:
    """
    NLTK's stopword corpus for `language`.

    Requires the corpus to be installed (`nltk.download("stopwords")`).
    """
    from nltk.corpus import stopwords

    try:
        return frozenset(stopwords.words(language))
    except LookupError as e:
        raise ValueError(
            f"NLTK stopwords for {language!r} are not installed; run nltk.download('stopwords')"
        ) from e


def resolve_stopwords(*sources: str | Path | Iterable[str]) -> frozenset[str]:
    """
    Combine stopword presets, word-list files and literal words into one set.

    Each source is one of:
        - "smart": the bundled SMART list
        - "nltk:<language>": NLTK's corpus for that language
        - a Path (or a string naming an existing file): one word per line
        - any other iterable of words, taken literally

    Example:
        >>> words = resolve_stopwords("smart", ["oil", "spill"])
        >>> "oil" in words and "the" in words
        True

    Raises:
        ValueError: If a string source is neither a preset nor an existing file
    """
    words: set[str] = set()
    for source in sources:
        if isinstance(source, Path) or (isinstance(source, str) and Path(source).is_file()):
            lines = Path(source).read_text(encoding="utf-8").splitlines()
            words.update(line.strip() for line in lines if line.strip())
        elif isinstance(source, str):
            if source == "smart":
                words |= smart_stopwords()
            elif source.startswith(NLTK_PREFIX):
                words |= nltk_stopwords(source[len(NLTK_PREFIX):])
            else:
                raise ValueError(f"Unknown stopword preset or file: {source!r}")
        else:
            words.update(source)
    logger.debug(f"Resolved {len(words)} stopwords from {len(sources)} source(s)")
    return frozenset(words)
