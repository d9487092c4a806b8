# src/corpus_easy/tokenizer.py
"""
Text segmentation and token normalization.

The normalization chain always runs in the same order so a text and a
configuration fully determine the token sequence:

    segment -> lowercase -> drop punctuation -> drop numbers -> drop stopwords -> stem
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from functools import cached_property

from nltk.stem.snowball import SnowballStemmer
from nltk.tokenize import RegexpTokenizer
from nltk.tokenize.punkt import PunktSentenceTokenizer

from .document import Document

# Decimal numbers first so "3.5" stays whole, then words with inner hyphens or
# apostrophes, then single punctuation/symbol characters.
WORD_PATTERN = r"\d+(?:[.,]\d+)+|\w+(?:[-'’]\w+)*|[^\w\s]"

_word_tokenizer = RegexpTokenizer(WORD_PATTERN)
_sentence_tokenizer = PunktSentenceTokenizer()

_PUNCT_RE = re.compile(r"[\W_]+")
_NUMBER_RE = re.compile(r"[+-]?\d+(?:[.,]\d+)*")


def segment(text: str) -> list[str]:
    """Split raw text into word and punctuation tokens."""
    return _word_tokenizer.tokenize(text)


def split_sentences(text: str) -> list[str]:
    """Split raw text into sentences with NLTK's untrained Punkt model."""
    return [s for s in _sentence_tokenizer.tokenize(text) if s.strip()]


def is_punctuation(token: str) -> bool:
    return _PUNCT_RE.fullmatch(token) is not None


def is_number(token: str) -> bool:
    return _NUMBER_RE.fullmatch(token) is not None


@dataclass(frozen=True)
class NormalizationConfig:
    """
    Token normalization settings.

    Attributes:
        lowercase: Case-fold tokens
        strip_punctuation: Drop tokens made only of punctuation/symbols
        strip_numbers: Drop purely numeric tokens
        stopwords: Tokens to remove (compared after lowercasing when `lowercase` is set)
        stem: Reduce tokens with the Snowball stemmer for `language`
        language: Snowball stemmer language
    """

    lowercase: bool = True
    strip_punctuation: bool = True
    strip_numbers: bool = False
    stopwords: frozenset[str] = field(default_factory=frozenset)
    stem: bool = False
    language: str = "english"

    def __post_init__(self):
        if isinstance(self.stopwords, str):
            raise TypeError(
                f"stopwords must be a collection of words, not the string {self.stopwords!r}; "
                "use resolve_stopwords() for named lists"
            )
        words = frozenset(self.stopwords)
        if self.lowercase:
            words = frozenset(w.lower() for w in words)
        object.__setattr__(self, "stopwords", words)


class TokenStream:
    """Lazy, restartable sequence of normalized tokens for one text."""

    def __init__(self, tokenizer: "Tokenizer", text: str):
        self._tokenizer = tokenizer
        self._text = text

    def __iter__(self) -> Iterator[str]:
        return self._tokenizer._normalize(segment(self._text))

    def to_list(self) -> list[str]:
        return list(self)


class Tokenizer:
    """
    Applies a NormalizationConfig to documents or raw text.

    Example:
        >>> tok = Tokenizer(NormalizationConfig(stopwords=frozenset({"the"})))
        >>> tok.tokens("The dispersant was applied.").to_list()
        ['dispersant', 'was', 'applied']
    """

    def __init__(self, config: NormalizationConfig | None = None):
        self.config = config or NormalizationConfig()

    @cached_property
    def _stemmer(self) -> SnowballStemmer:
        return SnowballStemmer(self.config.language)

    def tokens(self, source: Document | str) -> TokenStream:
        text = source.text if isinstance(source, Document) else source
        return TokenStream(self, text)

    def normalize_term(self, term: str) -> str | None:
        """
        Normalize a single search term the way text tokens are normalized.

        Returns None when the term would have been removed (stopword, punctuation, ...).
        """
        return next(self._normalize([term]), None)

    def _normalize(self, raw: Iterable[str]) -> Iterator[str]:
        cfg = self.config
        for token in raw:
            if cfg.lowercase:
                token = token.lower()
            if cfg.strip_punctuation and is_punctuation(token):
                continue
            if cfg.strip_numbers and is_number(token):
                continue
            if token in cfg.stopwords:
                continue
            if cfg.stem:
                token = self._stemmer.stem(token)
            yield token
