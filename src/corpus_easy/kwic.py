# src/corpus_easy/kwic.py

import logging
from dataclasses import dataclass

from .corpus import Corpus
from .errors import EmptyCorpusError
from .tokenizer import NormalizationConfig, Tokenizer, segment

logger = logging.getLogger(__name__)

# Keep punctuation so contexts read like the source text
KWIC_CONFIG = NormalizationConfig(lowercase=True, strip_punctuation=False)


@dataclass(frozen=True)
class KwicRecord:
    doc_id: str
    position: int
    left_context: tuple[str, ...]
    keyword: str
    right_context: tuple[str, ...]

    @property
    def pre(self) -> str:
        return " ".join(self.left_context)

    @property
    def post(self) -> str:
        return " ".join(self.right_context)


def kwic(
    corpus: Corpus,
    term: str,
    window: int = 5,
    config: NormalizationConfig | None = None,
) -> list[KwicRecord]:
    """
    Keyword-in-context search.

    The term is normalized with the same configuration as the text and matched
    against whole tokens; a multi-word term matches as a phrase. Positions are
    indices into each document's normalized token stream.

    Args:
        corpus: Documents to search
        term: Search term or phrase
        window: Maximum number of context tokens on each side
        config: Normalization settings (defaults to lowercase, punctuation kept)

    Returns:
        Records in document order, then position order

    Raises:
        EmptyCorpusError: If the corpus has no documents
        ValueError: If `window` is negative or the term is blank

    Example:
        >>> kwic(corpus, "dispersant", window=4)[0].left_context
        ('spill', ',', 'the')
    """
    if window < 0:
        raise ValueError(f"window must be >= 0, got {window}")
    if len(corpus) == 0:
        raise EmptyCorpusError("cannot search an empty corpus")

    tokenizer = Tokenizer(config or KWIC_CONFIG)
    parts = segment(term)
    if not parts:
        raise ValueError("search term is empty")
    pattern = [tokenizer.normalize_term(p) for p in parts]
    if any(p is None for p in pattern):
        logger.warning(f"Search term {term!r} is removed by normalization; no matches possible")
        return []

    records: list[KwicRecord] = []
    size = len(pattern)
    for doc in corpus:
        tokens = tokenizer.tokens(doc).to_list()
        for pos in range(len(tokens) - size + 1):
            if tokens[pos : pos + size] != pattern:
                continue
            records.append(
                KwicRecord(
                    doc_id=doc.doc_id,
                    position=pos,
                    left_context=tuple(tokens[max(0, pos - window) : pos]),
                    keyword=" ".join(tokens[pos : pos + size]),
                    right_context=tuple(tokens[pos + size : pos + size + window]),
                )
            )
    logger.debug(f"kwic {term!r}: {len(records)} match(es) in {len(corpus)} document(s)")
    return records
