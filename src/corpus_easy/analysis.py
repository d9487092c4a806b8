# src/corpus_easy/analysis.py

from collections.abc import Callable
from pathlib import Path
from typing import Any

import numpy as np

from .corpus import Corpus, DocumentSummary
from .dictionary import Dictionary, lookup
from .document import Document
from .kwic import KwicRecord, kwic
from .matrix import (
    FeatureFrequency,
    FeatureMatrix,
    GroupBy,
    build_matrix,
    frequency_table,
    similarity,
    top_features,
)
from .store import cached_build_matrix
from .tokenizer import NormalizationConfig, Tokenizer


class CorpusAnalysis:
    """
    Read-only query layer over a corpus and one normalization configuration.

    Every call recomputes from its inputs, so results never depend on call order.

    Args:
        corpus: Documents to analyse
        config: Token normalization used for matrices and dictionary terms
        cache_dir: Optional directory where matrices are cached between runs

    Example:
        >>> analysis = CorpusAnalysis(corpus, NormalizationConfig(stopwords=resolve_stopwords("smart")))
        >>> analysis.subset(Where("Year", "<", 2017)).top_features(10, group_by="Year")
    """

    def __init__(
        self,
        corpus: Corpus,
        config: NormalizationConfig | None = None,
        cache_dir: str | Path | None = None,
    ):
        self.corpus = corpus
        self.config = config or NormalizationConfig()
        self.cache_dir = cache_dir

    def summary(self) -> list[DocumentSummary]:
        return self.corpus.summary()

    def subset(self, predicate: Callable[[Document], bool]) -> "CorpusAnalysis":
        return CorpusAnalysis(self.corpus.subset(predicate), self.config, self.cache_dir)

    def matrix(self, group_by: GroupBy | None = None) -> FeatureMatrix:
        if self.cache_dir is not None and not callable(group_by):
            return cached_build_matrix(self.corpus, self.config, self.cache_dir, group_by)
        return build_matrix(self.corpus, self.config, group_by=group_by)

    def top_features(self, n: int = 10, group_by: GroupBy | None = None) -> list[tuple[str, Any]]:
        return top_features(self.matrix(group_by), n)

    def frequency_table(self, n: int | None = None, group_by: GroupBy | None = None) -> list[FeatureFrequency]:
        return frequency_table(self.matrix(group_by), n)

    def kwic(self, term: str, window: int = 5) -> list[KwicRecord]:
        return kwic(self.corpus, term, window)

    def lookup(self, dictionary: Dictionary, group_by: GroupBy | None = None) -> FeatureMatrix:
        """Dictionary counts with member terms normalized like the matrix features."""
        normalized = dictionary.normalized(Tokenizer(self.config))
        return lookup(self.matrix(group_by), normalized)

    def similarity(self, method: str = "cosine", group_by: GroupBy | None = None) -> np.ndarray:
        return similarity(self.matrix(group_by), method)
