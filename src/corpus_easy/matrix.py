# src/corpus_easy/matrix.py

import logging
import math
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from scipy.sparse import csr_matrix

from .corpus import Corpus
from .document import Document
from .errors import EmptyCorpusError, MetadataFieldError, TypeMismatchError
from .scoring import pairwise_row_similarity
from .tokenizer import NormalizationConfig, Tokenizer

logger = logging.getLogger(__name__)

WEIGHT_SCHEMES = ("count", "prop", "tfidf")
GroupBy = str | Callable[[Document], Any]


@dataclass(frozen=True)
class FeatureFrequency:
    feature: str
    frequency: float
    rank: int
    docfreq: int


@dataclass(frozen=True, eq=False)
class FeatureMatrix:
    """
    Sparse row-by-feature matrix.

    Attributes:
        counts: CSR matrix of cell values (int64 counts unless `weighting` says otherwise)
        row_names: Document ids, or group keys rendered as strings
        features: Column names (sorted lexically; dictionary lookups keep category order)
        row_metadata: Per-row docvars; grouped rows keep the fields shared by all members
        weighting: 'count', 'prop' or 'tfidf'
    """

    counts: csr_matrix
    row_names: tuple[str, ...]
    features: tuple[str, ...]
    row_metadata: tuple[Mapping[str, Any], ...] = field(default=())
    weighting: str = "count"

    def __post_init__(self):
        n_rows, n_cols = self.counts.shape
        if n_rows != len(self.row_names) or n_cols != len(self.features):
            raise ValueError(
                f"matrix shape {self.counts.shape} does not match "
                f"{len(self.row_names)} rows x {len(self.features)} features"
            )
        if not self.row_metadata:
            object.__setattr__(self, "row_metadata", tuple({} for _ in self.row_names))

    def __eq__(self, other):
        if not isinstance(other, FeatureMatrix):
            return NotImplemented
        if (
            self.shape != other.shape
            or self.row_names != other.row_names
            or self.features != other.features
            or self.weighting != other.weighting
            or [dict(m) for m in self.row_metadata] != [dict(m) for m in other.row_metadata]
        ):
            return False
        return (self.counts != other.counts).nnz == 0

    __hash__ = None

    @property
    def shape(self) -> tuple[int, int]:
        return self.counts.shape

    @property
    def feature_index(self) -> dict[str, int]:
        return {f: i for i, f in enumerate(self.features)}

    def totals(self) -> np.ndarray:
        """Column sums across all rows."""
        return np.asarray(self.counts.sum(axis=0)).ravel()

    def docfreq(self) -> np.ndarray:
        """Number of rows in which each feature is non-zero."""
        return np.bincount(self.counts.indices, minlength=len(self.features))[: len(self.features)]

    def column(self, feature: str) -> np.ndarray:
        """Dense values of one feature per row (zeros when the feature is absent)."""
        idx = self.feature_index.get(feature)
        if idx is None:
            return np.zeros(len(self.row_names), dtype=self.counts.dtype)
        return self.counts[:, idx].toarray().ravel()

    def to_dense(self) -> np.ndarray:
        return self.counts.toarray()

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Non-zero cells as {row_name: {feature: value}}."""
        out: dict[str, dict[str, Any]] = {}
        for r, name in enumerate(self.row_names):
            lo, hi = self.counts.indptr[r], self.counts.indptr[r + 1]
            out[name] = {
                self.features[c]: v.item()
                for c, v in zip(self.counts.indices[lo:hi], self.counts.data[lo:hi])
            }
        return out

    def group(self, by: str | Sequence[Any]) -> "FeatureMatrix":
        """
        Pool rows sharing a group key.

        Args:
            by: A row-metadata field name, or one key per row

        Returns:
            A matrix with one row per distinct key, keys sorted ascending

        Raises:
            MetadataFieldError: If `by` names a field missing on some row
            TypeMismatchError: If the keys cannot be ordered against each other
        """
        if isinstance(by, str):
            keys = []
            for name, meta in zip(self.row_names, self.row_metadata):
                if by not in meta:
                    raise MetadataFieldError(by, name)
                keys.append(meta[by])
        else:
            keys = list(by)
            if len(keys) != len(self.row_names):
                raise ValueError(f"expected {len(self.row_names)} group keys, got {len(keys)}")
        if not keys:
            raise EmptyCorpusError("cannot group a matrix without rows")

        try:
            distinct = sorted(set(keys))
        except TypeError as e:
            raise TypeMismatchError(f"group keys cannot be ordered: {e}") from e
        position = {key: i for i, key in enumerate(distinct)}

        indicator = csr_matrix(
            (
                np.ones(len(keys), dtype=self.counts.dtype),
                ([position[k] for k in keys], np.arange(len(keys))),
            ),
            shape=(len(distinct), len(keys)),
        )
        pooled = (indicator @ self.counts).tocsr()
        pooled.sort_indices()

        metadata = []
        for key in distinct:
            members = [meta for k, meta in zip(keys, self.row_metadata) if k == key]
            shared = {
                f: v for f, v in members[0].items() if all(f in m and m[f] == v for m in members)
            }
            if isinstance(by, str):
                shared[by] = key
            metadata.append(shared)

        logger.debug(f"Grouped {len(keys)} rows into {len(distinct)} groups")
        return FeatureMatrix(
            counts=pooled,
            row_names=tuple(str(k) for k in distinct),
            features=self.features,
            row_metadata=tuple(metadata),
            weighting=self.weighting,
        )

    def _take_columns(self, keep: np.ndarray) -> "FeatureMatrix":
        cols = np.flatnonzero(keep)
        return FeatureMatrix(
            counts=self.counts[:, cols].tocsr(),
            row_names=self.row_names,
            features=tuple(self.features[i] for i in cols),
            row_metadata=self.row_metadata,
            weighting=self.weighting,
        )

    def select(self, features: Iterable[str]) -> "FeatureMatrix":
        """Keep only the given features (unknown names are ignored)."""
        wanted = set(features)
        return self._take_columns(np.array([f in wanted for f in self.features], dtype=bool))

    def remove(self, features: Iterable[str]) -> "FeatureMatrix":
        unwanted = set(features)
        return self._take_columns(np.array([f not in unwanted for f in self.features], dtype=bool))

    def trim(self, min_count: float = 1, min_docfreq: int = 1) -> "FeatureMatrix":
        """Drop features whose total is below `min_count` or that occur in fewer than `min_docfreq` rows."""
        keep = (self.totals() >= min_count) & (self.docfreq() >= min_docfreq)
        return self._take_columns(keep)

    def weight(self, scheme: str) -> "FeatureMatrix":
        """
        Re-weight cell values.

        Args:
            scheme: 'count' (copy), 'prop' (row proportions) or 'tfidf'
                (count * log10(n_rows / docfreq))

        Raises:
            ValueError: If the scheme is unknown or the matrix is already weighted
        """
        if scheme not in WEIGHT_SCHEMES:
            raise ValueError(f"Unknown weighting scheme {scheme!r}; expected one of {WEIGHT_SCHEMES}")
        if self.weighting != "count":
            raise ValueError(f"Matrix is already weighted ({self.weighting})")

        values = self.counts.astype(np.float64)
        if scheme == "prop":
            row_sums = np.asarray(values.sum(axis=1)).ravel()
            row_sums[row_sums == 0] = 1.0
            values = csr_matrix(values.multiply(1.0 / row_sums[:, None]))
        elif scheme == "tfidf":
            df = self.docfreq().astype(np.float64)
            df[df == 0] = 1.0
            idf = np.log10(len(self.row_names) / df)
            values = csr_matrix(values.multiply(idf[None, :]))
        values.sort_indices()

        return FeatureMatrix(
            counts=values,
            row_names=self.row_names,
            features=self.features,
            row_metadata=self.row_metadata,
            weighting=scheme,
        )


def _group_keys(corpus: Corpus, group_by: GroupBy) -> list[Any]:
    if callable(group_by):
        return [group_by(doc) for doc in corpus]
    return corpus.docvars(group_by)


def build_matrix(
    corpus: Corpus,
    config: NormalizationConfig | None = None,
    *,
    group_by: GroupBy | None = None,
) -> FeatureMatrix:
    """
    Count normalized tokens per document, or per group of documents.

    Args:
        corpus: Source documents
        config: Token normalization settings (defaults to NormalizationConfig())
        group_by: Metadata field name or a callable `Document -> key`; rows
            become the distinct keys (sorted) with tokens pooled per key

    Returns:
        FeatureMatrix with lexically sorted feature columns

    Raises:
        EmptyCorpusError: If the corpus has no documents

    Example:
        >>> m = build_matrix(corpus, NormalizationConfig(stopwords=resolve_stopwords("smart")))
        >>> top_features(m, 10)
    """
    if len(corpus) == 0:
        raise EmptyCorpusError("cannot build a feature matrix from an empty corpus")

    # Resolve keys before counting so a bad field fails fast
    keys = _group_keys(corpus, group_by) if group_by is not None else None

    tokenizer = Tokenizer(config)
    per_doc = [Counter(tokenizer.tokens(doc)) for doc in corpus]

    features = tuple(sorted(set().union(*per_doc)))
    index = {f: i for i, f in enumerate(features)}

    rows: list[int] = []
    cols: list[int] = []
    data: list[int] = []
    for r, counter in enumerate(per_doc):
        for token, count in counter.items():
            rows.append(r)
            cols.append(index[token])
            data.append(count)

    counts = csr_matrix(
        (np.array(data, dtype=np.int64), (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64))),
        shape=(len(corpus), len(features)),
        dtype=np.int64,
    )
    counts.sort_indices()

    matrix = FeatureMatrix(
        counts=counts,
        row_names=tuple(corpus.doc_ids),
        features=features,
        row_metadata=tuple(doc.metadata for doc in corpus),
    )
    logger.debug(f"Built feature matrix {matrix.shape[0]}x{matrix.shape[1]}")

    if keys is not None:
        if isinstance(group_by, str):
            return matrix.group(group_by)
        return matrix.group(keys)
    return matrix


def _ordered_columns(matrix: FeatureMatrix) -> tuple[np.ndarray, np.ndarray]:
    if matrix.shape[0] == 0:
        raise EmptyCorpusError("matrix has no rows")
    totals = matrix.totals()
    # Dictionary columns are not lexically ordered, so ties are broken on the name itself
    order = np.array(
        sorted(range(len(matrix.features)), key=lambda i: (-totals[i], matrix.features[i])),
        dtype=np.int64,
    )
    return order, totals


def top_features(matrix: FeatureMatrix, n: int = 10) -> list[tuple[str, Any]]:
    """
    The `n` features with the highest total across rows.

    Sorted by total descending, ties by feature ascending; exactly
    min(n, number of features) entries.
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    order, totals = _ordered_columns(matrix)
    return [(matrix.features[i], totals[i].item()) for i in order[:n]]


def frequency_table(matrix: FeatureMatrix, n: int | None = None) -> list[FeatureFrequency]:
    """Feature frequencies with ranks (ties share the lowest rank) and document frequencies."""
    order, totals = _ordered_columns(matrix)
    docfreq = matrix.docfreq()
    if n is not None:
        order = order[:n]

    table: list[FeatureFrequency] = []
    rank = 0
    previous = None
    for position, i in enumerate(order, start=1):
        total = totals[i].item()
        if previous is None or not math.isclose(total, previous):
            rank = position
            previous = total
        table.append(
            FeatureFrequency(
                feature=matrix.features[i], frequency=total, rank=rank, docfreq=int(docfreq[i])
            )
        )
    return table


def similarity(matrix: FeatureMatrix, method: str = "cosine") -> np.ndarray:
    """
    Row-by-row similarity.

    Args:
        method: 'cosine' or 'dot'

    Returns:
        Dense symmetric (n_rows, n_rows) float64 array in row order
    """
    if method not in ("cosine", "dot"):
        raise ValueError(f"Unknown similarity method {method!r}; expected 'cosine' or 'dot'")
    if matrix.shape[0] == 0:
        raise EmptyCorpusError("matrix has no rows")
    values = matrix.counts.astype(np.float64).tocsr()
    values.sort_indices()
    return pairwise_row_similarity(
        values.indptr.astype(np.int64),
        values.indices.astype(np.int64),
        values.data,
        method == "cosine",
    )
