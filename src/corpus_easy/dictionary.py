# src/corpus_easy/dictionary.py

import fnmatch
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

import numpy as np
import yaml
from scipy.sparse import csr_matrix

from .errors import EmptyCorpusError
from .matrix import FeatureMatrix
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)


def _flatten(mapping: Mapping, prefix: str = "") -> Iterator[tuple[str, list[str]]]:
    for key, value in mapping.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _flatten(value, prefix=f"{name}.")
        elif isinstance(value, str):
            yield name, [value]
        elif isinstance(value, Iterable):
            yield name, [str(v) for v in value]
        else:
            raise ValueError(f"Dictionary category {name!r} must map to terms, got {value!r}")


class Dictionary:
    """
    Named categories of member terms used to re-aggregate feature counts.

    Nested mappings are flattened into dotted category names
    ({"response": {"chemical": [...]}} -> "response.chemical").

    Args:
        mapping: Category name -> member terms (order of categories is kept)
        glob: Treat members as shell-style patterns ("dispers*")

    Example:
        >>> d = Dictionary({"response": ["dispersant", "skimming"], "ecology": ["fish"]})
        >>> lookup(matrix, d).features
        ('response', 'ecology')
    """

    def __init__(self, mapping: Mapping[str, Iterable[str] | Mapping], *, glob: bool = False):
        self.glob = glob
        self._categories: dict[str, frozenset[str]] = {}
        for name, terms in _flatten(mapping):
            if name in self._categories:
                raise ValueError(f"Duplicate dictionary category {name!r}")
            self._categories[name] = frozenset(terms)

    @classmethod
    def from_yaml(cls, path: str | Path, *, glob: bool = False) -> "Dictionary":
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, Mapping):
            raise ValueError(f"{path}: dictionary file must contain a mapping")
        return cls(data, glob=glob)

    def __len__(self) -> int:
        return len(self._categories)

    def __iter__(self) -> Iterator[str]:
        return iter(self._categories)

    def __getitem__(self, category: str) -> frozenset[str]:
        return self._categories[category]

    def __repr__(self) -> str:
        return f"Dictionary({dict((k, sorted(v)) for k, v in self._categories.items())})"

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    def items(self):
        return self._categories.items()

    def normalized(self, tokenizer: Tokenizer) -> "Dictionary":
        """
        Normalize member terms the way `tokenizer` normalizes text, e.g. to match a stemmed matrix.

        Glob patterns are only case-folded. Members removed by normalization are dropped.
        """
        mapping = {}
        for name, terms in self._categories.items():
            members = set()
            for term in terms:
                if self.glob and any(ch in term for ch in "*?["):
                    members.add(term.lower() if tokenizer.config.lowercase else term)
                    continue
                normalized = tokenizer.normalize_term(term)
                if normalized is None:
                    logger.debug(f"Dropping dictionary term {term!r} from {name!r}: removed by normalization")
                    continue
                members.add(normalized)
            mapping[name] = sorted(members)
        return Dictionary(mapping, glob=self.glob)

    def member_columns(self, features: Iterable[str]) -> dict[str, list[int]]:
        """Column indices of `features` belonging to each category."""
        features = list(features)
        index = {f: i for i, f in enumerate(features)}
        out: dict[str, list[int]] = {}
        for name, terms in self._categories.items():
            if self.glob:
                cols = [
                    i for i, f in enumerate(features) if any(fnmatch.fnmatchcase(f, t) for t in terms)
                ]
            else:
                cols = sorted(index[t] for t in terms if t in index)
            out[name] = cols
        return out


def lookup(matrix: FeatureMatrix, dictionary: Dictionary) -> FeatureMatrix:
    """
    Sum member-term columns into one column per dictionary category.

    Member terms absent from the matrix contribute zero. Rows, row names and
    row metadata are unchanged; columns follow the dictionary's category order.

    Raises:
        EmptyCorpusError: If the matrix has no rows
    """
    if matrix.shape[0] == 0:
        raise EmptyCorpusError("cannot apply a dictionary to a matrix without rows")

    columns = dictionary.member_columns(matrix.features)
    rows: list[int] = []
    cols: list[int] = []
    for c, name in enumerate(dictionary.categories):
        for feature_idx in columns[name]:
            rows.append(feature_idx)
            cols.append(c)

    indicator = csr_matrix(
        (
            np.ones(len(rows), dtype=matrix.counts.dtype),
            (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64)),
        ),
        shape=(len(matrix.features), len(dictionary)),
    )
    values = (matrix.counts @ indicator).tocsr()
    values.sort_indices()

    missing = [name for name, cols_ in columns.items() if not cols_]
    if missing:
        logger.debug(f"Dictionary categories with no matching features: {missing}")

    return FeatureMatrix(
        counts=values,
        row_names=matrix.row_names,
        features=tuple(dictionary.categories),
        row_metadata=matrix.row_metadata,
        weighting=matrix.weighting,
    )
