# src/corpus_easy/corpus.py

import logging
import operator
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

from .document import Document, convert_metadata_value
from .errors import EmptyCorpusError, MetadataFieldError, TypeMismatchError
from .loader import DocumentLoader
from .tokenizer import segment, split_sentences

logger = logging.getLogger(__name__)

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda stored, operand: stored in operand,
}


def _type_family(value: Any) -> type:
    if isinstance(value, bool):
        return bool
    if isinstance(value, (int, float)):
        return float
    return type(value)


@dataclass(frozen=True)
class Where:
    """
    Comparison of a metadata field against a typed operand.

    The stored value and the operand must have the same type (ints and floats
    compare freely, bools only with bools). For `in`, every member of the
    operand collection is checked.

    Example:
        >>> corpus.subset(Where("Year", "<", 2017))
    """

    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported operator {self.op!r}; expected one of {list(_OPERATORS)}")

    def __call__(self, doc: Document) -> bool:
        if self.field not in doc.metadata:
            raise MetadataFieldError(self.field, doc.doc_id)
        stored = doc.metadata[self.field]
        operands = self.value if self.op == "in" else (self.value,)
        for operand in operands:
            if _type_family(operand) is not _type_family(stored):
                raise TypeMismatchError(
                    f"{self.field} on {doc.doc_id!r} is {type(stored).__name__} ({stored!r}), "
                    f"cannot compare with {type(operand).__name__} ({operand!r}); "
                    "cast the field first with Corpus.cast_metadata()"
                )
        return bool(_OPERATORS[self.op](stored, self.value))


@dataclass(frozen=True)
class DocumentSummary:
    doc_id: str
    types: int
    tokens: int
    sentences: int
    metadata: Mapping[str, Any]


class Corpus:
    """
    Ordered, immutable collection of documents plus corpus-level metadata.

    Args:
        documents: Documents in their stable order (doc_ids must be unique)
        meta: Corpus-wide annotations, e.g. {"language": "english"}
    """

    def __init__(self, documents: Iterable[Document], meta: Mapping[str, Any] | None = None):
        self._documents: tuple[Document, ...] = tuple(documents)
        self._meta: dict[str, Any] = dict(meta or {})
        self._by_id = {doc.doc_id: i for i, doc in enumerate(self._documents)}
        if len(self._by_id) != len(self._documents):
            raise ValueError("Document ids must be unique within a corpus")

    @classmethod
    def from_directory(
        cls, directory: str | Path, pattern: str = "*.pdf", *, meta=None, **loader_kwargs
    ) -> "Corpus":
        """Load a corpus with `DocumentLoader`; keyword arguments are passed through."""
        report = DocumentLoader(directory, pattern, **loader_kwargs).load()
        return cls(report.documents, meta=meta)

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __getitem__(self, index: int) -> Document:
        return self._documents[index]

    def __repr__(self) -> str:
        return f"Corpus({len(self)} documents, meta={self._meta})"

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._documents

    @property
    def doc_ids(self) -> list[str]:
        return [doc.doc_id for doc in self._documents]

    @property
    def meta(self) -> Mapping[str, Any]:
        return MappingProxyType(self._meta)

    def get(self, doc_id: str) -> Optional[Document]:
        idx = self._by_id.get(doc_id)
        return None if idx is None else self._documents[idx]

    def set_meta(self, key: str, value: Any) -> None:
        """Attach a corpus-wide annotation. Mutates this Corpus, never its documents."""
        self._meta[key] = value

    def docvars(self, field: str) -> list[Any]:
        """
        Values of one metadata field across all documents, in corpus order.

        Raises:
            MetadataFieldError: If any document lacks the field
        """
        values = []
        for doc in self._documents:
            if field not in doc.metadata:
                raise MetadataFieldError(field, doc.doc_id)
            values.append(doc.metadata[field])
        return values

    def subset(self, predicate: Callable[[Document], bool]) -> "Corpus":
        """
        Return a new Corpus with the documents satisfying `predicate`.

        The predicate is evaluated on every document before anything is
        returned, so errors never yield a partial corpus.

        Raises:
            TypeMismatchError: If a `Where` operand disagrees with a stored value's type
            MetadataFieldError: If a `Where` field is missing on some document
        """
        kept = [doc for doc in self._documents if predicate(doc)]
        logger.debug(f"subset kept {len(kept)}/{len(self)} documents")
        return Corpus(kept, meta=self._meta)

    def cast_metadata(self, types: Mapping[str, type]) -> "Corpus":
        """
        Return a new Corpus with the named docvars converted, e.g. {"Year": int}.

        Raises:
            MetadataFieldError: If a field is missing on some document
            TypeMismatchError: If a value cannot be converted
        """
        docs = []
        for doc in self._documents:
            metadata = dict(doc.metadata)
            for name, target in types.items():
                if name not in metadata:
                    raise MetadataFieldError(name, doc.doc_id)
                metadata[name] = convert_metadata_value(metadata[name], target, name)
            docs.append(doc.replace_metadata(metadata))
        return Corpus(docs, meta=self._meta)

    def summary(self) -> list[DocumentSummary]:
        """
        Per-document token, type and sentence counts.

        Raises:
            EmptyCorpusError: If the corpus holds no documents
        """
        if len(self) == 0:
            raise EmptyCorpusError("cannot summarize an empty corpus")
        rows = []
        for doc in self._documents:
            tokens = segment(doc.text)
            rows.append(
                DocumentSummary(
                    doc_id=doc.doc_id,
                    types=len({t.lower() for t in tokens}),
                    tokens=len(tokens),
                    sentences=len(split_sentences(doc.text)),
                    metadata=doc.metadata,
                )
            )
        return rows
