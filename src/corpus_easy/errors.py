# src/corpus_easy/errors.py

from pathlib import Path


class CorpusError(Exception):
    """Base class for all corpus-easy errors."""


class LoadError(CorpusError):
    """A source file could not be read or has an unsupported format."""

    def __init__(self, path: str | Path, message: str):
        self.path = Path(path)
        super().__init__(f"{self.path.name}: {message}")


class MetadataArityError(LoadError):
    """A file name does not split into the expected number of metadata fields."""

    def __init__(self, path: str | Path, parts: list[str], fields: list[str]):
        self.parts = list(parts)
        self.fields = list(fields)
        super().__init__(
            path,
            f"expected {len(self.fields)} metadata fields {self.fields}, "
            f"got {len(self.parts)} parts {self.parts}",
        )


class TypeMismatchError(CorpusError, TypeError):
    """A metadata value's type disagrees with the type an operation expects."""


class MetadataFieldError(CorpusError, KeyError):
    """A metadata field referenced by a query is missing on some document."""

    def __init__(self, field: str, doc_id: str):
        self.field = field
        self.doc_id = doc_id
        super().__init__(f"metadata field {field!r} missing on document {doc_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class EmptyCorpusError(CorpusError, ValueError):
    """An operation that needs documents was given none."""
