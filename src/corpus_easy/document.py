from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .errors import TypeMismatchError


@dataclass(frozen=True)
class Document:
    """
    A single loaded document.

    Attributes:
        doc_id: Unique document identifier (the path relative to the loaded directory)
        text: Raw extracted text
        metadata: Document variables (docvars) as a read-only mapping
    """

    doc_id: str
    text: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __hash__(self):
        return hash((self.doc_id, self.text))

    def __reduce__(self):
        return (Document, (self.doc_id, self.text, dict(self.metadata)))

    def replace_metadata(self, metadata: Mapping[str, Any]) -> "Document":
        """Return a copy of this document carrying `metadata` instead."""
        return Document(doc_id=self.doc_id, text=self.text, metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        return {"doc_id": self.doc_id, "text": self.text, "metadata": dict(self.metadata)}


def convert_metadata_value(value: Any, target: type, field_name: str) -> Any:
    """
    Convert a raw docvar value (usually a file-name part) to `target`.

    Raises:
        TypeMismatchError: If the value cannot be represented as `target`
    """
    if isinstance(value, target) and not isinstance(value, bool):
        return value
    try:
        return target(value)
    except (TypeError, ValueError) as e:
        raise TypeMismatchError(
            f"cannot convert {field_name}={value!r} to {target.__name__}"
        ) from e
