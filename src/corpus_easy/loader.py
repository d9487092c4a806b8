# src/corpus_easy/loader.py

import logging
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import fitz  # PyMuPDF
from rich.progress import track

from .document import Document, convert_metadata_value
from .errors import LoadError, MetadataArityError

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = (".txt", ".md")
POLICIES = ("warn", "raise")


def extract_pdf_text(path: Path) -> str:
    """Extract the text of every page of a PDF, pages joined by blank lines."""
    with fitz.open(path) as doc:
        pages = [doc.load_page(i).get_text("text") for i in range(doc.page_count)]
    return "\n\n".join(pages)


def extract_text(path: str | Path) -> str:
    """
    Default text extractor.

    PDFs go through PyMuPDF, plain text files are read as UTF-8.

    Raises:
        LoadError: If the file is unreadable or its suffix is unsupported
    """
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix == ".pdf":
            return extract_pdf_text(path)
        if suffix in TEXT_SUFFIXES:
            return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError, RuntimeError, ValueError) as e:
        # PyMuPDF reports damaged files as RuntimeError/FileDataError
        raise LoadError(path, f"cannot read file ({e})") from e
    raise LoadError(path, f"unsupported format {suffix or '(no suffix)'!r}")


def parse_filename_metadata(
    path: str | Path,
    delimiter: str,
    fields: Sequence[str],
    field_types: Mapping[str, type] | None = None,
) -> dict[str, Any]:
    """
    Split a file name (without suffix) on `delimiter` and assign the parts to `fields`.

    Example:
        >>> parse_filename_metadata("Smith_2015.pdf", "_", ["First_author", "Year"])
        {'First_author': 'Smith', 'Year': '2015'}

    Raises:
        MetadataArityError: If the number of parts differs from the number of fields
        TypeMismatchError: If a part cannot be converted to its declared type
    """
    path = Path(path)
    parts = path.stem.split(delimiter)
    if len(parts) != len(fields):
        raise MetadataArityError(path, parts, list(fields))

    metadata = dict(zip(fields, parts))
    for name, target in (field_types or {}).items():
        if name in metadata:
            metadata[name] = convert_metadata_value(metadata[name], target, name)
    return metadata


@dataclass
class LoadReport:
    """Outcome of a load: the documents in path order plus every skipped file."""

    documents: list[Document] = field(default_factory=list)
    skipped: list[tuple[Path, Exception]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.documents)


class DocumentLoader:
    """
    Loads one Document per file matching `pattern` in a directory.

    Args:
        directory: Source directory (never modified)
        pattern: Glob pattern relative to `directory`
        delimiter: File-name delimiter for metadata parts (None disables metadata)
        fields: Metadata field names, assigned positionally to the parts
        field_types: Optional conversions applied to parsed fields, e.g. {"Year": int}
        on_arity_error: 'warn' skips mis-named files with a warning, 'raise' aborts the load
        on_load_error: 'raise' aborts on unreadable files, 'warn' skips them
        extractor: Callable returning the text of a file (defaults to `extract_text`)
        num_workers: Threads used for text extraction

    Example:
        >>> loader = DocumentLoader("papers", delimiter="_", fields=["First_author", "Year"])
        >>> report = loader.load()
        >>> report.documents[0].metadata["Year"]
        '2015'
    """

    def __init__(
        self,
        directory: str | Path,
        pattern: str = "*.pdf",
        *,
        delimiter: str | None = None,
        fields: Sequence[str] | None = None,
        field_types: Mapping[str, type] | None = None,
        on_arity_error: str = "warn",
        on_load_error: str = "raise",
        extractor: Callable[[Path], str] | None = None,
        num_workers: int = 1,
        show_progress: bool = False,
    ):
        if on_arity_error not in POLICIES:
            raise ValueError(f"on_arity_error must be one of {POLICIES}, got {on_arity_error!r}")
        if on_load_error not in POLICIES:
            raise ValueError(f"on_load_error must be one of {POLICIES}, got {on_load_error!r}")
        if (delimiter is None) != (fields is None):
            raise ValueError("delimiter and fields must be given together")

        self.directory = Path(directory)
        self.pattern = pattern
        self.delimiter = delimiter
        self.fields = list(fields) if fields is not None else None
        self.field_types = dict(field_types or {})
        self.on_arity_error = on_arity_error
        self.on_load_error = on_load_error
        self.extractor = extractor or extract_text
        self.num_workers = max(1, num_workers)
        self.show_progress = show_progress

    def iter_paths(self) -> list[Path]:
        """Matching files sorted by their path relative to the directory."""
        if not self.directory.is_dir():
            raise LoadError(self.directory, "not a directory")
        paths = [p for p in self.directory.glob(self.pattern) if p.is_file()]
        return sorted(paths, key=self.doc_id_for)

    def load(self) -> LoadReport:
        paths = self.iter_paths()
        logger.info(f"Loading {len(paths)} file(s) from {self.directory} matching {self.pattern!r}")

        report = LoadReport()
        candidates: list[tuple[Path, dict[str, Any]]] = []
        for path in paths:
            try:
                metadata = self._metadata_for(path)
            except MetadataArityError as e:
                if self.on_arity_error == "raise":
                    raise
                logger.warning(f"Skipping {path.name}: {e}")
                report.skipped.append((path, e))
                continue
            candidates.append((path, metadata))

        texts = self._extract_all([p for p, _ in candidates], report)
        for path, metadata in candidates:
            if path in texts:
                report.documents.append(
                    Document(doc_id=self.doc_id_for(path), text=texts[path], metadata=metadata)
                )

        logger.info(f"Loaded {len(report.documents)} document(s), skipped {len(report.skipped)}")
        return report

    def doc_id_for(self, path: Path) -> str:
        """Path relative to the loaded directory, with forward slashes."""
        return path.relative_to(self.directory).as_posix()

    def _metadata_for(self, path: Path) -> dict[str, Any]:
        if self.delimiter is None:
            return {}
        return parse_filename_metadata(path, self.delimiter, self.fields, self.field_types)

    def _extract_one(self, path: Path) -> str:
        try:
            return self.extractor(path)
        except LoadError:
            raise
        except OSError as e:
            raise LoadError(path, f"cannot read file ({e})") from e

    def _extract_all(self, paths: list[Path], report: LoadReport) -> dict[Path, str]:
        texts: dict[Path, str] = {}
        failures: list[tuple[Path, LoadError]] = []

        if self.num_workers == 1 or len(paths) <= 1:
            iterator = track(paths, description="Loading") if self.show_progress else paths
            for path in iterator:
                try:
                    texts[path] = self._extract_one(path)
                except LoadError as e:
                    if self.on_load_error == "raise":
                        raise
                    failures.append((path, e))
        else:
            with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
                futures = {executor.submit(self._extract_one, path): path for path in paths}
                for future in as_completed(futures):
                    path = futures[future]
                    try:
                        texts[path] = future.result()
                    except LoadError as e:
                        if self.on_load_error == "raise":
                            for pending in futures:
                                pending.cancel()
                            raise
                        failures.append((path, e))

        # Completion order is arbitrary under the pool; report in path order
        for path, error in sorted(failures, key=lambda item: self.doc_id_for(item[0])):
            logger.warning(f"Skipping {path.name}: {error}")
            report.skipped.append((path, error))
        return texts


def load_documents(directory: str | Path, pattern: str = "*.pdf", **kwargs) -> list[Document]:
    """
    Load documents from `directory`; see `DocumentLoader` for the options.

    Returns:
        Documents in path order, ids relative to `directory`
    """
    return DocumentLoader(directory, pattern, **kwargs).load().documents
