# src/corpus_easy/store.py
"""
Optional on-disk cache for feature matrices.

A cache directory holds `counts.npz` (scipy sparse) and `manifest.json`
describing rows, columns, the content hash of the matrix file and the source
key of the inputs it was built from.
"""

import hashlib
import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from scipy.sparse import load_npz, save_npz

from .corpus import Corpus
from .errors import LoadError
from .matrix import FeatureMatrix, build_matrix
from .tokenizer import NormalizationConfig
from .utils import hash_file, write_json_atomic

logger = logging.getLogger(__name__)

COUNTS_FILE = "counts.npz"
MANIFEST_FILE = "manifest.json"


@dataclass
class MatrixManifest:
    """
    Description of a cached matrix.

    Attributes:
        version: Manifest format version
        row_names: Row labels in matrix order
        features: Column labels in matrix order
        row_metadata: Per-row docvars (must be JSON-serializable)
        weighting: Weighting scheme of the stored values
        counts_sha256: Hash of counts.npz, checked on load
        source_key: Fingerprint of the corpus and options the matrix was built from
        created_at: ISO timestamp of the save
    """

    version: str = "0.1.0"
    row_names: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    row_metadata: list[dict[str, Any]] = field(default_factory=list)
    weighting: str = "count"
    counts_sha256: str = ""
    source_key: str = ""
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())


def save_matrix(matrix: FeatureMatrix, directory: str | Path, *, source_key: str = "") -> MatrixManifest:
    """Write `matrix` to `directory`, replacing any previous cache there."""
    root = Path(directory)
    root.mkdir(parents=True, exist_ok=True)

    counts_path = root / COUNTS_FILE
    # save_npz appends .npz to names lacking it
    temp_path = root / "counts.tmp.npz"
    save_npz(temp_path, matrix.counts, compressed=True)
    os.replace(temp_path, counts_path)

    manifest = MatrixManifest(
        row_names=list(matrix.row_names),
        features=list(matrix.features),
        row_metadata=[dict(m) for m in matrix.row_metadata],
        weighting=matrix.weighting,
        counts_sha256=hash_file(counts_path),
        source_key=source_key,
    )
    write_json_atomic(root / MANIFEST_FILE, asdict(manifest))
    logger.info(f"Saved {matrix.shape[0]}x{matrix.shape[1]} matrix to {root}")
    return manifest


def load_matrix(directory: str | Path, *, source_key: str | None = None) -> FeatureMatrix:
    """
    Load a matrix written by `save_matrix`.

    Args:
        directory: Cache directory
        source_key: When given, must equal the key the matrix was saved with

    Raises:
        LoadError: If the cache is missing, was saved under another key or fails its hash check
    """
    root = Path(directory)
    manifest_path = root / MANIFEST_FILE
    counts_path = root / COUNTS_FILE
    if not manifest_path.exists() or not counts_path.exists():
        raise LoadError(root, "no cached matrix in directory")

    with open(manifest_path, encoding="utf-8") as f:
        manifest = MatrixManifest(**json.load(f))

    if source_key is not None and manifest.source_key != source_key:
        raise LoadError(manifest_path, "cached matrix was built from different inputs")

    if hash_file(counts_path) != manifest.counts_sha256:
        raise LoadError(counts_path, "content hash does not match manifest")

    counts = load_npz(counts_path).tocsr()
    return FeatureMatrix(
        counts=counts,
        row_names=tuple(manifest.row_names),
        features=tuple(manifest.features),
        row_metadata=tuple(manifest.row_metadata),
        weighting=manifest.weighting,
    )


def matrix_source_key(corpus: Corpus, config: NormalizationConfig, group_by: str | None = None) -> str:
    """SHA256 over document ids, texts, docvars, normalization options and grouping field."""
    h = hashlib.sha256()
    options = asdict(config)
    options["stopwords"] = sorted(config.stopwords)
    h.update(json.dumps({"normalization": options, "group_by": group_by}, sort_keys=True).encode())
    for doc in corpus:
        record = {"doc_id": doc.doc_id, "metadata": dict(doc.metadata)}
        h.update(json.dumps(record, sort_keys=True, default=str).encode())
        h.update(hashlib.sha256(doc.text.encode()).digest())
    return h.hexdigest()


def cached_build_matrix(
    corpus: Corpus,
    config: NormalizationConfig,
    directory: str | Path,
    group_by: str | None = None,
) -> FeatureMatrix:
    """
    Load the matrix cached in `directory`, or build it and cache it there.

    The cache is reused only when its source key matches `corpus`, `config`
    and `group_by`; any other cache in the directory is replaced.
    """
    key = matrix_source_key(corpus, config, group_by)
    if (Path(directory) / MANIFEST_FILE).exists():
        try:
            matrix = load_matrix(directory, source_key=key)
            logger.info(f"Using cached matrix from {directory}")
            return matrix
        except LoadError as e:
            logger.info(f"Rebuilding matrix cache ({e})")
    matrix = build_matrix(corpus, config, group_by=group_by)
    save_matrix(matrix, directory, source_key=key)
    return matrix
