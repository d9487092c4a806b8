# src/corpus_easy/__init__.py

from .analysis import CorpusAnalysis
from .corpus import Corpus, DocumentSummary, Where
from .dictionary import Dictionary, lookup
from .document import Document
from .errors import (
    CorpusError,
    EmptyCorpusError,
    LoadError,
    MetadataArityError,
    MetadataFieldError,
    TypeMismatchError,
)
from .kwic import KwicRecord, kwic
from .loader import DocumentLoader, LoadReport, load_documents
from .matrix import FeatureMatrix, build_matrix, frequency_table, similarity, top_features
from .stopwords import resolve_stopwords
from .store import cached_build_matrix, load_matrix, save_matrix
from .tokenizer import NormalizationConfig, Tokenizer

__version__ = "0.1.0"
__all__ = [
    "Corpus",
    "CorpusAnalysis",
    "CorpusError",
    "Dictionary",
    "Document",
    "DocumentLoader",
    "DocumentSummary",
    "EmptyCorpusError",
    "FeatureMatrix",
    "KwicRecord",
    "LoadError",
    "LoadReport",
    "MetadataArityError",
    "MetadataFieldError",
    "NormalizationConfig",
    "Tokenizer",
    "TypeMismatchError",
    "Where",
    "build_matrix",
    "cached_build_matrix",
    "frequency_table",
    "kwic",
    "load_documents",
    "load_matrix",
    "lookup",
    "resolve_stopwords",
    "save_matrix",
    "similarity",
    "top_features",
]
