# src/corpus_easy/config.py

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .analysis import CorpusAnalysis
from .corpus import Corpus
from .dictionary import Dictionary
from .loader import DocumentLoader
from .stopwords import resolve_stopwords
from .tokenizer import NormalizationConfig
from .wordcloud import DEFAULT_PALETTE

logger = logging.getLogger(__name__)

FIELD_TYPES = {"int": int, "float": float, "str": str}


def _build(cls, data: dict[str, Any] | None, section: str):
    data = dict(data or {})
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown key(s) in '{section}' config: {sorted(unknown)}")
    return cls(**data)


@dataclass
class LoaderConfig:
    directory: str = "."
    pattern: str = "*.pdf"
    delimiter: Optional[str] = None
    fields: Optional[list[str]] = None
    field_types: dict[str, str] = field(default_factory=dict)
    on_arity_error: str = "warn"
    on_load_error: str = "raise"
    num_workers: int = 1

    def resolved_field_types(self) -> dict[str, type]:
        resolved = {}
        for name, type_name in self.field_types.items():
            if type_name not in FIELD_TYPES:
                raise ValueError(
                    f"Unsupported type {type_name!r} for field {name!r}; expected one of {list(FIELD_TYPES)}"
                )
            resolved[name] = FIELD_TYPES[type_name]
        return resolved

    def build_loader(self, *, show_progress: bool = False) -> DocumentLoader:
        return DocumentLoader(
            self.directory,
            self.pattern,
            delimiter=self.delimiter,
            fields=self.fields,
            field_types=self.resolved_field_types(),
            on_arity_error=self.on_arity_error,
            on_load_error=self.on_load_error,
            num_workers=self.num_workers,
            show_progress=show_progress,
        )


@dataclass
class NormalizationSection:
    lowercase: bool = True
    strip_punctuation: bool = True
    strip_numbers: bool = False
    # Preset names, file paths, or inline word lists
    stopwords: list[Any] = field(default_factory=list)
    stem: bool = False
    language: str = "english"

    def to_config(self) -> NormalizationConfig:
        sources = [s if isinstance(s, str) else list(s) for s in self.stopwords]
        return NormalizationConfig(
            lowercase=self.lowercase,
            strip_punctuation=self.strip_punctuation,
            strip_numbers=self.strip_numbers,
            stopwords=resolve_stopwords(*sources),
            stem=self.stem,
            language=self.language,
        )


@dataclass
class AnalysisSection:
    group_by: Optional[str] = None
    top_n: int = 20
    kwic_window: int = 5
    cache_dir: Optional[str] = None


@dataclass
class WordCloudSection:
    palette: list[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    seed: int = 1234
    max_words: int = 100
    min_count: float = 1
    width: float = 800.0
    height: float = 400.0


@dataclass
class PipelineConfig:
    """
    Full pipeline configuration, usually read from YAML with `load_config`.

    Example:
        >>> cfg = load_config("analysis.yaml")
        >>> analysis = cfg.build_analysis()
        >>> analysis.top_features(cfg.analysis.top_n, group_by=cfg.analysis.group_by)
    """

    loader: LoaderConfig = field(default_factory=LoaderConfig)
    corpus_meta: dict[str, Any] = field(default_factory=dict)
    normalization: NormalizationSection = field(default_factory=NormalizationSection)
    analysis: AnalysisSection = field(default_factory=AnalysisSection)
    # Inline categories or a path to a YAML dictionary file
    dictionary: Optional[dict[str, Any] | str] = None
    dictionary_glob: bool = False
    wordcloud: WordCloudSection = field(default_factory=WordCloudSection)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PipelineConfig":
        data = dict(data or {})
        sections = {"loader", "corpus", "normalization", "analysis", "dictionary", "wordcloud"}
        unknown = set(data) - sections
        if unknown:
            raise ValueError(f"Unknown config section(s): {sorted(unknown)}")

        corpus = dict(data.get("corpus") or {})
        if set(corpus) - {"meta"}:
            raise ValueError(f"Unknown key(s) in 'corpus' config: {sorted(set(corpus) - {'meta'})}")

        dictionary = data.get("dictionary")
        glob = False
        if isinstance(dictionary, dict) and "categories" in dictionary:
            glob = bool(dictionary.get("glob", False))
            dictionary = dictionary["categories"]

        return cls(
            loader=_build(LoaderConfig, data.get("loader"), "loader"),
            corpus_meta=dict(corpus.get("meta") or {}),
            normalization=_build(NormalizationSection, data.get("normalization"), "normalization"),
            analysis=_build(AnalysisSection, data.get("analysis"), "analysis"),
            dictionary=dictionary,
            dictionary_glob=glob,
            wordcloud=_build(WordCloudSection, data.get("wordcloud"), "wordcloud"),
        )

    def build_corpus(self, *, show_progress: bool = False) -> Corpus:
        report = self.loader.build_loader(show_progress=show_progress).load()
        return Corpus(report.documents, meta=self.corpus_meta)

    def build_analysis(self, *, show_progress: bool = False) -> CorpusAnalysis:
        return CorpusAnalysis(
            self.build_corpus(show_progress=show_progress),
            self.normalization.to_config(),
            cache_dir=self.analysis.cache_dir,
        )

    def build_dictionary(self) -> Optional[Dictionary]:
        if self.dictionary is None:
            return None
        if isinstance(self.dictionary, str):
            return Dictionary.from_yaml(self.dictionary, glob=self.dictionary_glob)
        return Dictionary(self.dictionary, glob=self.dictionary_glob)


def load_config(path: str | Path) -> PipelineConfig:
    """Read a PipelineConfig from a YAML file."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    logger.debug(f"Loaded config from {path}")
    return PipelineConfig.from_dict(data)
