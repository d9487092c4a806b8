"""
Rich-based command line interface for corpus analysis.

Usage:
    python -m corpus_easy.console top --directory ./papers --delimiter _ --fields First_author,Year
or (with the console script):
    corpus-easy --config analysis.yaml kwic dispersant --window 4
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from .analysis import CorpusAnalysis
from .config import FIELD_TYPES, PipelineConfig, load_config
from .corpus import DocumentSummary
from .dictionary import Dictionary
from .errors import CorpusError
from .kwic import KwicRecord
from .matrix import FeatureMatrix
from .wordcloud import render_wordcloud

THEME = Theme(
    {
        "banner": "bold cyan",
        "hint": "dim",
        "error": "bold red",
        "meta": "cyan",
        "count": "bold yellow",
        "keyword": "bold magenta",
    }
)

console = Console(theme=THEME)
logger = logging.getLogger(__name__)


def render_summary(rows: list[DocumentSummary]) -> None:
    fields = sorted({f for r in rows for f in r.metadata})
    table = Table(show_header=True, header_style="bold", box=box.SIMPLE_HEAVY)
    table.add_column("Document", style="bold")
    table.add_column("Types", justify="right", style="count")
    table.add_column("Tokens", justify="right", style="count")
    table.add_column("Sentences", justify="right", style="count")
    for f in fields:
        table.add_column(f, style="meta")
    for r in rows:
        table.add_row(
            r.doc_id,
            str(r.types),
            str(r.tokens),
            str(r.sentences),
            *(str(r.metadata.get(f, "")) for f in fields),
        )
    console.print(Panel(table, title=f" Corpus summary ({len(rows)} documents) ", border_style="banner"))


def render_top(pairs: list[tuple[str, object]], title: str) -> None:
    table = Table(show_header=True, header_style="bold", box=box.SIMPLE)
    table.add_column("#", style="dim", width=4)
    table.add_column("Feature", style="bold")
    table.add_column("Count", justify="right", style="count")
    for i, (feature, count) in enumerate(pairs, 1):
        table.add_row(str(i), feature, f"{count:g}" if isinstance(count, float) else str(count))
    console.print(Panel(table, title=title, border_style="banner"))


def render_kwic(records: list[KwicRecord], term: str) -> None:
    if not records:
        console.print(Panel(f"No matches for {term!r}", border_style="error"))
        return
    table = Table(show_header=True, header_style="bold", box=box.SIMPLE, expand=True)
    table.add_column("Document", style="meta")
    table.add_column("Pos", justify="right", style="dim")
    table.add_column("Pre", justify="right", ratio=2)
    table.add_column("Keyword", justify="center", style="keyword")
    table.add_column("Post", ratio=2)
    for r in records:
        table.add_row(r.doc_id, str(r.position), r.pre, r.keyword, r.post)
    console.print(Panel(table, title=f" {len(records)} match(es) for {term!r} ", border_style="keyword"))


def render_matrix(matrix: FeatureMatrix, title: str) -> None:
    table = Table(show_header=True, header_style="bold", box=box.SIMPLE_HEAVY)
    table.add_column("Row", style="bold")
    for feature in matrix.features:
        table.add_column(feature, justify="right", style="count")
    for name, row in zip(matrix.row_names, matrix.to_dense()):
        table.add_row(name, *(f"{v:g}" for v in row))
    console.print(Panel(table, title=title, border_style="banner"))


def _parse_field_types(items: Sequence[str]) -> dict[str, str]:
    parsed = {}
    for item in items:
        name, sep, type_name = item.partition("=")
        if not sep or type_name not in FIELD_TYPES:
            raise argparse.ArgumentTypeError(
                f"--field-type expects NAME=TYPE with TYPE in {list(FIELD_TYPES)}, got {item!r}"
            )
        parsed[name] = type_name
    return parsed


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    """Load the YAML config (if any) and apply command line overrides."""
    cfg = load_config(args.config) if args.config else PipelineConfig()
    if args.directory is not None:
        cfg.loader.directory = args.directory
    if args.pattern is not None:
        cfg.loader.pattern = args.pattern
    if args.delimiter is not None:
        cfg.loader.delimiter = args.delimiter
    if args.fields is not None:
        cfg.loader.fields = [f.strip() for f in args.fields.split(",") if f.strip()]
    if args.field_type:
        cfg.loader.field_types.update(_parse_field_types(args.field_type))
    if args.workers is not None:
        cfg.loader.num_workers = args.workers
    if args.stopwords:
        cfg.normalization.stopwords.extend(args.stopwords)
    if args.stem:
        cfg.normalization.stem = True
    if args.group_by is not None:
        cfg.analysis.group_by = args.group_by
    if args.cache is not None:
        cfg.analysis.cache_dir = args.cache
    return cfg


def cmd_summary(analysis: CorpusAnalysis, cfg: PipelineConfig, args: argparse.Namespace) -> None:
    render_summary(analysis.summary())


def cmd_top(analysis: CorpusAnalysis, cfg: PipelineConfig, args: argparse.Namespace) -> None:
    n = args.n if args.n is not None else cfg.analysis.top_n
    group_by = cfg.analysis.group_by
    if group_by is None:
        render_top(analysis.top_features(n), title=f" Top {n} features ")
        return
    matrix = analysis.matrix(group_by=group_by)
    for r, name in enumerate(matrix.row_names):
        render_top(_top_of_row(matrix, r, n), title=f" Top {n} features: {group_by}={name} ")


def _top_of_row(matrix: FeatureMatrix, row: int, n: int) -> list[tuple[str, object]]:
    values = matrix.counts[row].toarray().ravel()
    nonzero = (i for i in range(len(values)) if values[i] > 0)
    order = sorted(nonzero, key=lambda i: (-values[i], matrix.features[i]))
    return [(matrix.features[i], values[i].item()) for i in order[:n]]


def cmd_kwic(analysis: CorpusAnalysis, cfg: PipelineConfig, args: argparse.Namespace) -> None:
    window = args.window if args.window is not None else cfg.analysis.kwic_window
    render_kwic(analysis.kwic(args.term, window), args.term)


def cmd_lookup(analysis: CorpusAnalysis, cfg: PipelineConfig, args: argparse.Namespace) -> None:
    dictionary = Dictionary.from_yaml(args.dictionary) if args.dictionary else cfg.build_dictionary()
    if dictionary is None:
        raise SystemExit("lookup needs a dictionary: pass --dictionary or set 'dictionary' in the config")
    matrix = analysis.lookup(dictionary, group_by=cfg.analysis.group_by)
    render_matrix(matrix, title=" Dictionary counts ")


def cmd_wordcloud(analysis: CorpusAnalysis, cfg: PipelineConfig, args: argparse.Namespace) -> None:
    wc = cfg.wordcloud
    seed = args.seed if args.seed is not None else wc.seed
    pairs = analysis.top_features(wc.max_words)
    render_wordcloud(
        pairs,
        args.output,
        palette=wc.palette,
        seed=seed,
        max_words=wc.max_words,
        min_count=wc.min_count,
        width=wc.width,
        height=wc.height,
    )
    console.print(f"[hint]Wrote {args.output}[/hint]")


def cmd_similarity(analysis: CorpusAnalysis, cfg: PipelineConfig, args: argparse.Namespace) -> None:
    matrix = analysis.matrix(group_by=cfg.analysis.group_by)
    scores = analysis.similarity(args.method, group_by=cfg.analysis.group_by)
    table = Table(show_header=True, header_style="bold", box=box.SIMPLE_HEAVY)
    table.add_column("", style="bold")
    for name in matrix.row_names:
        table.add_column(name, justify="right", style="count")
    for name, row in zip(matrix.row_names, scores):
        table.add_row(name, *(f"{v:.3f}" for v in row))
    console.print(Panel(table, title=f" {args.method} similarity ", border_style="banner"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="corpus-easy",
        description="Descriptive text analysis of a directory of documents.",
    )
    parser.add_argument("-c", "--config", help="YAML pipeline configuration.")
    parser.add_argument("-d", "--directory", help="Directory of source documents.")
    parser.add_argument("--pattern", help="File glob inside the directory (default: *.pdf).")
    parser.add_argument("--delimiter", help="File-name delimiter for metadata fields.")
    parser.add_argument("--fields", help="Comma-separated metadata field names, e.g. First_author,Year.")
    parser.add_argument(
        "--field-type",
        action="append",
        default=[],
        metavar="NAME=TYPE",
        help="Convert a metadata field (int, float, str). Repeatable.",
    )
    parser.add_argument("--workers", type=int, help="Threads used to extract text.")
    parser.add_argument(
        "--stopwords",
        action="append",
        default=[],
        help="Stopword preset ('smart', 'nltk:english') or word-list file. Repeatable.",
    )
    parser.add_argument("--stem", action="store_true", help="Stem tokens (Snowball).")
    parser.add_argument("--group-by", help="Metadata field to pool documents by.")
    parser.add_argument("--cache", metavar="DIR", help="Reuse or write the feature matrix cache in DIR.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_summary = subparsers.add_parser("summary", help="Per-document token/type/sentence counts.")
    p_summary.set_defaults(func=cmd_summary)

    p_top = subparsers.add_parser("top", help="Most frequent features.")
    p_top.add_argument("-n", type=int, help="Number of features (default: config top_n).")
    p_top.set_defaults(func=cmd_top)

    p_kwic = subparsers.add_parser("kwic", help="Keyword in context.")
    p_kwic.add_argument("term", help="Search term or quoted phrase.")
    p_kwic.add_argument("--window", type=int, help="Context tokens on each side.")
    p_kwic.set_defaults(func=cmd_kwic)

    p_lookup = subparsers.add_parser("lookup", help="Dictionary category counts.")
    p_lookup.add_argument("--dictionary", help="YAML dictionary file.")
    p_lookup.set_defaults(func=cmd_lookup)

    p_wc = subparsers.add_parser("wordcloud", help="Render a word cloud image.")
    p_wc.add_argument("output", help="Output image path, e.g. cloud.png.")
    p_wc.add_argument("--seed", type=int, help="Layout seed (default: config seed).")
    p_wc.set_defaults(func=cmd_wordcloud)

    p_sim = subparsers.add_parser("similarity", help="Row-by-row similarity.")
    p_sim.add_argument("--method", choices=("cosine", "dot"), default="cosine")
    p_sim.set_defaults(func=cmd_similarity)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_time=False)],
    )

    try:
        cfg = resolve_config(args)
        analysis = cfg.build_analysis(show_progress=True)
        args.func(analysis, cfg, args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except (CorpusError, ValueError) as e:
        console.print(f"[error]{type(e).__name__}: {e}[/error]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
