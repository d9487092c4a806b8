# src/corpus_easy/wordcloud.py
"""
Word cloud layout and rendering.

Layout is a spiral search: words are placed largest first, each starting at a
jittered point near the centre and walking an Archimedean spiral until its
bounding box overlaps nothing already placed. All randomness comes from the
`seed` argument, so the same input always gives the same picture.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from matplotlib.figure import Figure

logger = logging.getLogger(__name__)

DEFAULT_PALETTE = ("#1b9e77", "#d95f02", "#7570b3", "#e7298a", "#66a61e")

# Rough glyph width relative to font size for a sans-serif font
CHAR_WIDTH = 0.6


@dataclass(frozen=True)
class PlacedWord:
    word: str
    count: float
    x: float
    y: float
    font_size: float
    width: float
    height: float
    color: str

    def overlaps(self, other: "PlacedWord") -> bool:
        return not (
            self.x + self.width <= other.x
            or other.x + other.width <= self.x
            or self.y + self.height <= other.y
            or other.y + other.height <= self.y
        )


def _font_sizes(counts: np.ndarray, min_font: float, max_font: float) -> np.ndarray:
    lo, hi = counts.min(), counts.max()
    if hi == lo:
        return np.full(len(counts), max_font)
    return min_font + (counts - lo) / (hi - lo) * (max_font - min_font)


def layout_wordcloud(
    pairs: Iterable[tuple[str, float]],
    *,
    palette: Sequence[str] = DEFAULT_PALETTE,
    seed: int | np.random.Generator = 0,
    max_words: int = 100,
    min_count: float = 1,
    min_font: float = 8.0,
    max_font: float = 48.0,
    width: float = 800.0,
    height: float = 400.0,
    max_steps: int = 2000,
) -> list[PlacedWord]:
    """
    Compute positions, sizes and colours for (feature, count) pairs.

    Args:
        pairs: (word, count) pairs, e.g. from `top_features`
        palette: Colours from most to least frequent; words are split into
            equal-sized rank buckets, one per colour
        seed: Seed or Generator driving the jitter
        max_words: Keep at most this many of the most frequent words
        min_count: Ignore words counted less than this
        min_font, max_font: Font size range in points
        width, height: Canvas size in points
        max_steps: Spiral steps tried per word before it is dropped

    Returns:
        Placed words, most frequent first; words that do not fit are dropped
    """
    if not palette:
        raise ValueError("palette must contain at least one colour")
    rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)

    words = sorted(((w, c) for w, c in pairs if c >= min_count), key=lambda p: (-p[1], p[0]))
    words = words[:max_words]
    if not words:
        return []

    counts = np.array([c for _, c in words], dtype=np.float64)
    sizes = _font_sizes(counts, min_font, max_font)

    placed: list[PlacedWord] = []
    for rank, ((word, count), size) in enumerate(zip(words, sizes)):
        color = palette[min(len(palette) - 1, rank * len(palette) // len(words))]
        w, h = len(word) * size * CHAR_WIDTH, float(size)
        cx = width / 2 + rng.uniform(-0.1, 0.1) * width
        cy = height / 2 + rng.uniform(-0.1, 0.1) * height
        theta0 = rng.uniform(0, 2 * math.pi)

        for step in range(max_steps):
            t = step * 0.1
            x = cx + 2.0 * t * math.cos(t + theta0) - w / 2
            y = cy + 2.0 * t * math.sin(t + theta0) - h / 2
            if x < 0 or y < 0 or x + w > width or y + h > height:
                continue
            candidate = PlacedWord(word, count, x, y, float(size), w, h, color)
            if not any(candidate.overlaps(p) for p in placed):
                placed.append(candidate)
                break
        else:
            logger.debug(f"No room for {word!r} after {max_steps} steps; dropped")

    logger.debug(f"Placed {len(placed)}/{len(words)} words")
    return placed


def render_wordcloud(
    pairs: Iterable[tuple[str, float]],
    path: str | Path | None = None,
    *,
    palette: Sequence[str] = DEFAULT_PALETTE,
    seed: int | np.random.Generator = 0,
    width: float = 800.0,
    height: float = 400.0,
    **layout_kwargs,
):
    """
    Draw a word cloud with matplotlib and optionally save it.

    Args:
        pairs: (word, count) pairs
        path: Output image path (PNG, SVG, ... by suffix); None only returns the figure
        palette, seed, width, height: See `layout_wordcloud`

    Returns:
        A matplotlib Figure, not registered with pyplot
    """
    placed = layout_wordcloud(
        pairs, palette=palette, seed=seed, width=width, height=height, **layout_kwargs
    )

    # One data unit == one point, so font sizes and boxes share a scale
    fig = Figure(figsize=(width / 72, height / 72), dpi=72)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_xlim(0, width)
    ax.set_ylim(0, height)
    ax.axis("off")
    for p in placed:
        ax.text(p.x, p.y, p.word, fontsize=p.font_size, color=p.color, ha="left", va="bottom")

    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path)
        logger.info(f"Wrote word cloud with {len(placed)} words to {path}")
    return fig
