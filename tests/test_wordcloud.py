# tests/test_wordcloud.py

import pytest

from corpus_easy.wordcloud import layout_wordcloud, render_wordcloud

PAIRS = [
    ("oil", 40),
    ("spill", 25),
    ("dispersant", 18),
    ("surface", 12),
    ("fish", 9),
    ("bird", 9),
    ("skimming", 4),
    ("burning", 2),
    ("water", 1),
]


class TestLayout:
    """Test the spiral word cloud layout."""

    def test_same_seed_same_layout(self):
        assert layout_wordcloud(PAIRS, seed=7) == layout_wordcloud(PAIRS, seed=7)

    def test_no_overlaps_and_inside_canvas(self):
        placed = layout_wordcloud(PAIRS, seed=3, width=600, height=300)

        assert placed
        for i, a in enumerate(placed):
            assert 0 <= a.x and a.x + a.width <= 600
            assert 0 <= a.y and a.y + a.height <= 300
            for b in placed[i + 1 :]:
                assert not a.overlaps(b)

    def test_most_frequent_first_and_largest(self):
        placed = layout_wordcloud(PAIRS, seed=0)
        assert placed[0].word == "oil"
        assert placed[0].font_size == max(p.font_size for p in placed)

    def test_colour_buckets_follow_rank(self):
        placed = layout_wordcloud(PAIRS, seed=0, palette=["red", "blue", "grey"])
        assert placed[0].color == "red"
        assert {p.color for p in placed} <= {"red", "blue", "grey"}

    def test_filters(self):
        placed = layout_wordcloud(PAIRS, seed=0, max_words=3, min_count=20)
        assert [p.word for p in placed] == ["oil", "spill"]

    def test_equal_counts_use_max_font(self):
        placed = layout_wordcloud([("a", 2), ("b", 2)], seed=0, max_font=30)
        assert all(p.font_size == 30 for p in placed)

    def test_empty_input(self):
        assert layout_wordcloud([], seed=0) == []

    def test_empty_palette(self):
        with pytest.raises(ValueError):
            layout_wordcloud(PAIRS, palette=[])


class TestRender:
    """Test matplotlib rendering."""

    def test_writes_png(self, tmp_path):
        path = tmp_path / "out" / "cloud.png"
        render_wordcloud(PAIRS, path, seed=1, width=400, height=200)

        assert path.exists()
        assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_returns_figure_without_touching_backend(self):
        import matplotlib
        from matplotlib.figure import Figure

        backend = matplotlib.get_backend()
        fig = render_wordcloud(PAIRS, seed=0)

        assert isinstance(fig, Figure)
        assert "oil" in [t.get_text() for t in fig.axes[0].texts]
        assert matplotlib.get_backend() == backend
