# tests/test_matrix.py

import numpy as np
import pytest

from corpus_easy import (
    Corpus,
    Document,
    EmptyCorpusError,
    MetadataFieldError,
    NormalizationConfig,
    build_matrix,
    frequency_table,
    similarity,
    top_features,
)
from corpus_easy.matrix import FeatureMatrix


class TestBuildMatrix:
    """Test document-by-feature counting."""

    def test_rows_and_sorted_columns(self, year_corpus):
        m = build_matrix(year_corpus)

        assert m.row_names == ("a.txt", "b.txt", "c.txt", "d.txt")
        assert m.features == ("bird", "dispersant", "fish", "oil", "spill")
        np.testing.assert_array_equal(
            m.to_dense(),
            np.array(
                [
                    [0, 0, 1, 2, 1],
                    [2, 0, 0, 1, 0],
                    [1, 0, 1, 0, 1],
                    [0, 1, 0, 1, 0],
                ]
            ),
        )
        assert m.counts.dtype == np.int64

    def test_row_metadata_carried(self, year_corpus):
        m = build_matrix(year_corpus)
        assert m.row_metadata[0]["Author"] == "Smith"

    def test_normalization_applies(self, year_corpus):
        m = build_matrix(year_corpus, NormalizationConfig(stopwords=frozenset({"oil"})))
        assert "oil" not in m.features

    def test_empty_corpus_raises(self):
        with pytest.raises(EmptyCorpusError):
            build_matrix(Corpus([]))

    def test_all_tokens_removed(self):
        """A corpus whose tokens are all filtered yields zero columns, not an error."""
        m = build_matrix(Corpus([Document("d", "the the")]), NormalizationConfig(stopwords=frozenset({"the"})))
        assert m.shape == (1, 0)
        assert top_features(m, 5) == []

    def test_deterministic(self, year_corpus):
        assert build_matrix(year_corpus) == build_matrix(year_corpus)

    def test_equality_compares_cells_and_labels(self, year_corpus):
        m = build_matrix(year_corpus)
        assert m != m.remove(["oil"])
        assert m != m.weight("prop")
        assert m != build_matrix(year_corpus, group_by="Year")
        assert m != "not a matrix"
        with pytest.raises(TypeError):
            hash(m)

    def test_column_and_to_dict(self, year_corpus):
        m = build_matrix(year_corpus)
        np.testing.assert_array_equal(m.column("bird"), [0, 2, 1, 0])
        np.testing.assert_array_equal(m.column("whale"), [0, 0, 0, 0])
        assert m.to_dict()["d.txt"] == {"dispersant": 1, "oil": 1}


class TestGrouping:
    """Test pooling rows by a grouping key."""

    def test_group_by_field(self, year_corpus):
        m = build_matrix(year_corpus, group_by="Year")

        assert m.row_names == ("2015", "2017", "2019")
        assert m.to_dict()["2017"] == {"bird": 3, "fish": 1, "oil": 1, "spill": 1}
        assert m.row_metadata[1] == {"Year": 2017}
        assert m.features == build_matrix(year_corpus).features

    def test_group_by_callable(self, year_corpus):
        m = build_matrix(year_corpus, group_by=lambda doc: doc.metadata["Year"] >= 2017)

        assert m.row_names == ("False", "True")
        np.testing.assert_array_equal(m.totals(), build_matrix(year_corpus).totals())

    def test_group_missing_field(self, year_corpus):
        with pytest.raises(MetadataFieldError):
            build_matrix(year_corpus, group_by="Journal")

    def test_regroup_existing_matrix(self, year_corpus):
        m = build_matrix(year_corpus).group("Year")
        assert m.row_names == ("2015", "2017", "2019")


class TestTopFeatures:
    """Test ordering of the most frequent features."""

    def test_order_and_ties(self, year_corpus):
        """Count descending, ties broken lexically."""
        # totals: bird 3, dispersant 1, fish 2, oil 4, spill 2
        assert top_features(build_matrix(year_corpus), 4) == [
            ("oil", 4),
            ("bird", 3),
            ("fish", 2),
            ("spill", 2),
        ]

    @pytest.mark.parametrize("n", [0, 1, 5, 50])
    def test_length(self, year_corpus, n):
        m = build_matrix(year_corpus)
        assert len(top_features(m, n)) == min(n, len(m.features))

    def test_negative_n(self, year_corpus):
        with pytest.raises(ValueError):
            top_features(build_matrix(year_corpus), -1)

    def test_no_rows(self):
        empty = FeatureMatrix(
            counts=build_matrix(Corpus([Document("d", "x")])).counts[:0],
            row_names=(),
            features=("x",),
        )
        with pytest.raises(EmptyCorpusError):
            top_features(empty, 3)

    def test_frequency_table(self, year_corpus):
        table = frequency_table(build_matrix(year_corpus))

        assert [(r.feature, r.frequency, r.rank, r.docfreq) for r in table] == [
            ("oil", 4, 1, 3),
            ("bird", 3, 2, 2),
            ("fish", 2, 3, 2),
            ("spill", 2, 3, 2),
            ("dispersant", 1, 5, 1),
        ]


class TestTrimAndWeight:
    """Test feature selection and weighting."""

    def test_trim(self, year_corpus):
        m = build_matrix(year_corpus).trim(min_count=2, min_docfreq=2)
        assert m.features == ("bird", "fish", "oil", "spill")

    def test_select_and_remove(self, year_corpus):
        m = build_matrix(year_corpus)
        assert m.select(["oil", "fish", "whale"]).features == ("fish", "oil")
        assert m.remove(["oil"]).features == ("bird", "dispersant", "fish", "spill")

    def test_prop_rows_sum_to_one(self, year_corpus):
        m = build_matrix(year_corpus).weight("prop")
        np.testing.assert_allclose(m.to_dense().sum(axis=1), np.ones(4))
        assert m.weighting == "prop"

    def test_tfidf(self, year_corpus):
        m = build_matrix(year_corpus).weight("tfidf")
        # dispersant: count 1, docfreq 1 of 4 rows
        assert m.column("dispersant")[3] == pytest.approx(np.log10(4))
        # oil appears in 3 of 4 rows, twice in a.txt
        assert m.column("oil")[0] == pytest.approx(2 * np.log10(4 / 3))

    def test_unknown_scheme(self, year_corpus):
        with pytest.raises(ValueError):
            build_matrix(year_corpus).weight("bm25")

    def test_double_weighting_rejected(self, year_corpus):
        with pytest.raises(ValueError):
            build_matrix(year_corpus).weight("prop").weight("tfidf")


class TestSimilarity:
    """Test row similarity through the numba kernel."""

    def test_identical_rows(self):
        corpus = Corpus([Document("a", "oil spill"), Document("b", "spill oil"), Document("c", "fish")])
        scores = similarity(build_matrix(corpus))

        assert scores.shape == (3, 3)
        assert scores[0, 1] == pytest.approx(1.0)
        assert scores[0, 2] == 0.0
        np.testing.assert_allclose(scores, scores.T)

    def test_dot_product(self, year_corpus):
        dense = build_matrix(year_corpus).to_dense().astype(float)
        scores = similarity(build_matrix(year_corpus), method="dot")
        np.testing.assert_allclose(scores, dense @ dense.T)

    def test_unknown_method(self, year_corpus):
        with pytest.raises(ValueError):
            similarity(build_matrix(year_corpus), method="jaccard")
