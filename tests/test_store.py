# tests/test_store.py

import logging

import numpy as np
import pytest

from corpus_easy import Corpus, Document, LoadError, NormalizationConfig, build_matrix, cached_build_matrix
from corpus_easy.store import COUNTS_FILE, MANIFEST_FILE, load_matrix, matrix_source_key, save_matrix


class TestMatrixCache:
    """Test saving and loading cached matrices."""

    def test_save_and_load(self, year_corpus, tmp_path):
        """A grouped matrix comes back with the same cells, labels and docvars."""
        m = build_matrix(year_corpus, group_by="Year")
        manifest = save_matrix(m, tmp_path / "cache")

        assert (tmp_path / "cache" / COUNTS_FILE).exists()
        assert (tmp_path / "cache" / MANIFEST_FILE).exists()
        assert len(manifest.counts_sha256) == 64

        loaded = load_matrix(tmp_path / "cache")
        assert loaded.row_names == m.row_names
        assert loaded.features == m.features
        assert loaded.row_metadata == ({"Author": "Smith", "Year": 2015}, {"Year": 2017}, {"Author": "Kim", "Year": 2019})
        np.testing.assert_array_equal(loaded.to_dense(), m.to_dense())

    def test_weighting_preserved(self, year_corpus, tmp_path):
        save_matrix(build_matrix(year_corpus).weight("prop"), tmp_path)
        assert load_matrix(tmp_path).weighting == "prop"

    def test_missing_cache(self, tmp_path):
        with pytest.raises(LoadError, match="no cached matrix"):
            load_matrix(tmp_path)

    def test_tampered_counts(self, year_corpus, tmp_path):
        """A counts file that no longer matches the manifest hash is rejected."""
        save_matrix(build_matrix(year_corpus), tmp_path)
        with open(tmp_path / COUNTS_FILE, "ab") as f:
            f.write(b"\x00")

        with pytest.raises(LoadError, match="hash"):
            load_matrix(tmp_path)

    def test_source_key_mismatch(self, year_corpus, tmp_path):
        save_matrix(build_matrix(year_corpus), tmp_path, source_key="abc")

        assert load_matrix(tmp_path, source_key="abc") == build_matrix(year_corpus)
        with pytest.raises(LoadError, match="different inputs"):
            load_matrix(tmp_path, source_key="xyz")


class TestSourceKey:
    """Test the fingerprint that guards cache reuse."""

    def test_stable(self, year_corpus):
        cfg = NormalizationConfig(stopwords=frozenset({"the", "of", "and"}))
        assert matrix_source_key(year_corpus, cfg) == matrix_source_key(year_corpus, cfg)

    def test_changes_with_inputs(self, year_corpus):
        base = matrix_source_key(year_corpus, NormalizationConfig())
        edited = Corpus([year_corpus[0].replace_metadata({"Year": 1999}), *year_corpus.documents[1:]])

        assert matrix_source_key(year_corpus, NormalizationConfig(stem=True)) != base
        assert matrix_source_key(year_corpus, NormalizationConfig(), group_by="Year") != base
        assert matrix_source_key(year_corpus.subset(lambda d: d.doc_id != "d.txt"), NormalizationConfig()) != base
        assert matrix_source_key(edited, NormalizationConfig()) != base


class TestCachedBuildMatrix:
    """Test load-or-build through a cache directory."""

    def test_builds_then_reuses(self, year_corpus, tmp_path, caplog):
        cfg = NormalizationConfig()
        first = cached_build_matrix(year_corpus, cfg, tmp_path, group_by="Year")
        assert (tmp_path / MANIFEST_FILE).exists()

        with caplog.at_level(logging.INFO, logger="corpus_easy.store"):
            second = cached_build_matrix(year_corpus, cfg, tmp_path, group_by="Year")

        assert second == first == build_matrix(year_corpus, cfg, group_by="Year")
        assert "Using cached matrix" in caplog.text

    def test_rebuilds_for_other_corpus(self, year_corpus, tmp_path):
        cfg = NormalizationConfig()
        cached_build_matrix(year_corpus, cfg, tmp_path)
        other = Corpus([Document("e.txt", "whale whale oil")])

        m = cached_build_matrix(other, cfg, tmp_path)

        assert m.row_names == ("e.txt",)
        assert load_matrix(tmp_path).features == ("oil", "whale")

    def test_rebuilds_after_tampering(self, year_corpus, tmp_path):
        cfg = NormalizationConfig()
        expected = cached_build_matrix(year_corpus, cfg, tmp_path)
        with open(tmp_path / COUNTS_FILE, "ab") as f:
            f.write(b"\x00")

        assert cached_build_matrix(year_corpus, cfg, tmp_path) == expected
        assert load_matrix(tmp_path) == expected
