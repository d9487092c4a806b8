# tests/test_scoring.py

import numpy as np

from corpus_easy.scoring import csr_row_norms, pairwise_row_similarity, sparse_row_dot


class TestSparseRowDot:
    """Test the two-pointer sparse row kernel."""

    def test_identical_rows(self):
        idx = np.array([1, 5, 10], dtype=np.int64)
        vals = np.array([2.0, 1.0, 3.0])

        assert abs(sparse_row_dot(idx, vals, idx, vals) - 14.0) < 1e-9

    def test_partial_overlap(self):
        """Only shared feature indices contribute to the dot product."""
        a_idx = np.array([0, 3, 7], dtype=np.int64)
        a_vals = np.array([1.0, 2.0, 1.0])
        b_idx = np.array([3, 7, 9], dtype=np.int64)
        b_vals = np.array([4.0, 1.0, 5.0])

        assert abs(sparse_row_dot(a_idx, a_vals, b_idx, b_vals) - 9.0) < 1e-9  # 2*4 + 1*1

    def test_no_overlap(self):
        a_idx = np.array([0, 1], dtype=np.int64)
        b_idx = np.array([2, 3], dtype=np.int64)
        vals = np.array([1.0, 1.0])

        assert sparse_row_dot(a_idx, vals, b_idx, vals) == 0.0

    def test_empty_row(self):
        empty_idx = np.array([], dtype=np.int64)
        empty_vals = np.array([], dtype=np.float64)
        idx = np.array([2], dtype=np.int64)
        vals = np.array([3.0])

        assert sparse_row_dot(empty_idx, empty_vals, idx, vals) == 0.0


class TestCsrRowNorms:
    def test_norms(self):
        # rows: [3, 4], [], [0, 2]
        indptr = np.array([0, 2, 2, 3], dtype=np.int64)
        data = np.array([3.0, 4.0, 2.0])

        np.testing.assert_allclose(csr_row_norms(indptr, data), [5.0, 0.0, 2.0])


class TestPairwiseRowSimilarity:
    """Test the full row-by-row matrix."""

    def test_matches_dense_dot(self):
        # rows: [1, 0, 2], [0, 3, 0], [4, 0, 1]
        indptr = np.array([0, 2, 3, 5], dtype=np.int64)
        indices = np.array([0, 2, 1, 0, 2], dtype=np.int64)
        data = np.array([1.0, 2.0, 3.0, 4.0, 1.0])
        dense = np.array([[1.0, 0.0, 2.0], [0.0, 3.0, 0.0], [4.0, 0.0, 1.0]])

        out = pairwise_row_similarity(indptr, indices, data, False)
        np.testing.assert_allclose(out, dense @ dense.T)

    def test_cosine_matches_dense(self):
        indptr = np.array([0, 2, 3, 5], dtype=np.int64)
        indices = np.array([0, 2, 1, 0, 2], dtype=np.int64)
        data = np.array([1.0, 2.0, 3.0, 4.0, 1.0])
        dense = np.array([[1.0, 0.0, 2.0], [0.0, 3.0, 0.0], [4.0, 0.0, 1.0]])
        unit = dense / np.linalg.norm(dense, axis=1, keepdims=True)

        out = pairwise_row_similarity(indptr, indices, data, True)
        np.testing.assert_allclose(out, unit @ unit.T, atol=1e-12)

    def test_cosine_diagonal_and_symmetry(self):
        indptr = np.array([0, 2, 3], dtype=np.int64)
        indices = np.array([0, 1, 1], dtype=np.int64)
        data = np.array([3.0, 4.0, 2.0])

        out = pairwise_row_similarity(indptr, indices, data, True)
        np.testing.assert_allclose(np.diag(out), [1.0, 1.0])
        assert out[0, 1] == out[1, 0]
        assert abs(out[0, 1] - 0.8) < 1e-9

    def test_cosine_zero_row(self):
        """An all-zero row scores 0.0 against every row, itself included, rather than NaN."""
        indptr = np.array([0, 0, 1], dtype=np.int64)
        indices = np.array([2], dtype=np.int64)
        data = np.array([3.0])

        out = pairwise_row_similarity(indptr, indices, data, True)
        np.testing.assert_array_equal(out, [[0.0, 0.0], [0.0, 1.0]])
