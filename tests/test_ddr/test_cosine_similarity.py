"""
Purpose
-------
Unit tests for `ddr.cosine_similarity`.

Key behaviors
-------------
- `l2_normalize` yields unit rows and flags zero-norm / non-finite rows.
- `cosine_similarity_matrix` reproduces the toy scenario, keeps input order,
  stays within [-1, 1], and turns undefined inputs into NaN without raising.

Conventions
-----------
- Inputs are hand-built `GroupVectors`; random vectors use a seeded
  `numpy.random.default_rng`.

Downstream usage
----------------
Run with `pytest -q tests/test_ddr`.
"""

import numpy as np
import pandas as pd
import pytest

from ddr.cosine_similarity import cosine_similarity_matrix, l2_normalize
from ddr.ddr_types import GroupVectors
from tests.test_ddr.ddr_testing_utils import (
    TOY_JOY_CENTER,
    TOY_OPPOSITE_SIMILARITY,
    make_group_vectors,
)


def toy_documents() -> GroupVectors:
    return make_group_vectors({"d1": TOY_JOY_CENTER, "d2": [-1.0, 0.0]})


def toy_categories() -> GroupVectors:
    return make_group_vectors({"joy": TOY_JOY_CENTER, "sorrow": [-1.0, 0.0]})


def test_l2_normalize_marks_invalid_rows() -> None:
    """
    Zero and non-finite rows become NaN and are flagged invalid.

    Returns
    -------
    None
    """

    normalized, valid_mask = l2_normalize(
        np.array([[3.0, 4.0], [0.0, 0.0], [np.nan, 1.0]])
    )
    np.testing.assert_allclose(normalized[0], [0.6, 0.8])
    assert np.isnan(normalized[1:]).all()
    assert valid_mask.tolist() == [True, False, False]


def test_l2_normalize_unit_self_dot() -> None:
    """
    Any non-zero vector dotted with itself after normalization gives 1.

    Returns
    -------
    None
    """

    rng: np.random.Generator = np.random.default_rng(42)
    matrix: np.ndarray = rng.normal(scale=50.0, size=(20, 100))
    normalized, valid_mask = l2_normalize(matrix)
    assert valid_mask.all()
    np.testing.assert_allclose(np.einsum("ij,ij->i", normalized, normalized), 1.0, atol=1e-6)


def test_cosine_similarity_matrix_toy_scenario() -> None:
    """
    d1 and d2 align with joy and sorrow and oppose the other category.

    Returns
    -------
    None
    """

    similarity: pd.DataFrame = cosine_similarity_matrix(toy_documents(), toy_categories())
    assert similarity.index.tolist() == ["d1", "d2"]
    assert similarity.index.name == "doc_id"
    assert similarity.columns.tolist() == ["joy", "sorrow"]
    assert similarity.loc["d1", "joy"] == pytest.approx(1.0)
    assert similarity.loc["d2", "sorrow"] == pytest.approx(1.0)
    assert similarity.loc["d1", "sorrow"] == pytest.approx(TOY_OPPOSITE_SIMILARITY)
    assert similarity.loc["d2", "joy"] == pytest.approx(TOY_OPPOSITE_SIMILARITY)
    assert similarity.loc["d1", "sorrow"] == pytest.approx(-0.9981, abs=1e-3)


def test_cosine_similarity_matrix_self_similarity() -> None:
    """
    Scoring a set of vectors against itself gives ones on the diagonal.

    Returns
    -------
    None
    """

    rng: np.random.Generator = np.random.default_rng(0)
    vectors: GroupVectors = GroupVectors(
        keys=("a", "b", "c"), matrix=rng.normal(size=(3, 50))
    )
    similarity: pd.DataFrame = cosine_similarity_matrix(vectors, vectors)
    np.testing.assert_allclose(np.diag(similarity.to_numpy()), 1.0, atol=1e-12)
    assert ((similarity.to_numpy() >= -1.0) & (similarity.to_numpy() <= 1.0)).all()


def test_cosine_similarity_matrix_undefined_inputs_are_nan() -> None:
    """
    Undefined documents give NaN rows, undefined or zero categories give NaN
    columns, and the remaining cells are unaffected.

    Returns
    -------
    None
    """

    documents: GroupVectors = make_group_vectors(
        {"d1": TOY_JOY_CENTER, "d2": [np.nan, np.nan]}, undefined=["d2"]
    )
    categories: GroupVectors = make_group_vectors(
        {"joy": TOY_JOY_CENTER, "anger": [np.nan, np.nan], "zeroed": [0.0, 0.0]},
        undefined=["anger"],
    )
    similarity: pd.DataFrame = cosine_similarity_matrix(documents, categories)
    assert similarity.shape == (2, 3)
    assert similarity.loc["d2"].isna().all()
    assert similarity["anger"].isna().all()
    assert similarity["zeroed"].isna().all()
    assert similarity.loc["d1", "joy"] == pytest.approx(1.0)


def test_cosine_similarity_matrix_dimension_mismatch() -> None:
    categories: GroupVectors = make_group_vectors({"joy": [1.0, 0.0, 0.0]})
    with pytest.raises(ValueError, match="Dimension mismatch"):
        cosine_similarity_matrix(toy_documents(), categories)
