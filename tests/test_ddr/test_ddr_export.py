"""
Purpose
-------
Unit tests for `ddr.ddr_export`.

Key behaviors
-------------
- Group vectors are written as `dim_1 ... dim_D` tables keyed by category
  or doc_id.
- The similarity matrix is written with a leading `doc_id` column and one
  column per category, in memory order.
- The suffix selects CSV or Parquet; parent directories are created.

Conventions
-----------
- Every file lives under `tmp_path` and is read back with pandas.

Downstream usage
----------------
Run with `pytest -q tests/test_ddr`.
"""

import pathlib

import numpy as np
import pandas as pd

from ddr.ddr_export import export_ddr_artifacts, export_group_vectors, export_similarity_matrix
from ddr.ddr_types import GroupVectors
from tests.test_ddr.ddr_testing_utils import make_group_vectors


def toy_similarity() -> pd.DataFrame:
    return pd.DataFrame(
        [[1.0, -0.5], [np.nan, np.nan]],
        index=pd.Index(["d1", "d2"], name="doc_id"),
        columns=["sorrow", "joy"],
    )


def test_export_similarity_matrix_csv(tmp_path: pathlib.Path) -> None:
    """
    The CSV keeps row order, column order, and undefined cells.

    Parameters
    ----------
    tmp_path : pathlib.Path
        Output directory.

    Returns
    -------
    None
    """

    written: pathlib.Path = export_similarity_matrix(
        toy_similarity(), tmp_path / "nested" / "similarity.csv"
    )
    assert written.exists()
    header: str = written.read_text(encoding="utf-8").splitlines()[0]
    assert header == "doc_id,sorrow,joy"

    reread: pd.DataFrame = pd.read_csv(written, index_col="doc_id")
    assert reread.index.tolist() == ["d1", "d2"]
    assert reread.loc["d1", "joy"] == -0.5
    assert reread.loc["d2"].isna().all()


def test_export_similarity_matrix_parquet(tmp_path: pathlib.Path) -> None:
    """
    A `.parquet` suffix writes Parquet with `doc_id` as a regular column.

    Parameters
    ----------
    tmp_path : pathlib.Path
        Output directory.

    Returns
    -------
    None
    """

    written: pathlib.Path = export_similarity_matrix(toy_similarity(), tmp_path / "similarity.parquet")
    reread: pd.DataFrame = pd.read_parquet(written)
    assert reread.columns.tolist() == ["doc_id", "sorrow", "joy"]
    assert reread["doc_id"].tolist() == ["d1", "d2"]


def test_export_group_vectors_csv(tmp_path: pathlib.Path) -> None:
    """
    Category centers are written as one `dim_i` column per dimension.

    Parameters
    ----------
    tmp_path : pathlib.Path
        Output directory.

    Returns
    -------
    None
    """

    centers: GroupVectors = make_group_vectors({"joy": [0.95, 0.05], "sorrow": [-1.0, 0.0]})
    written: pathlib.Path = export_group_vectors(centers, tmp_path / "centers.csv", "category")
    reread: pd.DataFrame = pd.read_csv(written, index_col="category")
    assert reread.columns.tolist() == ["dim_1", "dim_2"]
    np.testing.assert_allclose(reread.loc["joy"].to_numpy(), [0.95, 0.05])


def test_export_ddr_artifacts(tmp_path: pathlib.Path) -> None:
    """
    All three tables land in the output directory under their default names.

    Parameters
    ----------
    tmp_path : pathlib.Path
        Output directory root.

    Returns
    -------
    None
    """

    centers: GroupVectors = make_group_vectors({"sorrow": [-1.0, 0.0], "joy": [0.95, 0.05]})
    documents: GroupVectors = make_group_vectors({"d1": [0.95, 0.05], "d2": [np.nan, np.nan]})
    written: dict[str, pathlib.Path] = export_ddr_artifacts(
        centers, documents, toy_similarity(), tmp_path / "ddr_results"
    )
    assert set(written) == {"category_centers", "document_vectors", "similarity_matrix"}
    assert all(path.exists() for path in written.values())
    assert written["similarity_matrix"].name == "similarity_matrix.csv"
    assert pd.read_csv(written["document_vectors"]).columns[0] == "doc_id"
