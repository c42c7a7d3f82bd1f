"""
Purpose
-------
Write DDR artifacts (category centers, document vectors, similarity matrix)
as flat tables for the plotting and hypothesis-testing notebooks.

Key behaviors
-------------
- Render `GroupVectors` as wide tables (`dim_1 ... dim_D`) keyed by
  category or doc_id.
- Write the similarity matrix row-major: a header row of category labels
  and a leading `doc_id` column.
- Choose CSV or Parquet from the file suffix; parent directories are
  created on demand.

Conventions
-----------
- Undefined values are written as empty CSV cells / Parquet nulls.
- Column order and row order are exactly those of the in-memory objects.

Downstream usage
----------------
Call `export_ddr_artifacts(category_centers, document_vectors,
similarity_matrix, output_dir)` at the end of a pipeline run, or the
individual `export_*` helpers from notebooks.
"""

from pathlib import Path

import pandas as pd

from ddr.ddr_config import (
    CATEGORY_CENTERS_FILE_NAME,
    CATEGORY_COLUMN,
    DOC_ID_COLUMN,
    DOCUMENT_VECTORS_FILE_NAME,
    SIMILARITY_MATRIX_FILE_NAME,
)
from ddr.ddr_types import GroupVectors


def write_table(frame: pd.DataFrame, path: str | Path) -> Path:
    """
    Write `frame` (index included) as CSV, or Parquet when the suffix is `.parquet`.

    Parameters
    ----------
    frame : pandas.DataFrame
        Table to write; its named index becomes the leading column.
    path : str or pathlib.Path
        Destination file.

    Returns
    -------
    pathlib.Path
        The path written.

    Raises
    ------
    OSError
        If the directory cannot be created or the file cannot be written.
    """

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".parquet":
        frame.reset_index().to_parquet(path, index=False)
    else:
        frame.to_csv(path, index=True)
    return path


def export_group_vectors(vectors: GroupVectors, path: str | Path, index_name: str) -> Path:
    return write_table(vectors.to_frame(index_name), path)


def export_similarity_matrix(similarity_matrix: pd.DataFrame, path: str | Path) -> Path:
    """
    Write the documents × categories table with a leading `doc_id` column.

    Parameters
    ----------
    similarity_matrix : pandas.DataFrame
        Output of `ddr.cosine_similarity.cosine_similarity_matrix`.
    path : str or pathlib.Path
        Destination file (`.csv` or `.parquet`).

    Returns
    -------
    pathlib.Path
        The path written.
    """

    frame: pd.DataFrame = similarity_matrix.copy()
    frame.index.name = DOC_ID_COLUMN
    frame.columns = [str(column) for column in frame.columns]
    return write_table(frame, path)


def export_ddr_artifacts(
    category_centers: GroupVectors,
    document_vectors: GroupVectors,
    similarity_matrix: pd.DataFrame,
    output_dir: str | Path,
) -> dict[str, Path]:
    """
    Write all three DDR tables into `output_dir` under their default names.

    Returns
    -------
    dict[str, pathlib.Path]
        Mapping of artifact name to written path.
    """

    output_dir = Path(output_dir)
    return {
        "category_centers": export_group_vectors(
            category_centers, output_dir / CATEGORY_CENTERS_FILE_NAME, CATEGORY_COLUMN
        ),
        "document_vectors": export_group_vectors(
            document_vectors, output_dir / DOCUMENT_VECTORS_FILE_NAME, DOC_ID_COLUMN
        ),
        "similarity_matrix": export_similarity_matrix(
            similarity_matrix, output_dir / SIMILARITY_MATRIX_FILE_NAME
        ),
    }
