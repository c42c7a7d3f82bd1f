"""
Purpose
-------
Score every document vector against every category center by cosine
similarity and return the result as a documents × categories table.

Key behaviors
-------------
- L2-normalize rows; rows with a zero or non-finite norm are reported as
  invalid instead of being divided by zero.
- Compute all pairwise dot products of the normalized rows in one matrix
  product.
- Propagate undefined inputs as NaN rows (documents) or NaN columns
  (categories) without raising.

Conventions
-----------
- Rows follow the input document order and columns the input category
  order; nothing is sorted.
- Values are clipped to [-1, 1] to absorb floating-point overshoot.
- The returned DataFrame index is named `doc_id`; column labels are the
  category labels.

Downstream usage
----------------
Call `cosine_similarity_matrix(document_vectors, category_centers)` with the
outputs of `ddr.vector_aggregation`, then export with
`ddr.ddr_export.export_similarity_matrix`.
"""

import numpy as np
import pandas as pd

from ddr.ddr_config import DOC_ID_COLUMN
from ddr.ddr_types import GroupVectors


def l2_normalize(matrix: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Divide each row by its Euclidean norm.

    Parameters
    ----------
    matrix : numpy.ndarray
        Array of shape `(n, dimension)`.

    Returns
    -------
    tuple[numpy.ndarray, numpy.ndarray]
        `(normalized, valid_mask)`: rows whose norm is zero or not finite are
        all-NaN in `normalized` and False in `valid_mask`.
    """

    norms: np.ndarray = np.linalg.norm(matrix, axis=1)
    valid_mask: np.ndarray = np.isfinite(norms) & (norms > 0.0)
    normalized: np.ndarray = np.full(matrix.shape, np.nan, dtype=np.float64)
    normalized[valid_mask] = matrix[valid_mask] / norms[valid_mask, np.newaxis]
    return normalized, valid_mask


def cosine_similarity_matrix(documents: GroupVectors, categories: GroupVectors) -> pd.DataFrame:
    """
    Compute the full documents × categories cosine similarity table.

    Parameters
    ----------
    documents : GroupVectors
        Document vectors (rows of the result).
    categories : GroupVectors
        Category centers (columns of the result).

    Returns
    -------
    pandas.DataFrame
        Similarities in [-1, 1]; NaN wherever the document vector or the
        category center is undefined or has zero norm.

    Raises
    ------
    ValueError
        If the two inputs have different dimensions.

    Notes
    -----
    - Invalid rows are zeroed before the matrix product and overwritten
      with NaN afterwards, so no NaN ever reaches the BLAS call.
    """

    if documents.dimension != categories.dimension:
        raise ValueError(
            f"Dimension mismatch: documents have {documents.dimension}, "
            f"categories have {categories.dimension}"
        )
    document_unit, document_valid = l2_normalize(documents.matrix)
    category_unit, category_valid = l2_normalize(categories.matrix)

    similarities: np.ndarray = np.nan_to_num(document_unit, nan=0.0) @ np.nan_to_num(
        category_unit, nan=0.0
    ).T
    np.clip(similarities, -1.0, 1.0, out=similarities)
    similarities[~document_valid, :] = np.nan
    similarities[:, ~category_valid] = np.nan

    return pd.DataFrame(
        similarities,
        index=pd.Index(list(documents.keys), name=DOC_ID_COLUMN),
        columns=list(categories.keys),
    )
