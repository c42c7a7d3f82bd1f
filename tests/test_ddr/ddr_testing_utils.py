"""
Purpose
-------
Shared fixtures-as-functions for the DDR test suite: the toy happy / sad /
glad scenario, an embedding-file writer, and in-memory table builders.

Key behaviors
-------------
- `write_embedding_file` writes GloVe-style lines under a pytest `tmp_path`.
- `make_table` builds an `EmbeddingTable` without touching the filesystem.
- `make_group_vectors` builds a `GroupVectors` from plain lists.

Conventions
-----------
- Toy vectors are two-dimensional so expected means and cosines can be
  written down by hand.

Downstream usage
----------------
`from tests.test_ddr.ddr_testing_utils import TOY_EMBEDDING_LINES, make_table`
"""

import math
import pathlib
from typing import Dict, List, Sequence

import numpy as np

from ddr.ddr_types import DictionaryPair, DocumentToken, EmbeddingTable, GroupVectors

TOY_EMBEDDING_LINES: List[str] = [
    "happy 1 0",
    "sad -1 0",
    "glad 0.9 0.1",
]
TOY_VECTORS: Dict[str, List[float]] = {
    "happy": [1.0, 0.0],
    "sad": [-1.0, 0.0],
    "glad": [0.9, 0.1],
}
TOY_DICTIONARY: List[DictionaryPair] = [
    ("happy", "joy"),
    ("glad", "joy"),
    ("sad", "sorrow"),
]
TOY_DOCUMENT_TOKENS: List[DocumentToken] = [
    ("d1", "happy"),
    ("d1", "glad"),
    ("d2", "sad"),
]
TOY_JOY_CENTER: List[float] = [0.95, 0.05]
# cos([0.95, 0.05], [-1, 0])
TOY_OPPOSITE_SIMILARITY: float = -0.95 / math.hypot(0.95, 0.05)


def write_embedding_file(
    tmp_path: pathlib.Path, lines: Sequence[str], name: str = "vectors.txt"
) -> pathlib.Path:
    """
    Write `lines` as a UTF-8 embedding file and return its path.
    """

    embedding_path: pathlib.Path = tmp_path / name
    embedding_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return embedding_path


def make_table(vectors: Dict[str, List[float]]) -> EmbeddingTable:
    dimension: int = len(next(iter(vectors.values())))
    return EmbeddingTable(
        vectors={token: np.array(values, dtype=np.float64) for token, values in vectors.items()},
        dimension=dimension,
    )


def make_group_vectors(
    rows: Dict[str, List[float]], undefined: Sequence[str] = ()
) -> GroupVectors:
    """
    Build a `GroupVectors` with `rows` in insertion order.

    Parameters
    ----------
    rows : dict[str, list[float]]
        Key → vector; use NaN entries for undefined rows.
    undefined : Sequence[str], default ()
        Keys to list as undefined.

    Returns
    -------
    GroupVectors
        The assembled vectors.
    """

    return GroupVectors(
        keys=tuple(rows),
        matrix=np.array(list(rows.values()), dtype=np.float64),
        undefined=tuple(undefined),
    )
