"""
Purpose
-------
Provide the shared records, type aliases, and exceptions passed between the
stages of the DDR pipeline.

Key behaviors
-------------
- `EmbeddingTable` holds the vocabulary-restricted word vectors with
  read-only arrays and remembers which tokens were zero-filled.
- `LoadReport` summarizes one streaming pass over an embedding file.
- `GroupVectors` holds per-category or per-document mean vectors in input
  order, plus the keys whose vector is undefined.
- `PipelineStageError` / `EmbeddingLoadError` carry the stage and input
  that caused a fatal condition.

Conventions
-----------
- Vectors are `numpy.float64` arrays of shape `(dimension,)`.
- An undefined vector is all-NaN; a zero vector is always a legitimate value.
- `DictionaryPair` is `(token, category)`; `DocumentToken` is
  `(doc_id, token)`.

Downstream usage
----------------
Import these records from every `ddr` module instead of passing bare dicts
or tuples across stage boundaries.
"""

from dataclasses import dataclass, field
from typing import Iterator, Mapping, Sequence, TypeAlias

import numpy as np
import pandas as pd

Vocabulary: TypeAlias = frozenset[str]
DictionaryPair: TypeAlias = tuple[str, str]
DictionaryPairs: TypeAlias = Sequence[DictionaryPair]
DocumentToken: TypeAlias = tuple[str, str]


class PipelineStageError(RuntimeError):
    """
    Fatal pipeline condition tied to a named stage and input.

    Parameters
    ----------
    stage : str
        Stage that could not produce a usable output.
    source : str
        Input that caused it (a path or a short description).
    message : str
        Human-readable diagnostic.
    """

    def __init__(self, stage: str, source: str, message: str) -> None:
        super().__init__(f"[{stage}] {message} (input: {source})")
        self.stage = stage
        self.source = source


class EmbeddingLoadError(PipelineStageError):
    """Raised when an embedding file yields no usable vector at all."""


@dataclass(frozen=True, eq=False)
class EmbeddingTable:
    """
    Purpose
    -------
    Immutable token → vector mapping restricted to a target vocabulary.

    Parameters
    ----------
    vectors : Mapping[str, numpy.ndarray]
        One read-only float64 vector per token.
    dimension : int
        Length D shared by every vector.
    zero_filled : frozenset[str]
        Tokens inserted as zero vectors because the source never had them.

    Notes
    -----
    - Exposes the read side of a mapping (`in`, `len`, `get`, iteration) so
      aggregators never need to reach into `vectors` directly.
    """

    vectors: Mapping[str, np.ndarray]
    dimension: int
    zero_filled: frozenset[str] = frozenset()

    def __contains__(self, token: object) -> bool:
        return token in self.vectors

    def __len__(self) -> int:
        return len(self.vectors)

    def __iter__(self) -> Iterator[str]:
        return iter(self.vectors)

    def get(self, token: str) -> np.ndarray | None:
        return self.vectors.get(token)

    def tokens(self) -> frozenset[str]:
        return frozenset(self.vectors)


@dataclass(frozen=True)
class LoadReport:
    """
    Purpose
    -------
    Summary of one embedding-file pass, kept for data-quality reporting.

    Parameters
    ----------
    lines_read : int
        Physical lines consumed before the scan stopped.
    vectors_loaded : int
        Vocabulary tokens whose vector was parsed from the file.
    malformed_lines : int
        Vocabulary lines skipped for a wrong field count or a non-numeric field.
    duplicate_lines : int
        Repeated tokens ignored after their first vector.
    unresolved_tokens : tuple[str, ...]
        Sorted vocabulary tokens never found in the file.
    missing_token_policy : str
        Policy applied to `unresolved_tokens`.
    terminated_early : bool
        True when the scan stopped before end-of-file because the whole
        vocabulary had been resolved.
    """

    lines_read: int
    vectors_loaded: int
    malformed_lines: int
    duplicate_lines: int
    unresolved_tokens: tuple[str, ...]
    missing_token_policy: str
    terminated_early: bool


@dataclass(frozen=True, eq=False)
class GroupVectors:
    """
    Purpose
    -------
    Mean vectors for an ordered set of group keys (categories or documents).

    Parameters
    ----------
    keys : tuple[str, ...]
        Group keys in first-appearance order of the input.
    matrix : numpy.ndarray
        Array of shape `(len(keys), dimension)`; undefined rows are all-NaN.
    undefined : tuple[str, ...]
        Keys with no resolvable member token, in `keys` order.
    member_counts : dict[str, int]
        Number of resolved member tokens per key (0 for undefined keys).
    """

    keys: tuple[str, ...]
    matrix: np.ndarray
    undefined: tuple[str, ...] = ()
    member_counts: dict[str, int] = field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return int(self.matrix.shape[1])

    @property
    def defined_keys(self) -> tuple[str, ...]:
        undefined_set: set[str] = set(self.undefined)
        return tuple(key for key in self.keys if key not in undefined_set)

    def vector(self, key: str) -> np.ndarray:
        return self.matrix[self.keys.index(key)]

    def to_frame(self, index_name: str) -> pd.DataFrame:
        """
        Render the vectors as a wide table with columns `dim_1 ... dim_D`.

        Parameters
        ----------
        index_name : str
            Name given to the key index (e.g. "category" or "doc_id").

        Returns
        -------
        pandas.DataFrame
            One row per key in `keys` order.
        """
        frame: pd.DataFrame = pd.DataFrame(
            self.matrix,
            index=pd.Index(list(self.keys), name=index_name),
            columns=[f"dim_{i}" for i in range(1, self.dimension + 1)],
        )
        return frame
