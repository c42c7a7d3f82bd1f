"""
Purpose
-------
Turn token groups into mean embedding vectors: one center per dictionary
category and one vector per document. Both are the same group-by-key
reduction over an immutable `EmbeddingTable`.

Key behaviors
-------------
- Accumulate, per group key, the per-dimension sum of finite vector
  components and the per-dimension count of contributing tokens, then
  finalize by division.
- Skip tokens missing from the table (they contribute nothing and do not
  count towards the divisor).
- Mark groups with no resolvable member as undefined (all-NaN vector)
  instead of emitting a zero vector.
- Draw seed-controlled per-category dictionary subsamples for robustness
  checks.

Conventions
-----------
- Group keys are kept in first-appearance order of the input, including
  keys that end up undefined.
- Dictionaries have set semantics: a repeated `(token, category)` pair is
  counted once. Documents are multisets: a repeated token counts each time.
- NaN components of a stored vector are ignored for that dimension only.

Downstream usage
----------------
Call `compute_category_centers` and `compute_document_vectors` with the
same table (they share no mutable state and may run concurrently), then
pass both results to `ddr.cosine_similarity.cosine_similarity_matrix`.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

import numpy as np

from ddr.ddr_config import LOG_KEY_SAMPLE_SIZE
from ddr.ddr_types import DictionaryPair, DocumentToken, EmbeddingTable, GroupVectors
from infra.logging.infra_logger import InfraLogger


@dataclass
class GroupAccumulator:
    """
    Purpose
    -------
    Running per-dimension sum and count for one group key.

    Parameters
    ----------
    sums : numpy.ndarray
        Sum of finite components seen so far, shape `(dimension,)`.
    counts : numpy.ndarray
        Number of finite components seen so far per dimension.
    members : int
        Number of member tokens found in the table.
    """

    sums: np.ndarray
    counts: np.ndarray
    members: int = 0

    @classmethod
    def empty(cls, dimension: int) -> "GroupAccumulator":
        return cls(np.zeros(dimension, dtype=np.float64), np.zeros(dimension, dtype=np.int64))

    def add(self, vector: np.ndarray) -> None:
        finite_mask: np.ndarray = np.isfinite(vector)
        self.sums += np.where(finite_mask, vector, 0.0)
        self.counts += finite_mask
        self.members += 1

    def finalize(self) -> np.ndarray:
        # Dimensions nobody contributed to stay NaN.
        mean: np.ndarray = np.full(self.sums.shape, np.nan, dtype=np.float64)
        np.divide(self.sums, self.counts, out=mean, where=self.counts > 0)
        return mean


def aggregate_group_means(
    keyed_tokens: Iterable[tuple[str, str]],
    table: EmbeddingTable,
    group_label: str,
    logger: InfraLogger | None = None,
) -> GroupVectors:
    """
    Reduce `(group_key, token)` pairs to one mean vector per group key.

    Parameters
    ----------
    keyed_tokens : Iterable[tuple[str, str]]
        Stream of `(group_key, token)` pairs.
    table : EmbeddingTable
        Vocabulary-restricted embedding table.
    group_label : str
        "category" or "document"; used only in log events.
    logger : InfraLogger, optional
        Stage logger.

    Returns
    -------
    GroupVectors
        Mean vectors in first-appearance key order; undefined keys have an
        all-NaN row and are listed in `undefined`.
    """

    accumulators: Dict[str, GroupAccumulator] = {}
    tokens_seen: int = 0
    tokens_missing: int = 0
    for key, token in keyed_tokens:
        tokens_seen += 1
        accumulator: GroupAccumulator | None = accumulators.get(key)
        if accumulator is None:
            accumulator = GroupAccumulator.empty(table.dimension)
            accumulators[key] = accumulator
        vector: np.ndarray | None = table.get(token)
        if vector is None:
            tokens_missing += 1
            continue
        accumulator.add(vector)

    keys: tuple[str, ...] = tuple(accumulators)
    matrix: np.ndarray = np.full((len(keys), table.dimension), np.nan, dtype=np.float64)
    undefined: List[str] = []
    member_counts: Dict[str, int] = {}
    for row, key in enumerate(keys):
        accumulator = accumulators[key]
        member_counts[key] = accumulator.members
        if accumulator.members == 0 or not accumulator.counts.any():
            undefined.append(key)
            continue
        matrix[row] = accumulator.finalize()
    matrix.flags.writeable = False

    if logger is not None:
        logger.debug(
            event=f"{group_label}_vectors_aggregated",
            context={
                "groups": len(keys),
                "tokens_seen": tokens_seen,
                "tokens_missing_from_table": tokens_missing,
            },
        )
        if undefined:
            logger.warning(
                event="undefined_group_vectors",
                msg=f"Some {group_label} groups have no token in the embedding table",
                context={
                    "group_label": group_label,
                    "undefined_count": len(undefined),
                    "undefined_keys": undefined[:LOG_KEY_SAMPLE_SIZE],
                },
            )
    return GroupVectors(
        keys=keys,
        matrix=matrix,
        undefined=tuple(undefined),
        member_counts=member_counts,
    )


def compute_category_centers(
    dictionary_pairs: Iterable[DictionaryPair],
    table: EmbeddingTable,
    logger: InfraLogger | None = None,
) -> GroupVectors:
    """
    Compute one center vector per dictionary category.

    Parameters
    ----------
    dictionary_pairs : Iterable[tuple[str, str]]
        `(token, category)` pairs; a token may belong to several categories.
    table : EmbeddingTable
        Vocabulary-restricted embedding table.
    logger : InfraLogger, optional
        Stage logger.

    Returns
    -------
    GroupVectors
        Category centers keyed by category label, in first-appearance order.
    """

    unique_pairs: Dict[DictionaryPair, None] = dict.fromkeys(dictionary_pairs)
    return aggregate_group_means(
        ((category, token) for token, category in unique_pairs),
        table,
        group_label="category",
        logger=logger,
    )


def compute_document_vectors(
    document_tokens: Iterable[DocumentToken] | Mapping[str, Iterable[str]],
    table: EmbeddingTable,
    logger: InfraLogger | None = None,
) -> GroupVectors:
    """
    Compute one mean vector per document.

    Parameters
    ----------
    document_tokens : Iterable[tuple[str, str]] or Mapping[str, Iterable[str]]
        Tidy `(doc_id, token)` pairs, or a mapping from doc_id to its tokens.
    table : EmbeddingTable
        Vocabulary-restricted embedding table.
    logger : InfraLogger, optional
        Stage logger.

    Returns
    -------
    GroupVectors
        Document vectors keyed by doc_id, in first-appearance order.

    Notes
    -----
    - With the mapping form, a document with an empty token list still
      appears as an undefined key; in the pair form it cannot appear at all.
    """

    if isinstance(document_tokens, Mapping):
        return _aggregate_document_mapping(document_tokens, table, logger)
    return aggregate_group_means(document_tokens, table, group_label="document", logger=logger)


def _aggregate_document_mapping(
    document_tokens: Mapping[str, Iterable[str]],
    table: EmbeddingTable,
    logger: InfraLogger | None,
) -> GroupVectors:
    doc_ids: List[str] = [str(doc_id) for doc_id in document_tokens]
    pairs: List[DocumentToken] = [
        (str(doc_id), token) for doc_id, tokens in document_tokens.items() for token in tokens
    ]
    aggregated: GroupVectors = aggregate_group_means(
        pairs, table, group_label="document", logger=logger
    )
    if len(aggregated.keys) == len(doc_ids):
        return aggregated

    # Re-insert empty documents as undefined rows in mapping order.
    matrix: np.ndarray = np.full((len(doc_ids), table.dimension), np.nan, dtype=np.float64)
    member_counts: Dict[str, int] = {}
    undefined: List[str] = []
    for row, doc_id in enumerate(doc_ids):
        member_counts[doc_id] = aggregated.member_counts.get(doc_id, 0)
        if doc_id not in aggregated.keys or doc_id in aggregated.undefined:
            undefined.append(doc_id)
            continue
        matrix[row] = aggregated.vector(doc_id)
    matrix.flags.writeable = False
    return GroupVectors(
        keys=tuple(doc_ids),
        matrix=matrix,
        undefined=tuple(undefined),
        member_counts=member_counts,
    )


def subsample_dictionary(
    dictionary_pairs: Iterable[DictionaryPair],
    seed: int,
    fraction: float | None = None,
    size: int | None = None,
) -> List[DictionaryPair]:
    """
    Draw a seed-controlled random subsample of each category's tokens.

    Parameters
    ----------
    dictionary_pairs : Iterable[tuple[str, str]]
        `(token, category)` pairs.
    seed : int
        Seed for `numpy.random.default_rng`; identical seeds give identical
        subsamples.
    fraction : float, optional
        Share of each category to keep, in (0, 1]. At least one token per
        non-empty category is kept.
    size : int, optional
        Absolute number of tokens to keep per category (capped at the
        category size).

    Returns
    -------
    list[tuple[str, str]]
        Kept pairs in their original input order.

    Raises
    ------
    ValueError
        If neither or both of `fraction` and `size` are given, or either is
        out of range.
    """

    if (fraction is None) == (size is None):
        raise ValueError("Exactly one of fraction or size must be given")
    if fraction is not None and not 0.0 < fraction <= 1.0:
        raise ValueError(f"fraction must be in (0, 1], got {fraction}")
    if size is not None and size < 1:
        raise ValueError(f"size must be positive, got {size}")

    unique_pairs: List[DictionaryPair] = list(dict.fromkeys(dictionary_pairs))
    positions_by_category: Dict[str, List[int]] = {}
    for position, (_, category) in enumerate(unique_pairs):
        positions_by_category.setdefault(category, []).append(position)

    rng: np.random.Generator = np.random.default_rng(seed)
    kept_positions: set[int] = set()
    for category in sorted(positions_by_category):
        positions: List[int] = positions_by_category[category]
        if fraction is not None:
            keep_count: int = max(1, int(round(fraction * len(positions))))
        else:
            keep_count = min(int(size), len(positions))  # type: ignore[arg-type]
        chosen: np.ndarray = rng.choice(len(positions), size=keep_count, replace=False)
        kept_positions.update(positions[int(index)] for index in chosen)
    return [pair for position, pair in enumerate(unique_pairs) if position in kept_positions]
