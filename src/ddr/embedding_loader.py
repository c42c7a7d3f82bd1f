"""
Purpose
-------
Stream a pretrained word-vector text file (GloVe or word2vec text format) and
keep only the vectors of a target vocabulary.

Key behaviors
-------------
- Reads the file line by line; only lines whose leading token belongs to
  the vocabulary have their numeric fields parsed.
- Stops scanning as soon as every vocabulary token has been resolved.
- Skips and counts malformed lines (undecodable bytes, wrong field count, or
  a non-numeric field) instead of failing the whole load; reports the count
  once at the end.
- Applies an explicit, logged policy to vocabulary tokens the file never
  contains: omit them (default) or insert zero vectors.
- Raises `EmbeddingLoadError` when no vector at all could be loaded.

Conventions
-----------
- Lines are decoded one at a time as UTF-8; a line that fails to decode is
  malformed and the scan moves on.
- Fields are separated by a single delimiter (a space by default); the
  first field is the token and the remaining D fields are decimal floats.
- A first line made of exactly two integers is a word2vec header
  (`<vocab_size> <dimension>`) and is skipped; its dimension is used when
  none was given.
- Without an explicit dimension, D is the first value-field count shared by
  two data lines. Vocabulary lines seen before that are held back and
  checked once D is known. A file that ends before two lines agree takes D
  from its first vocabulary line with values.
- The first well-formed vector seen for a token wins; later duplicates are
  counted.

Downstream usage
----------------
Call `load_embedding_table(path, vocabulary)` after
`ddr.vocabulary_builder.build_vocabulary` and hand the returned table to
`ddr.vector_aggregation`.
"""

from collections import Counter
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List

import numpy as np

from ddr.ddr_config import (
    DEFAULT_MISSING_TOKEN_POLICY,
    DIMENSION_AGREEMENT_LINES,
    EMBEDDING_FIELD_DELIMITER,
    EMBEDDING_FILE_ENCODING,
    MISSING_TOKEN_POLICIES,
    MISSING_TOKEN_POLICY_ZERO_FILL,
    LOG_KEY_SAMPLE_SIZE,
)
from ddr.ddr_types import EmbeddingLoadError, EmbeddingTable, LoadReport, Vocabulary
from infra.logging.infra_logger import InfraLogger

STAGE_NAME: str = "embedding_loader"

LINE_LOADED: str = "loaded"

LINE_DUPLICATE: str = "duplicate"

LINE_MALFORMED: str = "malformed"

# (line_number, token, value_fields) of a vocabulary line read before D is known.
PendingLine = tuple[int, str, List[str]]


def load_embedding_table(
    path: str | Path,
    vocabulary: Vocabulary,
    dimension: int | None = None,
    missing_token_policy: str = DEFAULT_MISSING_TOKEN_POLICY,
    delimiter: str = EMBEDDING_FIELD_DELIMITER,
    logger: InfraLogger | None = None,
) -> tuple[EmbeddingTable, LoadReport]:
    """
    Load the vectors of `vocabulary` from a pretrained embedding file.

    Parameters
    ----------
    path : str or pathlib.Path
        Text embedding file, one token per line.
    vocabulary : frozenset[str]
        Tokens to keep; every other line is skipped without parsing its numbers.
    dimension : int or None, default None
        Expected vector length D. None infers it from the header, or from
        the first value-field count shared by two data lines.
    missing_token_policy : str, default "omit"
        "omit" leaves unresolved tokens out of the table; "zero_fill" inserts
        them as zero vectors.
    delimiter : str, default " "
        Field delimiter.
    logger : InfraLogger, optional
        Stage logger for progress and data-quality warnings.

    Returns
    -------
    tuple[EmbeddingTable, LoadReport]
        The vocabulary-restricted table and a summary of the scan.

    Raises
    ------
    ValueError
        If `missing_token_policy` is unknown or `dimension` is not positive.
    EmbeddingLoadError
        If not a single well-formed vocabulary vector was found.
    OSError
        If the file cannot be opened.

    Notes
    -----
    - Omission changes the divisor of later means (the token simply does not
      count); zero-filling keeps the divisor and pulls means towards the
      origin. Choose deliberately: the default is omission.
    """

    if missing_token_policy not in MISSING_TOKEN_POLICIES:
        raise ValueError(
            f"Unknown missing_token_policy {missing_token_policy!r}; "
            f"expected one of {sorted(MISSING_TOKEN_POLICIES)}"
        )
    if dimension is not None and dimension <= 0:
        raise ValueError(f"dimension must be positive, got {dimension}")

    path = Path(path)
    if logger is not None:
        logger.info(
            event="embedding_load_started",
            msg="Scanning embedding file",
            context={"path": str(path), "vocabulary_size": len(vocabulary)},
        )

    vectors: Dict[str, np.ndarray] = {}
    remaining: set[str] = set(vocabulary)
    line_outcomes: Counter[str] = Counter()
    width_counts: Counter[int] = Counter()
    pending_lines: List[PendingLine] = []
    lines_read: int = 0
    terminated_early: bool = False
    first_data_line: bool = True

    with open(path, "rb") as handle:
        for raw_line in handle:
            if not remaining:
                terminated_early = True
                break
            lines_read += 1
            try:
                line: str = raw_line.decode(EMBEDDING_FILE_ENCODING).rstrip()
            except UnicodeDecodeError:
                first_data_line = False
                line_outcomes[LINE_MALFORMED] += 1
                if logger is not None:
                    logger.debug(
                        event="undecodable_embedding_line",
                        context={"line_number": lines_read},
                    )
                continue
            if not line:
                continue

            if first_data_line:
                first_data_line = False
                fields: List[str] = line.split(delimiter)
                if is_header_line(fields):
                    if dimension is None:
                        dimension = int(fields[1])
                    continue

            if dimension is None:
                width: int = line.count(delimiter)
                width_counts[width] += 1
                if width > 0 and width_counts[width] >= DIMENSION_AGREEMENT_LINES:
                    dimension = width
                    for pending_line in pending_lines:
                        line_outcomes[
                            store_vector(*pending_line, dimension, vectors, remaining, logger)
                        ] += 1
                    pending_lines.clear()

            token: str = line.split(delimiter, 1)[0]
            if token not in vocabulary:
                continue

            value_fields: List[str] = line.split(delimiter)[1:]
            if dimension is None:
                pending_lines.append((lines_read, token, value_fields))
                continue
            line_outcomes[
                store_vector(lines_read, token, value_fields, dimension, vectors, remaining, logger)
            ] += 1

    if pending_lines:
        dimension = next(
            (len(value_fields) for _, _, value_fields in pending_lines if value_fields), None
        )
        for pending_line in pending_lines:
            line_outcomes[store_vector(*pending_line, dimension, vectors, remaining, logger)] += 1

    malformed_lines: int = line_outcomes[LINE_MALFORMED]
    duplicate_lines: int = line_outcomes[LINE_DUPLICATE]

    if malformed_lines and logger is not None:
        logger.warning(
            event="malformed_embedding_lines",
            msg="Skipped malformed lines in embedding file",
            context={"path": str(path), "malformed_lines": malformed_lines, "dimension": dimension},
        )

    if not vectors or dimension is None:
        raise EmbeddingLoadError(
            stage=STAGE_NAME,
            source=str(path),
            message=(
                f"no vectors loaded ({lines_read} lines read, "
                f"{malformed_lines} malformed, vocabulary size {len(vocabulary)})"
            ),
        )

    vectors_loaded: int = len(vectors)
    unresolved_tokens: tuple[str, ...] = tuple(sorted(remaining))
    zero_filled: frozenset[str] = frozenset()
    if unresolved_tokens:
        if logger is not None:
            logger.warning(
                event="unresolved_vocabulary_tokens",
                msg=f"Vocabulary tokens missing from embedding file; policy={missing_token_policy}",
                context={
                    "unresolved_count": len(unresolved_tokens),
                    "missing_token_policy": missing_token_policy,
                    "sample": list(unresolved_tokens[:LOG_KEY_SAMPLE_SIZE]),
                },
            )
        if missing_token_policy == MISSING_TOKEN_POLICY_ZERO_FILL:
            for token in unresolved_tokens:
                zero_vector: np.ndarray = np.zeros(dimension, dtype=np.float64)
                zero_vector.flags.writeable = False
                vectors[token] = zero_vector
            zero_filled = frozenset(unresolved_tokens)

    table = EmbeddingTable(
        vectors=MappingProxyType(vectors),
        dimension=dimension,
        zero_filled=zero_filled,
    )
    report = LoadReport(
        lines_read=lines_read,
        vectors_loaded=vectors_loaded,
        malformed_lines=malformed_lines,
        duplicate_lines=duplicate_lines,
        unresolved_tokens=unresolved_tokens,
        missing_token_policy=missing_token_policy,
        terminated_early=terminated_early,
    )
    if logger is not None:
        logger.info(
            event="embedding_load_finished",
            msg="Loaded vocabulary-restricted embedding table",
            context={
                "lines_read": lines_read,
                "vectors_loaded": vectors_loaded,
                "table_size": len(table),
                "dimension": dimension,
                "terminated_early": terminated_early,
                "duplicate_lines": duplicate_lines,
            },
        )
    return table, report


def store_vector(
    line_number: int,
    token: str,
    value_fields: List[str],
    dimension: int | None,
    vectors: Dict[str, np.ndarray],
    remaining: set[str],
    logger: InfraLogger | None = None,
) -> str:
    """
    Parse one vocabulary line into `vectors` unless its token already has one.

    Parameters
    ----------
    line_number : int
        1-based position in the file, for diagnostics.
    token : str
        Vocabulary token of the line.
    value_fields : list[str]
        Fields after the token.
    dimension : int or None
        Required field count.
    vectors : dict[str, numpy.ndarray]
        Table under construction; updated in place.
    remaining : set[str]
        Unresolved vocabulary tokens; the token is removed once stored.
    logger : InfraLogger, optional
        Stage logger for per-line debug entries.

    Returns
    -------
    str
        "loaded", "duplicate", or "malformed".
    """

    if token in vectors:
        return LINE_DUPLICATE
    vector: np.ndarray | None = parse_vector_fields(value_fields, dimension)
    if vector is None:
        if logger is not None:
            logger.debug(
                event="malformed_embedding_line",
                context={"line_number": line_number, "token": token},
            )
        return LINE_MALFORMED
    vectors[token] = vector
    remaining.discard(token)
    return LINE_LOADED


def parse_vector_fields(value_fields: List[str], dimension: int | None) -> np.ndarray | None:
    """
    Parse the numeric fields of one line into a read-only float64 vector.

    Parameters
    ----------
    value_fields : list[str]
        Fields after the token.
    dimension : int or None
        Required field count; None only accepts non-empty field lists.

    Returns
    -------
    numpy.ndarray or None
        The vector, or None when the field count is wrong or a field is not
        a decimal number.
    """

    if not value_fields or (dimension is not None and len(value_fields) != dimension):
        return None
    try:
        vector: np.ndarray = np.array([float(value) for value in value_fields], dtype=np.float64)
    except ValueError:
        return None
    vector.flags.writeable = False
    return vector

