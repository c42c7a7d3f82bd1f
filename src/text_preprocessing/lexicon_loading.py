"""
Purpose
-------
Load a word/category lexicon (NRC-style) into the ordered `(token, category)`
pairs consumed by the vocabulary builder and the category center aggregator.

Key behaviors
-------------
- Read a CSV or accept an in-memory DataFrame.
- Lower-case and strip words, drop blanks, dedupe exact pairs.
- Optionally keep only a subset of categories.

Conventions
-----------
- Output order is the first-appearance order of the source rows.
- A word may appear under several categories; each pair is kept once.

Downstream usage
----------------
`load_lexicon(path, categories=["sadness", "joy"])` → pass the pairs to
`ddr.ddr_pipeline.run_ddr_pipeline`.
"""

from pathlib import Path
from typing import Iterable, List

import pandas as pd

from ddr.ddr_types import DictionaryPair
from text_preprocessing.text_preprocessing_config import (
    LEXICON_CATEGORY_COLUMN,
    LEXICON_WORD_COLUMN,
)


def load_lexicon(
    path: str | Path,
    word_column: str = LEXICON_WORD_COLUMN,
    category_column: str = LEXICON_CATEGORY_COLUMN,
    categories: Iterable[str] | None = None,
) -> List[DictionaryPair]:
    """
    Read a lexicon CSV into `(token, category)` pairs.

    Parameters
    ----------
    path : str or pathlib.Path
        CSV with a word column and a category column.
    word_column : str, default "word"
        Column holding the dictionary word.
    category_column : str, default "sentiment"
        Column holding the category label.
    categories : Iterable[str] or None, default None
        When given, only pairs whose category is listed are kept.

    Returns
    -------
    list[tuple[str, str]]
        Deduplicated pairs in source order.

    Raises
    ------
    KeyError
        If either column is missing.
    """

    lexicon_df: pd.DataFrame = pd.read_csv(path, dtype=str, keep_default_na=False)
    return lexicon_pairs_from_frame(lexicon_df, word_column, category_column, categories)


def lexicon_pairs_from_frame(
    lexicon_df: pd.DataFrame,
    word_column: str = LEXICON_WORD_COLUMN,
    category_column: str = LEXICON_CATEGORY_COLUMN,
    categories: Iterable[str] | None = None,
) -> List[DictionaryPair]:
    for column in (word_column, category_column):
        if column not in lexicon_df.columns:
            raise KeyError(f"Lexicon is missing column: {column!r}")

    words: pd.Series = lexicon_df[word_column].fillna("").astype(str).str.strip().str.lower()
    labels: pd.Series = lexicon_df[category_column].fillna("").astype(str).str.strip()
    keep_mask: pd.Series = (words != "") & (labels != "")
    if categories is not None:
        keep_mask &= labels.isin(set(categories))

    pairs: dict[DictionaryPair, None] = dict.fromkeys(zip(words[keep_mask], labels[keep_mask]))
    return list(pairs)
