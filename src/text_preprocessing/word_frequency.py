"""
Purpose
-------
Descriptive word-frequency statistics over tidy token tables: a Zipf-style
rank/frequency table and a per-party word-share comparison.

Key behaviors
-------------
- Count unigrams or within-document bigrams and rank them by count.
- Compute each party's share of every word whose per-party count falls
  strictly inside a band, then pivot to one column per party.

Conventions
-----------
- Ties in count are broken alphabetically so ranks are deterministic.
- Bigrams never span two documents.
- Proportions are relative to the words that survive the count band within
  the same party.

Downstream usage
----------------
Exploratory notebooks call these on the output of
`text_preprocessing.tokenization.tokenize_corpus`; results are plain
DataFrames suitable for plotting.
"""

from typing import Iterable, List

import numpy as np
import pandas as pd

from ddr.ddr_config import DOC_ID_COLUMN
from text_preprocessing.text_preprocessing_config import (
    EXCLUDED_PARTIES,
    FREQUENCY_MAX_COUNT,
    FREQUENCY_MIN_COUNT,
    TOKEN_COLUMN,
)


def word_frequency_distribution(
    tokens_df: pd.DataFrame,
    ngram: int = 1,
    id_column: str = DOC_ID_COLUMN,
) -> pd.DataFrame:
    """
    Build a rank / term-frequency table for unigrams or bigrams.

    Parameters
    ----------
    tokens_df : pandas.DataFrame
        Tidy token rows with `id_column` and `token`, in text order.
    ngram : int, default 1
        1 for single tokens, 2 for consecutive token pairs within a document.
    id_column : str, default "doc_id"
        Document key used to keep bigrams inside documents.

    Returns
    -------
    pandas.DataFrame
        Columns `term`, `n`, `rank` (1-based), `total` (sum of all n), and
        `term_frequency` (n / total), sorted by descending n.

    Raises
    ------
    ValueError
        If `ngram` is not 1 or 2.
    """

    if ngram not in (1, 2):
        raise ValueError(f"ngram must be 1 or 2, got {ngram}")

    if ngram == 1:
        terms: pd.Series = tokens_df[TOKEN_COLUMN].astype(str)
    else:
        next_tokens: pd.Series = tokens_df.groupby(id_column, sort=False)[TOKEN_COLUMN].shift(-1)
        has_next: pd.Series = next_tokens.notna()
        terms = (
            tokens_df.loc[has_next, TOKEN_COLUMN].astype(str)
            + " "
            + next_tokens[has_next].astype(str)
        )

    columns: List[str] = ["term", "n", "rank", "total", "term_frequency"]
    if terms.empty:
        return pd.DataFrame(columns=columns)

    counts_df: pd.DataFrame = terms.value_counts().rename_axis("term").reset_index(name="n")
    counts_df = counts_df.sort_values(["n", "term"], ascending=[False, True]).reset_index(drop=True)
    counts_df["rank"] = np.arange(1, len(counts_df) + 1)
    counts_df["total"] = int(counts_df["n"].sum())
    counts_df["term_frequency"] = counts_df["n"] / counts_df["total"]
    return counts_df[columns]


def group_word_proportions(
    tokens_df: pd.DataFrame,
    group_column: str,
    min_count: int = FREQUENCY_MIN_COUNT,
    max_count: int = FREQUENCY_MAX_COUNT,
    exclude_groups: Iterable[str] = EXCLUDED_PARTIES,
) -> pd.DataFrame:
    """
    Compare word shares across groups (e.g. parties).

    Parameters
    ----------
    tokens_df : pandas.DataFrame
        Tidy token rows carrying `group_column` and `token`.
    group_column : str
        Column defining the groups.
    min_count, max_count : int, default 50 and 1000
        Exclusive bounds on a word's count within a group.
    exclude_groups : Iterable[str], default ("Independent",)
        Groups dropped before counting.

    Returns
    -------
    pandas.DataFrame
        Indexed by word, one proportion column per group; words missing from
        any group are dropped.

    Notes
    -----
    - Example: with Democrat counts {tax: 60, vote: 140} and Republican
      counts {tax: 90, vote: 10}, only `tax` survives for Republicans, so the
      row for `vote` is dropped and `tax` gets 0.3 / 1.0.
    """

    excluded: set[str] = set(exclude_groups)
    kept_df: pd.DataFrame = tokens_df[~tokens_df[group_column].isin(excluded)]
    counts_df: pd.DataFrame = (
        kept_df.groupby([group_column, TOKEN_COLUMN], sort=True).size().reset_index(name="n")
    )
    counts_df = counts_df[(counts_df["n"] > min_count) & (counts_df["n"] < max_count)].copy()
    counts_df["proportion"] = counts_df["n"] / counts_df.groupby(group_column)["n"].transform("sum")

    wide_df: pd.DataFrame = counts_df.pivot(
        index=TOKEN_COLUMN, columns=group_column, values="proportion"
    )
    wide_df.columns.name = None
    return wide_df.dropna(how="any")
