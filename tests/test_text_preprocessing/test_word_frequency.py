"""
Purpose
-------
Unit tests for `text_preprocessing.word_frequency`.

Key behaviors
-------------
- Unigram and bigram rank / frequency tables are sorted by count, ties
  alphabetically, and bigrams never cross documents.
- Party word shares keep only words strictly inside the count band, drop
  excluded parties, and drop words missing from any party.

Conventions
-----------
- Token tables are built inline with pandas.

Downstream usage
----------------
Run with `pytest -q tests/test_text_preprocessing`.
"""

from typing import List

import pandas as pd
import pytest

from text_preprocessing.word_frequency import group_word_proportions, word_frequency_distribution


def tokens_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {"doc_id": ["d1", "d1", "d1", "d2", "d2"], "token": ["tax", "cut", "tax", "tax", "vote"]}
    )


def party_tokens_frame() -> pd.DataFrame:
    rows: List[tuple[str, str]] = (
        [("Democrat", "tax")] * 60
        + [("Democrat", "vote")] * 140
        + [("Republican", "tax")] * 90
        + [("Republican", "vote")] * 10
        + [("Independent", "tax")] * 70
    )
    return pd.DataFrame(rows, columns=["party", "token"])


def test_word_frequency_distribution_unigrams() -> None:
    """
    Counts, ranks, totals, and term frequencies of single tokens.

    Returns
    -------
    None
    """

    frequency_df: pd.DataFrame = word_frequency_distribution(tokens_frame())
    assert frequency_df.columns.tolist() == ["term", "n", "rank", "total", "term_frequency"]
    assert frequency_df["term"].tolist() == ["tax", "cut", "vote"]
    assert frequency_df["n"].tolist() == [3, 1, 1]
    assert frequency_df["rank"].tolist() == [1, 2, 3]
    assert (frequency_df["total"] == 5).all()
    assert frequency_df["term_frequency"].iloc[0] == pytest.approx(0.6)


def test_word_frequency_distribution_bigrams_stay_in_documents() -> None:
    """
    d1 gives "tax cut" and "cut tax"; d2 gives "tax vote"; no "tax tax"
    bigram bridges the two documents.

    Returns
    -------
    None
    """

    frequency_df: pd.DataFrame = word_frequency_distribution(tokens_frame(), ngram=2)
    assert frequency_df["term"].tolist() == ["cut tax", "tax cut", "tax vote"]
    assert (frequency_df["total"] == 3).all()


def test_word_frequency_distribution_invalid_ngram() -> None:
    with pytest.raises(ValueError):
        word_frequency_distribution(tokens_frame(), ngram=3)


def test_word_frequency_distribution_empty() -> None:
    frequency_df: pd.DataFrame = word_frequency_distribution(
        pd.DataFrame({"doc_id": [], "token": []})
    )
    assert frequency_df.empty


def test_group_word_proportions() -> None:
    """
    Only "tax" is inside the band for both parties; Independents are dropped.

    Returns
    -------
    None
    """

    proportions_df: pd.DataFrame = group_word_proportions(party_tokens_frame(), "party")
    assert proportions_df.index.tolist() == ["tax"]
    assert proportions_df.columns.tolist() == ["Democrat", "Republican"]
    assert proportions_df.loc["tax", "Democrat"] == pytest.approx(0.3)
    assert proportions_df.loc["tax", "Republican"] == pytest.approx(1.0)


def test_group_word_proportions_custom_bounds() -> None:
    """
    Widening the band lets "vote" through for both parties.

    Returns
    -------
    None
    """

    proportions_df: pd.DataFrame = group_word_proportions(
        party_tokens_frame(), "party", min_count=5, max_count=1000, exclude_groups=()
    )
    assert proportions_df.columns.tolist() == ["Democrat", "Independent", "Republican"]
    assert proportions_df.index.tolist() == ["tax"]
    assert proportions_df.loc["tax", "Republican"] == pytest.approx(0.9)
