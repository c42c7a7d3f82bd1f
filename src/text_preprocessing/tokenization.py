"""
Purpose
-------
Load a speech corpus and turn it into tidy `(doc_id, token)` rows, the form
consumed by the vocabulary builder, the word-frequency statistics, and the
document vector aggregator.

Key behaviors
-------------
- Read the corpus CSV (optionally only its first N rows) and normalize the
  id/text columns.
- Split speeches into sentences with an untrained Punkt tokenizer, giving
  every sentence a running `sentence_id`.
- Tokenize with an nltk `RegexpTokenizer`, lower-case, keep only the
  `[a-z']+` core of each token, drop empties, and optionally remove nltk
  English stop words.

Conventions
-----------
- Document ids are strings in every output.
- Token order within a document follows the text; document order follows
  the input rows.
- Extra metadata columns (e.g. party, state, speaker) are carried onto every
  token row when requested.

Downstream usage
----------------
`load_corpus` → `tokenize_corpus` → `document_token_pairs` feeds
`ddr.vocabulary_builder.build_vocabulary` and
`ddr.vector_aggregation.compute_document_vectors`.
"""

import re
from pathlib import Path
from typing import Iterable, List, Sequence

import nltk
import pandas as pd
from nltk.tokenize import RegexpTokenizer
from nltk.tokenize.punkt import PunktSentenceTokenizer

from ddr.ddr_config import DOC_ID_COLUMN
from ddr.ddr_types import DocumentToken
from text_preprocessing.text_preprocessing_config import (
    CORPUS_ID_COLUMN,
    CORPUS_TEXT_COLUMN,
    STOP_WORDS_LANGUAGE,
    TOKEN_COLUMN,
    TOKEN_CORE_PATTERN,
    WORD_TOKEN_PATTERN,
)

WORD_TOKENIZER: RegexpTokenizer = RegexpTokenizer(WORD_TOKEN_PATTERN)

TOKEN_CORE_REGEX: re.Pattern[str] = re.compile(TOKEN_CORE_PATTERN)


def load_corpus(
    path: str | Path,
    id_column: str = CORPUS_ID_COLUMN,
    text_column: str = CORPUS_TEXT_COLUMN,
    row_limit: int | None = None,
    extra_columns: Sequence[str] = (),
) -> pd.DataFrame:
    """
    Read a speech corpus CSV into a `doc_id` / `text` DataFrame.

    Parameters
    ----------
    path : str or pathlib.Path
        CSV file with at least `id_column` and `text_column`.
    id_column : str, default "doc_num"
        Column holding the document identifier.
    text_column : str, default "text"
        Column holding the raw speech text.
    row_limit : int or None, default None
        Keep only the first N rows (a quick subset of a large corpus).
    extra_columns : Sequence[str], default ()
        Metadata columns to keep alongside id and text.

    Returns
    -------
    pandas.DataFrame
        Columns `doc_id`, `text`, then `extra_columns`; missing text becomes "".

    Raises
    ------
    KeyError
        If a requested column is absent from the file.
    """

    corpus_df: pd.DataFrame = pd.read_csv(path, nrows=row_limit)
    return normalize_corpus_frame(corpus_df, id_column, text_column, extra_columns)


def normalize_corpus_frame(
    corpus_df: pd.DataFrame,
    id_column: str = CORPUS_ID_COLUMN,
    text_column: str = CORPUS_TEXT_COLUMN,
    extra_columns: Sequence[str] = (),
) -> pd.DataFrame:
    missing: List[str] = [
        column
        for column in [id_column, text_column, *extra_columns]
        if column not in corpus_df.columns
    ]
    if missing:
        raise KeyError(f"Corpus is missing columns: {missing}")
    normalized_df: pd.DataFrame = corpus_df[[id_column, text_column, *extra_columns]].copy()
    normalized_df.columns = [DOC_ID_COLUMN, "text", *extra_columns]
    normalized_df[DOC_ID_COLUMN] = normalized_df[DOC_ID_COLUMN].astype(str)
    normalized_df["text"] = normalized_df["text"].fillna("").astype(str)
    return normalized_df.reset_index(drop=True)


def load_stop_words(language: str = STOP_WORDS_LANGUAGE) -> set[str]:
    """
    Return nltk's stop-word list for `language`, downloading it on first use.
    """

    nltk.download("stopwords", quiet=True)
    return set(nltk.corpus.stopwords.words(language))


def tokenize_text(text: str, stop_words: Iterable[str] | None = None) -> List[str]:
    """
    Tokenize one text into lower-case word cores.

    Parameters
    ----------
    text : str
        Raw text.
    stop_words : Iterable[str] or None, default None
        Tokens to drop (compared after lower-casing, before core extraction).

    Returns
    -------
    list[str]
        Tokens in text order.

    Notes
    -----
    - "Don't" → "don't"; "2016" → dropped (no letters); "h.r." → "h", "r".
    """

    stop_word_set: set[str] = set(stop_words) if stop_words is not None else set()
    tokens: List[str] = []
    for raw_token in WORD_TOKENIZER.tokenize(text.lower()):
        if raw_token in stop_word_set:
            continue
        core_match: re.Match[str] | None = TOKEN_CORE_REGEX.search(raw_token)
        if core_match is None:
            continue
        tokens.append(core_match.group(0))
    return tokens


def tokenize_corpus(
    corpus_df: pd.DataFrame,
    remove_stop_words: bool = False,
    stop_words: Iterable[str] | None = None,
    text_column: str = "text",
    id_column: str = DOC_ID_COLUMN,
    keep_columns: Sequence[str] = (),
) -> pd.DataFrame:
    """
    Explode a corpus into tidy token rows.

    Parameters
    ----------
    corpus_df : pandas.DataFrame
        Output of `load_corpus` / `normalize_corpus_frame` or `split_sentences`.
    remove_stop_words : bool, default False
        Drop nltk English stop words (loaded lazily unless `stop_words` is given).
    stop_words : Iterable[str] or None, default None
        Explicit stop-word list; implies removal.
    text_column : str, default "text"
        Column to tokenize.
    id_column : str, default "doc_id"
        Column copied onto each token row as the document key.
    keep_columns : Sequence[str], default ()
        Additional columns copied onto each token row.

    Returns
    -------
    pandas.DataFrame
        Columns `id_column`, `token`, then `keep_columns`; one row per token.
    """

    if stop_words is None and remove_stop_words:
        stop_words = load_stop_words()
    stop_word_set: set[str] | None = set(stop_words) if stop_words is not None else None

    used_columns: List[str] = list(dict.fromkeys([id_column, text_column, *keep_columns]))
    records: List[dict[str, object]] = []
    for row_values in corpus_df[used_columns].to_dict("records"):
        for token in tokenize_text(str(row_values[text_column]), stop_word_set):
            record: dict[str, object] = {id_column: str(row_values[id_column]), TOKEN_COLUMN: token}
            for column in keep_columns:
                record[column] = row_values[column]
            records.append(record)

    columns: List[str] = [id_column, TOKEN_COLUMN, *keep_columns]
    if not records:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame.from_records(records, columns=columns)


def split_sentences(
    corpus_df: pd.DataFrame,
    text_column: str = "text",
    keep_columns: Sequence[str] = (DOC_ID_COLUMN,),
) -> pd.DataFrame:
    """
    Split each speech into sentences with a running `sentence_id`.

    Parameters
    ----------
    corpus_df : pandas.DataFrame
        Corpus with a text column.
    text_column : str, default "text"
        Column holding the speech text.
    keep_columns : Sequence[str], default ("doc_id",)
        Columns copied onto every sentence row.

    Returns
    -------
    pandas.DataFrame
        Columns `sentence_id` (1-based, str), `sentence`, then `keep_columns`.

    Notes
    -----
    - Uses an untrained `PunktSentenceTokenizer`, so no model download is
      required; abbreviations such as "Mr." may occasionally split early.
    """

    sentence_tokenizer: PunktSentenceTokenizer = PunktSentenceTokenizer()
    used_columns: List[str] = list(dict.fromkeys([text_column, *keep_columns]))
    records: List[dict[str, object]] = []
    for row_values in corpus_df[used_columns].to_dict("records"):
        for sentence in sentence_tokenizer.tokenize(str(row_values[text_column])):
            record: dict[str, object] = {
                "sentence_id": str(len(records) + 1),
                "sentence": sentence,
            }
            for column in keep_columns:
                record[column] = row_values[column]
            records.append(record)

    columns: List[str] = ["sentence_id", "sentence", *keep_columns]
    if not records:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame.from_records(records, columns=columns)


def document_token_pairs(
    tokens_df: pd.DataFrame, id_column: str = DOC_ID_COLUMN
) -> List[DocumentToken]:
    return list(zip(tokens_df[id_column].astype(str), tokens_df[TOKEN_COLUMN].astype(str)))
