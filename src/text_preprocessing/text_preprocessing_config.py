"""
Purpose
-------
Centralize the column names, token patterns, and frequency-comparison bounds
used when turning raw congressional speeches into tidy tokens.

Key behaviors
-------------
- Name the corpus and lexicon columns expected by the loaders.
- Fix the regular expressions used for word tokenization and for extracting
  the alphabetic core of each token.
- Provide the count bounds and excluded parties of the party word-share
  comparison.

Conventions
-----------
- Tokens are lower-cased before the core pattern is applied, so the core
  pattern only has to match lower-case letters and apostrophes.
- Count bounds are exclusive on both sides (50 < n < 1000).

Downstream usage
----------------
Imported by `text_preprocessing.tokenization`,
`text_preprocessing.word_frequency`, `text_preprocessing.lexicon_loading`,
and by `ddr.ddr_pipeline` when reading the corpus.
"""

from typing import Tuple

CORPUS_ID_COLUMN: str = "doc_num"

CORPUS_TEXT_COLUMN: str = "text"

PARTY_COLUMN: str = "party"

TOKEN_COLUMN: str = "token"

LEXICON_WORD_COLUMN: str = "word"

LEXICON_CATEGORY_COLUMN: str = "sentiment"

# Word boundaries for the first tokenization pass (apostrophes stay inside words).
WORD_TOKEN_PATTERN: str = r"[A-Za-z0-9]+(?:'[A-Za-z0-9]+)*"

TOKEN_CORE_PATTERN: str = r"[a-z']+"

FREQUENCY_MIN_COUNT: int = 50

FREQUENCY_MAX_COUNT: int = 1000

EXCLUDED_PARTIES: Tuple[str, ...] = ("Independent",)

STOP_WORDS_LANGUAGE: str = "english"
