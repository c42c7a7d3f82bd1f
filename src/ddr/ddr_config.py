"""
Purpose
-------
Centralize the constants and run-time settings of the Distributed Dictionary
Representation (DDR) pipeline so that dimensions, vocabulary caps, policy
knobs, seeds, and file locations live in one importable module instead of
being hard-coded in notebooks.

Key behaviors
-------------
- Expose typed defaults for the embedding dimension, the vocabulary cap, the
  embedding-file delimiter, and the missing-token policy.
- Define the default seed list used when drawing random dictionary
  subsamples for robustness checks.
- Build a `PipelineSettings` record from environment variables (usually
  populated from a `.env` file by `python-dotenv` at the entry point).

Conventions
-----------
- Paths are resolved relative to the current working directory unless the
  environment provides absolute paths.
- `MISSING_TOKEN_POLICIES` is the closed set of accepted policy names;
  "omit" is the default, "zero_fill" must be opted into explicitly.
- Environment variables are prefixed with `DDR_`.

Downstream usage
----------------
Import the constants from pipeline stages; call `PipelineSettings.from_env()`
from `ddr.ddr_pipeline.main` after `load_dotenv()`.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

DEFAULT_EMBEDDING_DIM: int = 100

DEFAULT_VOCAB_TERM_MAX: int = 20000

EMBEDDING_FIELD_DELIMITER: str = " "

EMBEDDING_FILE_ENCODING: str = "utf-8"

# Data lines that must share a value-field count before it is taken as D.
DIMENSION_AGREEMENT_LINES: int = 2

MISSING_TOKEN_POLICY_OMIT: str = "omit"

MISSING_TOKEN_POLICY_ZERO_FILL: str = "zero_fill"

MISSING_TOKEN_POLICIES: set[str] = {MISSING_TOKEN_POLICY_OMIT, MISSING_TOKEN_POLICY_ZERO_FILL}

DEFAULT_MISSING_TOKEN_POLICY: str = MISSING_TOKEN_POLICY_OMIT

DEFAULT_SEED_NUMBERS: List[int] = [42, 43, 44, 45]

# Upper bound on how many tokens or group keys are copied into a log context.
LOG_KEY_SAMPLE_SIZE: int = 25

AGGREGATION_WORKER_COUNT: int = 2

DOC_ID_COLUMN: str = "doc_id"

CATEGORY_COLUMN: str = "category"

DEFAULT_OUTPUT_DIR: Path = Path("local_data") / "ddr_results"

CATEGORY_CENTERS_FILE_NAME: str = "category_centers.csv"

DOCUMENT_VECTORS_FILE_NAME: str = "document_vectors.csv"

SIMILARITY_MATRIX_FILE_NAME: str = "similarity_matrix.csv"


@dataclass(frozen=True)
class PipelineSettings:
    """
    Purpose
    -------
    Immutable bundle of run-time inputs for one DDR batch run.

    Parameters
    ----------
    corpus_path : pathlib.Path
        CSV with one row per speech (document id and raw text columns).
    lexicon_path : pathlib.Path
        CSV of (word, category) pairs.
    embedding_path : pathlib.Path
        Pretrained GloVe / word2vec text file.
    output_dir : pathlib.Path
        Directory receiving the exported tables.
    missing_token_policy : str
        One of `MISSING_TOKEN_POLICIES`.
    vocab_term_max : int | None
        Cap on corpus-derived vocabulary size; None disables the cap.
    embedding_dim : int | None
        Expected vector dimension; None infers it from the file.
    corpus_row_limit : int | None
        When set, only the first N corpus rows are used.
    """

    corpus_path: Path
    lexicon_path: Path
    embedding_path: Path
    output_dir: Path = DEFAULT_OUTPUT_DIR
    missing_token_policy: str = DEFAULT_MISSING_TOKEN_POLICY
    vocab_term_max: int | None = DEFAULT_VOCAB_TERM_MAX
    embedding_dim: int | None = DEFAULT_EMBEDDING_DIM
    corpus_row_limit: int | None = None

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """
        Build settings from `DDR_*` environment variables.

        Returns
        -------
        PipelineSettings
            Settings with defaults applied for every optional variable.

        Raises
        ------
        KeyError
            If DDR_CORPUS_PATH, DDR_LEXICON_PATH or DDR_EMBEDDING_PATH is unset.
        ValueError
            If a numeric variable cannot be parsed or the policy is unknown.
        """

        policy: str = os.environ.get("DDR_MISSING_TOKEN_POLICY", DEFAULT_MISSING_TOKEN_POLICY)
        if policy not in MISSING_TOKEN_POLICIES:
            raise ValueError(f"Unknown DDR_MISSING_TOKEN_POLICY: {policy!r}")
        return cls(
            corpus_path=Path(os.environ["DDR_CORPUS_PATH"]),
            lexicon_path=Path(os.environ["DDR_LEXICON_PATH"]),
            embedding_path=Path(os.environ["DDR_EMBEDDING_PATH"]),
            output_dir=Path(os.environ.get("DDR_OUTPUT_DIR", str(DEFAULT_OUTPUT_DIR))),
            missing_token_policy=policy,
            vocab_term_max=_optional_int("DDR_VOCAB_TERM_MAX", DEFAULT_VOCAB_TERM_MAX),
            embedding_dim=_optional_int("DDR_EMBEDDING_DIM", DEFAULT_EMBEDDING_DIM),
            corpus_row_limit=_optional_int("DDR_CORPUS_ROW_LIMIT", None),
        )


def _optional_int(name: str, default: int | None) -> int | None:
    # "none" (any case) or an empty string disables the setting.
    raw: str | None = os.environ.get(name)
    if raw is None:
        return default
    if raw.strip().lower() in {"", "none"}:
        return None
    return int(raw)
