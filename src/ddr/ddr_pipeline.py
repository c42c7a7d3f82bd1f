"""
Purpose
-------
Run the Distributed Dictionary Representation (DDR) batch end to end: build
the vocabulary, load the restricted embedding table, aggregate category
centers and document vectors, and score every document against every
category.

Key behaviors
-------------
- Parse CLI arguments (optional log level), load `.env` settings, read and
  tokenize the corpus, read the lexicon, run the pipeline, and export the
  resulting tables.
- Bind one stage logger per pipeline stage so every diagnostic names the
  stage that produced it.
- Run the two aggregators concurrently in a `ThreadPoolExecutor`; both only
  read the immutable embedding table.
- Stop with `PipelineStageError` when a stage receives empty input or when
  every category or every document ends up undefined.
- Re-score documents against seed-controlled dictionary subsamples for
  robustness checks.

Conventions
-----------
- Stage names: "vocabulary_builder", "embedding_loader",
  "dictionary_center_aggregator", "document_vector_aggregator",
  "cosine_similarity_scorer", "export".
- Partially undefined outputs are not fatal: they travel as NaN rows or
  columns plus the `undefined` key lists of `GroupVectors`.
- Every call recomputes all artifacts from its inputs; nothing is cached.

Downstream usage
----------------
Invoke as a script, e.g. `python -m ddr.ddr_pipeline [LOG_LEVEL]`, with the
`DDR_*` variables set in the environment or a `.env` file. Notebooks and
tests call `run_ddr_pipeline(...)` directly with in-memory tokens and pairs.
"""

import sys
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

import pandas as pd
from dotenv import load_dotenv

from ddr.cosine_similarity import cosine_similarity_matrix
from ddr.ddr_config import (
    AGGREGATION_WORKER_COUNT,
    DEFAULT_EMBEDDING_DIM,
    DEFAULT_MISSING_TOKEN_POLICY,
    DEFAULT_SEED_NUMBERS,
    DEFAULT_VOCAB_TERM_MAX,
    PipelineSettings,
)
from ddr.ddr_export import export_ddr_artifacts
from ddr.ddr_types import (
    DictionaryPair,
    DocumentToken,
    EmbeddingTable,
    GroupVectors,
    LoadReport,
    PipelineStageError,
    Vocabulary,
)
from ddr.embedding_loader import load_embedding_table
from ddr.vector_aggregation import (
    compute_category_centers,
    compute_document_vectors,
    subsample_dictionary,
)
from ddr.vocabulary_builder import build_vocabulary
from infra.logging.infra_logger import InfraLogger, initialize_logger
from text_preprocessing.lexicon_loading import load_lexicon
from text_preprocessing.tokenization import document_token_pairs, load_corpus, tokenize_corpus


@dataclass(frozen=True, eq=False)
class DDRResult:
    """
    Purpose
    -------
    Every artifact produced by one DDR run.

    Parameters
    ----------
    vocabulary : frozenset[str]
        Vocabulary used to filter the embedding file.
    table : EmbeddingTable
        Vocabulary-restricted embedding table.
    load_report : LoadReport
        Scan summary of the embedding file.
    category_centers : GroupVectors
        One center per lexicon category.
    document_vectors : GroupVectors
        One vector per document id.
    similarity_matrix : pandas.DataFrame
        Documents × categories cosine similarities.
    """

    vocabulary: Vocabulary
    table: EmbeddingTable
    load_report: LoadReport
    category_centers: GroupVectors
    document_vectors: GroupVectors
    similarity_matrix: pd.DataFrame


def main() -> None:
    """
    Entry point for a DDR batch run configured from the environment.

    Parameters
    ----------
    None
        The log level comes from `sys.argv` via `extract_cli_args`; paths and
        knobs come from `DDR_*` environment variables loaded by
        `python-dotenv`.

    Returns
    -------
    None
        Writes the category centers, document vectors, and similarity matrix
        into the configured output directory.

    Raises
    ------
    KeyError
        If a required `DDR_*` path variable is unset.
    PipelineStageError
        If a stage cannot produce a usable output.

    Notes
    -----
    - Fatal stage errors are logged at error level before being re-raised so
      the job runner sees a non-zero exit.
    """

    load_dotenv()
    logger_level: str = extract_cli_args()
    settings: PipelineSettings = PipelineSettings.from_env()
    logger: InfraLogger = initialize_logger(
        component_name="ddr_pipeline",
        level=logger_level,
        run_meta={
            "corpus_path": str(settings.corpus_path),
            "lexicon_path": str(settings.lexicon_path),
            "embedding_path": str(settings.embedding_path),
            "missing_token_policy": settings.missing_token_policy,
        },
    )
    logger.info("ddr_run_started", msg="Starting DDR pipeline")

    corpus_df: pd.DataFrame = load_corpus(settings.corpus_path, row_limit=settings.corpus_row_limit)
    tokens_df: pd.DataFrame = tokenize_corpus(corpus_df)
    document_tokens: List[DocumentToken] = document_token_pairs(tokens_df)
    dictionary_pairs: List[DictionaryPair] = load_lexicon(settings.lexicon_path)
    logger.info(
        "inputs_loaded",
        context={
            "documents": len(corpus_df),
            "tokens": len(document_tokens),
            "dictionary_pairs": len(dictionary_pairs),
        },
    )

    try:
        result: DDRResult = run_ddr_pipeline(
            document_tokens,
            dictionary_pairs,
            settings.embedding_path,
            vocab_term_max=settings.vocab_term_max,
            missing_token_policy=settings.missing_token_policy,
            embedding_dim=settings.embedding_dim,
            logger=logger,
        )
    except PipelineStageError as exc:
        logger.error(
            "ddr_run_failed",
            msg=str(exc),
            context={"stage": exc.stage, "source": exc.source},
        )
        raise

    written: Dict[str, Path] = export_ddr_artifacts(
        result.category_centers,
        result.document_vectors,
        result.similarity_matrix,
        settings.output_dir,
    )
    logger.for_stage("export").info(
        "ddr_artifacts_written",
        context={name: str(path) for name, path in written.items()},
    )
    logger.info("ddr_run_finished", msg="DDR pipeline finished")


def extract_cli_args() -> str:
    """
    Read the optional log level from `sys.argv[1]`, defaulting to "INFO".
    """

    logger_level: str = "INFO"
    if len(sys.argv) == 2:
        logger_level = sys.argv[1]
    return logger_level


def run_ddr_pipeline(
    document_tokens: Sequence[DocumentToken],
    dictionary_pairs: Sequence[DictionaryPair],
    embedding_path: str | Path,
    vocab_term_max: int | None = DEFAULT_VOCAB_TERM_MAX,
    missing_token_policy: str = DEFAULT_MISSING_TOKEN_POLICY,
    embedding_dim: int | None = DEFAULT_EMBEDDING_DIM,
    logger: InfraLogger | None = None,
) -> DDRResult:
    """
    Run every DDR stage on in-memory tokens and dictionary pairs.

    Parameters
    ----------
    document_tokens : Sequence[tuple[str, str]]
        Tidy `(doc_id, token)` pairs.
    dictionary_pairs : Sequence[tuple[str, str]]
        `(token, category)` lexicon pairs.
    embedding_path : str or pathlib.Path
        Pretrained embedding text file.
    vocab_term_max : int or None, default 20000
        Cap on corpus-derived vocabulary tokens.
    missing_token_policy : str, default "omit"
        Forwarded to `load_embedding_table`.
    embedding_dim : int or None, default 100
        Expected vector length; None infers it from the file.
    logger : InfraLogger, optional
        Root logger; a stage-bound child is derived for each stage.

    Returns
    -------
    DDRResult
        All intermediate and final artifacts.

    Raises
    ------
    PipelineStageError
        If the corpus or the lexicon is empty, or if every category or every
        document vector is undefined.
    EmbeddingLoadError
        If the embedding file yields no vocabulary vector.
    ValueError
        For invalid knobs (unknown policy, non-positive dimension).
    """

    if not dictionary_pairs:
        raise PipelineStageError("vocabulary_builder", "dictionary", "Dictionary has no pairs")
    if not document_tokens:
        raise PipelineStageError("vocabulary_builder", "corpus", "Corpus has no tokens")

    vocabulary: Vocabulary = build_vocabulary(
        document_tokens,
        [dictionary_pairs],
        vocab_term_max=vocab_term_max,
        logger=_stage_logger(logger, "vocabulary_builder"),
    )

    table, load_report = load_embedding_table(
        embedding_path,
        vocabulary,
        dimension=embedding_dim,
        missing_token_policy=missing_token_policy,
        logger=_stage_logger(logger, "embedding_loader"),
    )

    with ThreadPoolExecutor(max_workers=AGGREGATION_WORKER_COUNT) as executor:
        centers_future: Future[GroupVectors] = executor.submit(
            compute_category_centers,
            dictionary_pairs,
            table,
            _stage_logger(logger, "dictionary_center_aggregator"),
        )
        documents_future: Future[GroupVectors] = executor.submit(
            compute_document_vectors,
            document_tokens,
            table,
            _stage_logger(logger, "document_vector_aggregator"),
        )
        category_centers: GroupVectors = centers_future.result()
        document_vectors: GroupVectors = documents_future.result()

    if not category_centers.defined_keys:
        raise PipelineStageError(
            "dictionary_center_aggregator",
            str(embedding_path),
            "Every dictionary category is undefined: no dictionary token has a vector",
        )
    if not document_vectors.defined_keys:
        raise PipelineStageError(
            "document_vector_aggregator",
            str(embedding_path),
            "Every document vector is undefined: no corpus token has a vector",
        )

    similarity_matrix: pd.DataFrame = cosine_similarity_matrix(document_vectors, category_centers)
    scorer_logger: InfraLogger | None = _stage_logger(logger, "cosine_similarity_scorer")
    if scorer_logger is not None:
        scorer_logger.info(
            "similarity_matrix_computed",
            context={
                "documents": similarity_matrix.shape[0],
                "categories": similarity_matrix.shape[1],
                "undefined_documents": len(document_vectors.undefined),
                "undefined_categories": len(category_centers.undefined),
            },
        )

    return DDRResult(
        vocabulary=vocabulary,
        table=table,
        load_report=load_report,
        category_centers=category_centers,
        document_vectors=document_vectors,
        similarity_matrix=similarity_matrix,
    )


def run_subsample_robustness(
    document_vectors: GroupVectors,
    dictionary_pairs: Iterable[DictionaryPair],
    table: EmbeddingTable,
    fraction: float,
    seeds: Iterable[int] = DEFAULT_SEED_NUMBERS,
    logger: InfraLogger | None = None,
) -> Dict[int, pd.DataFrame]:
    """
    Re-score documents against random dictionary subsamples, one per seed.

    Parameters
    ----------
    document_vectors : GroupVectors
        Document vectors from a full run.
    dictionary_pairs : Iterable[tuple[str, str]]
        Full lexicon pairs.
    table : EmbeddingTable
        Table of the full run.
    fraction : float
        Share of each category kept in every subsample, in (0, 1].
    seeds : Iterable[int], default [42, 43, 44, 45]
        One subsample per seed.
    logger : InfraLogger, optional
        Root logger.

    Returns
    -------
    dict[int, pandas.DataFrame]
        Seed → similarity matrix computed with that seed's category centers.
    """

    pairs: List[DictionaryPair] = list(dictionary_pairs)
    stage_logger: InfraLogger | None = _stage_logger(logger, "dictionary_center_aggregator")
    matrices: Dict[int, pd.DataFrame] = {}
    for seed in seeds:
        subsample: List[DictionaryPair] = subsample_dictionary(pairs, seed, fraction=fraction)
        centers: GroupVectors = compute_category_centers(subsample, table, stage_logger)
        matrices[seed] = cosine_similarity_matrix(document_vectors, centers)
        if stage_logger is not None:
            stage_logger.debug(
                "dictionary_subsample_scored",
                context={"seed": seed, "pairs_kept": len(subsample), "pairs_total": len(pairs)},
            )
    return matrices


def _stage_logger(logger: InfraLogger | None, stage: str) -> InfraLogger | None:
    if logger is None:
        return None
    return logger.for_stage(stage)


if __name__ == "__main__":
    main()
