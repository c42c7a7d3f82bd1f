"""
Purpose
-------
Derive the vocabulary that the embedding loader is allowed to keep: the
frequency-pruned corpus tokens plus every token of every supplied dictionary.

Key behaviors
-------------
- Tally global term counts and document frequencies from tidy
  `(doc_id, token)` pairs.
- Prune by term-count bounds, minimum document frequency, and an optional
  cap that keeps only the most frequent terms.
- Union the pruned corpus vocabulary with all dictionary tokens so lexicon
  words are never lost to frequency pruning.

Conventions
-----------
- Tokens are used exactly as given (already lower-cased upstream).
- Ties at the `vocab_term_max` cut-off are broken by token string so the
  same corpus always yields the same vocabulary.
- The returned vocabulary is a `frozenset` and is never mutated afterwards.

Downstream usage
----------------
Call `build_vocabulary` once per run and pass its result to
`ddr.embedding_loader.load_embedding_table`.
"""

from dataclasses import dataclass
from typing import Counter, Iterable

from ddr.ddr_types import DictionaryPair, DocumentToken, Vocabulary
from infra.logging.infra_logger import InfraLogger


@dataclass
class FrequencyCounters:
    """
    Purpose
    -------
    Token-level frequency statistics for one corpus.

    Parameters
    ----------
    term_counter : Counter[str]
        Global number of occurrences of each token.
    document_counter : Counter[str]
        Number of distinct documents each token appears in.
    document_count : int
        Number of distinct documents seen.
    """

    term_counter: Counter[str]
    document_counter: Counter[str]
    document_count: int = 0


def count_token_frequencies(document_tokens: Iterable[DocumentToken]) -> FrequencyCounters:
    """
    Tally term and document frequencies from `(doc_id, token)` pairs.

    Parameters
    ----------
    document_tokens : Iterable[tuple[str, str]]
        Tidy token stream; each pair is one token occurrence in one document.

    Returns
    -------
    FrequencyCounters
        Counters over every token of the stream (no pruning applied).
    """

    term_counter: Counter[str] = Counter()
    seen_pairs: set[DocumentToken] = set()
    seen_documents: set[str] = set()
    for doc_id, token in document_tokens:
        term_counter[token] += 1
        seen_pairs.add((doc_id, token))
        seen_documents.add(doc_id)
    document_counter: Counter[str] = Counter(token for _, token in seen_pairs)
    return FrequencyCounters(term_counter, document_counter, len(seen_documents))


def prune_vocabulary(
    frequency_counters: FrequencyCounters,
    term_count_min: int = 1,
    term_count_max: int | None = None,
    doc_count_min: int = 1,
    vocab_term_max: int | None = None,
) -> set[str]:
    """
    Select the corpus tokens that survive frequency pruning.

    Parameters
    ----------
    frequency_counters : FrequencyCounters
        Counters produced by `count_token_frequencies`.
    term_count_min : int, default 1
        Minimum global count (inclusive).
    term_count_max : int or None, default None
        Maximum global count (inclusive); None disables the bound.
    doc_count_min : int, default 1
        Minimum document frequency (inclusive).
    vocab_term_max : int or None, default None
        Keep at most this many of the surviving tokens, most frequent first.

    Returns
    -------
    set[str]
        Tokens kept from the corpus.

    Raises
    ------
    ValueError
        If `vocab_term_max` is negative.

    Notes
    -----
    - Bounds are applied before the cap, so the cap only ranks tokens that
      already satisfy every bound.
    """

    if vocab_term_max is not None and vocab_term_max < 0:
        raise ValueError(f"vocab_term_max must be non-negative, got {vocab_term_max}")
    term_counter: Counter[str] = frequency_counters.term_counter
    document_counter: Counter[str] = frequency_counters.document_counter
    candidates: list[str] = [
        token
        for token, count in term_counter.items()
        if count >= term_count_min
        and (term_count_max is None or count <= term_count_max)
        and document_counter.get(token, 0) >= doc_count_min
    ]
    if vocab_term_max is not None and len(candidates) > vocab_term_max:
        candidates.sort(key=lambda token: (-term_counter[token], token))
        candidates = candidates[:vocab_term_max]
    return set(candidates)


def build_vocabulary(
    document_tokens: Iterable[DocumentToken],
    dictionaries: Iterable[Iterable[DictionaryPair]] = (),
    vocab_term_max: int | None = None,
    term_count_min: int = 1,
    term_count_max: int | None = None,
    doc_count_min: int = 1,
    logger: InfraLogger | None = None,
) -> Vocabulary:
    """
    Build the vocabulary used to filter the embedding table.

    Parameters
    ----------
    document_tokens : Iterable[tuple[str, str]]
        Tidy `(doc_id, token)` corpus stream.
    dictionaries : Iterable[Iterable[tuple[str, str]]], default ()
        Zero or more dictionaries given as `(token, category)` pairs.
    vocab_term_max : int or None, default None
        Cap on the number of corpus-derived tokens.
    term_count_min, term_count_max, doc_count_min
        Forwarded to `prune_vocabulary`.
    logger : InfraLogger, optional
        Stage logger receiving a size summary.

    Returns
    -------
    frozenset[str]
        Pruned corpus tokens ∪ every dictionary token.

    Notes
    -----
    - An empty corpus yields exactly the dictionary tokens.
    - Dictionary tokens are added after pruning, so they are never dropped
      even when rare or absent in the corpus.
    """

    frequency_counters: FrequencyCounters = count_token_frequencies(document_tokens)
    corpus_vocabulary: set[str] = prune_vocabulary(
        frequency_counters,
        term_count_min=term_count_min,
        term_count_max=term_count_max,
        doc_count_min=doc_count_min,
        vocab_term_max=vocab_term_max,
    )
    dictionary_tokens: set[str] = {
        token for dictionary in dictionaries for token, _ in dictionary
    }
    vocabulary: Vocabulary = frozenset(corpus_vocabulary | dictionary_tokens)

    if logger is not None:
        logger.info(
            event="vocabulary_built",
            msg="Built vocabulary from corpus and dictionaries",
            context={
                "corpus_documents": frequency_counters.document_count,
                "corpus_types_before_pruning": len(frequency_counters.term_counter),
                "corpus_types_after_pruning": len(corpus_vocabulary),
                "dictionary_tokens": len(dictionary_tokens),
                "dictionary_only_tokens": len(dictionary_tokens - corpus_vocabulary),
                "vocabulary_size": len(vocabulary),
            },
        )
    return vocabulary
