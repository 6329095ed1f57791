"""Vocabulary selection from tokenized documents."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple

import pandas as pd

from lexicon_classifier.core.config import check_max_word_set, check_min_doc_count
from lexicon_classifier.core.constants import DEFAULT_MAX_WORD_SET, DEFAULT_MIN_DOC_COUNT
from lexicon_classifier.core.exceptions import EmptyVocabularyError, InvalidConfigurationError
from lexicon_classifier.core.records import TokenRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Vocabulary:
    """
    Ordered, frozen set of feature terms.

    Attributes:
        terms: Terms in column order
        doc_counts: Number of distinct documents containing each term
        index: Mapping term → column index
    """

    terms: Tuple[str, ...]
    doc_counts: Tuple[int, ...]
    index: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if len(self.terms) != len(self.doc_counts):
            raise InvalidConfigurationError(
                f"Vocabulary has {len(self.terms)} terms but {len(self.doc_counts)} counts"
            )
        index = {term: i for i, term in enumerate(self.terms)}
        if len(index) != len(self.terms):
            raise InvalidConfigurationError("Vocabulary terms must be unique")
        object.__setattr__(self, 'index', index)

    def __len__(self):
        return len(self.terms)

    def __contains__(self, term):
        return term in self.index

    def __iter__(self):
        return iter(self.terms)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({'term': list(self.terms), 'doc_count': list(self.doc_counts)})


def build_vocabulary(
    records: Iterable[TokenRecord],
    min_doc_count: int = DEFAULT_MIN_DOC_COUNT,
    max_word_set: int = DEFAULT_MAX_WORD_SET
) -> Vocabulary:
    """
    Select the working term set by document frequency.

    Document frequency is the number of distinct documents containing a
    term, not its raw count. Terms below ``min_doc_count`` are dropped; when
    ``max_word_set`` > 0 only the most frequent ``max_word_set`` terms are
    kept. Ordering is descending document frequency, then ascending term, so
    truncation ties are broken lexicographically and the result is identical
    across runs on identical input.

    Args:
        records: Token records (lemmatized already, if lemmatization is on)
        min_doc_count: Minimum document frequency (>= 1)
        max_word_set: Maximum vocabulary size (0 = unlimited)

    Returns:
        Vocabulary

    Raises:
        InvalidConfigurationError: If a parameter is out of range
        EmptyVocabularyError: If no term survives filtering

    Examples:
        >>> vocab = build_vocabulary(records, min_doc_count=2, max_word_set=0)
        >>> vocab.terms
        ('a',)
    """
    check_min_doc_count(min_doc_count)
    check_max_word_set(max_word_set)

    pairs = pd.DataFrame(
        [(record.document_id, record.term) for record in records],
        columns=['document', 'term']
    )
    if pairs.empty:
        raise EmptyVocabularyError("Cannot build a vocabulary from an empty token stream")

    doc_counts = (
        pairs.drop_duplicates()
        .groupby('term')
        .size()
        .rename('doc_count')
        .reset_index()
    )
    n_candidates = len(doc_counts)

    doc_counts = doc_counts[doc_counts['doc_count'] >= min_doc_count]
    doc_counts = doc_counts.sort_values(
        ['doc_count', 'term'], ascending=[False, True], kind='mergesort'
    )
    if max_word_set > 0:
        doc_counts = doc_counts.head(max_word_set)

    if doc_counts.empty:
        raise EmptyVocabularyError(
            f"No term appears in at least {min_doc_count} documents "
            f"({n_candidates} candidate terms)"
        )

    vocabulary = Vocabulary(
        terms=tuple(doc_counts['term'].tolist()),
        doc_counts=tuple(int(count) for count in doc_counts['doc_count'])
    )
    logger.info(
        f"Vocabulary size: {len(vocabulary)} terms "
        f"(from {n_candidates} candidates, min_doc_count={min_doc_count}, "
        f"max_word_set={max_word_set})"
    )
    return vocabulary
