"""Segmentation and tf-idf feature matrices over a fixed vocabulary."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import sparse
from sklearn.feature_extraction.text import CountVectorizer
from sklearn.preprocessing import normalize
from tqdm import tqdm

from lexicon_classifier.core.config import check_segment_size
from lexicon_classifier.core.constants import DEFAULT_SEGMENT_SIZE
from lexicon_classifier.core.exceptions import (
    EmptyFeatureMatrixError,
    IncompatibleFeatureSpaceError,
    InvalidConfigurationError,
    OperationCancelledError,
)
from lexicon_classifier.core.records import TokenRecord
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class FeatureMatrix:
    """
    Weighted, row-normalized document-term matrix.

    Attributes:
        rows: (document_id, segment_id) for each row
        values: Sparse matrix (n_rows × n_terms) of tf-idf weights
        vocabulary: Vocabulary defining the columns, in order
        idf: Inverse document frequency per term used for the weights
        labels: Label per row, or None when not built for training
        segment_size: Tokens per segment the rows were cut with (0 = whole documents)
        drop_partial: Whether trailing short segments were dropped
    """

    rows: Tuple[Tuple[str, int], ...]
    values: sparse.csr_matrix
    vocabulary: Vocabulary
    idf: np.ndarray
    labels: Optional[Tuple[str, ...]] = None
    segment_size: int = 0
    drop_partial: bool = False

    @property
    def shape(self):
        return self.values.shape

    @property
    def n_rows(self):
        return self.values.shape[0]

    @property
    def terms(self):
        return self.vocabulary.terms

    @property
    def has_labels(self):
        return self.labels is not None

    def row_norms(self) -> np.ndarray:
        squared = self.values.multiply(self.values).sum(axis=1)
        return np.sqrt(np.asarray(squared).ravel())

    def subset(self, indices: Sequence[int]) -> "FeatureMatrix":
        """Return the rows at ``indices`` as a new matrix over the same columns."""
        indices = list(indices)
        labels = None
        if self.labels is not None:
            labels = tuple(self.labels[i] for i in indices)
        return FeatureMatrix(
            rows=tuple(self.rows[i] for i in indices),
            values=self.values[indices],
            vocabulary=self.vocabulary,
            idf=self.idf,
            labels=labels,
            segment_size=self.segment_size,
            drop_partial=self.drop_partial
        )

    def without_labels(self) -> "FeatureMatrix":
        return replace(self, labels=None)

    def to_frame(self) -> pd.DataFrame:
        """
        Dense table view: one column per vocabulary term, in vocabulary order.

        Row metadata (document, segment and, when present, label) lives in
        the index so the columns are exactly the vocabulary.
        """
        index_cols = {
            'document': [document for document, _ in self.rows],
            'segment': [segment for _, segment in self.rows],
        }
        if self.labels is not None:
            index_cols['label'] = list(self.labels)
        index = pd.MultiIndex.from_arrays(list(index_cols.values()), names=list(index_cols))
        return pd.DataFrame(self.values.toarray(), index=index, columns=list(self.terms))


def segment_tokens(
    tokens: Sequence[str],
    segment_size: Optional[int] = DEFAULT_SEGMENT_SIZE,
    drop_partial: bool = False
) -> List[List[str]]:
    """
    Split a token sequence into consecutive chunks of ``segment_size`` tokens.

    A falsy ``segment_size`` keeps the whole sequence as one segment. The
    trailing short chunk of a longer sequence is kept unless
    ``drop_partial`` is set; a sequence shorter than ``segment_size`` is
    always one segment.

    Examples:
        >>> [len(s) for s in segment_tokens(list('abcde'), segment_size=2)]
        [2, 2, 1]
    """
    check_segment_size(segment_size)
    tokens = list(tokens)
    if not segment_size or len(tokens) <= segment_size:
        return [tokens]

    segments = [tokens[i:i + segment_size] for i in range(0, len(tokens), segment_size)]
    if drop_partial and len(segments[-1]) < segment_size:
        segments = segments[:-1]
    return segments


def compute_idf(counts: sparse.csr_matrix) -> np.ndarray:
    """
    Add-one smoothed inverse document frequency over the rows of ``counts``.

    ``idf(t) = ln((1 + n_rows) / (1 + rows_containing(t))) + 1``
    """
    n_rows = counts.shape[0]
    containing = np.asarray((counts > 0).sum(axis=0)).ravel()
    return np.log((1.0 + n_rows) / (1.0 + containing)) + 1.0


def _identity(tokens):
    return tokens


def _group_documents(records: Iterable[TokenRecord]):
    """Group records by document, in first-seen order, tokens sorted by position."""
    tokens: Dict[str, List[Tuple[int, str]]] = {}
    labels: Dict[str, set] = {}
    for record in records:
        tokens.setdefault(record.document_id, []).append((record.position, record.term))
        doc_labels = labels.setdefault(record.document_id, set())
        if record.label is not None:
            doc_labels.add(record.label)

    documents = []
    for document_id, positioned in tokens.items():
        positioned.sort(key=lambda item: item[0])
        documents.append((document_id, [term for _, term in positioned], labels[document_id]))
    return documents


def build_feature_matrix(
    records: Iterable[TokenRecord],
    vocabulary: Vocabulary,
    segment_size: Optional[int] = 0,
    training: bool = False,
    idf: Optional[np.ndarray] = None,
    drop_partial: bool = False,
    n_jobs: int = 1,
    cancel_event: Optional[threading.Event] = None,
    progress: bool = True
) -> FeatureMatrix:
    """
    Build a tf-idf weighted, L2-normalized feature matrix.

    Steps:
    1. Segment each document's tokens (one segment per document when
       ``segment_size`` is 0 or None)
    2. Count vocabulary terms per segment; other tokens are dropped
    3. Weight: tf (count / segment length) × idf
    4. L2-normalize each row; rows without vocabulary terms stay zero
    5. Attach document labels when ``training`` is set

    The columns always follow ``vocabulary`` order, so matrices built at
    different times from different text share one feature space.

    Args:
        records: Token records
        vocabulary: Frozen vocabulary defining the columns
        segment_size: Tokens per segment (0/None = whole document)
        training: Attach labels to rows
        idf: Precomputed idf vector (e.g. from a trained model); computed
            over the segments of this call when None
        drop_partial: Drop the trailing short segment of long documents
        n_jobs: Worker threads used for per-document counting
        cancel_event: Checked between documents; when set, the call raises
            OperationCancelledError and returns nothing
        progress: Show a progress bar

    Returns:
        FeatureMatrix

    Raises:
        EmptyFeatureMatrixError: If there are no documents
        InvalidConfigurationError: If a parameter is out of range, or a
            training document has no label or several labels
        IncompatibleFeatureSpaceError: If ``idf`` does not match the vocabulary
        OperationCancelledError: If ``cancel_event`` is set during the build
    """
    check_segment_size(segment_size)
    if not isinstance(n_jobs, int) or n_jobs < 1:
        raise InvalidConfigurationError(f"n_jobs must be an integer >= 1, got {n_jobs!r}")
    if idf is not None:
        idf = np.asarray(idf, dtype=float)
        if idf.shape != (len(vocabulary),):
            raise IncompatibleFeatureSpaceError(
                f"idf has shape {idf.shape}, expected ({len(vocabulary)},)"
            )

    documents = _group_documents(records)
    if not documents:
        raise EmptyFeatureMatrixError("No documents to build a feature matrix from")

    if training:
        for document_id, _, doc_labels in documents:
            if len(doc_labels) != 1:
                raise InvalidConfigurationError(
                    f"Training document {document_id!r} must have exactly one label, "
                    f"found {sorted(doc_labels)}"
                )

    vectorizer = CountVectorizer(
        vocabulary=list(vocabulary.terms),
        analyzer=_identity,  # Input is already tokenized
        lowercase=False,
        dtype=np.float64
    )
    vectorizer.fit([list(vocabulary.terms)])

    def count_document(document):
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError("Feature matrix build cancelled")
        document_id, tokens, doc_labels = document
        segments = segment_tokens(tokens, segment_size, drop_partial)
        counts = vectorizer.transform(segments)
        lengths = np.array([len(segment) for segment in segments], dtype=float)
        label = next(iter(doc_labels)) if training else None
        return document_id, counts, lengths, label

    iterator = tqdm(documents, desc="Counting segments", disable=not progress)
    if n_jobs > 1:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            counted = list(executor.map(count_document, iterator))
    else:
        counted = [count_document(document) for document in iterator]

    rows = []
    labels = []
    for document_id, counts, _, label in counted:
        for segment_id in range(counts.shape[0]):
            rows.append((document_id, segment_id))
            labels.append(label)

    counts = sparse.vstack([item[1] for item in counted], format='csr')
    lengths = np.concatenate([item[2] for item in counted])
    if counts.shape[0] == 0:
        raise EmptyFeatureMatrixError("Segmentation produced no rows")

    if idf is None:
        idf = compute_idf(counts)

    tf = sparse.diags(1.0 / np.maximum(lengths, 1.0)) @ counts
    weights = normalize(sparse.csr_matrix(tf @ sparse.diags(idf)), norm='l2', axis=1)

    n_empty = int(np.sum(weights.getnnz(axis=1) == 0))
    if n_empty:
        logger.warning(f"{n_empty} of {weights.shape[0]} segments share no term with the vocabulary")
    logger.info(
        f"Feature matrix: {weights.shape[0]} segments from {len(documents)} documents "
        f"× {weights.shape[1]} terms"
    )

    return FeatureMatrix(
        rows=tuple(rows),
        values=weights,
        vocabulary=vocabulary,
        idf=idf,
        labels=tuple(labels) if training else None,
        segment_size=segment_size or 0,
        drop_partial=bool(drop_partial)
    )
