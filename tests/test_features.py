"""Tests for segmentation and tf-idf feature matrices."""

import threading

import numpy as np
import pytest
from scipy import sparse

from lexicon_classifier.classification import (
    Vocabulary,
    build_feature_matrix,
    build_vocabulary,
    compute_idf,
    segment_tokens,
)
from lexicon_classifier.core import (
    EmptyFeatureMatrixError,
    IncompatibleFeatureSpaceError,
    InvalidConfigurationError,
    OperationCancelledError,
)
from fixtures.corpus_generator import make_records


class TestSegmentTokens:
    """Test splitting token sequences into segments."""

    def test_five_tokens_size_two(self):
        """Five tokens in segments of two give sizes 2, 2, 1."""
        segments = segment_tokens(list('abcde'), segment_size=2)
        assert [len(s) for s in segments] == [2, 2, 1]
        assert segments == [['a', 'b'], ['c', 'd'], ['e']]

    def test_drop_partial(self):
        segments = segment_tokens(list('abcde'), segment_size=2, drop_partial=True)
        assert segments == [['a', 'b'], ['c', 'd']]

    def test_short_document_is_one_segment(self):
        """Documents shorter than the segment size are kept whole, even with drop_partial."""
        assert segment_tokens(list('abc'), segment_size=100) == [['a', 'b', 'c']]
        assert segment_tokens(list('abc'), segment_size=100, drop_partial=True) == [['a', 'b', 'c']]

    @pytest.mark.parametrize('segment_size', [0, None])
    def test_unset_size_keeps_whole_document(self, segment_size):
        assert segment_tokens(list('abcde'), segment_size=segment_size) == [list('abcde')]

    def test_default_size(self):
        segments = segment_tokens(['t'] * 250)
        assert [len(s) for s in segments] == [100, 100, 50]

    def test_negative_size_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            segment_tokens(list('abc'), segment_size=-1)


class TestBuildFeatureMatrix:
    """Test the weighted, normalized document-term matrix."""

    def test_segments_become_rows(self):
        """A 5-token document with segment_size=2 gives 3 rows."""
        records = make_records({'doc1': ['a', 'b', 'a', 'c', 'b']})
        vocab = Vocabulary(('a', 'b', 'c'), (1, 1, 1))
        matrix = build_feature_matrix(records, vocab, segment_size=2, progress=False)

        assert matrix.n_rows == 3
        assert matrix.rows == (('doc1', 0), ('doc1', 1), ('doc1', 2))

    def test_columns_follow_vocabulary(self, labelled_records, vocabulary):
        """Column set and order equal the vocabulary whatever documents are present."""
        some_docs = [r for r in labelled_records if r.document_id.startswith('sports')]
        full = build_feature_matrix(labelled_records, vocabulary, progress=False)
        partial = build_feature_matrix(some_docs, vocabulary, progress=False)

        assert full.shape[1] == len(vocabulary)
        assert partial.shape[1] == len(vocabulary)
        assert list(partial.to_frame().columns) == list(vocabulary.terms)
        assert list(full.to_frame().columns) == list(vocabulary.terms)

    def test_row_norms(self):
        """Rows with vocabulary terms have unit norm; rows without stay zero."""
        records = make_records({
            'doc1': ['a', 'b', 'b'],
            'doc2': ['a', 'x'],
            'doc3': ['x', 'y', 'z'],
        })
        vocab = Vocabulary(('a', 'b'), (2, 1))
        matrix = build_feature_matrix(records, vocab, progress=False)
        norms = matrix.row_norms()

        assert np.allclose(norms[:2], 1.0)
        assert norms[2] == 0.0

    def test_tfidf_values(self):
        """Weights are tf × add-one smoothed idf, then L2-normalized."""
        records = make_records({
            'doc1': ['a', 'a', 'b'],
            'doc2': ['a', 'c'],
        })
        vocab = Vocabulary(('a', 'b'), (2, 1))
        matrix = build_feature_matrix(records, vocab, progress=False)

        idf_b = np.log(3.0 / 2.0) + 1.0
        assert np.allclose(matrix.idf, [1.0, idf_b])

        doc1 = np.array([2.0 / 3.0, idf_b / 3.0])
        doc1 /= np.linalg.norm(doc1)
        dense = matrix.values.toarray()
        assert np.allclose(dense[0], doc1)
        assert np.allclose(dense[1], [1.0, 0.0])
        assert (dense >= 0).all()

    def test_out_of_vocabulary_tokens_dropped(self):
        records = make_records({'doc1': ['a', 'unknown', 'other']})
        matrix = build_feature_matrix(records, Vocabulary(('a',), (1,)), progress=False)
        assert np.allclose(matrix.values.toarray(), [[1.0]])

    def test_training_attaches_labels(self, labelled_records, vocabulary):
        matrix = build_feature_matrix(labelled_records, vocabulary, segment_size=10,
                                      training=True, progress=False)

        assert matrix.has_labels
        assert len(matrix.labels) == matrix.n_rows
        for (document, _), label in zip(matrix.rows, matrix.labels):
            assert document.startswith(label)
        assert 'label' in matrix.to_frame().index.names

    def test_no_labels_without_training(self, labelled_records, vocabulary):
        matrix = build_feature_matrix(labelled_records, vocabulary, training=False, progress=False)
        assert matrix.labels is None
        assert 'label' not in matrix.to_frame().index.names

    def test_frame_metadata_in_index(self, labelled_records, vocabulary):
        """Row metadata lives in the index, so the columns are only the terms."""
        matrix = build_feature_matrix(labelled_records, vocabulary, segment_size=10,
                                      training=True, progress=False)
        frame = matrix.to_frame()

        assert list(frame.index.names) == ['document', 'segment', 'label']
        assert list(frame.columns) == list(vocabulary.terms)
        assert [(document, segment) for document, segment, _ in frame.index] == list(matrix.rows)
        assert np.allclose(frame.to_numpy(), matrix.values.toarray())

    def test_segmentation_recorded(self, labelled_records, vocabulary):
        matrix = build_feature_matrix(labelled_records, vocabulary, segment_size=30,
                                      training=True, drop_partial=True, progress=False)

        assert matrix.segment_size == 30
        assert matrix.drop_partial is True
        # 40-token documents keep only their first full segment
        assert matrix.n_rows == len({document for document, _ in matrix.rows})

    def test_whole_document_segmentation_recorded(self, labelled_records, vocabulary):
        matrix = build_feature_matrix(labelled_records, vocabulary, segment_size=None, progress=False)
        assert matrix.segment_size == 0
        assert matrix.drop_partial is False

    def test_subset_keeps_segmentation(self, labelled_records, vocabulary):
        matrix = build_feature_matrix(labelled_records, vocabulary, segment_size=10,
                                      training=True, drop_partial=True, progress=False)

        for derived in (matrix.subset([0, 2, 4]), matrix.without_labels()):
            assert derived.segment_size == 10
            assert derived.drop_partial is True
        assert matrix.without_labels().labels is None

    def test_training_requires_labels(self, vocabulary):
        records = make_records({'doc1': ['goal', 'team']})
        with pytest.raises(InvalidConfigurationError):
            build_feature_matrix(records, vocabulary, training=True, progress=False)

    def test_empty_input(self, vocabulary):
        with pytest.raises(EmptyFeatureMatrixError):
            build_feature_matrix([], vocabulary, progress=False)

    def test_precomputed_idf_is_reused(self, labelled_records, vocabulary):
        idf = np.linspace(1.0, 2.0, len(vocabulary))
        matrix = build_feature_matrix(labelled_records, vocabulary, idf=idf, progress=False)
        assert np.array_equal(matrix.idf, idf)

    def test_precomputed_idf_wrong_length(self, labelled_records, vocabulary):
        with pytest.raises(IncompatibleFeatureSpaceError):
            build_feature_matrix(labelled_records, vocabulary,
                                 idf=np.ones(len(vocabulary) + 1), progress=False)

    def test_threads_match_sequential(self, labelled_records, vocabulary):
        sequential = build_feature_matrix(labelled_records, vocabulary, segment_size=7, progress=False)
        threaded = build_feature_matrix(labelled_records, vocabulary, segment_size=7,
                                        n_jobs=4, progress=False)

        assert sequential.rows == threaded.rows
        assert np.allclose(sequential.values.toarray(), threaded.values.toarray())

    def test_cancellation(self, labelled_records, vocabulary):
        cancel_event = threading.Event()
        cancel_event.set()
        with pytest.raises(OperationCancelledError):
            build_feature_matrix(labelled_records, vocabulary,
                                 cancel_event=cancel_event, progress=False)

    def test_subset_keeps_columns(self, training_matrix):
        subset = training_matrix.subset([0, 2])
        assert subset.n_rows == 2
        assert subset.terms == training_matrix.terms
        assert subset.labels == (training_matrix.labels[0], training_matrix.labels[2])


class TestComputeIdf:
    """Test add-one smoothed idf."""

    def test_formula(self):
        counts = sparse.csr_matrix(np.array([[1, 0], [1, 1]], dtype=float))
        assert np.allclose(compute_idf(counts), [1.0, np.log(3.0 / 2.0) + 1.0])

    def test_idf_at_least_one(self, labelled_records):
        vocab = build_vocabulary(labelled_records, min_doc_count=1, max_word_set=0)
        matrix = build_feature_matrix(labelled_records, vocab, progress=False)
        assert (matrix.idf >= 1.0).all()
