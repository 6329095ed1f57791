"""
Pytest configuration and shared fixtures.

Every fixture runs the real pipeline on synthetic corpora (no mocks).
"""

import pytest

from lexicon_classifier.classification import (
    build_feature_matrix,
    build_vocabulary,
    train_model,
)
from lexicon_classifier.core import records_from_frame
from fixtures.corpus_generator import make_token_frame


@pytest.fixture
def token_frame():
    return make_token_frame()


@pytest.fixture
def labelled_records(token_frame):
    return records_from_frame(token_frame)


@pytest.fixture
def unlabelled_records():
    return records_from_frame(make_token_frame(n_per_label=3, seed=1, labelled=False, prefix='new_'))


@pytest.fixture
def vocabulary(labelled_records):
    return build_vocabulary(labelled_records, min_doc_count=2, max_word_set=0)


@pytest.fixture
def training_matrix(labelled_records, vocabulary):
    return build_feature_matrix(labelled_records, vocabulary, training=True, progress=False)


@pytest.fixture
def trained_model(training_matrix):
    return train_model(training_matrix, strategy='logistic', random_state=42)
