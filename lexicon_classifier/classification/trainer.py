"""Model training on labelled feature matrices."""

import logging
import threading
from typing import Optional

import numpy as np

from lexicon_classifier.core.constants import DEFAULT_SEED, DEFAULT_STRATEGY
from lexicon_classifier.core.exceptions import (
    EmptyFeatureMatrixError,
    InsufficientClassesError,
    InvalidConfigurationError,
    OperationCancelledError,
)
from .classifier import get_strategy
from .features import FeatureMatrix
from .model import TrainedModel

logger = logging.getLogger(__name__)


def check_training_matrix(matrix: FeatureMatrix):
    """Raise if ``matrix`` cannot be trained on."""
    if matrix.n_rows == 0:
        raise EmptyFeatureMatrixError("Cannot train on a feature matrix with zero rows")
    if not matrix.has_labels:
        raise InvalidConfigurationError("Training requires a feature matrix built with training=True")
    if matrix.values.nnz == 0:
        raise EmptyFeatureMatrixError("Every row of the training matrix is zero")

    n_classes = len(set(matrix.labels))
    if n_classes < 2:
        raise InsufficientClassesError(
            f"Training requires at least 2 distinct labels, found {n_classes}"
        )


def train_model(
    matrix: FeatureMatrix,
    strategy: str = DEFAULT_STRATEGY,
    random_state: int = DEFAULT_SEED,
    cancel_event: Optional[threading.Event] = None,
    **params
) -> TrainedModel:
    """
    Fit a classifier strategy on a labelled feature matrix.

    The matrix's segmentation (segment size and whether trailing short
    segments were dropped) is recorded in the model, so new data is cut the
    same way when the model is applied.

    Args:
        matrix: Feature matrix built with ``training=True``
        strategy: Classifier strategy name ('logistic', 'linear_svm', 'kernel_svm')
        random_state: Random seed for the classifier
        cancel_event: Checked before and after fitting; when set, the call
            raises OperationCancelledError and no model is returned
        **params: Extra keyword arguments for the underlying estimator

    Returns:
        TrainedModel

    Raises:
        EmptyFeatureMatrixError: If the matrix has no rows or only zero rows
        InsufficientClassesError: If fewer than two labels are present
        InvalidConfigurationError: If the matrix is unlabelled or the
            strategy is unknown
        OperationCancelledError: If cancelled

    Examples:
        >>> matrix = build_feature_matrix(records, vocab, training=True)
        >>> model = train_model(matrix, strategy='logistic')
    """
    check_training_matrix(matrix)
    clf = get_strategy(strategy, random_state=random_state, **params)

    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError("Training cancelled")

    logger.info(
        f"Training {strategy} classifier on {matrix.n_rows} rows, "
        f"{len(matrix.vocabulary)} terms, {len(set(matrix.labels))} labels"
    )
    clf.fit(matrix.values, np.array(matrix.labels))

    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError("Training cancelled")

    return TrainedModel(
        vocabulary=matrix.vocabulary,
        labels=tuple(str(label) for label in clf.classes_),
        weights=clf.coef_,
        bias=clf.intercept_,
        idf=np.array(matrix.idf, dtype=float),
        segment_size=matrix.segment_size,
        drop_partial=matrix.drop_partial,
        strategy=strategy,
    )
