"""Applying a trained model to new feature matrices."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.special import softmax

from lexicon_classifier.core.exceptions import (
    IncompatibleFeatureSpaceError,
    InvalidConfigurationError,
    OperationCancelledError,
)
from lexicon_classifier.core.records import TokenRecord
from .features import FeatureMatrix, build_feature_matrix
from .model import TrainedModel

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1000


@dataclass(frozen=True)
class PredictionResult:
    """Ranked label probabilities for one row."""

    document_id: str
    segment_id: int
    ranking: Tuple[Tuple[str, float], ...]

    @property
    def label(self):
        return self.ranking[0][0]

    @property
    def probability(self):
        return self.ranking[0][1]


def check_feature_space(matrix: FeatureMatrix, model: TrainedModel):
    """Raise IncompatibleFeatureSpaceError unless the matrix columns are the model's vocabulary."""
    n_columns = matrix.values.shape[1]
    if n_columns != len(model.vocabulary):
        raise IncompatibleFeatureSpaceError(
            f"Feature matrix has {n_columns} columns, model vocabulary has "
            f"{len(model.vocabulary)} terms"
        )
    if tuple(matrix.terms) != tuple(model.vocabulary.terms):
        raise IncompatibleFeatureSpaceError(
            "Feature matrix columns do not match the model vocabulary terms and order"
        )


def predict(
    matrix: FeatureMatrix,
    model: TrainedModel,
    n_jobs: int = 1,
    cancel_event: Optional[threading.Event] = None
) -> List[PredictionResult]:
    """
    Rank the model's labels for every row of a feature matrix.

    Scores are X · Wᵀ + b, turned into probabilities with a softmax over
    labels. Labels in each ranking are sorted by descending probability;
    equal probabilities keep the model's label order.

    Args:
        matrix: Feature matrix over the model's vocabulary (labels, if any,
            are ignored)
        model: Trained model
        n_jobs: Worker threads; rows are scored in independent chunks
        cancel_event: Checked between chunks

    Returns:
        List of PredictionResult, in row order

    Raises:
        IncompatibleFeatureSpaceError: If the columns do not match the model

    Examples:
        >>> results = predict(matrix, model)
        >>> results[0].ranking
        (('news', 0.91), ('fiction', 0.09))
    """
    check_feature_space(matrix, model)
    if not isinstance(n_jobs, int) or n_jobs < 1:
        raise InvalidConfigurationError(f"n_jobs must be an integer >= 1, got {n_jobs!r}")

    def score_chunk(start):
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError("Prediction cancelled")
        chunk = matrix.values[start:start + CHUNK_SIZE]
        return softmax(model.decision_scores(chunk), axis=1)

    starts = range(0, matrix.n_rows, CHUNK_SIZE)
    if n_jobs > 1:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            chunks = list(executor.map(score_chunk, starts))
    else:
        chunks = [score_chunk(start) for start in starts]

    if not chunks:
        return []
    probabilities = np.vstack(chunks)

    results = []
    for (document_id, segment_id), row in zip(matrix.rows, probabilities):
        order = np.argsort(-row, kind='stable')
        ranking = tuple((model.labels[i], float(row[i])) for i in order)
        results.append(PredictionResult(document_id, segment_id, ranking))

    logger.debug(f"Predicted {len(results)} rows over {model.n_labels} labels")
    return results


def apply_model(
    records: Iterable[TokenRecord],
    model: TrainedModel,
    n_jobs: int = 1,
    cancel_event: Optional[threading.Event] = None,
    progress: bool = True
) -> List[PredictionResult]:
    """
    Build features for unlabelled records in the model's feature space and predict.

    The model's own vocabulary, training idf and segmentation are reused;
    nothing is recomputed from the new text.
    """
    matrix = build_feature_matrix(
        records,
        model.vocabulary,
        segment_size=model.segment_size,
        training=False,
        idf=model.idf,
        drop_partial=model.drop_partial,
        n_jobs=n_jobs,
        cancel_event=cancel_event,
        progress=progress
    )
    return predict(matrix, model, n_jobs=n_jobs, cancel_event=cancel_event)


def predictions_to_frame(results: List[PredictionResult]) -> pd.DataFrame:
    """
    Convert prediction results to long format.

    Returns:
        DataFrame with columns document, segment, rank (1 = best), label,
        probability
    """
    rows = []
    for result in results:
        for rank, (label, probability) in enumerate(result.ranking, start=1):
            rows.append({
                'document': result.document_id,
                'segment': result.segment_id,
                'rank': rank,
                'label': label,
                'probability': probability,
            })
    return pd.DataFrame(rows, columns=['document', 'segment', 'rank', 'label', 'probability'])
