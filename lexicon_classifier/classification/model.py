"""Trained model artifact and its export/import."""

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple
import logging
import pickle

import numpy as np

from lexicon_classifier.core.constants import MODEL_FORMAT_VERSION
from lexicon_classifier.core.exceptions import InvalidConfigurationError
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class TrainedModel:
    """
    Frozen classifier over a fixed vocabulary.

    Holds everything needed to rebuild the training feature space and score
    new rows: the vocabulary, the idf used at training time, the
    segmentation, and one weight vector plus bias per label.

    Attributes:
        vocabulary: Vocabulary the model was trained on
        labels: Known labels, in weight-row order
        weights: Per-label term weights (n_labels × n_terms)
        bias: Per-label bias terms (n_labels,)
        idf: Training-time idf per term (n_terms,)
        segment_size: Segment size used for training (0 = whole documents)
        drop_partial: Whether training dropped trailing short segments
        strategy: Name of the classifier strategy that produced the weights
    """

    vocabulary: Vocabulary
    labels: Tuple[str, ...]
    weights: np.ndarray
    bias: np.ndarray
    idf: np.ndarray
    segment_size: int = 0
    drop_partial: bool = False
    strategy: str = 'logistic'

    def __post_init__(self):
        n_labels = len(self.labels)
        n_terms = len(self.vocabulary)
        if self.weights.shape != (n_labels, n_terms):
            raise InvalidConfigurationError(
                f"Weights have shape {self.weights.shape}, expected ({n_labels}, {n_terms})"
            )
        if self.bias.shape != (n_labels,):
            raise InvalidConfigurationError(
                f"Bias has shape {self.bias.shape}, expected ({n_labels},)"
            )
        if self.idf.shape != (n_terms,):
            raise InvalidConfigurationError(
                f"idf has shape {self.idf.shape}, expected ({n_terms},)"
            )
        for array in (self.weights, self.bias, self.idf):
            array.setflags(write=False)

    @property
    def n_labels(self):
        return len(self.labels)

    def decision_scores(self, X) -> np.ndarray:
        """Raw per-label scores X · Wᵀ + b for a (sparse or dense) matrix."""
        return np.asarray(X @ self.weights.T) + self.bias

    def to_dict(self) -> dict:
        return {
            'format_version': MODEL_FORMAT_VERSION,
            'terms': list(self.vocabulary.terms),
            'doc_counts': list(self.vocabulary.doc_counts),
            'labels': list(self.labels),
            'weights': np.array(self.weights),
            'bias': np.array(self.bias),
            'idf': np.array(self.idf),
            'segment_size': self.segment_size,
            'drop_partial': self.drop_partial,
            'strategy': self.strategy,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TrainedModel":
        required_keys = [
            'format_version', 'terms', 'doc_counts', 'labels', 'weights', 'bias', 'idf',
            'segment_size', 'drop_partial',
        ]
        missing_keys = [key for key in required_keys if key not in data]
        if missing_keys:
            raise InvalidConfigurationError(f"Model data is missing keys: {missing_keys}")
        if data['format_version'] != MODEL_FORMAT_VERSION:
            raise InvalidConfigurationError(
                f"Unsupported model format version {data['format_version']} "
                f"(expected {MODEL_FORMAT_VERSION})"
            )

        return cls(
            vocabulary=Vocabulary(tuple(data['terms']), tuple(int(c) for c in data['doc_counts'])),
            labels=tuple(data['labels']),
            weights=np.array(data['weights'], dtype=float),
            bias=np.array(data['bias'], dtype=float),
            idf=np.array(data['idf'], dtype=float),
            segment_size=int(data['segment_size']),
            drop_partial=bool(data['drop_partial']),
            strategy=data.get('strategy', 'logistic'),
        )


def save_model(model: TrainedModel, path) -> str:
    """
    Save a trained model to a self-contained pickle file.

    Only plain lists, strings and numpy arrays are stored, so the file does
    not depend on this package's class layout.

    Args:
        model: Trained model
        path: Output file path (parent directories are created)

    Returns:
        Path to saved pickle file

    Examples:
        >>> save_model(model, 'models/classifier.pkl')
    """
    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'wb') as f:
        pickle.dump(model.to_dict(), f, protocol=4)

    logger.info(f"Model saved to: {filepath}")
    return str(filepath)


def load_model(path) -> TrainedModel:
    """
    Load a trained model saved by ``save_model``.

    Raises:
        InvalidConfigurationError: If the file does not hold a model of the
            supported format
    """
    with open(Path(path), 'rb') as f:
        data = pickle.load(f)

    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"{path} does not contain a saved model")

    return TrainedModel.from_dict(data)
