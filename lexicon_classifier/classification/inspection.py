"""Read-only views over a trained model's weights."""

from typing import Optional

import numpy as np
import pandas as pd

from .model import TrainedModel


class ModelInspector:
    """
    Interpretability accessors for a TrainedModel.

    Every method returns a fresh DataFrame or Series; the model itself is
    never modified.

    Examples:
        >>> inspector = ModelInspector(model)
        >>> inspector.top_terms(n=5, label='news')
    """

    def __init__(self, model: TrainedModel):
        self._model = model

    @property
    def labels(self):
        return self._model.labels

    def _label_index(self, label: str) -> int:
        try:
            return self._model.labels.index(label)
        except ValueError:
            raise KeyError(f"Unknown label {label!r}; model labels are {list(self._model.labels)}")

    def weight_table(self) -> pd.DataFrame:
        """Full weight table: labels as rows, vocabulary terms as columns."""
        return pd.DataFrame(
            np.array(self._model.weights),
            index=pd.Index(self._model.labels, name='label'),
            columns=pd.Index(self._model.vocabulary.terms, name='term'),
        )

    def bias(self) -> pd.Series:
        return pd.Series(
            np.array(self._model.bias),
            index=pd.Index(self._model.labels, name='label'),
            name='bias',
        )

    def label_weights(self, label: str) -> pd.Series:
        """Weights of one label, indexed by term."""
        row = self._model.weights[self._label_index(label)]
        return pd.Series(
            np.array(row),
            index=pd.Index(self._model.vocabulary.terms, name='term'),
            name=label,
        )

    def top_terms(self, n: int = 10, label: Optional[str] = None) -> pd.DataFrame:
        """
        Highest-magnitude terms per label.

        Terms are ranked by absolute weight; ties are broken by term.

        Args:
            n: Number of terms per label
            label: Restrict to one label, or None for every label

        Returns:
            DataFrame with columns label, rank (1 = strongest), term, weight

        Raises:
            KeyError: If ``label`` is not known to the model
        """
        labels = self._model.labels if label is None else (label,)
        terms = self._model.vocabulary.terms

        rows = []
        for current in labels:
            weights = self._model.weights[self._label_index(current)]
            order = sorted(range(len(terms)), key=lambda i: (-abs(weights[i]), terms[i]))
            for rank, i in enumerate(order[:n], start=1):
                rows.append({
                    'label': current,
                    'rank': rank,
                    'term': terms[i],
                    'weight': float(weights[i]),
                })
        return pd.DataFrame(rows, columns=['label', 'rank', 'term', 'weight'])

    def average_abs_weights(self) -> pd.Series:
        """Mean absolute weight of each term across labels."""
        return pd.Series(
            np.abs(self._model.weights).mean(axis=0),
            index=pd.Index(self._model.vocabulary.terms, name='term'),
            name='overall',
        )
