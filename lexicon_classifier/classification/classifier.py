"""Linear classifier strategies behind a common fit / decision_function contract."""

from typing import Dict, Type
import numpy as np
from scipy import sparse
from scipy.special import softmax
from sklearn.linear_model import LogisticRegression
from sklearn.multiclass import OneVsRestClassifier
from sklearn.svm import SVC, LinearSVC

from lexicon_classifier.core.exceptions import InvalidConfigurationError


class LinearStrategy:
    """
    Base class for classifier strategies with one weight vector per label.

    Subclasses build the underlying scikit-learn estimator and read its
    per-label weights back. After ``fit``, every strategy exposes the same
    attributes, whatever the estimator:

    Attributes:
        classes_: Array of class labels
        n_classes_: Number of classes
        coef_: Weights (n_classes × n_features)
        intercept_: Bias terms (n_classes,)

    Examples:
        >>> clf = LogisticStrategy(random_state=42)
        >>> clf.fit(X_train, y_train)
        >>> probabilities = clf.predict_proba(X_test)
    """

    name = None

    def __init__(self, random_state: int = 42, **params):
        self.random_state = random_state
        self.params = params
        self.classifier = None
        self.classes_ = None
        self.n_classes_ = None
        self.coef_ = None
        self.intercept_ = None

    def _build(self):
        raise NotImplementedError

    def _raw_weights(self):
        """Return (coef, intercept) as exposed by the fitted estimator."""
        return self.classifier.coef_, self.classifier.intercept_

    def fit(self, X, y: np.ndarray):
        """
        Train classifier on feature matrix and labels.

        Args:
            X: Feature matrix (n_samples × n_features), dense or sparse
            y: Labels array (n_samples,)

        Returns:
            self
        """
        self.classifier = self._build()
        self.classifier.fit(X, y)
        self.classes_ = np.asarray(self.classifier.classes_)
        self.n_classes_ = len(self.classes_)

        coef, intercept = self._raw_weights()
        if sparse.issparse(coef):
            coef = coef.toarray()
        coef = np.atleast_2d(np.asarray(coef, dtype=float))
        intercept = np.atleast_1d(np.asarray(intercept, dtype=float))

        if self.n_classes_ == 2 and coef.shape[0] == 1:
            # A binary estimator learns one discriminant w.x + b for the second
            # class; split it symmetrically so softmax gives the same sigmoid.
            coef = np.vstack([-coef[0] / 2, coef[0] / 2])
            intercept = np.array([-intercept[0] / 2, intercept[0] / 2])

        self.coef_ = coef
        self.intercept_ = intercept
        return self

    def decision_function(self, X) -> np.ndarray:
        """Per-label scores (n_samples × n_classes) from the stored weights."""
        if self.coef_ is None:
            raise ValueError("Classifier must be fitted before scoring")
        scores = X @ self.coef_.T
        return np.asarray(scores) + self.intercept_

    def predict_proba(self, X) -> np.ndarray:
        return softmax(self.decision_function(X), axis=1)

    def predict(self, X) -> np.ndarray:
        return self.classes_[np.argmax(self.decision_function(X), axis=1)]


class LogisticStrategy(LinearStrategy):
    """Multinomial logistic regression."""

    name = 'logistic'

    def _build(self):
        params = {'C': 10.0, 'max_iter': 1000}
        params.update(self.params)
        return LogisticRegression(random_state=self.random_state, **params)


class LinearSVMStrategy(LinearStrategy):
    """One-vs-rest linear support vector machine."""

    name = 'linear_svm'

    def _build(self):
        params = {'C': 1.0, 'max_iter': 5000}
        params.update(self.params)
        return LinearSVC(random_state=self.random_state, **params)


class KernelSVMStrategy(LinearStrategy):
    """
    One-vs-rest kernel machine (SVC with a linear kernel).

    Only the linear kernel has per-term weights, so the kernel is fixed.
    """

    name = 'kernel_svm'

    def _build(self):
        params = {'C': 1.0}
        params.update(self.params)
        params.pop('kernel', None)
        return OneVsRestClassifier(
            SVC(kernel='linear', random_state=self.random_state, **params)
        )

    def _raw_weights(self):
        coef = []
        intercept = []
        for estimator in self.classifier.estimators_:
            estimator_coef = estimator.coef_
            if sparse.issparse(estimator_coef):
                estimator_coef = estimator_coef.toarray()
            coef.append(np.asarray(estimator_coef, dtype=float)[0])
            intercept.append(float(estimator.intercept_[0]))
        return np.vstack(coef), np.array(intercept)


CLASSIFIER_STRATEGIES: Dict[str, Type[LinearStrategy]] = {
    LogisticStrategy.name: LogisticStrategy,
    LinearSVMStrategy.name: LinearSVMStrategy,
    KernelSVMStrategy.name: KernelSVMStrategy,
}


def get_strategy(name: str, random_state: int = 42, **params) -> LinearStrategy:
    """Instantiate a classifier strategy by name."""
    if name not in CLASSIFIER_STRATEGIES:
        raise InvalidConfigurationError(
            f"Unknown strategy {name!r}; expected one of {sorted(CLASSIFIER_STRATEGIES)}"
        )
    return CLASSIFIER_STRATEGIES[name](random_state=random_state, **params)
