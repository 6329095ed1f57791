"""Pipeline configuration."""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from .constants import (
    DEFAULT_MAX_WORD_SET,
    DEFAULT_MIN_DOC_COUNT,
    DEFAULT_PROP_TRAIN,
    DEFAULT_SEED,
    DEFAULT_STRATEGY,
    LEMMATIZATION_LANGUAGES,
)
from .exceptions import InvalidConfigurationError


def check_min_doc_count(min_doc_count):
    if isinstance(min_doc_count, bool) or not isinstance(min_doc_count, int) or min_doc_count < 1:
        raise InvalidConfigurationError(
            f"min_doc_count must be an integer >= 1, got {min_doc_count!r}"
        )


def check_max_word_set(max_word_set):
    if isinstance(max_word_set, bool) or not isinstance(max_word_set, int) or max_word_set < 0:
        raise InvalidConfigurationError(
            f"max_word_set must be an integer >= 0, got {max_word_set!r}"
        )


def check_segment_size(segment_size):
    if segment_size is None:
        return
    if isinstance(segment_size, bool) or not isinstance(segment_size, int) or segment_size < 0:
        raise InvalidConfigurationError(
            f"segment_size must be an integer >= 0, got {segment_size!r}"
        )


def check_prop_train(prop_train):
    if isinstance(prop_train, bool) or not isinstance(prop_train, (int, float)):
        raise InvalidConfigurationError(f"prop_train must be a number, got {prop_train!r}")
    if not 0 < prop_train < 100:
        raise InvalidConfigurationError(
            f"prop_train must lie strictly between 0 and 100, got {prop_train}"
        )


def check_language(language):
    if language is not None and language not in LEMMATIZATION_LANGUAGES:
        raise InvalidConfigurationError(
            f"Unsupported lemmatization language {language!r}; "
            f"expected one of {LEMMATIZATION_LANGUAGES} or None"
        )


@dataclass(frozen=True)
class PipelineConfig:
    """
    Parameters consumed by the training, evaluation and prediction workflows.

    Values are validated on construction, so an instance that exists is
    always usable.

    Attributes:
        min_doc_count: Minimum number of documents a term must appear in
        max_word_set: Cap on vocabulary size (0 = unbounded)
        segment_size: Tokens per segment (0 = one segment per document)
        drop_partial: Drop the trailing short segment of long documents
        prop_train: Train split percentage for evaluation, in (0, 100)
        lemmatization: Language code for lemma substitution, or None (off)
        strategy: Classifier strategy name
        seed: Random seed for splits and classifiers
        n_jobs: Worker threads for feature building and prediction
    """

    min_doc_count: int = DEFAULT_MIN_DOC_COUNT
    max_word_set: int = DEFAULT_MAX_WORD_SET
    segment_size: int = 0
    drop_partial: bool = False
    prop_train: float = DEFAULT_PROP_TRAIN
    lemmatization: Optional[str] = None
    strategy: str = DEFAULT_STRATEGY
    seed: int = DEFAULT_SEED
    n_jobs: int = 1

    def __post_init__(self):
        check_min_doc_count(self.min_doc_count)
        check_max_word_set(self.max_word_set)
        check_segment_size(self.segment_size)
        check_prop_train(self.prop_train)
        check_language(self.lemmatization)
        if not isinstance(self.n_jobs, int) or self.n_jobs < 1:
            raise InvalidConfigurationError(f"n_jobs must be an integer >= 1, got {self.n_jobs!r}")

        # Imported here to avoid a cycle with the classification package
        from lexicon_classifier.classification.classifier import CLASSIFIER_STRATEGIES
        if self.strategy not in CLASSIFIER_STRATEGIES:
            raise InvalidConfigurationError(
                f"Unknown strategy {self.strategy!r}; "
                f"expected one of {sorted(CLASSIFIER_STRATEGIES)}"
            )

    @classmethod
    def from_dict(cls, values: dict) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidConfigurationError(f"Unknown configuration keys: {unknown}")
        return cls(**values)

    def override(self, **values) -> "PipelineConfig":
        """Return a copy with the non-None values replaced."""
        updates = {key: value for key, value in values.items() if value is not None}
        return replace(self, **updates)


def load_config(path) -> PipelineConfig:
    """
    Load a PipelineConfig from a JSON file.

    Args:
        path: Path to a JSON object whose keys are PipelineConfig fields

    Returns:
        Validated PipelineConfig

    Raises:
        InvalidConfigurationError: If the file is not a JSON object or holds
            unknown keys or out-of-range values
    """
    with open(Path(path), 'r', encoding='utf-8') as f:
        try:
            values = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfigurationError(f"Could not parse config file {path}: {e}") from e

    if not isinstance(values, dict):
        raise InvalidConfigurationError(f"Config file {path} must hold a JSON object")

    return PipelineConfig.from_dict(values)
