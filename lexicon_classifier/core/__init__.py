"""Shared constants, configuration, errors and token records."""

from .config import PipelineConfig, load_config
from .exceptions import (
    PipelineError,
    EmptyVocabularyError,
    InsufficientClassesError,
    EmptyFeatureMatrixError,
    IncompatibleFeatureSpaceError,
    InvalidConfigurationError,
    OperationCancelledError,
)
from .records import TokenRecord, records_from_frame, read_token_table, read_lemma_table, apply_lemmas

__all__ = [
    'PipelineConfig',
    'load_config',
    'PipelineError',
    'EmptyVocabularyError',
    'InsufficientClassesError',
    'EmptyFeatureMatrixError',
    'IncompatibleFeatureSpaceError',
    'InvalidConfigurationError',
    'OperationCancelledError',
    'TokenRecord',
    'records_from_frame',
    'read_token_table',
    'read_lemma_table',
    'apply_lemmas',
]
