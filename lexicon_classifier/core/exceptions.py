"""Error taxonomy for the classification pipeline."""


class PipelineError(ValueError):
    """Base class for every error raised by the pipeline."""


class EmptyVocabularyError(PipelineError):
    """Vocabulary filtering removed every term."""


class InsufficientClassesError(PipelineError):
    """Training data holds fewer than two distinct labels."""


class EmptyFeatureMatrixError(PipelineError):
    """A feature matrix has no rows, or no usable weights."""


class IncompatibleFeatureSpaceError(PipelineError):
    """Feature matrix columns do not match the model's vocabulary."""


class InvalidConfigurationError(PipelineError):
    """A parameter is out of range or input data is malformed."""


class OperationCancelledError(PipelineError):
    """A long-running operation was cancelled; partial results are discarded."""
