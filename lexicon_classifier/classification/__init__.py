"""Feature engineering, training, evaluation and prediction for text classification."""

from .vocabulary import Vocabulary, build_vocabulary
from .features import FeatureMatrix, build_feature_matrix, segment_tokens, compute_idf
from .classifier import (
    CLASSIFIER_STRATEGIES,
    LinearStrategy,
    LogisticStrategy,
    LinearSVMStrategy,
    KernelSVMStrategy,
    get_strategy,
)
from .model import TrainedModel, save_model, load_model
from .trainer import train_model
from .prediction import PredictionResult, predict, apply_model, predictions_to_frame
from .evaluation import (
    EvaluationReport,
    split_rows,
    confusion_table,
    evaluate_model,
    generate_cv_splits,
    run_cross_validation,
)
from .inspection import ModelInspector
from .experiment import (
    run_training,
    run_evaluation,
    run_prediction,
    save_evaluation_results,
    load_evaluation_results,
)

__all__ = [
    'Vocabulary',
    'build_vocabulary',
    'FeatureMatrix',
    'build_feature_matrix',
    'segment_tokens',
    'compute_idf',
    'CLASSIFIER_STRATEGIES',
    'LinearStrategy',
    'LogisticStrategy',
    'LinearSVMStrategy',
    'KernelSVMStrategy',
    'get_strategy',
    'TrainedModel',
    'save_model',
    'load_model',
    'train_model',
    'PredictionResult',
    'predict',
    'apply_model',
    'predictions_to_frame',
    'EvaluationReport',
    'split_rows',
    'confusion_table',
    'evaluate_model',
    'generate_cv_splits',
    'run_cross_validation',
    'ModelInspector',
    'run_training',
    'run_evaluation',
    'run_prediction',
    'save_evaluation_results',
    'load_evaluation_results',
]
