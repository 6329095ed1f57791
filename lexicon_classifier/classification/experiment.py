"""High-level workflows: train, evaluate and apply a classifier."""

from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import logging
import pickle
import threading

from lexicon_classifier.core.config import PipelineConfig
from lexicon_classifier.core.records import TokenRecord, apply_lemmas
from .evaluation import EvaluationReport, evaluate_model
from .features import build_feature_matrix
from .model import TrainedModel
from .prediction import PredictionResult, apply_model
from .trainer import train_model
from .vocabulary import build_vocabulary

logger = logging.getLogger(__name__)


def prepare_records(
    records: List[TokenRecord],
    config: PipelineConfig,
    lemma_lookup: Optional[Dict[Tuple[str, str], str]] = None
) -> List[TokenRecord]:
    """Apply lemma substitution when the config enables it."""
    if config.lemmatization is None:
        return list(records)
    return apply_lemmas(records, lemma_lookup or {}, config.lemmatization)


def _training_matrix(records, config, cancel_event, progress):
    vocabulary = build_vocabulary(
        records,
        min_doc_count=config.min_doc_count,
        max_word_set=config.max_word_set
    )
    return build_feature_matrix(
        records,
        vocabulary,
        segment_size=config.segment_size,
        training=True,
        drop_partial=config.drop_partial,
        n_jobs=config.n_jobs,
        cancel_event=cancel_event,
        progress=progress
    )


def run_training(
    records: List[TokenRecord],
    config: Optional[PipelineConfig] = None,
    lemma_lookup: Optional[Dict[Tuple[str, str], str]] = None,
    cancel_event: Optional[threading.Event] = None,
    progress: bool = True
) -> TrainedModel:
    """
    Train a model from labelled token records.

    Steps:
    1. Lemmatize (if configured)
    2. Build the vocabulary
    3. Build the labelled feature matrix
    4. Train the configured strategy

    Examples:
        >>> model = run_training(records, PipelineConfig(segment_size=100))
    """
    config = config or PipelineConfig()
    records = prepare_records(records, config, lemma_lookup)
    matrix = _training_matrix(records, config, cancel_event, progress)
    return train_model(
        matrix,
        strategy=config.strategy,
        random_state=config.seed,
        cancel_event=cancel_event
    )


def run_evaluation(
    records: List[TokenRecord],
    config: Optional[PipelineConfig] = None,
    lemma_lookup: Optional[Dict[Tuple[str, str], str]] = None,
    cancel_event: Optional[threading.Event] = None,
    progress: bool = True
) -> EvaluationReport:
    """
    Build features from labelled records and evaluate on a held-out split.

    Examples:
        >>> report = run_evaluation(records, PipelineConfig(prop_train=80))
        >>> print(report.summary())
    """
    config = config or PipelineConfig()
    records = prepare_records(records, config, lemma_lookup)
    matrix = _training_matrix(records, config, cancel_event, progress)
    return evaluate_model(
        matrix,
        prop_train=config.prop_train,
        seed=config.seed,
        strategy=config.strategy
    )


def run_prediction(
    records: List[TokenRecord],
    model: TrainedModel,
    config: Optional[PipelineConfig] = None,
    lemma_lookup: Optional[Dict[Tuple[str, str], str]] = None,
    cancel_event: Optional[threading.Event] = None,
    progress: bool = True
) -> List[PredictionResult]:
    """Apply a trained model to (unlabelled) token records."""
    config = config or PipelineConfig()
    records = prepare_records(records, config, lemma_lookup)
    return apply_model(
        records,
        model,
        n_jobs=config.n_jobs,
        cancel_event=cancel_event,
        progress=progress
    )


def save_evaluation_results(
    report: EvaluationReport,
    config: Optional[PipelineConfig] = None,
    output_path: str = "data/evaluation/results.pkl"
) -> str:
    """
    Save an evaluation report to a pickle file.

    The trained model is stored in its exported form (see ``save_model``).

    Returns:
        Path to saved pickle file
    """
    filepath = Path(output_path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    data = {
        'results': report.results,
        'confusion': report.confusion,
        'accuracy': report.accuracy,
        'model': report.model.to_dict(),
        'train_indices': list(report.train_indices),
        'test_indices': list(report.test_indices),
        'config': asdict(config) if config is not None else None,
    }

    with open(filepath, 'wb') as f:
        pickle.dump(data, f, protocol=4)

    logger.info(f"Evaluation results saved to: {filepath}")
    return str(filepath)


def load_evaluation_results(filepath: str) -> EvaluationReport:
    """Load an evaluation report saved by ``save_evaluation_results``."""
    with open(filepath, 'rb') as f:
        data = pickle.load(f)

    return EvaluationReport(
        results=data['results'],
        confusion=data['confusion'],
        accuracy=data['accuracy'],
        model=TrainedModel.from_dict(data['model']),
        train_indices=tuple(data['train_indices']),
        test_indices=tuple(data['test_indices']),
    )
