#!/usr/bin/env python
"""
Command-line interface: train, evaluate, predict and inspect.

Input corpora are token tables (CSV or TSV) with one row per token and the
columns ``document``, ``token`` and, for training and evaluation,
``label``.
"""

import argparse
import logging
import sys

from lexicon_classifier.classification import (
    ModelInspector,
    load_model,
    predictions_to_frame,
    run_evaluation,
    run_prediction,
    run_training,
    save_evaluation_results,
    save_model,
    CLASSIFIER_STRATEGIES,
)
from lexicon_classifier.cli_utils import format_frame, format_header, safe_print
from lexicon_classifier.core import (
    InvalidConfigurationError,
    PipelineConfig,
    PipelineError,
    load_config,
    read_lemma_table,
    read_token_table,
)
from lexicon_classifier.core.constants import LEMMATIZATION_LANGUAGES

logger = logging.getLogger(__name__)


def build_config(args) -> PipelineConfig:
    """Config file values (if any), overridden by explicit command-line values."""
    config = load_config(args.config) if args.config else PipelineConfig()
    return config.override(
        min_doc_count=getattr(args, 'min_doc_count', None),
        max_word_set=getattr(args, 'max_word_set', None),
        segment_size=getattr(args, 'segment_size', None),
        drop_partial=True if getattr(args, 'drop_partial', False) else None,
        prop_train=getattr(args, 'prop_train', None),
        lemmatization=getattr(args, 'language', None),
        strategy=getattr(args, 'strategy', None),
        seed=getattr(args, 'seed', None),
        n_jobs=getattr(args, 'jobs', None),
    )


def load_lemmas(args, config):
    if config.lemmatization is None:
        return None
    if not args.lemmas:
        raise InvalidConfigurationError("--language requires a lemma table (--lemmas)")
    return read_lemma_table(args.lemmas)


def cmd_train(args):
    config = build_config(args)
    records = read_token_table(args.tokens)
    model = run_training(records, config, load_lemmas(args, config), progress=not args.quiet)
    path = save_model(model, args.model)

    safe_print(format_header("Training complete"))
    safe_print(f"Labels: {', '.join(model.labels)}")
    safe_print(f"Vocabulary size: {len(model.vocabulary)} terms")
    safe_print(f"Model saved to: {path}")
    return 0


def cmd_evaluate(args):
    config = build_config(args)
    records = read_token_table(args.tokens)
    report = run_evaluation(records, config, load_lemmas(args, config), progress=not args.quiet)

    safe_print(format_header("Evaluation"))
    safe_print(report.summary())
    safe_print("\nMost confused label pairs:")
    safe_print(format_frame(report.most_confused(args.top)))

    if args.output:
        if args.output.endswith('.pkl'):
            save_evaluation_results(report, config, args.output)
        else:
            report.results.to_csv(args.output, index=False)
        safe_print(f"\nResults saved to: {args.output}")

    if args.figure:
        from lexicon_classifier.visualization import generate_confusion_heatmap_figure
        generate_confusion_heatmap_figure(report, output_path=args.figure)
        safe_print(f"Confusion heatmap saved to: {args.figure}")
    return 0


def cmd_predict(args):
    config = build_config(args)
    model = load_model(args.model)
    records = read_token_table(args.tokens)
    results = run_prediction(records, model, config, load_lemmas(args, config), progress=not args.quiet)
    predictions = predictions_to_frame(results)

    if args.output:
        predictions.to_csv(args.output, index=False)
        safe_print(f"Predictions saved to: {args.output}")
    else:
        safe_print(format_frame(predictions[predictions['rank'] == 1], max_rows=args.top))
    return 0


def cmd_inspect(args):
    model = load_model(args.model)
    inspector = ModelInspector(model)

    safe_print(format_header("Model weights"))
    safe_print(f"Strategy: {model.strategy}")
    safe_print(f"Segment size: {model.segment_size or 'whole documents'}")
    safe_print(format_frame(inspector.top_terms(n=args.top, label=args.label), max_rows=10 ** 6))

    if args.wordcloud:
        from lexicon_classifier.visualization import generate_word_cloud_figure
        generate_word_cloud_figure(model, label=args.label, output_path=args.wordcloud)
        safe_print(f"Word cloud saved to: {args.wordcloud}")
    return 0


def add_pipeline_options(parser, evaluation=False):
    parser.add_argument('--config', help='JSON config file (command-line values take precedence)')
    parser.add_argument('--min-doc-count', type=int, help='Minimum documents per vocabulary term')
    parser.add_argument('--max-word-set', type=int, help='Maximum vocabulary size (0 = unlimited)')
    parser.add_argument('--segment-size', type=int, help='Tokens per segment (0 = whole documents)')
    parser.add_argument('--drop-partial', action='store_true', help='Drop trailing short segments')
    parser.add_argument('--strategy', choices=sorted(CLASSIFIER_STRATEGIES), help='Classifier strategy')
    parser.add_argument('--seed', type=int, help='Random seed')
    if evaluation:
        parser.add_argument('--prop-train', type=float, help='Training split percentage (0-100)')


def add_lemma_options(parser):
    parser.add_argument('--lemmas', help='Lemma table (language,token,lemma)')
    parser.add_argument('--language', choices=LEMMATIZATION_LANGUAGES, help='Enable lemmatization for a language')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='lexicon-classifier',
        description='Train, evaluate and apply tf-idf text classifiers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s train corpus.csv --model models/classifier.pkl --segment-size 100
  %(prog)s evaluate corpus.csv --prop-train 80 --figure confusion.pdf
  %(prog)s predict unlabelled.csv --model models/classifier.pkl --output predictions.csv
  %(prog)s inspect --model models/classifier.pkl --top 15
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    parser.add_argument('-q', '--quiet', action='store_true', help='Hide progress bars')
    parser.add_argument('-j', '--jobs', type=int, help='Worker threads')
    subparsers = parser.add_subparsers(dest='command', required=True)

    train = subparsers.add_parser('train', help='Train a model and save it')
    train.add_argument('tokens', help='Labelled token table (CSV/TSV)')
    train.add_argument('--model', required=True, help='Output model path')
    add_pipeline_options(train)
    add_lemma_options(train)
    train.set_defaults(func=cmd_train)

    evaluate = subparsers.add_parser('evaluate', help='Evaluate on a held-out split')
    evaluate.add_argument('tokens', help='Labelled token table (CSV/TSV)')
    evaluate.add_argument('--output', help='Per-row results (.csv) or full report (.pkl)')
    evaluate.add_argument('--figure', help='Confusion heatmap PDF')
    evaluate.add_argument('--top', type=int, default=10, help='Confused pairs to show')
    add_pipeline_options(evaluate, evaluation=True)
    add_lemma_options(evaluate)
    evaluate.set_defaults(func=cmd_evaluate)

    predict = subparsers.add_parser('predict', help='Apply a saved model')
    predict.add_argument('tokens', help='Token table (CSV/TSV); labels are ignored')
    predict.add_argument('--model', required=True, help='Saved model path')
    predict.add_argument('--output', help='Output CSV of ranked predictions')
    predict.add_argument('--top', type=int, default=20, help='Rows to show when not saving')
    predict.add_argument('--config', help='JSON config file')
    add_lemma_options(predict)
    predict.set_defaults(func=cmd_predict)

    inspect = subparsers.add_parser('inspect', help='Show learned term weights')
    inspect.add_argument('--model', required=True, help='Saved model path')
    inspect.add_argument('--top', type=int, default=10, help='Terms per label')
    inspect.add_argument('--label', help='Restrict to one label')
    inspect.add_argument('--wordcloud', help='Word cloud PDF')
    inspect.set_defaults(func=cmd_inspect)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        return args.func(args)
    except (PipelineError, KeyError, OSError) as e:
        logger.error(str(e))
        return 1


if __name__ == '__main__':
    sys.exit(main())
