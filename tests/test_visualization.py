"""Tests for figure generation."""

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pytest

from lexicon_classifier.classification import evaluate_model
from lexicon_classifier.visualization import (
    generate_confusion_heatmap_figure,
    generate_word_cloud_figure,
)


class TestConfusionHeatmap:

    def test_saves_pdf(self, tmp_path, training_matrix):
        report = evaluate_model(training_matrix, prop_train=50, seed=42)
        output_path = tmp_path / 'figs' / 'confusion.pdf'

        fig = generate_confusion_heatmap_figure(report, output_path=str(output_path))

        assert output_path.exists()
        assert fig.axes[0].get_xlabel() == "Predicted label"
        plt.close(fig)

    def test_normalized(self, training_matrix):
        report = evaluate_model(training_matrix, prop_train=50, seed=42)
        fig = generate_confusion_heatmap_figure(report, normalize=True)
        assert fig is not None
        plt.close(fig)


class TestWordCloud:

    def test_label_cloud(self, tmp_path, trained_model):
        output_path = tmp_path / 'wordcloud_sports.pdf'
        fig = generate_word_cloud_figure(trained_model, label='sports',
                                         output_path=str(output_path), max_words=20)
        assert output_path.exists()
        assert len(fig.axes[0].texts) > 0
        plt.close(fig)

    def test_overall_cloud(self, trained_model):
        fig = generate_word_cloud_figure(trained_model, max_words=20)
        assert len(fig.axes[0].texts) <= 20
        plt.close(fig)

    def test_unknown_label(self, trained_model):
        with pytest.raises(KeyError):
            generate_word_cloud_figure(trained_model, label='weather')
