"""Visualization modules for lexicon-classifier."""

from .heatmaps import generate_confusion_heatmap_figure
from .word_clouds import generate_word_cloud_figure

__all__ = [
    'generate_confusion_heatmap_figure',
    'generate_word_cloud_figure',
]
