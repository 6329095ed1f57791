"""Word clouds of learned term weights."""

from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
import matplotlib.colors as mcolors
import seaborn as sns
from wordcloud import WordCloud

from lexicon_classifier.classification.inspection import ModelInspector


def generate_word_cloud_figure(
    model,
    label: Optional[str] = None,
    output_path: Optional[str] = None,
    figsize: tuple = (12, 8),
    font: str = 'DejaVu Sans',
    max_words: int = 100
):
    """
    Generate a word cloud sized by absolute term weight.

    Args:
        model: TrainedModel
        label: Label whose weights to draw, or None for the mean absolute
            weight over all labels
        output_path: Path to save PDF (optional)
        figsize: Figure size
        font: Font family
        max_words: Maximum words to display

    Returns:
        matplotlib figure object

    Raises:
        KeyError: If ``label`` is not known to the model

    Examples:
        >>> fig = generate_word_cloud_figure(model, label='news')
    """
    inspector = ModelInspector(model)
    if label is None:
        weights = inspector.average_abs_weights()
        color = 'black'
    else:
        weights = inspector.label_weights(label).abs()
        palette = sns.color_palette("tab10", n_colors=max(len(inspector.labels), 1))
        color = mcolors.rgb2hex(palette[inspector.labels.index(label) % len(palette)])

    frequencies = {term: float(weight) for term, weight in weights.items() if weight > 0}
    if not frequencies:
        raise ValueError("Model has no non-zero weights to draw")

    wc = WordCloud(
        width=1200,
        height=800,
        background_color='white',
        max_words=max_words,
        relative_scaling=0.5,
        color_func=lambda *args, **kwargs: color,
        prefer_horizontal=0.7
    )
    wc.generate_from_frequencies(frequencies)

    fig, ax = plt.subplots(figsize=figsize)
    ax.set_xlim(0, wc.width)
    ax.set_ylim(0, wc.height)
    ax.axis('off')

    # Render words as matplotlib text objects (vectorized)
    for (word, _), font_size, (x, y), orientation, _ in wc.layout_:
        ax.text(
            y, wc.height - x,  # layout positions are (row, column)
            word,
            fontsize=font_size * 0.5,
            color=color,
            rotation=90 if orientation else 0,
            ha='left',
            va='top',
            family=font
        )

    plt.tight_layout(pad=0)

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, format='pdf', bbox_inches='tight')

    return fig
