"""Confusion heatmap for evaluation reports."""

from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
import seaborn as sns


def generate_confusion_heatmap_figure(
    report,
    output_path=None,
    figsize=(8, 6),
    font='DejaVu Sans',
    normalize=False
):
    """
    Plot the confusion table of an evaluation report.

    Args:
        report: EvaluationReport
        output_path: Path to save PDF (optional)
        figsize: Figure size
        font: Font family to use
        normalize: Show row proportions instead of counts

    Returns:
        matplotlib figure object
    """
    plt.rcParams['font.family'] = font

    heatmap_data = report.confusion.astype(float)
    if normalize:
        row_totals = heatmap_data.sum(axis=1).replace(0, 1)
        heatmap_data = heatmap_data.div(row_totals, axis=0)

    fig, ax = plt.subplots(figsize=figsize)

    sns.heatmap(
        heatmap_data,
        annot=True,
        fmt=".2f" if normalize else ".0f",
        ax=ax,
        cbar=False,
        cmap="Blues",
    )

    ax.set_xlabel("Predicted label", fontsize=15)
    ax.set_ylabel("True label", fontsize=15)
    ax.set_title(f"Accuracy {report.accuracy:.2%}", fontsize=14)

    plt.xticks(fontsize=12, rotation=45)
    plt.yticks(fontsize=12, rotation=0)
    plt.tight_layout()

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, format="pdf", bbox_inches="tight")

    return fig
