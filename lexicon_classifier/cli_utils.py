"""Formatting helpers for command-line output."""

import platform

import pandas as pd


def is_windows():
    """Check if running on Windows."""
    return platform.system() == 'Windows'


def format_header(title, width=60, char='='):
    """Format a header with borders; plain ASCII on Windows terminals."""
    if is_windows():
        top = bottom = '+' + char * (width - 2) + '+'
        middle = f"| {title:^{width-4}} |"
    else:
        top = "╔" + "═" * (width - 2) + "╗"
        middle = f"║ {title:^{width-4}} ║"
        bottom = "╚" + "═" * (width - 2) + "╝"

    return f"\n{top}\n{middle}\n{bottom}\n"


def format_frame(df: pd.DataFrame, max_rows=20, float_format="{:.4f}"):
    """Render a DataFrame as aligned text, truncated to ``max_rows`` rows."""
    if df.empty:
        return "(no rows)"
    shown = df.head(max_rows)
    text = shown.to_string(index=False, float_format=float_format.format)
    if len(df) > max_rows:
        text += f"\n... {len(df) - max_rows} more rows"
    return text


def safe_print(*args, **kwargs):
    """Print, replacing characters the terminal encoding cannot show."""
    message = ' '.join(str(arg) for arg in args)
    try:
        print(message, **kwargs)
    except UnicodeEncodeError:
        print(message.encode('ascii', errors='replace').decode('ascii'), **kwargs)
