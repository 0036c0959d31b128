"""
components/source.py
Source tab — read-only view of the table controller's code.
"""

from __future__ import annotations

from pathlib import Path

from dash import dcc, html

import data.controller

MUTED = "#7a90b0"
GOLD  = "#f0c040"


def load_source(module=data.controller) -> str:
    """Return the source text of `module`, or a short note if it can't be read."""
    try:
        return Path(module.__file__).read_text(encoding="utf-8")
    except (OSError, TypeError) as e:
        return f"# source unavailable: {e}"


def build_source_tab() -> html.Div:
    code = load_source()
    return html.Div([
        html.Div("data/controller.py", style={"color": GOLD, "fontSize": "11px",
                                              "fontFamily": "IBM Plex Mono, monospace",
                                              "marginBottom": "6px"}),
        dcc.Markdown(
            f"```python\n{code}\n```",
            style={"fontSize": "12px", "maxHeight": "80vh", "overflowY": "auto"},
        ),
        html.Div("Read-only.", style={"color": MUTED, "fontSize": "11px"}),
    ])
