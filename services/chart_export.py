# services/chart_export.py
"""
Chart export for the weekly earned-value curves.

- build_figure(): one plotly line trace per named series on a shared week axis.
  Series may be shorter than the axis (earned value and actual effort are
  trimmed after the current week); each is drawn against the leading labels.
- export_chart(): writes the figure as HTML (no extra deps) or as a static
  image through kaleido. The format is always passed in explicitly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

import plotly.graph_objects as go

IMAGE_FORMATS = ("png", "jpeg", "webp", "svg", "pdf")
CHART_FORMATS = ("html",) + IMAGE_FORMATS

# Line colours by series name; anything else gets plotly's default cycle.
SERIES_COLORS: Dict[str, str] = {
    "Earned value": "green",
}


def build_figure(
    labels: Sequence[str],
    series: Mapping[str, Sequence[float]],
    title: str,
    x_title: str = "Week #",
    y_title: str = "Done %",
) -> go.Figure:
    """Line chart of percent-complete series over week labels."""
    x_axis: List[str] = list(labels)
    fig = go.Figure()
    for name, values in series.items():
        ys = [float(v) for v in values]
        if len(ys) > len(x_axis):
            raise ValueError(f"series {name!r} has {len(ys)} points but the axis only has {len(x_axis)}")
        line = dict(color=SERIES_COLORS[name]) if name in SERIES_COLORS else None
        fig.add_trace(go.Scatter(x=x_axis[: len(ys)], y=ys, mode="lines", name=name, line=line))

    fig.update_layout(
        title=title,
        xaxis=dict(title=x_title, type="category", categoryorder="array", categoryarray=x_axis),
        yaxis=dict(title=y_title, rangemode="tozero"),
        legend=dict(orientation="h", y=-0.15),
    )
    return fig


def export_chart(
    fig: go.Figure,
    out_path: Union[str, Path],
    fmt: str = "png",
    width: int = 1800,
    height: int = 1000,
    scale: float = 1.0,
) -> Path:
    """
    Write `fig` to `out_path` in `fmt` and return the path.

    Raises ValueError for formats other than CHART_FORMATS.
    """
    fmt = (fmt or "").lower()
    if fmt not in CHART_FORMATS:
        raise ValueError(f"unsupported chart format {fmt!r}; expected one of {CHART_FORMATS}")

    out_fp = Path(out_path)
    out_fp.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "html":
        fig.write_html(str(out_fp), include_plotlyjs="cdn")
    else:
        fig.write_image(str(out_fp), format=fmt, width=width, height=height, scale=scale)
    return out_fp


def render_chart(
    labels: Sequence[str],
    series: Mapping[str, Sequence[float]],
    title: str,
    out_path: Union[str, Path],
    chart_cfg: Optional[Mapping] = None,
) -> Path:
    """build_figure + export_chart driven by the `chart` config section."""
    cfg = dict(chart_cfg or {})
    fig = build_figure(
        labels,
        series,
        title,
        x_title=cfg.get("x_title", "Week #"),
        y_title=cfg.get("y_title", "Done %"),
    )
    return export_chart(
        fig,
        out_path,
        fmt=cfg.get("format", "png"),
        width=int(cfg.get("width", 1800)),
        height=int(cfg.get("height", 1000)),
        scale=float(cfg.get("scale", 1.0)),
    )
