"""
Generazione delle pagine HTML del bollettino (una per provincia + indice).
"""

import logging
import math
from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape

from bollettino_aria.charts import CHART_PARAMETERS, plot_parameter, save_chart
from bollettino_aria.cleaning import parse_day
from bollettino_aria.narrative import column_label, exceedance_comment, no_data_notice, parameter_label
from bollettino_aria.stations import PROVINCES, slugify
from bollettino_aria.thresholds import PARAMETER_ORDER

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
NOT_AVAILABLE = "n.d."
HIDDEN_COLUMNS = ["station_id", "date"]

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def signif(x: float, digits: int = 2) -> float:
    if x == 0 or not math.isfinite(x):
        return x
    return round(x, digits - 1 - int(math.floor(math.log10(abs(x)))))


def format_cell(value) -> str:
    if value is None or value is pd.NA:
        return NOT_AVAILABLE
    if isinstance(value, (bool, np.bool_)):
        return "sì" if value else "no"
    if isinstance(value, float):
        if math.isnan(value):
            return NOT_AVAILABLE
        return f"{signif(value):g}"
    if pd.isna(value):
        return NOT_AVAILABLE
    return str(value)


def summary_table(parameter: str, summary: pd.DataFrame) -> str:
    """Tabella HTML con intestazioni leggibili; i valori mancanti diventano "n.d."."""
    table = summary.drop(columns=[c for c in HIDDEN_COLUMNS if c in summary.columns])
    table = table.astype(object).apply(lambda col: col.map(format_cell))
    table.columns = [column_label(c, parameter) for c in table.columns]
    return table.to_html(index=False, classes="summary", border=0, escape=True)


def chart_filename(day, sigla: str, parameter: str, fmt: str) -> str:
    return f"{parse_day(day).isoformat()}_{sigla}_{parameter.replace('.', '')}.{fmt}"


def build_sections(measurements: pd.DataFrame, summaries: dict, day, sigla: str,
                   out_dir: Path, chart_format: str = "png") -> list[dict]:
    sections = []
    for parameter in PARAMETER_ORDER:
        lab = parameter_label(parameter)
        summary = summaries.get(parameter)
        section = {
            "anchor": slugify(parameter),
            "name": lab["name"],
            "symbol": lab["symbol"],
            "table": None,
            "chart": None,
            "comment": [],
            "notice": no_data_notice(parameter),
        }
        if summary is not None and not summary.empty:
            section["table"] = summary_table(parameter, summary)
            section["comment"] = exceedance_comment(parameter, summary).splitlines()
            values = measurements.loc[measurements["parameter"] == parameter, "value"]
            if parameter in CHART_PARAMETERS and values.notna().any():
                name = chart_filename(day, sigla, parameter, chart_format)
                fig = plot_parameter(measurements, parameter)
                save_chart(fig, out_dir / "img" / name, fmt=chart_format)
                section["chart"] = f"../img/{name}"
        sections.append(section)
    return sections


def render_province(province: str, sigla: str, day, measurements: pd.DataFrame,
                    summaries: dict, out_dir, chart_format: str = "png",
                    error: str | None = None) -> Path:
    """Scrive `<out_dir>/province/<slug>.html` e i grafici in `<out_dir>/img`."""
    out_dir = Path(out_dir)
    page_dir = out_dir / "province"
    page_dir.mkdir(parents=True, exist_ok=True)

    sections = build_sections(measurements, summaries or {}, day, sigla, out_dir, chart_format)
    html = _env.get_template("bollettino.html").render(
        province=province,
        day_label=parse_day(day).strftime("%d/%m/%Y"),
        sections=sections,
        error=error,
        generated=datetime.now().strftime("%d/%m/%Y %H:%M"),
    )
    path = page_dir / f"{slugify(province)}.html"
    path.write_text(html, encoding="utf-8")
    logger.info(f"Bollettino {province} scritto in {path}")
    return path


def render_index(day, out_dir, failed: set | None = None) -> Path:
    """Pagina indice con il collegamento ai bollettini delle nove province."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    failed = failed or set()
    provinces = [
        {"name": name, "sigla": sigla, "href": f"province/{slugify(name)}.html",
         "failed": sigla in failed}
        for name, sigla in PROVINCES.items()
    ]
    html = _env.get_template("index.html").render(
        day_label=parse_day(day).strftime("%d/%m/%Y"),
        provinces=provinces,
        generated=datetime.now().strftime("%d/%m/%Y %H:%M"),
    )
    path = out_dir / "index.html"
    path.write_text(html, encoding="utf-8")
    return path
