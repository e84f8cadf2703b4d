"""
Grafici dell'andamento orario per i parametri con limiti orari o su 8 ore.
"""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import pandas as pd

from bollettino_aria.narrative import parameter_label
from bollettino_aria.thresholds import hourly_grid, moving_average, thresholds_for

CHART_PARAMETERS = ["NO2", "SO2", "CO", "O3"]


def plot_parameter(measurements: pd.DataFrame, parameter: str, width: float = 9, height: float = 4):
    """Andamento orario per stazione; per il CO si disegna la media mobile 8h."""
    data = measurements[measurements["parameter"] == parameter]
    lab = parameter_label(parameter)

    fig, ax = plt.subplots(figsize=(width, height))
    if "station" not in data.columns:
        data = data.assign(station=data["station_id"])

    for (station, day), group in data.groupby(["station", "date"], sort=True):
        series = hourly_grid(group, day)
        if parameter == "CO":
            series = moving_average(series, 8)
        ax.plot(series.index, series.values, marker="o", markersize=3, linestyle="-", label=station)

    for t in thresholds_for(parameter):
        if t.kind == "hourly" or (parameter == "CO" and t.kind == "moving_average"):
            ax.axhline(t.limit, color="red", linestyle="--", linewidth=1,
                       label=f"{t.label} ({t.limit:g} {lab['unit']})")

    ylabel = f"{lab['symbol']} ({lab['unit']})"
    if parameter == "CO":
        ylabel = f"{lab['symbol']} media mobile 8h ({lab['unit']})"
    ax.set_ylabel(ylabel)
    ax.set_xlabel("Ora")
    ax.set_title(f"Andamento orario — {lab['name']}")
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%H:%M"))
    ax.grid(True)
    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc="upper left", fontsize="small")
    fig.tight_layout()
    return fig


def save_chart(fig, path, fmt: str = "png", dpi: int = 150) -> Path:
    if fmt not in ("png", "pdf"):
        raise ValueError(f"Formato grafico non supportato: {fmt}")
    path = Path(path).with_suffix(f".{fmt}")
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fig.savefig(path, format=fmt, dpi=dpi)
    finally:
        plt.close(fig)
    return path
