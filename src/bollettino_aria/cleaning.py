"""
Pulizia e normalizzazione dei record ARPAE scaricati.
"""

import logging
from datetime import date, datetime

import pandas as pd

logger = logging.getLogger(__name__)

# codici `variable_id` ARPAE -> parametro
VARIABLES = {
    1: "SO2",
    5: "PM10",
    7: "O3",
    8: "NO2",
    10: "CO",
    111: "PM2.5",
}

UNITS = {"CO": "mg/m³"}
DEFAULT_UNIT = "µg/m³"

MEASUREMENT_COLUMNS = ["station_id", "parameter", "datetime", "date", "value", "unit"]


def parse_day(day) -> date:
    """Accetta `dd/mm/YYYY`, `YYYY-MM-DD`, `date` o `datetime`."""
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    for fmt in ("%d/%m/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(str(day).strip(), fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Data non valida: {day!r}")


def parse_reftime(values: pd.Series) -> pd.Series:
    """`reftime` arriva come testo `MM/DD/YYYY HH:MM:SS` (o ISO)."""
    parsed = pd.to_datetime(values, format="mixed", errors="coerce")
    if getattr(parsed.dt, "tz", None) is not None:
        parsed = parsed.dt.tz_localize(None)
    return parsed


def empty_measurements() -> pd.DataFrame:
    return pd.DataFrame({
        "station_id": pd.Series(dtype=str),
        "parameter": pd.Series(dtype=str),
        "datetime": pd.Series(dtype="datetime64[ns]"),
        "date": pd.Series(dtype=object),
        "value": pd.Series(dtype=float),
        "unit": pd.Series(dtype=str),
    })


def normalize_measurements(raw: pd.DataFrame, day=None) -> pd.DataFrame:
    if raw is None or raw.empty:
        return empty_measurements()

    df = raw.copy()
    df.columns = [str(c).lower() for c in df.columns]

    missing = [c for c in ("station_id", "variable_id", "reftime", "value") if c not in df.columns]
    if missing:
        logger.warning(f"Record senza colonne attese {missing}: scartati")
        return empty_measurements()

    df["station_id"] = df["station_id"].astype(str).str.strip()
    df["variable_id"] = pd.to_numeric(df["variable_id"], errors="coerce")
    df["parameter"] = df["variable_id"].map(VARIABLES)
    df["datetime"] = parse_reftime(df["reftime"])
    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    # valori negativi = dato non valido
    df.loc[df["value"] < 0, "value"] = float("nan")

    df = df.dropna(subset=["parameter", "datetime"]).copy()
    df["date"] = df["datetime"].dt.date
    if day is not None:
        df = df[df["date"] == parse_day(day)]

    df["unit"] = df["parameter"].map(UNITS).fillna(DEFAULT_UNIT)
    df = (df.sort_values(["parameter", "station_id", "datetime"], kind="mergesort")
            .drop_duplicates(subset=["station_id", "parameter", "datetime"], keep="last"))
    return df[MEASUREMENT_COLUMNS].reset_index(drop=True)


def attach_stations(measurements: pd.DataFrame, stations: pd.DataFrame) -> pd.DataFrame:
    """Aggiunge nome stazione, comune e provincia dall'anagrafica."""
    registry = stations.rename(columns={"name": "station"})[
        ["station_id", "station", "municipality", "province"]]
    merged = measurements.merge(registry, on="station_id", how="left")
    merged["station"] = merged["station"].fillna(merged["station_id"])
    return merged
