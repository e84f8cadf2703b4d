"""
Verifica dei valori limite e delle soglie del D.Lgs. 155/2010.

Per ogni parametro e per ogni stazione si costruisce la serie oraria del
giorno (24 ore, ora mancante = NaN) e si calcolano statistiche e numero di
superamenti. Quando i dati non bastano il risultato è "non disponibile"
(NaN / pd.NA), mai zero.
"""

import math
from dataclasses import dataclass

import pandas as pd

HOURS_PER_DAY = 24
# copertura minima per la media giornaliera
MIN_DAILY_COVERAGE = 0.75

PARAMETER_ORDER = ["PM10", "PM2.5", "NO2", "SO2", "CO", "O3"]


@dataclass(frozen=True)
class Threshold:
    parameter: str
    column: str
    kind: str  # daily_mean | hourly | sustained | moving_average
    limit: float
    hours: int
    label: str


THRESHOLDS = [
    Threshold("PM10", "exceeds_50", "daily_mean", 50.0, 24,
              "valore limite giornaliero"),
    Threshold("NO2", "n_over_200", "hourly", 200.0, 1,
              "valore limite orario"),
    Threshold("NO2", "n_over_400_3h", "sustained", 400.0, 3,
              "soglia di allarme"),
    Threshold("SO2", "n_over_350", "hourly", 350.0, 1,
              "valore limite orario"),
    Threshold("SO2", "n_over_500_3h", "sustained", 500.0, 3,
              "soglia di allarme"),
    Threshold("CO", "n_over_10_8h", "moving_average", 10.0, 8,
              "valore limite sulla media mobile di 8 ore"),
    Threshold("O3", "n_over_120_8h", "moving_average", 120.0, 8,
              "valore obiettivo sulla media mobile di 8 ore"),
    Threshold("O3", "n_over_180", "hourly", 180.0, 1,
              "soglia di informazione"),
    Threshold("O3", "n_over_240_3h", "sustained", 240.0, 3,
              "soglia di allarme"),
]

# statistiche riportate in tabella per ciascun parametro
STATISTICS = {
    "PM10": ["mean"],
    "PM2.5": ["mean"],
    "NO2": ["min", "max"],
    "SO2": ["min", "max"],
    "CO": ["min_8h", "max_8h"],
    "O3": ["min", "max", "min_8h", "max_8h"],
}

KEY_COLUMNS = ["station_id", "station", "municipality", "date"]


def thresholds_for(parameter: str) -> list[Threshold]:
    return [t for t in THRESHOLDS if t.parameter == parameter]


def hourly_grid(rows: pd.DataFrame, day) -> pd.Series:
    """Serie oraria sulle 24 ore del giorno; più valori nella stessa ora vengono mediati."""
    start = pd.Timestamp(day)
    grid = pd.date_range(start=start, periods=HOURS_PER_DAY, freq="h")
    if rows.empty:
        return pd.Series(float("nan"), index=grid, name="value")
    hours = rows["datetime"].dt.floor("h")
    series = rows.groupby(hours)["value"].mean()
    return series.reindex(grid).astype(float).rename("value")


def moving_average(hourly: pd.Series, hours: int = 8) -> pd.Series:
    """Media mobile valida solo se tutte le `hours` ore della finestra sono valide."""
    return hourly.rolling(window=hours, min_periods=hours).mean()


def sustained_minimum(hourly: pd.Series, hours: int = 3) -> pd.Series:
    """Minimo sulle finestre di ore consecutive complete: > soglia = superamento per tutta la finestra."""
    return hourly.rolling(window=hours, min_periods=hours).min()


def count_exceedances(values: pd.Series, limit: float):
    """Numero di valori > limit; pd.NA se non c'è alcun valore valido."""
    valid = values.dropna()
    if valid.empty:
        return pd.NA
    return int((valid > limit).sum())


def daily_mean(rows: pd.DataFrame, hourly: pd.Series) -> float:
    """
    Media giornaliera con almeno il 75% di ore valide.
    Un solo record alle 00:00 è il dato giornaliero pubblicato da ARPAE (PM10, PM2.5);
    una singola misura oraria a un'altra ora segue la regola di copertura.
    """
    if len(rows) == 1 and rows["datetime"].iloc[0] == rows["datetime"].iloc[0].normalize():
        value = rows["value"].iloc[0]
        return float(value) if pd.notna(value) else float("nan")
    valid = hourly.dropna()
    if len(valid) < math.ceil(MIN_DAILY_COVERAGE * HOURS_PER_DAY):
        return float("nan")
    return float(valid.mean())


def _extreme(values: pd.Series, how: str) -> float:
    valid = values.dropna()
    if valid.empty:
        return float("nan")
    return float(valid.min() if how == "min" else valid.max())


def evaluate_station(rows: pd.DataFrame, parameter: str, day) -> dict:
    """Statistiche e superamenti di un parametro per una singola stazione."""
    hourly = hourly_grid(rows, day)
    ma8 = moving_average(hourly, 8)

    result = {}
    for stat in STATISTICS.get(parameter, []):
        if stat == "mean":
            result["mean"] = daily_mean(rows, hourly)
        elif stat in ("min", "max"):
            result[stat] = _extreme(hourly, stat)
        elif stat in ("min_8h", "max_8h"):
            result[stat] = _extreme(ma8, stat[:3])

    for t in thresholds_for(parameter):
        if t.kind == "daily_mean":
            mean = result.get("mean", daily_mean(rows, hourly))
            result[t.column] = pd.NA if math.isnan(mean) else bool(mean > t.limit)
        elif t.kind == "hourly":
            result[t.column] = count_exceedances(hourly, t.limit)
        elif t.kind == "moving_average":
            result[t.column] = count_exceedances(moving_average(hourly, t.hours), t.limit)
        elif t.kind == "sustained":
            result[t.column] = count_exceedances(sustained_minimum(hourly, t.hours), t.limit)
        else:
            raise ValueError(f"Tipo di soglia sconosciuto: {t.kind}")
    return result


def _result_columns(parameter: str) -> list[str]:
    return STATISTICS.get(parameter, []) + [t.column for t in thresholds_for(parameter)]


def summarize_parameter(measurements: pd.DataFrame, parameter: str) -> pd.DataFrame:
    """Tabella riassuntiva (una riga per stazione e giorno) di un parametro."""
    data = measurements[measurements["parameter"] == parameter]
    columns = KEY_COLUMNS + _result_columns(parameter)
    if data.empty:
        return pd.DataFrame(columns=columns)

    data = data.copy()
    if "station" not in data.columns:
        data["station"] = data["station_id"]
    if "municipality" not in data.columns:
        data["municipality"] = pd.NA

    rows = []
    for (station_id, day), group in data.groupby(["station_id", "date"], sort=True):
        first = group.iloc[0]
        record = {
            "station_id": station_id,
            "station": first["station"],
            "municipality": first["municipality"],
            "date": day,
        }
        record.update(evaluate_station(group, parameter, day))
        rows.append(record)

    summary = pd.DataFrame(rows, columns=columns)
    for t in thresholds_for(parameter):
        summary[t.column] = summary[t.column].astype("boolean" if t.kind == "daily_mean" else "Int64")
    return summary.sort_values("station").reset_index(drop=True)


def add_pm_ratio(pm25: pd.DataFrame, pm10: pd.DataFrame | None) -> pd.DataFrame:
    """Rapporto PM2.5/PM10 sulle stazioni che misurano entrambi."""
    pm25 = pm25.copy()
    if pm10 is None or pm10.empty or pm25.empty:
        pm25["ratio_pm10"] = float("nan")
        return pm25
    means = pm10[["station_id", "date", "mean"]].rename(columns={"mean": "pm10_mean"})
    merged = pm25.merge(means, on=["station_id", "date"], how="left")
    merged["ratio_pm10"] = merged["mean"] / merged["pm10_mean"]
    return merged.drop(columns="pm10_mean")


def evaluate_day(measurements: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """
    Riepilogo giornaliero per tutti i parametri presenti, nell'ordine del bollettino.
    """
    present = set(measurements["parameter"].dropna().unique()) if not measurements.empty else set()
    report = {}
    for parameter in PARAMETER_ORDER:
        if parameter not in present:
            continue
        report[parameter] = summarize_parameter(measurements, parameter)
    if "PM2.5" in report:
        report["PM2.5"] = add_pm_ratio(report["PM2.5"], report.get("PM10"))
    return report
