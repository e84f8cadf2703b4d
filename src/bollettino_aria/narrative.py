"""
Testi del bollettino: etichette dei parametri, intestazioni delle tabelle e
commento automatico sui superamenti (D.Lgs. 155/2010).
"""

import pandas as pd

from bollettino_aria.thresholds import thresholds_for

PARAMETER_LABELS = {
    "PM10": {"name": "Polveri sottili PM10", "symbol": "PM₁₀", "unit": "µg/m³"},
    "PM2.5": {"name": "Polveri sottili PM2.5", "symbol": "PM₂.₅", "unit": "µg/m³"},
    "NO2": {"name": "Diossido di azoto", "symbol": "NO₂", "unit": "µg/m³"},
    "SO2": {"name": "Diossido di zolfo", "symbol": "SO₂", "unit": "µg/m³"},
    "CO": {"name": "Monossido di carbonio", "symbol": "CO", "unit": "mg/m³"},
    "O3": {"name": "Ozono", "symbol": "O₃", "unit": "µg/m³"},
}

COLUMN_LABELS = {
    "station": "Stazione",
    "municipality": "Comune",
    "mean": "Media giornaliera",
    "min": "Min orario",
    "max": "Max orario",
    "min_8h": "Min media mobile 8h",
    "max_8h": "Max media mobile 8h",
    "ratio_pm10": "PM2.5/PM10",
    "exceeds_50": "> 50 µg/m³",
    "n_over_200": "> 200 µg/m³",
    "n_over_400_3h": "> 400 µg/m³ per 3h",
    "n_over_350": "> 350 µg/m³",
    "n_over_500_3h": "> 500 µg/m³ per 3h",
    "n_over_10_8h": "> 10 mg/m³ (media 8h)",
    "n_over_120_8h": "> 120 µg/m³ (media 8h)",
    "n_over_180": "> 180 µg/m³",
    "n_over_240_3h": "> 240 µg/m³ per 3h",
}

# descrizione normativa di ciascuna soglia, per colonna
DESCRIPTIONS = {
    "exceeds_50": "del valore limite giornaliero di 50 µg/m³",
    "n_over_200": "del valore limite orario di 200 µg/m³",
    "n_over_400_3h": "della soglia di allarme di 400 µg/m³ per tre ore consecutive",
    "n_over_350": "del valore limite orario di 350 µg/m³",
    "n_over_500_3h": "della soglia di allarme di 500 µg/m³ per tre ore consecutive",
    "n_over_10_8h": "del valore limite di 10 mg/m³ sulla media mobile di 8 ore",
    "n_over_120_8h": "del valore obiettivo di 120 µg/m³ sulla media mobile di 8 ore",
    "n_over_180": "della soglia di informazione di 180 µg/m³ oraria",
    "n_over_240_3h": "della soglia di allarme di 240 µg/m³ per tre ore consecutive",
}


def parameter_label(parameter: str) -> dict:
    return PARAMETER_LABELS.get(parameter, {"name": parameter, "symbol": parameter, "unit": ""})


def column_label(column: str, parameter: str | None = None) -> str:
    label = COLUMN_LABELS.get(column, column)
    if parameter and column in ("mean", "min", "max", "min_8h", "max_8h"):
        label = f"{label} ({parameter_label(parameter)['unit']})"
    return label


def no_data_notice(parameter: str) -> str:
    lab = parameter_label(parameter)
    return (f"Non ci sono dati disponibili per il parametro {lab['name'].lower()} "
            f"({lab['symbol']}) presso le stazioni della provincia.")


def _join_stations(names) -> str:
    names = [str(n) for n in names]
    if len(names) <= 1:
        return "".join(names)
    return ", ".join(names[:-1]) + " e " + names[-1]


def exceedance_sentence(parameter: str, n: int, description: str, stations) -> str:
    """Frase con concordanza singolare/plurale."""
    if n == 0:
        return (f"Non si registrano superamenti {description} "
                f"presso le stazioni di misura considerate.")
    verb = "si registra" if n == 1 else "si registrano"
    noun = "superamento" if n == 1 else "superamenti"
    where = "presso la stazione" if len(stations) == 1 else "presso le stazioni"
    return (f"Per il parametro {parameter} {verb} {n} {noun} {description} "
            f"{where} {_join_stations(stations)}.")


def _column_comment(parameter: str, summary: pd.DataFrame, column: str) -> str:
    description = DESCRIPTIONS[column]
    values = summary[column]
    valid = summary[values.notna()]
    if valid.empty:
        return f"Dati insufficienti per valutare il rispetto {description}."

    if pd.api.types.is_bool_dtype(values.dtype):
        hits = valid[valid[column].astype(bool)]
        n = len(hits)
    else:
        hits = valid[valid[column].astype(int) > 0]
        n = int(valid[column].astype(int).sum())
    sentence = exceedance_sentence(parameter, n, description, list(hits["station"]))

    missing = summary[values.isna()]
    if not missing.empty:
        sentence += (f" Dati insufficienti per {_join_stations(missing['station'])}.")
    return sentence


def exceedance_comment(parameter: str, summary: pd.DataFrame) -> str:
    """Commento testuale sui superamenti di un parametro."""
    if summary is None or summary.empty:
        return no_data_notice(parameter)

    if parameter == "PM2.5":
        return ("Il PM2.5 non prevede limiti giornalieri secondo normativa: "
                "si riporta quindi il valore medio per le stazioni considerate.")

    sentences = [_column_comment(parameter, summary, t.column)
                 for t in thresholds_for(parameter) if t.column in summary.columns]
    return "\n".join(sentences)