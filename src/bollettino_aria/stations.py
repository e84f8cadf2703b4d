"""
Anagrafica delle stazioni di misura e delle province.
"""

import unicodedata
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

# nome -> sigla, nell'ordine usato per le pagine del bollettino
PROVINCES = {
    "Bologna": "BO",
    "Ferrara": "FE",
    "Forlì-Cesena": "FC",
    "Modena": "MO",
    "Parma": "PR",
    "Piacenza": "PC",
    "Ravenna": "RA",
    "Reggio Emilia": "RE",
    "Rimini": "RN",
}

# colonne dell'export anagrafica ARPAE -> nomi canonici
_ARPAE_COLUMNS = {
    "cod_staz": "station_id",
    "stazione": "name",
    "nome": "name",
    "station_name": "name",
    "comune": "municipality",
    "provincia": "province",
}

STATION_COLUMNS = ["station_id", "name", "municipality", "province"]


@dataclass(frozen=True)
class Station:
    station_id: str
    name: str
    municipality: str
    province: str


def _fold(text: str) -> str:
    text = unicodedata.normalize("NFKD", str(text))
    return "".join(c for c in text if not unicodedata.combining(c)).lower().strip()


def slugify(name: str) -> str:
    """`Forlì-Cesena` -> `forli-cesena`, `Reggio Emilia` -> `reggio-emilia`."""
    folded = _fold(name)
    slug = "".join(c if c.isalnum() else "-" for c in folded)
    return "-".join(part for part in slug.split("-") if part)


def province_code(name: str) -> str:
    """Restituisce la sigla di una provincia dal nome (o dalla sigla stessa)."""
    wanted = _fold(name)
    for full, sigla in PROVINCES.items():
        if wanted in (_fold(full), sigla.lower(), slugify(full)):
            return sigla
    raise KeyError(f"Provincia sconosciuta: {name!r}")


def province_name(sigla: str) -> str:
    for full, code in PROVINCES.items():
        if code == sigla:
            return full
    raise KeyError(f"Sigla provincia sconosciuta: {sigla!r}")


def normalize_stations(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    df = df.rename(columns={k: v for k, v in _ARPAE_COLUMNS.items()
                            if k in df.columns and v not in df.columns})

    missing = [c for c in ("station_id", "province") if c not in df.columns]
    if missing:
        raise ValueError(f"Anagrafica stazioni senza colonne obbligatorie: {missing}")
    for c in STATION_COLUMNS:
        if c not in df.columns:
            df[c] = pd.NA

    df["station_id"] = df["station_id"].astype(str).str.strip()
    df["province"] = df["province"].astype(str).str.strip().str.upper()
    df["name"] = df["name"].fillna(df["station_id"])
    # l'export ARPAE ha una riga per parametro: una sola riga per stazione
    df = df.drop_duplicates(subset="station_id", keep="first")
    return df[STATION_COLUMNS].reset_index(drop=True)


def load_stations(path) -> pd.DataFrame:
    return normalize_stations(pd.read_csv(Path(path), dtype=str))


def stations_for_province(stations: pd.DataFrame, sigla: str) -> list[Station]:
    subset = stations[stations["province"] == sigla.upper()]
    return [Station(**row) for row in subset[STATION_COLUMNS].to_dict("records")]
