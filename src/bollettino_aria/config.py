"""
Configurazione del bollettino.

I valori arrivano dalle variabili d'ambiente (anche tramite file `.env`);
se assenti si usano i default qui sotto.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# -----------------------
# DEFAULT: endpoint e dataset ufficiali ARPAE
# -----------------------
ARPAE_API_URL = "https://dati.arpae.it/api/3/action/datastore_search_sql"
ARPAE_DATASET_ID = "4dc855a1-6298-4b71-a1ae-d80693d43dcb"

PACKAGE_DIR = Path(__file__).resolve().parent
STATIONS_CSV = PACKAGE_DIR / "data" / "stations.csv"
OUT_DIR = Path("docs")


@dataclass(frozen=True)
class Settings:
    api_url: str = ARPAE_API_URL
    dataset_id: str = ARPAE_DATASET_ID
    stations_csv: Path = STATIONS_CSV
    out_dir: Path = OUT_DIR
    timeout: float = 60.0
    max_retries: int = 3
    backoff_base: float = 1.0
    page_size: int = 1000


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"Valore non valido per {name}: {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} non può essere negativo: {raw!r}")
    return value


def load_settings(env_file: str | None = None) -> Settings:
    """Costruisce le impostazioni da ambiente + `.env` (senza sovrascrivere l'ambiente)."""
    load_dotenv(env_file)

    page_size = _env_number("ARPAE_PAGE_SIZE", 1000, int)
    if page_size == 0:
        raise ValueError("ARPAE_PAGE_SIZE deve essere maggiore di zero")

    return Settings(
        api_url=os.getenv("ARPAE_API_URL") or ARPAE_API_URL,
        dataset_id=os.getenv("ARPAE_DATASET_ID") or ARPAE_DATASET_ID,
        stations_csv=Path(os.getenv("ARPAE_STATIONS_CSV") or STATIONS_CSV),
        out_dir=Path(os.getenv("BOLLETTINO_OUT_DIR") or OUT_DIR),
        timeout=_env_number("ARPAE_TIMEOUT", 60.0, float),
        max_retries=_env_number("ARPAE_MAX_RETRIES", 3, int),
        backoff_base=_env_number("ARPAE_BACKOFF", 1.0, float),
        page_size=page_size,
    )
