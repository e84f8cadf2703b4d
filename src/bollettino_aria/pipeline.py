"""
Esecuzione giornaliera: per ogni provincia download -> pulizia -> verifica
soglie -> pagina HTML. Le province sono elaborate in sequenza; un errore su
una provincia non blocca le altre.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path

import pandas as pd
import requests

from bollettino_aria.archive import archive_measurements
from bollettino_aria.cleaning import attach_stations, empty_measurements, normalize_measurements, parse_day
from bollettino_aria.config import Settings
from bollettino_aria.download import DownloadError, download_measurements
from bollettino_aria.report import render_index, render_province
from bollettino_aria.stations import PROVINCES, load_stations, province_code, province_name, stations_for_province
from bollettino_aria.thresholds import evaluate_day

logger = logging.getLogger(__name__)

# ARPAE pubblica i dati validati con circa due giorni di ritardo
DEFAULT_DELAY_DAYS = 2


@dataclass
class ProvinceResult:
    province: str
    sigla: str
    day: date
    measurements: pd.DataFrame = field(default_factory=empty_measurements)
    summaries: dict = field(default_factory=dict)
    error: str | None = None
    output: Path | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def default_day(today: date | None = None) -> date:
    return (today or date.today()) - timedelta(days=DEFAULT_DELAY_DAYS)


def collect_province(province: str, day, settings: Settings, stations: pd.DataFrame,
                     session: requests.Session | None = None) -> ProvinceResult:
    """Scarica e valuta i dati di una provincia, senza scrivere nulla su disco."""
    sigla = province_code(province)
    result = ProvinceResult(province=province_name(sigla), sigla=sigla, day=parse_day(day))
    station_ids = [s.station_id for s in stations_for_province(stations, sigla)]
    if not station_ids:
        logger.warning(f"Nessuna stazione in anagrafica per {result.province}")

    try:
        raw = download_measurements(station_ids, result.day, settings, session=session)
    except (DownloadError, requests.RequestException) as e:
        logger.error(f"Download fallito per {result.province}: {e}")
        result.error = str(e)
        return result

    measurements = normalize_measurements(raw, day=result.day)
    result.measurements = attach_stations(measurements, stations)
    result.summaries = evaluate_day(result.measurements)
    logger.info(f"{result.province}: {len(measurements)} misure, parametri {list(result.summaries)}")
    return result


def run_province(province: str, day, settings: Settings, stations: pd.DataFrame,
                 session: requests.Session | None = None,
                 chart_format: str = "png") -> ProvinceResult:
    result = collect_province(province, day, settings, stations, session=session)
    result.output = render_province(result.province, result.sigla, result.day,
                                    result.measurements, result.summaries,
                                    settings.out_dir, chart_format=chart_format,
                                    error=result.error)
    return result


def run_all(day, settings: Settings, provinces=None, chart_format: str = "png",
            archive: bool = False) -> list[ProvinceResult]:
    """Genera i bollettini di tutte le province (o di quelle indicate) e l'indice."""
    day = parse_day(day)
    stations = load_stations(settings.stations_csv)
    provinces = list(provinces or PROVINCES)

    results = []
    with requests.Session() as session:
        for province in provinces:
            results.append(run_province(province, day, settings, stations,
                                        session=session, chart_format=chart_format))

    failed = {r.sigla for r in results if not r.ok}
    render_index(day, settings.out_dir, failed=failed)
    if failed:
        logger.error(f"Province non elaborate: {sorted(failed)}")

    if archive:
        frames = [r.measurements for r in results if not r.measurements.empty]
        archive_measurements(pd.concat(frames, ignore_index=True) if frames else empty_measurements(),
                             settings.out_dir, day)
    return results
