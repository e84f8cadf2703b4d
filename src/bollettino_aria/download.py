"""
Download dei dati orari ARPAE tramite l'API CKAN `datastore_search_sql`.
"""

import logging
import time
from typing import Iterable

import pandas as pd
import requests

from bollettino_aria.config import Settings
from bollettino_aria.query import build_query, to_dataset_date

logger = logging.getLogger(__name__)

# errori per cui ha senso riprovare
_RETRY_STATUS = {429, 500, 502, 503, 504}


class DownloadError(RuntimeError):
    """Il servizio ARPAE non ha risposto dopo tutti i tentativi."""


def post_with_backoff(session: requests.Session, url: str, payload: dict,
                      *, max_retries: int = 3, backoff_base: float = 1.0,
                      timeout: float = 60.0) -> dict:
    """
    POST JSON con retry ed attesa esponenziale (backoff_base * 2**tentativo).
    Restituisce il corpo JSON decodificato.
    """
    last_error = None
    for attempt in range(max_retries + 1):
        try:
            resp = session.post(url, json=payload, timeout=timeout)
            if resp.status_code in _RETRY_STATUS:
                last_error = f"HTTP {resp.status_code}"
            else:
                resp.raise_for_status()
                try:
                    return resp.json()
                except ValueError as e:
                    raise DownloadError(f"Risposta non JSON da {url}: {e}") from e
        except (requests.ConnectionError, requests.Timeout) as e:
            last_error = str(e)

        if attempt < max_retries:
            delay = backoff_base * 2 ** attempt
            logger.warning(f"Tentativo {attempt + 1} fallito ({last_error}), riprovo tra {delay:.1f}s")
            time.sleep(delay)

    raise DownloadError(f"Download fallito dopo {max_retries + 1} tentativi: {last_error}")


def records_from_response(content: dict) -> pd.DataFrame:
    """Estrae `result.records`; risposta vuota o senza successo -> DataFrame vuoto."""
    if not isinstance(content, dict) or not content.get("success", True):
        error = content.get("error") if isinstance(content, dict) else content
        logger.warning(f"Risposta API senza successo: {error}")
        return pd.DataFrame()
    records = (content.get("result") or {}).get("records") or []
    return pd.DataFrame(records)


def download_measurements(station_ids: Iterable, day, settings: Settings,
                          session: requests.Session | None = None) -> pd.DataFrame:
    """
    Scarica tutte le misure di un giorno per le stazioni indicate, pagina per pagina.
    Se non ci sono record restituisce un DataFrame vuoto.
    """
    station_ids = list(station_ids)
    if not station_ids:
        logger.warning("Nessuna stazione selezionata: niente da scaricare")
        return pd.DataFrame()
    if to_dataset_date(day) is None:
        logger.warning(f"Data non interpretabile {day!r}: nessun dato scaricato")
        return pd.DataFrame()

    own_session = session is None
    session = session or requests.Session()
    pages = []
    offset = 0
    try:
        while True:
            sql = build_query(settings.dataset_id, station_ids, day,
                              limit=settings.page_size, offset=offset)
            logger.debug(f"Query: {sql}")
            content = post_with_backoff(session, settings.api_url, {"sql": sql},
                                        max_retries=settings.max_retries,
                                        backoff_base=settings.backoff_base,
                                        timeout=settings.timeout)
            page = records_from_response(content)
            if page.empty:
                break
            pages.append(page)
            if len(page) < settings.page_size:
                break
            offset += settings.page_size
    finally:
        if own_session:
            session.close()

    if not pages:
        logger.warning(f"Nessun dato disponibile per {len(station_ids)} stazioni il {day}")
        return pd.DataFrame()
    df = pd.concat(pages, ignore_index=True)
    logger.info(f"Scaricati {len(df)} record per {len(station_ids)} stazioni")
    return df
