"""
Costruzione della query SQL per l'API `datastore_search_sql` di ARPAE.

L'API accetta solo SQL testuale: i valori forniti dall'utente vengono
ripuliti con una allow-list prima di essere interpolati.
"""

import re
from datetime import date, datetime
from typing import Iterable

_NOT_ALLOWED = re.compile(r"[^A-Za-z0-9_ /]")
# id delle risorse CKAN (uuid)
_DATASET_ID = re.compile(r"^[A-Za-z0-9-]+$")


def sanitize_sql(value) -> str:
    """Rimuove tutti i caratteri fuori da [A-Za-z0-9_ /].

    >>> sanitize_sql("DROP TABLE utenti; --")
    'DROP TABLE utenti '
    """
    return _NOT_ALLOWED.sub("", str(value))


def to_dataset_date(day) -> str | None:
    """Converte `dd/mm/YYYY` (o una `date`) nel formato `MM/DD/YYYY` di `reftime`.

    Una stringa che non si interpreta come data dopo la pulizia restituisce None.
    """
    if isinstance(day, datetime):
        day = day.date()
    if isinstance(day, date):
        return day.strftime("%m/%d/%Y")
    cleaned = sanitize_sql(day).strip()
    try:
        parsed = datetime.strptime(cleaned, "%d/%m/%Y")
    except ValueError:
        return None
    return parsed.strftime("%m/%d/%Y")


def build_query(dataset_id: str, station_ids: Iterable, day,
                limit: int = 1000, offset: int = 0) -> str:
    if not _DATASET_ID.match(dataset_id or ""):
        raise ValueError(f"Identificativo dataset non valido: {dataset_id!r}")
    reftime = to_dataset_date(day)
    if reftime is None:
        raise ValueError(f"Data non valida (atteso dd/mm/YYYY): {day!r}")
    stations = [sanitize_sql(s) for s in station_ids]
    stations_sql = "(" + ",".join(f"'{s}'" for s in stations) + ")"
    # ordine fisso: le pagine LIMIT/OFFSET non si sovrappongono
    return (
        f'SELECT * FROM "{dataset_id}" '
        f"WHERE station_id IN {stations_sql} "
        f"AND reftime LIKE '{reftime}%' "
        f"ORDER BY station_id, variable_id, reftime "
        f"LIMIT {max(int(limit), 0)} OFFSET {max(int(offset), 0)}"
    )
