"""
Archivio dei dati scaricati:
 - <out_dir>/data/measurements_<YYYY-MM-DD>.csv
 - <out_dir>/data/air_quality.db  (SQLite, tabella `measurements`)
"""

import logging
import sqlite3
from pathlib import Path

import pandas as pd

from bollettino_aria.cleaning import MEASUREMENT_COLUMNS, parse_day

logger = logging.getLogger(__name__)

TABLE = "measurements"
DB_NAME = "air_quality.db"


def _table_exists(conn: sqlite3.Connection, name: str) -> bool:
    cur = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,))
    return cur.fetchone() is not None


def archive_measurements(measurements: pd.DataFrame, out_dir, day) -> tuple[Path, Path]:
    """Salva il CSV del giorno e sostituisce le righe dello stesso giorno nel DB SQLite."""
    iso_day = parse_day(day).isoformat()
    data_dir = Path(out_dir) / "data"
    data_dir.mkdir(parents=True, exist_ok=True)

    df = measurements.reindex(columns=MEASUREMENT_COLUMNS).copy()
    df["date"] = df["date"].astype(str)
    df["datetime"] = df["datetime"].astype(str)

    csv_path = data_dir / f"measurements_{iso_day}.csv"
    df.to_csv(csv_path, index=False)

    db_path = data_dir / DB_NAME
    conn = sqlite3.connect(db_path)
    try:
        if _table_exists(conn, TABLE):
            # bollettino rigenerato: niente duplicati per stazione e giorno
            conn.executemany(f"DELETE FROM {TABLE} WHERE date = ? AND station_id = ?",
                             [(iso_day, s) for s in df["station_id"].unique()])
        if not df.empty:
            df.to_sql(TABLE, conn, if_exists="append", index=False)
        conn.commit()
    finally:
        conn.close()

    logger.info(f"Archiviati {len(df)} record in {csv_path} e {db_path}")
    return csv_path, db_path


def load_archive(out_dir, day=None) -> pd.DataFrame:
    db_path = Path(out_dir) / "data" / DB_NAME
    if not db_path.exists():
        return pd.DataFrame()
    conn = sqlite3.connect(db_path)
    try:
        if not _table_exists(conn, TABLE):
            return pd.DataFrame()
        if day is None:
            return pd.read_sql_query(f"SELECT * FROM {TABLE}", conn)
        return pd.read_sql_query(f"SELECT * FROM {TABLE} WHERE date = ?", conn,
                                 params=(parse_day(day).isoformat(),))
    finally:
        conn.close()
