from datetime import date

import pandas as pd
import pytest
import requests

from bollettino_aria.config import Settings

DAY = date(2025, 8, 21)


def hourly_rows(station_id, variable_id, values, day=DAY):
    """Record grezzi ARPAE: un valore per ora a partire dalla mezzanotte (None = ora mancante)."""
    rows = []
    for hour, value in enumerate(values):
        if value is None:
            continue
        rows.append({
            "station_id": station_id,
            "variable_id": variable_id,
            "reftime": f"{day:%m/%d/%Y} {hour:02d}:00:00",
            "value": value,
        })
    return rows


def measurements(parameter, values, station_id="6000031", station="GIARDINI MARGHERITA", day=DAY):
    """Misure già normalizzate per un parametro e una stazione."""
    times = pd.date_range(pd.Timestamp(day), periods=len(values), freq="h")
    df = pd.DataFrame({
        "station_id": station_id,
        "parameter": parameter,
        "datetime": times,
        "value": [float("nan") if v is None else float(v) for v in values],
    })
    df["date"] = df["datetime"].dt.date
    df["unit"] = "µg/m³"
    df["station"] = station
    df["municipality"] = "Bologna"
    return df


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Restituisce in ordine le risposte (o solleva le eccezioni) preparate."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def ok_payload(records):
    return {"success": True, "result": {"records": records}}


@pytest.fixture()
def settings(tmp_path):
    return Settings(out_dir=tmp_path / "docs", backoff_base=0, max_retries=2, page_size=1000)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("bollettino_aria.download.time.sleep", lambda s: None)
