from dataclasses import replace
from datetime import date

import pandas as pd
import pytest
import requests

from conftest import DAY, FakeResponse, FakeSession, hourly_rows, ok_payload
from bollettino_aria import cli, pipeline
from bollettino_aria.archive import archive_measurements, load_archive
from bollettino_aria.cleaning import normalize_measurements
from bollettino_aria.config import load_settings
from bollettino_aria.pipeline import collect_province, default_day, run_all
from bollettino_aria.stations import PROVINCES, load_stations


@pytest.fixture()
def stations(settings):
    return load_stations(settings.stations_csv)


def test_default_day_is_two_days_back():
    assert default_day(date(2025, 8, 23)) == DAY


def test_collect_province_evaluates_downloaded_data(settings, stations):
    records = hourly_rows("6000031", 8, [250] * 24) + hourly_rows("6000035", 5, [40])
    session = FakeSession([FakeResponse(ok_payload(records))])
    result = collect_province("bologna", DAY, settings, stations, session=session)
    assert result.ok
    assert result.sigla == "BO"
    assert result.province == "Bologna"
    assert list(result.summaries) == ["PM10", "NO2"]
    no2 = result.summaries["NO2"].iloc[0]
    assert no2["station"] == "GIARDINI MARGHERITA"
    assert no2["n_over_200"] == 24


def test_collect_province_reports_download_failure(settings, stations):
    session = FakeSession([requests.ConnectionError("down")] * (settings.max_retries + 1))
    result = collect_province("Parma", DAY, settings, stations, session=session)
    assert not result.ok
    assert "Download fallito" in result.error
    assert result.summaries == {}


def test_run_all_isolates_failing_provinces(settings, monkeypatch):
    def fake_download(station_ids, day, settings, session=None):
        if "7000014" in station_ids:  # Ferrara
            raise requests.ConnectionError("down")
        return pd.DataFrame(hourly_rows(station_ids[0], 7, [90] * 24))

    monkeypatch.setattr(pipeline, "download_measurements", fake_download)
    results = run_all(DAY, settings, archive=True)

    assert [r.sigla for r in results] == list(PROVINCES.values())
    assert [r.sigla for r in results if not r.ok] == ["FE"]
    for r in results:
        assert r.output.exists()
    assert (settings.out_dir / "index.html").exists()

    archived = load_archive(settings.out_dir, DAY)
    assert len(archived) == 24 * 8
    assert set(archived["parameter"]) == {"O3"}


def test_archive_replaces_same_day_rows(tmp_path):
    raw = pd.DataFrame(hourly_rows("1", 8, [1, 2, 3]) + hourly_rows("2", 8, [4]))
    df = normalize_measurements(raw, DAY)
    archive_measurements(df, tmp_path, DAY)
    csv_path, _ = archive_measurements(df[df["station_id"] == "1"], tmp_path, DAY)
    assert csv_path.name == "measurements_2025-08-21.csv"
    archived = load_archive(tmp_path, DAY)
    assert sorted(archived["station_id"].tolist()) == ["1", "1", "1", "2"]
    assert load_archive(tmp_path / "missing").empty


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("ARPAE_MAX_RETRIES", "5")
    monkeypatch.setenv("BOLLETTINO_OUT_DIR", str(tmp_path))
    settings = load_settings(env_file=str(tmp_path / "missing.env"))
    assert settings.max_retries == 5
    assert settings.out_dir == tmp_path

    monkeypatch.setenv("ARPAE_TIMEOUT", "abc")
    with pytest.raises(ValueError, match="ARPAE_TIMEOUT"):
        load_settings(env_file=str(tmp_path / "missing.env"))


def test_cli_runs_selected_provinces(settings, monkeypatch):
    seen = {}

    def fake_run_all(day, settings, provinces=None, chart_format="png", archive=False):
        seen.update(day=day, out=settings.out_dir, provinces=provinces, fmt=chart_format)
        return [pipeline.ProvinceResult("Bologna", "BO", day)]

    monkeypatch.setattr(cli, "run_all", fake_run_all)
    code = cli.main(["--date", "21/08/2025", "--province", "bologna", "--province", "FC",
                     "--out", str(settings.out_dir), "--chart-format", "pdf"])
    assert code == 0
    assert seen == {"day": DAY, "out": settings.out_dir,
                    "provinces": ["Bologna", "Forlì-Cesena"], "fmt": "pdf"}


def test_cli_exit_codes(settings, monkeypatch):
    failed = replace(pipeline.ProvinceResult("Parma", "PR", DAY), error="down")
    monkeypatch.setattr(cli, "run_all", lambda *a, **k: [failed])
    assert cli.main(["--date", "21/08/2025"]) == 1
    assert cli.main(["--province", "Milano"]) == 2
    assert cli.main(["--date", "ieri"]) == 2
