import pandas as pd

from conftest import DAY, measurements
from bollettino_aria.charts import plot_parameter, save_chart
from bollettino_aria.report import format_cell, render_index, render_province, signif, summary_table
from bollettino_aria.thresholds import evaluate_day


def province_data():
    values = [100] * 24
    values[12:16] = [250] * 4
    df = pd.concat([
        measurements("O3", values),
        measurements("NO2", [30] * 24),
        measurements("PM10", [55]),
    ], ignore_index=True)
    return df, evaluate_day(df)


def test_signif_and_cells():
    assert signif(123.4) == 120
    assert signif(0.456) == 0.46
    assert format_cell(123.4) == "120"
    assert format_cell(float("nan")) == "n.d."
    assert format_cell(pd.NA) == "n.d."
    assert format_cell(True) == "sì"
    assert format_cell(3) == "3"


def test_summary_table_labels_and_missing_values():
    _, summaries = province_data()
    html = summary_table("O3", summaries["O3"])
    assert "Stazione" in html
    assert "Max media mobile 8h (µg/m³)" in html
    assert "GIARDINI MARGHERITA" in html
    assert "station_id" not in html


def test_render_province_writes_page_and_charts(tmp_path):
    df, summaries = province_data()
    path = render_province("Bologna", "BO", DAY, df, summaries, tmp_path)
    assert path == tmp_path / "province" / "bologna.html"
    html = path.read_text(encoding="utf-8")
    assert "Qualità dell'aria in provincia di Bologna" in html
    assert "21/08/2025" in html
    assert "si registrano 4 superamenti della soglia di informazione" in html
    # parametri senza dati
    assert "Non ci sono dati disponibili per il parametro monossido di carbonio" in html
    assert (tmp_path / "img" / "2025-08-21_BO_O3.png").exists()
    assert (tmp_path / "img" / "2025-08-21_BO_NO2.png").exists()
    assert '../img/2025-08-21_BO_O3.png' in html
    assert not (tmp_path / "img" / "2025-08-21_BO_PM10.png").exists()


def test_render_province_pdf_charts(tmp_path):
    df, summaries = province_data()
    render_province("Bologna", "BO", DAY, df, summaries, tmp_path, chart_format="pdf")
    assert (tmp_path / "img" / "2025-08-21_BO_O3.pdf").exists()


def test_render_province_with_failed_download(tmp_path):
    from bollettino_aria.cleaning import empty_measurements
    path = render_province("Rimini", "RN", DAY, empty_measurements(), {}, tmp_path, error="HTTP 503")
    html = path.read_text(encoding="utf-8")
    assert "I dati della provincia non sono stati scaricati: HTTP 503" in html
    assert html.count('class="notice"') == 6


def test_render_index_links_all_provinces(tmp_path):
    path = render_index(DAY, tmp_path, failed={"FE"})
    html = path.read_text(encoding="utf-8")
    assert html.count("<li") == 9
    assert 'href="province/forli-cesena.html"' in html
    assert 'class="failed"><a href="province/ferrara.html"' in html


def test_co_chart_uses_moving_average(tmp_path):
    fig = plot_parameter(measurements("CO", [1.0] * 24), "CO")
    assert "media mobile 8h" in fig.axes[0].get_ylabel()
    assert save_chart(fig, tmp_path / "co").suffix == ".png"
