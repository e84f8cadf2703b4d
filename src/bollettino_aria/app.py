# src/bollettino_aria/app.py
# Avvio: streamlit run src/bollettino_aria/app.py
from datetime import datetime

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

from bollettino_aria.charts import CHART_PARAMETERS, plot_parameter
from bollettino_aria.config import load_settings
from bollettino_aria.download import DownloadError
from bollettino_aria.narrative import column_label, exceedance_comment, no_data_notice, parameter_label
from bollettino_aria.pipeline import collect_province, default_day
from bollettino_aria.report import format_cell
from bollettino_aria.stations import PROVINCES, load_stations
from bollettino_aria.thresholds import PARAMETER_ORDER, THRESHOLDS

st.set_page_config(page_title="Qualità dell'aria - Emilia-Romagna", layout="wide")

st.title("Qualità dell'aria in Emilia-Romagna")
st.markdown("Bollettino giornaliero per provincia: dati orari ARPAE, valori limite e soglie del D.Lgs. 155/2010.")

settings = load_settings()


# ----------------------------
# Caricamento dati (in cache per provincia e giorno)
# ----------------------------
@st.cache_data(ttl=3600)
def load_registry(path: str) -> pd.DataFrame:
    return load_stations(path)


@st.cache_data(ttl=3600)
def load_province(province: str, day_iso: str):
    day = datetime.strptime(day_iso, "%Y-%m-%d").date()
    result = collect_province(province, day, settings, load_registry(str(settings.stations_csv)))
    return result.measurements, result.summaries, result.error


# ----------------------------
# Sidebar: soglie di legge
# ----------------------------
st.sidebar.header("Valori limite e soglie")
for t in THRESHOLDS:
    lab = parameter_label(t.parameter)
    window = f" ({t.hours}h)" if t.hours in (3, 8) else ""
    st.sidebar.markdown(f"**{lab['symbol']}**, {t.label}: {t.limit:g} {lab['unit']}{window}")

# ----------------------------
# UI: selettori principali
# ----------------------------
col1, col2 = st.columns(2)
with col1:
    sel_province = st.selectbox("Seleziona provincia", list(PROVINCES))
with col2:
    sel_day = st.date_input("Giorno", value=default_day(), max_value=default_day())

try:
    measurements, summaries, error = load_province(sel_province, sel_day.isoformat())
except (DownloadError, ValueError) as e:
    st.error(f"Errore caricamento dati: {e}")
    st.stop()

if error:
    st.error(f"Download non riuscito per {sel_province}: {error}")
    st.stop()

st.success(f"{len(measurements)} misure orarie caricate per {sel_province}")

# ----------------------------
# Una sezione per parametro
# ----------------------------
for parameter in PARAMETER_ORDER:
    lab = parameter_label(parameter)
    st.header(f"{lab['name']} ({lab['symbol']})")

    summary = summaries.get(parameter)
    if summary is None or summary.empty:
        st.info(no_data_notice(parameter))
        continue

    table = summary.drop(columns=["station_id", "date"]).astype(object).apply(lambda col: col.map(format_cell))
    table.columns = [column_label(c, parameter) for c in table.columns]
    st.dataframe(table, hide_index=True)

    if parameter in CHART_PARAMETERS:
        fig = plot_parameter(measurements, parameter)
        st.pyplot(fig)
        plt.close(fig)

    for line in exceedance_comment(parameter, summary).splitlines():
        st.write(line)

st.markdown("---")
st.markdown("Fonte dati: ARPAE Emilia-Romagna, portale Open Data (dati.arpae.it).")
