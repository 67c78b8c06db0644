import logging

import pandas as pd
import streamlit as st

from config import load_config
from dashboard import run_dev_dashboard
from models.observation import ChartSeries
from output.chart import LAB_CHART_ID, NO_DATA_TITLE
from output.html import LAB_COLUMNS

st.set_page_config(page_title="LabTrend Dashboard", layout="wide")

# Load configuration
try:
    config = load_config()
except Exception as e:
    st.error(f"Config load failed: {e}")
    st.stop()

st.title("🔬 Patient Lab Dashboard")
st.markdown(f"{config.lab.series_name} history (LOINC `{config.lab.code}`) for one patient, in sandbox dev mode.")
st.markdown("---")

# Sidebar: dev session
st.sidebar.header("🧪 Dev Session")
server_url = st.sidebar.text_input("FHIR server", value=config.dev_server_url)
patient_id = st.sidebar.text_input("Patient ID", value=config.dev_patient_id)

try:
    view = run_dev_dashboard(config, server_url=server_url or None, patient_id=patient_id or None)
except Exception as e:
    st.error(f"Dashboard failed: {e}")
    logging.error(f"Dashboard error: {e}", exc_info=True)
    st.stop()

st.caption(view.status)

# Patient panel
st.subheader("👤 Patient")
if view.patient:
    for column, (label, value) in zip(st.columns(4), view.patient.display_fields().items()):
        column.markdown(f"**{label}**  \n{value}")
elif view.patient_error:
    st.error(view.patient_error)

# Lab table
st.subheader(f"📊 {config.lab.series_name} Results")
if view.lab_rows:
    df = pd.DataFrame([row.cells() for row in view.lab_rows], columns=list(LAB_COLUMNS))
    st.dataframe(df, hide_index=True)
else:
    st.info(view.lab_placeholder or "No results.")

# Chart
chart = view.charts.get(LAB_CHART_ID, {})
series = ChartSeries.from_observations(view.lab_rows)
if not chart.get("series") or not len(series):
    st.info(NO_DATA_TITLE)
else:
    st.markdown(f"**{chart['title']['text']}**")
    chart_df = pd.DataFrame({config.lab.axis_title: series.values}, index=pd.Index(series.dates, name="Date"))
    st.line_chart(chart_df, x_label="Date", y_label=config.lab.axis_title)
