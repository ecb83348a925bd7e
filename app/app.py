# ============================================================
# Electric Vehicle Dashboard
# ============================================================

import logging

import streamlit as st

from aggregations import load_tables
from charts import build_charts, build_figure

logging.basicConfig(level=logging.INFO)

PAGE_TITLE = "Electric Vehicle DashBoard"

# ------------------------------------------------------------
# 1. Page Config & Styling
# ------------------------------------------------------------
st.set_page_config(
    page_title=PAGE_TITLE,
    layout="wide",
)

# Custom CSS: gradient banner + card-style chart panels
st.markdown("""
    <style>
        .block-container {
            padding-top: 2rem;
            padding-bottom: 1rem;
            padding-left: 2rem;
            padding-right: 2rem;
            background-color: #f4f4f4;
        }
        footer {visibility: hidden;}

        .ev-banner {
            text-align: center;
            font-family: Arial, sans-serif;
            font-size: 3em;
            color: #fff;
            background: linear-gradient(90deg, #FF6F61, #6FA3EF);
            padding: 20px;
            border-radius: 10px;
            box-shadow: 0 4px 20px rgba(0, 0, 0, 0.2);
        }

        .ev-panel-title {
            font-size: 1.4em;
            text-align: center;
            color: #555;
            margin-bottom: 10px;
        }
    </style>
""", unsafe_allow_html=True)


# ------------------------------------------------------------
# 2. Load Data (once per session)
# ------------------------------------------------------------
if "ev_tables" not in st.session_state:
    with st.spinner("Loading EV registrations..."):
        st.session_state["ev_tables"] = load_tables()

tables = st.session_state["ev_tables"]

# ------------------------------------------------------------
# 3. Page Title
# ------------------------------------------------------------
st.markdown(f'<h1 class="ev-banner">{PAGE_TITLE}</h1>', unsafe_allow_html=True)
st.markdown(" ")

# ------------------------------------------------------------
# 4. Chart Panels (two per row)
# ------------------------------------------------------------
charts = build_charts(tables)

for start in range(0, len(charts), 2):
    cols = st.columns(2)
    for offset, (col, chart) in enumerate(zip(cols, charts[start:start + 2])):
        with col:
            with st.container(border=True):
                st.markdown(f'<h2 class="ev-panel-title">{chart.title}</h2>', unsafe_allow_html=True)
                st.plotly_chart(
                    build_figure(chart),
                    use_container_width=True,
                    key=f"ev-chart-{start + offset}",
                )

# ------------------------------------------------------------
# Footer
# ------------------------------------------------------------
st.markdown("---")
st.caption(f"{tables.total:,} registrations loaded" if tables.loaded else "Waiting for data...")
