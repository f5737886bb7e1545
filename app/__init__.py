"""Entry points: HTTP API (app.api) and Streamlit dashboard (app.main)."""
