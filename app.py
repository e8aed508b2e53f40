# app.py
# ------------------------------------------------------------
# Image -> contact list extractor (Streamlit + LangGraph)
# ------------------------------------------------------------
import streamlit as st

from config import configure_logging, get_settings
from ui import (
    init_session_state,
    render_actions,
    render_contact_table,
    render_status,
    render_uploader,
)

# ====== 0. Settings ==========================================================
# OPENAI_API_KEY comes from the environment or .env (see config.py)
settings = get_settings()
configure_logging(settings.log_level)

# ====== 1. Page ==============================================================
st.set_page_config(page_title="Image to Contact Extractor", page_icon="📇")
st.title("📇 Image to Contact Extractor")
st.caption("Upload an image of a contact list, and let AI do the organizing for you.")

init_session_state(settings)

# ====== 2. Upload & status ===================================================
render_uploader()
render_status()

# ====== 3. Actions & results =================================================
render_actions(settings)
render_contact_table()
