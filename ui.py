# ui.py
import asyncio

import streamlit as st

from config import Settings
from controller import ContactController
from encoder import ImageReadError, read_upload
from export import CopyFeedback, contacts_frame, copy_to_clipboard, to_csv
from models import Phase

UPLOAD_TYPES = ["png", "jpg", "jpeg", "webp", "gif"]


def init_session_state(settings: Settings):
    if "controller" not in st.session_state:
        st.session_state.controller = ContactController.from_settings(settings)
    if "uploader_key" not in st.session_state: st.session_state.uploader_key = 0
    if "last_file_id" not in st.session_state: st.session_state.last_file_id = None
    if "copy_feedback" not in st.session_state:
        st.session_state.copy_feedback = CopyFeedback(delay=settings.copy_feedback_seconds)


def clear_all():
    st.session_state.controller.reset()
    # a fresh key empties the file uploader widget
    st.session_state.uploader_key += 1
    st.session_state.last_file_id = None
    st.session_state.copy_feedback = CopyFeedback(delay=st.session_state.copy_feedback.delay)


def render_uploader():
    controller: ContactController = st.session_state.controller

    file = st.file_uploader(
        "Select an image of a contact list",
        type=UPLOAD_TYPES,
        key=f"contact_image_{st.session_state.uploader_key}",
        disabled=not controller.can_upload,
    )
    if file is None:
        return

    # the uploader keeps returning the same file on every rerun
    file_id = getattr(file, "file_id", None) or f"{file.name}:{file.size}"
    if file_id == st.session_state.last_file_id:
        return
    st.session_state.last_file_id = file_id

    try:
        upload = read_upload(file.getvalue(), file.type, file.name)
    except ImageReadError as e:
        controller.reject(file.name, e)
        return

    with st.spinner("Analyzing image, please wait..."):
        asyncio.run(controller.upload(upload))


def render_status():
    state = st.session_state.controller.state

    if state.image is not None:
        st.image(state.image.data, caption=state.image.name)

    if state.phase is Phase.LOADING:
        st.info("Analyzing image, please wait...")
    elif state.phase is Phase.SUCCESS:
        st.success(state.message)
    elif state.phase is Phase.ERROR:
        st.error(state.message)


def render_actions(settings: Settings):
    controller: ContactController = st.session_state.controller
    state = controller.state

    if controller.can_export:
        csv_text = to_csv(state.contacts)
        feedback: CopyFeedback = st.session_state.copy_feedback

        cols = st.columns(3)
        with cols[0]:
            if st.button(f"📋 {feedback.label}", key="copy_csv"):
                feedback.record(copy_to_clipboard(csv_text))
                st.rerun()
        with cols[1]:
            st.download_button(
                "⬇️ Download CSV",
                data=csv_text.encode("utf-8"),
                file_name=settings.csv_filename,
                mime="text/csv",
            )
        with cols[2]:
            st.button("🗑️ Clear All", on_click=clear_all)
    elif state.phase is Phase.ERROR or (state.image is not None and not state.contacts and not controller.is_loading):
        st.button("Start Over", on_click=clear_all)


def render_contact_table():
    state = st.session_state.controller.state
    if not state.contacts or state.phase is Phase.LOADING:
        return

    st.divider()
    st.subheader("📇 Extracted contacts")
    df = contacts_frame(state.contacts)
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.caption(f"{len(df)} contact(s)")
