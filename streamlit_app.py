from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import streamlit as st
import streamlit.components.v1 as components

from biolens.config import DEFAULT_MODEL, DEFAULT_STRUCTURE_ID, Settings
from biolens.engine.render import render_html, snapshot_filename
from biolens.schemas import ColorMode, Style
from biolens.session import ViewerSession, build_session


STYLE_LABELS = {
    Style.CARTOON: "Cartoon",
    Style.SURFACE: "Surface",
    Style.BALL_AND_STICK: "Ball & Stick",
    Style.SPACEFILL: "Sphere",
    Style.PUTTY: "Putty",
    Style.WIREFRAME: "Wireframe",
}

COLOR_LABELS = {
    ColorMode.CHAIN_ID: "By Chain ID",
    ColorMode.ELEMENT_SYMBOL: "By Element (CPK)",
    ColorMode.RESIDUE_NAME: "By Residue",
    ColorMode.HYDROPHOBICITY: "By Hydrophobicity",
    ColorMode.UNIFORM: "Custom Uniform",
}


def _run(coro):
    loop: asyncio.AbstractEventLoop = st.session_state.loop
    return loop.run_until_complete(coro)


def _initialize_session(model: str) -> None:
    st.session_state.loop = asyncio.new_event_loop()
    session = build_session(Settings(model=model))
    st.session_state.viewer = session
    st.session_state.model_sig = model
    _run(session.load_identifier(DEFAULT_STRUCTURE_ID))


def _submitted_command(raw: Optional[str]) -> Optional[str]:
    """Chat input worth sending to the interpreter; blank submissions are ignored."""
    if raw and raw.strip():
        return raw.strip()
    return None


def _get_session() -> ViewerSession:
    return st.session_state.viewer


def _sidebar_controls(session: ViewerSession) -> Dict[str, Any]:
    state = session.state
    st.subheader("Geometry")
    styles: List[Style] = list(STYLE_LABELS)
    style = st.radio(
        "Representation",
        styles,
        index=styles.index(state.style),
        format_func=STYLE_LABELS.get,
        horizontal=True,
    )

    st.subheader("Coloring")
    modes: List[ColorMode] = list(COLOR_LABELS)
    color_mode = st.selectbox(
        "Color scheme",
        modes,
        index=modes.index(state.color_mode),
        format_func=COLOR_LABELS.get,
    )
    tint = state.tint
    if color_mode is ColorMode.UNIFORM:
        tint = st.color_picker("Tint color", value=state.tint)

    st.subheader("Sub-systems")
    show_water = st.toggle("Solvent (H2O)", value=state.show_water)
    show_hetero = st.toggle("Hetero atoms", value=state.show_hetero)

    return {
        "style": style.value,
        "colorMode": color_mode.value,
        "tint": tint,
        "showWater": show_water,
        "showHetero": show_hetero,
    }


def main() -> None:
    st.set_page_config(page_title="BioLens", layout="wide")
    st.title("BioLens")
    st.caption("Load a structure, tune its look, or just describe what you want to see.")

    with st.sidebar:
        st.header("Session")
        model = st.text_input("Ollama model", value=st.session_state.get("model_input", DEFAULT_MODEL), key="model_input")

    if "viewer" not in st.session_state or st.session_state.get("model_sig") != model:
        _initialize_session(model)

    session = _get_session()

    with st.sidebar:
        st.header("Structure")
        identifier = st.text_input("PDB ID", placeholder="4HHB")
        if st.button("Load") and identifier:
            with st.spinner("Synchronizing engine..."):
                _run(session.load_identifier(identifier))
        upload = st.file_uploader("Upload", type=["pdb", "cif", "bcif"])
        if upload is not None and st.session_state.get("uploaded_name") != upload.name:
            st.session_state.uploaded_name = upload.name
            with st.spinner("Synchronizing engine..."):
                _run(session.load_bytes(upload.name, upload.getvalue()))

        wanted = _sidebar_controls(session)
        current = session.state.to_json()
        changed = {key: value for key, value in wanted.items() if current.get(key) != value}
        if changed:
            _run(session.update(changed))

        # the embedded view is rebuilt from zoomTo on every rerun
        if st.button("Reset viewport"):
            _run(session.reset_camera())

    if session.last_error:
        st.error(session.last_error)
        if st.button("Dismiss"):
            session.dismiss_error()
            st.rerun()

    view_col, chat_col = st.columns([3, 2])

    with view_col:
        st.markdown(f"**Active structure:** `{session.state.structure_id or 'none'}`")
        html = render_html(session.engine)
        if html:
            components.html(html, height=580, scrolling=False)
            st.download_button(
                "Download snapshot",
                html,
                file_name=snapshot_filename(session.state.structure_id),
                mime="text/html",
            )
        else:
            st.info("No structure to display.")

    with chat_col:
        for message in session.history.as_messages():
            with st.chat_message(message["role"]):
                st.markdown(message["content"])

        command = _submitted_command(st.chat_input("e.g. show the surface colored by hydrophobicity"))
        if command:
            with st.spinner("Interpreting..."):
                _run(session.command(command))
            st.rerun()


if __name__ == "__main__":
    main()
