#!/usr/bin/env python
"""
Streamlit Web UI for the PDF dictation reader.

Run with:
    streamlit run src/pdf_dictation/app.py

Features:
- Upload a PDF and extract readable sentences
- Read sentences aloud through the browser speech engine
- Math reading mode, voice and volume controls
- Reading view with page badges, full transcript and downloads
"""

import sys
from pathlib import Path

# Add src directory to path for imports when running as script
_src_dir = Path(__file__).parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import html
import json
import logging
import tempfile
from typing import Optional

import streamlit as st
import streamlit.components.v1 as components

from pdf_dictation import __version__
from pdf_dictation.config import get_config
from pdf_dictation.utils.assembler import DocumentAssembler, ExtractionSession
from pdf_dictation.utils.export import DocumentExporter
from pdf_dictation.utils.io import EnhancedJSONEncoder
from pdf_dictation.utils.speech import BrowserSpeechEngine, Narrator


# Page config must be first Streamlit command
st.set_page_config(
    page_title="PDF Dictation",
    page_icon="🔊",
    layout="wide",
    initial_sidebar_state="expanded"
)


def load_css():
    """Load custom CSS styles."""
    st.markdown("""
    <style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #1E88E5;
        text-align: center;
        margin-bottom: 1rem;
    }
    .sub-header {
        font-size: 1.2rem;
        color: #888;
        text-align: center;
        margin-bottom: 2rem;
    }
    .sentence {
        border-radius: 5px;
        padding: 0.4rem 0.8rem;
        margin: 0.2rem 0;
        color: inherit;
    }
    .sentence.current {
        background-color: rgba(30, 136, 229, 0.15);
        border-left: 4px solid #1E88E5;
    }
    .page-badge {
        font-size: 0.7rem;
        color: #888;
        border: 1px solid #888;
        border-radius: 3px;
        padding: 0 0.3rem;
        margin-right: 0.5rem;
    }
    </style>
    """, unsafe_allow_html=True)


def init_session_state():
    """Initialize session state variables."""
    if "session" not in st.session_state:
        config = get_config()
        if config.debug_mode:
            logging.getLogger().setLevel(logging.DEBUG)
        st.session_state.session = ExtractionSession(DocumentAssembler(config))
    if "engine" not in st.session_state:
        lang_prefix = st.session_state.session.assembler.config.speech.preferred_lang_prefix
        st.session_state.engine = BrowserSpeechEngine(lang_prefix=lang_prefix)
    if "narrator" not in st.session_state:
        st.session_state.narrator = None
    if "narrator_generation" not in st.session_state:
        st.session_state.narrator_generation = None


def render_sidebar() -> dict:
    """Render sidebar settings."""
    config = st.session_state.session.assembler.config

    st.sidebar.header("⚙️ Settings")

    st.sidebar.subheader("Reading")
    math_mode = st.sidebar.checkbox(
        "Read math notation",
        value=config.speech.math_mode,
        help="Speak x² as 'x squared', f(t) as 'f of t', ≤ as 'less than or equal to'"
    )
    voice = st.sidebar.text_input(
        "Voice name",
        value=config.speech.voice or "",
        help="Browser voice name; leave empty for the default voice"
    )
    volume = st.sidebar.slider(
        "Volume",
        min_value=0.0,
        max_value=1.0,
        value=float(config.speech.volume),
        step=0.05
    )

    st.sidebar.subheader("Extraction")
    minus_heuristics = st.sidebar.checkbox(
        "Restore missing minus signs",
        value=config.repair.minus_heuristics,
        help="Turn 'x 1)' into 'x - 1)'; may misfire on juxtaposed numbers"
    )
    ocr_fallback = st.sidebar.checkbox(
        "OCR pages without text",
        value=config.decoder.ocr_fallback,
        help="Requires Tesseract and poppler"
    )

    config.repair.minus_heuristics = minus_heuristics
    config.decoder.ocr_fallback = ocr_fallback

    return {
        "math_mode": math_mode,
        "voice": voice.strip() or None,
        "volume": volume
    }


def process_upload(uploaded_file) -> None:
    """Run an extraction for the uploaded PDF."""
    session: ExtractionSession = st.session_state.session
    st.session_state.engine.cancel()

    with st.spinner("Extracting text..."):
        document = session.extract(bytes(uploaded_file.getbuffer()), source_name=uploaded_file.name)

    if document is not None:
        st.session_state.narrator = None
        if document.is_empty:
            st.warning("No readable text found in this PDF.")
        else:
            st.success(f"✅ Extracted {len(document.sentences)} sentences")


def get_narrator(settings: dict) -> Optional[Narrator]:
    """Narrator for the current document, rebuilt after each extraction."""
    session: ExtractionSession = st.session_state.session
    if session.document is None or session.document.is_empty:
        return None

    narrator = st.session_state.narrator
    if narrator is None or st.session_state.narrator_generation != session.generation:
        narrator = Narrator(session.sentences, st.session_state.engine)
        st.session_state.narrator = narrator
        st.session_state.narrator_generation = session.generation

    narrator.math_mode = settings["math_mode"]
    narrator.voice = settings["voice"]
    narrator.volume = settings["volume"]
    return narrator


def render_controls(narrator: Narrator):
    """Play/pause and navigation buttons."""
    cols = st.columns([1, 1, 1, 4])

    with cols[0]:
        if st.button("⏮ Prev", use_container_width=True, disabled=narrator.current == 0):
            narrator.prev()
    with cols[1]:
        if narrator.engine.reports_end:
            label = "⏸ Pause" if narrator.is_speaking else "▶ Play"
        else:
            label = "⏯ Play/Pause"
        if st.button(label, use_container_width=True, type="primary"):
            narrator.toggle()
    with cols[2]:
        last = len(narrator.sentences) - 1
        if st.button("Next ⏭", use_container_width=True, disabled=narrator.current >= last):
            narrator.next()
    with cols[3]:
        st.progress(
            int(narrator.progress_pct),
            text=f"Sentence {narrator.current + 1} of {len(narrator.sentences)} · page {narrator.current_page}"
        )

    script = st.session_state.engine.render_html()
    if script:
        components.html(script, height=0)


def render_reading_view(narrator: Narrator):
    """Sentences with page badges; the current one is highlighted."""
    for i, sentence in enumerate(narrator.sentences):
        cols = st.columns([12, 1])
        css = "sentence current" if i == narrator.current else "sentence"
        with cols[0]:
            st.markdown(
                f'<div class="{css}"><span class="page-badge">p{sentence.page}</span>'
                f'{html.escape(sentence.text)}</div>',
                unsafe_allow_html=True
            )
        with cols[1]:
            if st.button("🔊", key=f"speak_{i}", help="Read from here"):
                narrator.speak_at(i)
                st.rerun()


def render_metrics(metrics: dict):
    """Render document metrics."""
    cols = st.columns(4)

    with cols[0]:
        st.metric("Pages", metrics.get("pages_processed", 0))
    with cols[1]:
        sentences = metrics.get("sentences", {})
        st.metric("Sentences", sentences.get("total", 0))
    with cols[2]:
        st.metric("Math Sentences", sentences.get("mathematical", 0))
    with cols[3]:
        lines = metrics.get("lines", {})
        st.metric("Headers/Footers Dropped", lines.get("chrome_dropped", 0))


def render_downloads(document, settings: dict):
    """Render download buttons."""
    st.subheader("📥 Downloads")

    base_name = Path(document.source_file or "document").stem
    with tempfile.TemporaryDirectory(prefix="pdf_dictation_") as temp_dir:
        exporter = DocumentExporter(temp_dir, base_name, math_mode=settings["math_mode"])
        formats = ["text", "markdown", "speech"]
        try:
            exported = exporter.export(document, formats + ["docx"])
        except ImportError:
            exported = exporter.export(document, formats)
        payloads = {fmt: path.read_bytes() for fmt, path in exported.items()}

    cols = st.columns(5)

    with cols[0]:
        json_str = json.dumps(document.to_dict(), indent=2, ensure_ascii=False, cls=EnhancedJSONEncoder)
        st.download_button(
            "📄 JSON",
            json_str,
            file_name=f"{base_name}.json",
            mime="application/json",
            use_container_width=True
        )
    with cols[1]:
        st.download_button(
            "📃 Text",
            payloads["text"],
            file_name=f"{base_name}.txt",
            mime="text/plain",
            use_container_width=True
        )
    with cols[2]:
        st.download_button(
            "📝 Markdown",
            payloads["markdown"],
            file_name=f"{base_name}.md",
            mime="text/markdown",
            use_container_width=True
        )
    with cols[3]:
        st.download_button(
            "🔊 Speech Script",
            payloads["speech"],
            file_name=f"{base_name}.speech.txt",
            mime="text/plain",
            use_container_width=True
        )
    with cols[4]:
        if "docx" in payloads:
            st.download_button(
                "📋 DOCX",
                payloads["docx"],
                file_name=f"{base_name}.docx",
                mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                use_container_width=True
            )
        else:
            st.button(
                "📋 DOCX ❌",
                use_container_width=True,
                help="Install python-docx: pip install python-docx",
                disabled=True
            )


def main():
    """Main application."""
    load_css()
    init_session_state()

    # Header
    st.markdown('<h1 class="main-header">🔊 PDF Dictation</h1>', unsafe_allow_html=True)
    st.markdown(
        '<p class="sub-header">Listen to PDFs sentence by sentence, math included</p>',
        unsafe_allow_html=True
    )

    settings = render_sidebar()

    st.markdown("---")

    uploaded_file = st.file_uploader(
        "Upload a PDF",
        type=["pdf"],
        help="Text is read from the PDF text layer"
    )

    if uploaded_file and st.button("🚀 Extract Sentences", type="primary"):
        process_upload(uploaded_file)

    session: ExtractionSession = st.session_state.session
    if session.error:
        st.error(session.error)

    document = session.document
    if document is not None:
        narrator = get_narrator(settings)

        st.markdown("---")
        render_metrics(document.metrics.to_dict() if document.metrics else {})

        if narrator is not None:
            st.markdown("---")
            render_controls(narrator)

            tabs = st.tabs(["📖 Reading View", "📃 Transcript", "📄 Raw JSON"])
            with tabs[0]:
                render_reading_view(narrator)
            with tabs[1]:
                st.text_area("Full transcript", document.transcript, height=400)
            with tabs[2]:
                st.json(document.to_dict())

            st.markdown("---")
            render_downloads(document, settings)

    # Footer
    st.markdown("---")
    st.markdown(
        f"""
        <div style="text-align: center; color: #666; font-size: 0.8rem;">
            PDF Dictation v{__version__} |
            Built with Streamlit, PyMuPDF and the Web Speech API
        </div>
        """,
        unsafe_allow_html=True
    )


if __name__ == "__main__":
    main()
