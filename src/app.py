# ## FILE: src/app.py

import logging

import streamlit as st

from src.core import run_async
from src.core.service import ChatService
from src.rag.pipeline import create_pipeline
from src.utils.config import DEBUG, INGEST_LIMIT, LOG_FORMAT, LOG_LEVEL
from src.utils.error_handler import handle_model_error

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# Set page config (should be the first Streamlit command)
st.set_page_config(
    page_title="News RAG Navigator",
    page_icon="📰",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
    <style>
    .main { padding: 2rem; }
    .source-box {
        background-color: #f0f2f6;
        border: 1px solid #dfe1e5;
        border-radius: 0.5rem;
        padding: 0.75rem;
        margin: 0.5rem 0;
        font-size: 0.9rem;
    }
    </style>
    """, unsafe_allow_html=True)


@st.cache_resource(show_spinner="🔧 Loading news engine... Please wait.")
def get_service() -> ChatService:
    """One pipeline per process, shared by every browser session."""
    return ChatService(create_pipeline())


# --- Initialization ---
if 'session_id' not in st.session_state:
    st.session_state.session_id = None


def format_sources(sources) -> str:
    lines = []
    for source in sources:
        metadata = source.get("metadata", {})
        title = metadata.get("title") or "Untitled"
        url = metadata.get("url")
        lines.append(f"- [{title}]({url})" if url else f"- {title}")
    return "\n\n**Sources:**\n" + "\n".join(lines) if lines else ""


# --- UI Components ---

def display_sidebar(service: ChatService):
    """Renders the sidebar controls."""
    with st.sidebar:
        st.header("🛠️ Controls")

        limit = st.number_input("Articles to ingest", min_value=1, max_value=200, value=INGEST_LIMIT)
        if st.button("📥 Ingest latest news"):
            try:
                with st.spinner("Fetching and indexing articles..."):
                    result = run_async(service.ingest(int(limit)))
                st.success(f"Fetched {result['ingested']} articles, {result['added']} new. "
                           f"Total documents: {result['total_documents']}")
            except Exception as e:
                logger.error(f"Ingestion failed: {e}", exc_info=DEBUG)
                st.error(handle_model_error(e))

        st.divider()
        if st.button("🧹 Clear chat history") and st.session_state.session_id:
            try:
                service.clear_history(st.session_state.session_id)
            except KeyError:
                st.session_state.session_id = None
            st.rerun()

        st.header("📊 Stats")
        stats = service.stats()
        st.metric("Documents", stats["documents"])
        st.caption(f"Vector store: {'Chroma' if stats['vector_store'] else 'in-memory only'}")
        health = service.health()
        st.caption(f"{health['service']} v{health['version']} – {health['status']}")


def display_chat_interface(service: ChatService):
    """Renders the main chat query interface."""
    st.subheader("💬 Ask about the news")

    session_id = st.session_state.session_id
    messages = []
    if session_id:
        try:
            messages = service.history(session_id)
        except KeyError:
            st.session_state.session_id = None

    for message in messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"], unsafe_allow_html=False)

    user_question = st.chat_input("Ask about today's headlines...")

    if user_question:
        with st.chat_message("user"):
            st.markdown(user_question)

        with st.chat_message("assistant"):
            message_placeholder = st.empty()
            message_placeholder.markdown("🔍 Searching articles...")
            try:
                response = run_async(service.chat(user_question, st.session_state.session_id))
                st.session_state.session_id = response["session_id"]
                message_placeholder.markdown(response["answer"] + format_sources(response["sources"]))
            except Exception as e:
                logger.error(f"Error during query processing: {e}", exc_info=DEBUG)
                message_placeholder.error(f"An error occurred: {handle_model_error(e)}")


# --- Main Application Logic ---
def main():
    st.title("📰 News RAG Navigator")
    try:
        service = get_service()
    except Exception as e:
        logger.error(f"Pipeline initialization failed: {e}", exc_info=DEBUG)
        st.error(f"❌ Initialization Failed: {handle_model_error(e)}")
        return

    display_sidebar(service)
    display_chat_interface(service)


if __name__ == "__main__":
    main()
