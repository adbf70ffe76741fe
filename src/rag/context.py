"""Formats retrieved articles into the context block handed to the LLM."""
from typing import Sequence

from langchain_core.documents import Document

from src.utils.config import CONTEXT_CHAR_LIMIT

CONTEXT_SEPARATOR = "\n\n"


def format_source(document: Document, char_limit: int = CONTEXT_CHAR_LIMIT) -> str:
    metadata = document.metadata or {}
    return (
        f"Title: {metadata.get('title') or ''}\n"
        f"Source: {metadata.get('url') or ''}\n"
        f"Content: {document.page_content[:char_limit]}..."
    )


def build_context(sources: Sequence[Document], char_limit: int = CONTEXT_CHAR_LIMIT) -> str:
    """One block per retrieved article, in retrieval order, separated by a blank line."""
    return CONTEXT_SEPARATOR.join(format_source(doc, char_limit) for doc in sources)
