import pytest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from langchain_core.documents import Document
from langchain_core.language_models import FakeListLLM
from langchain_core.runnables import RunnableLambda

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.rag.generator import AnswerGenerator
from src.rag.pipeline import RAGPipeline

LLM_ANSWER = "Cats and dogs are common household pets."


@pytest.fixture
def sample_articles():
    """Small news corpus with one pets article and one markets article."""
    return [
        {"title": "A", "text": "cats and dogs are pets", "url": "u1", "publishedAt": "2025-01-01T00:00:00Z"},
        {"title": "B", "text": "stock markets rose today", "url": "u2", "publishedAt": "2025-01-01T00:00:00Z"},
    ]


@pytest.fixture
def news_articles():
    """Longer articles for context and fallback formatting tests."""
    return [
        {
            "title": "Cybersecurity Threats on the Rise",
            "text": "A new report highlights the increasing sophistication of cyber attacks and the need for "
                    "stronger security measures across all industries. " * 5,
            "url": "https://example.com/cybersecurity-report",
            "source": "mock",
        },
        {
            "title": "New Study Shows Benefits of Remote Work",
            "text": "A comprehensive study reveals that remote work has led to increased productivity and job "
                    "satisfaction for many employees, though challenges in team collaboration remain.",
            "url": "https://example.com/remote-work-study",
            "source": "mock",
        },
    ]


@pytest.fixture
def fake_llm():
    """Deterministic LLM that always returns the same answer."""
    return FakeListLLM(responses=[LLM_ANSWER])


@pytest.fixture
def llm_calls():
    return []


@pytest.fixture
def failing_llm(llm_calls):
    """LLM runnable that records each call and then fails like an unreachable service."""
    def _fail(prompt):
        llm_calls.append(prompt)
        raise ConnectionError("generation service unavailable")
    return RunnableLambda(_fail)


@pytest.fixture
def pipeline(fake_llm):
    """Pipeline with the lexical index only and a fake LLM."""
    return RAGPipeline(generator=AnswerGenerator(fake_llm))


@pytest.fixture
def mock_vector_store():
    """Vector store double whose remote calls all succeed."""
    store = MagicMock()
    store.enabled = True
    store.ensure_collection = AsyncMock(return_value=MagicMock(name="collection"))
    store.embed = AsyncMock(side_effect=lambda texts: [[0.1, 0.2, 0.3] for _ in texts])
    store.add = AsyncMock(return_value=True)
    store.query = AsyncMock(return_value=[
        Document(
            page_content="Remote copy of the pets article",
            metadata={"title": "Remote A", "url": "https://example.com/remote-a"},
        )
    ])
    return store
