"""Chat sessions and the operations exposed to the UI and scripts."""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from src.rag.document_store import DocumentInput
from src.rag.pipeline import RAGPipeline
from src.utils.config import INGEST_LIMIT, SERVICE_NAME, SERVICE_VERSION
from src.utils.error_handler import IngestionError
from src.utils.news_fetcher import NewsFetcher

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SessionStore:
    """In-memory chat sessions keyed by a random id."""

    def __init__(self):
        self._sessions: Dict[str, Dict[str, Any]] = {}

    def create(self) -> str:
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = {"id": session_id, "createdAt": _now(), "messages": []}
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[Dict[str, Any]]:
        return self._sessions.get(session_id) if session_id else None

    def append(self, session_id: str, role: str, content: str) -> None:
        self._sessions[session_id]["messages"].append({"role": role, "content": content, "timestamp": _now()})

    def clear(self, session_id: str) -> bool:
        session = self.get(session_id)
        if session is None:
            return False
        session["messages"] = []
        return True

    def __len__(self) -> int:
        return len(self._sessions)


class ChatService:
    """Thin layer over the pipeline: sessions, chat, ingestion, stats and health."""

    def __init__(self, pipeline: RAGPipeline, fetcher: Optional[NewsFetcher] = None,
                 sessions: Optional[SessionStore] = None):
        self.pipeline = pipeline
        self.fetcher = fetcher if fetcher is not None else NewsFetcher()
        self.sessions = sessions if sessions is not None else SessionStore()

    def create_session(self) -> str:
        return self.sessions.create()

    def history(self, session_id: str) -> List[Dict[str, Any]]:
        session = self.sessions.get(session_id)
        if session is None:
            raise KeyError(f"Invalid sessionId: {session_id}")
        return list(session["messages"])

    def clear_history(self, session_id: str) -> None:
        if not self.sessions.clear(session_id):
            raise KeyError(f"Invalid sessionId: {session_id}")

    async def chat(self, message: str, session_id: Optional[str] = None) -> Dict[str, Any]:
        """Answer ``message`` and record both turns in the session history."""
        if not isinstance(message, str) or not message.strip():
            raise ValueError("Message is required and must be a string")

        if self.sessions.get(session_id) is None:
            session_id = self.sessions.create()
        self.sessions.append(session_id, "user", message)

        logger.info(f"New chat request (session: {session_id}): {message}")
        result = await self.pipeline.query(message)
        self.sessions.append(session_id, "assistant", result["answer"])

        return {
            "session_id": session_id,
            "answer": result["answer"],
            "sources": result.get("sources") or [],
            "history": self.history(session_id),
        }

    async def ingest(self, limit: int = INGEST_LIMIT) -> Dict[str, Any]:
        """Fetch the latest news and add it to the pipeline."""
        logger.info(f"Ingesting latest news (limit={limit})")
        articles = await self.fetcher.fetch_news(limit)
        if not articles:
            raise IngestionError("No articles fetched from sources")

        added = await self.seed(articles)
        total = self.pipeline.document_count
        logger.info(f"Ingestion complete. Total documents in store: {total}")
        return {"status": "ok", "ingested": len(articles), "added": added, "total_documents": total}

    async def seed(self, articles: Iterable[DocumentInput]) -> int:
        return await self.pipeline.add_documents(articles)

    def stats(self) -> Dict[str, Any]:
        return {**self.pipeline.stats(), "sessions": len(self.sessions)}

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": _now(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }
