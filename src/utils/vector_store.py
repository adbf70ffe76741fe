import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import chromadb
from chromadb.config import Settings
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from src.utils.config import (
    JINA_API_KEY,
    JINA_MODEL,
    EMBEDDING_TIMEOUT,
    CHROMA_DB_URL,
    CHROMA_COLLECTION,
    CHROMA_API_KEY,
    CHROMA_TENANT,
    CHROMA_DATABASE,
    VECTOR_DB_TIMEOUT,
    DEBUG,
    vector_store_configured,
)
from src.utils.error_handler import EmbeddingError, VectorStoreError

logger = logging.getLogger(__name__)

COLLECTION_METADATA = {"description": "News articles for RAG"}


class NullVectorStore:
    """Vector store used when no embedding service or Chroma endpoint is configured."""

    enabled = False

    async def ensure_collection(self) -> None:
        return None

    async def embed(self, texts: List[str]) -> List[List[float]]:
        return []

    async def add(self, ids, texts, metadatas, embeddings) -> bool:
        return False

    async def query(self, embedding: List[float], k: int) -> Optional[List[Document]]:
        return None


class ChromaVectorStore:
    """
    Remote vector path: Jina embeddings plus a Chroma server.

    Every method converts failures into a sentinel (``None``, ``[]`` or
    ``False``) after logging them, so the pipeline can drop to the lexical
    index instead of failing the request.
    """

    enabled = True

    def __init__(
        self,
        embeddings: Embeddings,
        url: str = CHROMA_DB_URL,
        collection_name: str = CHROMA_COLLECTION,
        api_key: Optional[str] = CHROMA_API_KEY,
        tenant: Optional[str] = CHROMA_TENANT,
        database: Optional[str] = CHROMA_DATABASE,
        embedding_timeout: float = EMBEDDING_TIMEOUT,
        request_timeout: float = VECTOR_DB_TIMEOUT,
    ):
        self.embeddings = embeddings
        self.url = url.rstrip("/")
        self.collection_name = collection_name
        self.api_key = api_key
        self.tenant = tenant
        self.database = database
        self.embedding_timeout = embedding_timeout
        self.request_timeout = request_timeout
        self.client = None
        self._collection = None

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.tenant:
            headers["x-chroma-tenant"] = self.tenant
        if self.database:
            headers["x-chroma-database"] = self.database
        return headers

    async def _connect(self):
        """Create the async Chroma HTTP client on first use."""
        if self.client is not None:
            return self.client

        parsed = urlparse(self.url)
        if not parsed.hostname:
            raise VectorStoreError(f"Invalid Chroma URL: {self.url!r}")
        ssl = parsed.scheme == "https"
        kwargs: Dict[str, Any] = {
            "host": parsed.hostname,
            "port": parsed.port or (443 if ssl else 8000),
            "ssl": ssl,
            "headers": self._headers(),
            "settings": Settings(anonymized_telemetry=False),
        }
        if self.tenant:
            kwargs["tenant"] = self.tenant
        if self.database:
            kwargs["database"] = self.database

        self.client = await asyncio.wait_for(chromadb.AsyncHttpClient(**kwargs), self.request_timeout)
        return self.client

    async def ensure_collection(self):
        """
        Resolve the collection handle, creating the collection if needed.

        The handle is cached for the lifetime of this store. Returns ``None``
        when Chroma can't be reached.
        """
        if self._collection is not None:
            return self._collection

        try:
            client = await self._connect()
            try:
                collection = await asyncio.wait_for(
                    client.get_collection(name=self.collection_name, embedding_function=None),
                    self.request_timeout,
                )
            except Exception as lookup_error:
                logger.info(f"Collection '{self.collection_name}' not found ({lookup_error}); creating it")
                collection = await asyncio.wait_for(
                    client.create_collection(
                        name=self.collection_name,
                        metadata=COLLECTION_METADATA,
                        embedding_function=None,
                    ),
                    self.request_timeout,
                )
            self._collection = collection
            logger.info(f"Using Chroma collection '{self.collection_name}' at {self.url}")
            return self._collection
        except Exception as e:
            logger.error(f"Failed to ensure Chroma collection: {e}", exc_info=DEBUG)
            return None

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed a batch of texts; an empty list means the embedding call failed."""
        if not texts:
            return []
        try:
            vectors = await asyncio.wait_for(self.embeddings.aembed_documents(texts), self.embedding_timeout)
            if vectors is None:
                raise EmbeddingError("Embedding service returned no data")
            return [list(vector) for vector in vectors]
        except Exception as e:
            logger.error(f"Failed to fetch embeddings: {e}", exc_info=DEBUG)
            return []

    async def add(self, ids: List[str], texts: List[str], metadatas: List[Dict[str, Any]],
                  embeddings: List[List[float]]) -> bool:
        """Upsert a batch into the collection. Returns False on failure."""
        if self._collection is None:
            return False
        try:
            await asyncio.wait_for(
                self._collection.upsert(ids=ids, documents=texts, metadatas=metadatas, embeddings=embeddings),
                self.request_timeout,
            )
            return True
        except Exception as e:
            logger.error(f"Chroma upsert error: {e}", exc_info=DEBUG)
            return False

    async def query(self, embedding: List[float], k: int) -> Optional[List[Document]]:
        """Nearest neighbours of ``embedding``, best first. ``None`` on failure."""
        if self._collection is None:
            return None
        try:
            result = await asyncio.wait_for(
                self._collection.query(
                    query_embeddings=[embedding],
                    n_results=k,
                    include=["documents", "metadatas", "distances"],
                ),
                self.request_timeout,
            )
        except Exception as e:
            logger.error(f"Chroma query error: {e}", exc_info=DEBUG)
            return None

        documents = (result.get("documents") or [[]])[0] or []
        metadatas = (result.get("metadatas") or [[]])[0] or []
        hits = []
        for i, content in enumerate(documents):
            if content is None:
                continue
            metadata = dict(metadatas[i] or {}) if i < len(metadatas) else {}
            hits.append(Document(page_content=content, metadata=metadata))
        return hits


def create_vector_store():
    """Build the configured vector store, or the no-op store when disabled."""
    if not vector_store_configured():
        logger.info("Jina API key or Chroma URL not set; using in-memory lexical retrieval only")
        return NullVectorStore()

    from langchain_community.embeddings import JinaEmbeddings

    logger.info(f"Initializing Jina embeddings ({JINA_MODEL})")
    try:
        embeddings = JinaEmbeddings(jina_api_key=JINA_API_KEY, model_name=JINA_MODEL)
    except Exception as e:
        logger.error(f"Failed to initialize Jina embeddings: {e}", exc_info=DEBUG)
        return NullVectorStore()
    return ChromaVectorStore(embeddings=embeddings)
