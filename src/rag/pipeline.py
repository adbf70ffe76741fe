"""RAG Pipeline implementation for the news assistant."""
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from langchain_core.documents import Document

from src.utils.config import (
    DEFAULT_K,
    LLM_ENABLED,
    DEBUG
)
from src.utils.vector_store import NullVectorStore, create_vector_store
from src.utils.error_handler import ModelError
from src.rag.context import build_context
from src.rag.document_store import DocumentInput, DocumentStore
from src.rag.generator import AnswerGenerator, build_llm, fallback_answer
from src.rag.lexical import tokenize, vectorize

logger = logging.getLogger(__name__)

NO_DOCUMENTS_ANSWER = "I'm sorry, but I don't have any articles to search through yet."
UNCLEAR_QUERY_ANSWER = "I couldn't understand your query. Could you please rephrase it?"
NO_MATCH_ANSWER = "I couldn't find any relevant information to answer your question."
ERROR_ANSWER = "I'm sorry, I encountered an error while processing your request."


def _canned(answer: str) -> Dict[str, Any]:
    return {"answer": answer, "sources": []}


def _source_payload(document: Document) -> Dict[str, Any]:
    return {"content": document.page_content, "metadata": dict(document.metadata or {})}


class RAGPipeline:
    """
    Retrieval-Augmented Generation pipeline for news queries.

    Retrieval prefers the injected vector store and falls back to the
    in-process lexical index. Generation prefers the LLM and falls back to an
    extractive template built from the top article.
    """

    def __init__(self, store: Optional[DocumentStore] = None, vector_store=None,
                 generator: Optional[AnswerGenerator] = None, default_k: int = DEFAULT_K):
        self.store = store if store is not None else DocumentStore()
        self.vector_store = vector_store if vector_store is not None else NullVectorStore()
        self.generator = generator if generator is not None else AnswerGenerator()
        self.default_k = default_k

    @property
    def document_count(self) -> int:
        return len(self.store)

    def stats(self) -> Dict[str, Any]:
        return {"documents": self.document_count, "vector_store": self.vector_store.enabled}

    def clear(self) -> None:
        """Reset the in-memory corpus and its URL index."""
        self.store.clear()

    async def add_documents(self, documents: Iterable[DocumentInput]) -> int:
        """
        Ingest articles and return how many were new.

        New articles are indexed in the vector store when one is configured,
        and always added to the in-memory store as well.
        """
        new_docs = self.store.reserve(list(documents))
        if not new_docs:
            logger.info("No new documents to add")
            return 0

        try:
            vectored = await self._index_remote(new_docs)
        except BaseException:
            self.store.release(new_docs)
            raise
        added = self.store.commit(new_docs)
        logger.info(f"Added {added} docs to in-memory store{' (also stored in Chroma)' if vectored else ''}")
        return added

    async def _index_remote(self, documents: List[Document]) -> bool:
        if not self.vector_store.enabled:
            return False
        if await self.vector_store.ensure_collection() is None:
            return False

        texts = [doc.page_content for doc in documents]
        embeddings = await self.vector_store.embed(texts)
        if len(embeddings) != len(documents):
            logger.warning(
                f"Embeddings count mismatch ({len(embeddings)} for {len(documents)} documents); "
                "keeping in-memory store only"
            )
            return False

        ids = [uuid.uuid4().hex for _ in documents]
        metadatas = [dict(doc.metadata) for doc in documents]
        if not await self.vector_store.add(ids, texts, metadatas, embeddings):
            return False
        logger.info(f"Indexed {len(documents)} documents into Chroma collection")
        return True

    async def _retrieve_remote(self, query: str, k: int) -> Optional[List[Document]]:
        """Vector-store hits, or None when the lexical index should be used instead."""
        if not self.vector_store.enabled:
            return None
        if await self.vector_store.ensure_collection() is None:
            return None
        embeddings = await self.vector_store.embed([query])
        if len(embeddings) != 1:
            return None
        hits = await self.vector_store.query(embeddings[0], k)
        return hits or None

    async def query(self, query: str, k: Optional[int] = None, force_fallback: bool = False) -> Dict[str, Any]:
        """
        Answer a question from the ingested articles.

        Args:
            query: The user's question
            k: Number of articles to retrieve (defaults to ``default_k``)
            force_fallback: Skip the LLM and answer from the template

        Returns:
            Dict with ``answer``, ``sources`` and, when generation ran, ``_debug``
        """
        k = self.default_k if k is None else k
        try:
            logger.info(f"Processing query: '{query}', k={k}")

            sources = await self._retrieve_remote(query, k)
            used_vector_store = sources is not None

            if sources is None:
                if self.document_count == 0:
                    logger.warning("No documents in the pipeline")
                    return _canned(NO_DOCUMENTS_ANSWER)

                query_tokens = tokenize(query)
                if not query_tokens:
                    return _canned(UNCLEAR_QUERY_ANSWER)

                logger.info(f"Processing query with {self.document_count} documents (in-memory)")
                ranked = self.store.search(vectorize(query_tokens), k)
                if not ranked:
                    return _canned(NO_MATCH_ANSWER)
                for doc, score in ranked:
                    logger.debug(f"Including document: {doc.metadata.get('title')} (score: {score:.3f})")
                sources = [doc for doc, _ in ranked]

            context = build_context(sources)
            answer, used_fallback = await self._generate(query, context, sources[0], force_fallback)

            return {
                "answer": answer,
                "sources": [_source_payload(doc) for doc in sources],
                "_debug": {
                    "used_fallback": used_fallback,
                    "used_vector_store": used_vector_store,
                    "context": context,
                },
            }

        except Exception as e:
            logger.error(f"Error processing query '{query}': {e}", exc_info=DEBUG)
            return _canned(ERROR_ANSWER)

    async def _generate(self, query: str, context: str, top_document: Document,
                        force_fallback: bool) -> Tuple[str, bool]:
        """At most one LLM attempt, then at most one template attempt."""
        use_fallback = force_fallback
        if not use_fallback:
            try:
                return await self.generator.generate(query, context), False
            except ModelError as e:
                logger.error(f"Error calling generation model: {e}", exc_info=DEBUG)
                use_fallback = True

        logger.info("Using fallback response generation")
        return fallback_answer(top_document), use_fallback


def create_pipeline() -> RAGPipeline:
    """Wire the pipeline from configuration."""
    llm = None
    if LLM_ENABLED:
        try:
            llm = build_llm()
        except ModelError as e:
            logger.warning(f"Generation model unavailable, answers will use the template fallback: {e}")
    return RAGPipeline(vector_store=create_vector_store(), generator=AnswerGenerator(llm))
