"""In-process document store backing the lexical retrieval path."""
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Set, Tuple, Union

from langchain_core.documents import Document

from src.rag.lexical import rank_top_k, tokenize, vectorize

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "news_feed"

DocumentInput = Union[Document, Mapping[str, Any]]


def to_document(raw: DocumentInput) -> Document:
    """
    Build the canonical stored form of an article.

    Accepts either a langchain ``Document`` or a plain mapping with ``text``,
    ``title``, ``url``, ``publishedAt`` and ``source`` keys.
    """
    if isinstance(raw, Document):
        text = raw.page_content
        fields = raw.metadata
    else:
        text = raw.get("text")
        fields = raw

    metadata = {
        "title": fields.get("title") or "",
        "url": fields.get("url") or "",
        "publishedAt": fields.get("publishedAt") or datetime.now(timezone.utc).isoformat(),
        "source": fields.get("source") or DEFAULT_SOURCE,
    }
    return Document(page_content=text or "", metadata=metadata)


def dedup_key(document: Document) -> str:
    """Trimmed URL; an empty key means the document is never deduplicated."""
    return (document.metadata.get("url") or "").strip()


class DocumentStore:
    """
    Append-only arena of documents keyed by integer row id.

    Each row holds the document and its term-frequency vector. Seen URLs are
    kept in a side index so duplicate checks stay O(1). URLs of a batch that
    is still being indexed elsewhere are held in ``_reserved`` until the
    batch is committed or released.
    """

    def __init__(self):
        self._documents: Dict[int, Document] = {}
        self._vectors: Dict[int, Counter] = {}
        self._url_index: Dict[str, int] = {}
        self._reserved: Set[str] = set()
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> List[Document]:
        return list(self._documents.values())

    @property
    def vectors(self) -> List[Counter]:
        return list(self._vectors.values())

    def contains_url(self, url: str) -> bool:
        return bool(url) and url.strip() in self._url_index

    def _is_known(self, key: str) -> bool:
        return key in self._url_index or key in self._reserved

    def new_documents(self, documents: Iterable[DocumentInput]) -> List[Document]:
        """
        Canonicalize ``documents`` and drop the ones the store would reject.

        URLs already stored or reserved, and repeats within the batch, are
        skipped. Documents without text are skipped too.
        """
        accepted = []
        batch_keys = set()
        for raw in documents:
            document = to_document(raw)
            if not document.page_content.strip():
                logger.warning(f"Skipping document without text: {document.metadata.get('title') or '<untitled>'}")
                continue
            key = dedup_key(document)
            if key and (self._is_known(key) or key in batch_keys):
                logger.debug(f"Skipping duplicate article: {key}")
                continue
            if key:
                batch_keys.add(key)
            accepted.append(document)
        return accepted

    def reserve(self, documents: Iterable[DocumentInput]) -> List[Document]:
        """
        Accept the new documents and hold their URLs until ``commit`` or ``release``.

        Runs without suspending, so a concurrent batch carrying the same URL
        is rejected even before this one is stored.
        """
        accepted = self.new_documents(documents)
        for document in accepted:
            key = dedup_key(document)
            if key:
                self._reserved.add(key)
        return accepted

    def commit(self, documents: Iterable[Document]) -> int:
        """Append documents returned by ``reserve`` and return how many were stored."""
        added = 0
        for document in documents:
            key = dedup_key(document)
            if key:
                self._reserved.discard(key)
                if key in self._url_index:
                    continue
            row_id = self._next_id
            self._next_id += 1
            self._documents[row_id] = document
            self._vectors[row_id] = vectorize(tokenize(document.page_content))
            if key:
                self._url_index[key] = row_id
            added += 1
        return added

    def release(self, documents: Iterable[Document]) -> None:
        """Drop the reservations of a batch that will not be committed."""
        for document in documents:
            self._reserved.discard(dedup_key(document))

    def add(self, documents: Iterable[DocumentInput]) -> int:
        """Store every new document and return how many were added."""
        return self.commit(self.reserve(documents))

    def search(self, query_vector: Mapping[str, int], k: int) -> List[Tuple[Document, float]]:
        """Top ``k`` documents with a positive cosine score, best first."""
        row_ids = list(self._documents)
        candidates = rank_top_k(query_vector, [self._vectors[row_id] for row_id in row_ids], k)
        return [(self._documents[row_ids[c.index]], c.score) for c in candidates]

    def clear(self) -> None:
        self._documents = {}
        self._vectors = {}
        self._url_index = {}
        self._reserved = set()
        logger.info("In-memory document store cleared")
