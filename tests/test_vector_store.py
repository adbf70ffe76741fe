import pytest
from unittest.mock import AsyncMock, MagicMock

from src.utils import vector_store as vector_store_module
from src.utils.vector_store import ChromaVectorStore, NullVectorStore, create_vector_store


@pytest.fixture
def mock_embeddings():
    """Embeddings double returning one 3-dimensional vector per text."""
    embeddings = MagicMock()
    embeddings.aembed_documents = AsyncMock(side_effect=lambda texts: [[0.1, 0.2, 0.3] for _ in texts])
    return embeddings


@pytest.fixture
def mock_collection():
    collection = MagicMock()
    collection.upsert = AsyncMock(return_value=None)
    collection.query = AsyncMock(return_value={
        "ids": [["id-1", "id-2"]],
        "documents": [["Pets are popular", "Markets rose"]],
        "metadatas": [[{"title": "A", "url": "u1"}, {"title": "B", "url": "u2"}]],
        "distances": [[0.1, 0.7]],
    })
    return collection


@pytest.fixture
def mock_chroma_client(mock_collection):
    """Create a mock async Chroma client."""
    client = MagicMock()
    client.get_collection = AsyncMock(return_value=mock_collection)
    client.create_collection = AsyncMock(return_value=mock_collection)
    return client


@pytest.fixture
def chroma_factory(mock_chroma_client, monkeypatch):
    factory = AsyncMock(return_value=mock_chroma_client)
    monkeypatch.setattr(vector_store_module.chromadb, "AsyncHttpClient", factory)
    return factory


@pytest.fixture
def vector_store(mock_embeddings, chroma_factory):
    return ChromaVectorStore(
        embeddings=mock_embeddings,
        url="https://chroma.example.com",
        collection_name="test_collection",
        api_key="secret",
        tenant="tenant-1",
        database="db-1",
    )


@pytest.mark.asyncio
async def test_ensure_collection_connects_with_auth(vector_store, chroma_factory, mock_collection):
    assert await vector_store.ensure_collection() is mock_collection

    kwargs = chroma_factory.await_args.kwargs
    assert kwargs["host"] == "chroma.example.com"
    assert kwargs["port"] == 443
    assert kwargs["ssl"] is True
    assert kwargs["tenant"] == "tenant-1"
    assert kwargs["database"] == "db-1"
    assert kwargs["headers"]["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_ensure_collection_is_cached(vector_store, chroma_factory, mock_chroma_client):
    first = await vector_store.ensure_collection()
    second = await vector_store.ensure_collection()
    assert first is second
    chroma_factory.assert_awaited_once()
    mock_chroma_client.get_collection.assert_awaited_once()


@pytest.mark.asyncio
async def test_ensure_collection_creates_missing_collection(vector_store, mock_chroma_client, mock_collection):
    mock_chroma_client.get_collection = AsyncMock(side_effect=ValueError("Collection test_collection does not exist."))
    assert await vector_store.ensure_collection() is mock_collection
    mock_chroma_client.create_collection.assert_awaited_once()
    assert mock_chroma_client.create_collection.await_args.kwargs["name"] == "test_collection"


@pytest.mark.asyncio
async def test_ensure_collection_failure_returns_none(mock_embeddings, monkeypatch):
    monkeypatch.setattr(vector_store_module.chromadb, "AsyncHttpClient",
                        AsyncMock(side_effect=ConnectionError("connection refused")))
    store = ChromaVectorStore(embeddings=mock_embeddings, url="http://localhost:8000")
    assert await store.ensure_collection() is None
    assert store._collection is None


@pytest.mark.asyncio
async def test_invalid_url_returns_none(mock_embeddings, chroma_factory):
    store = ChromaVectorStore(embeddings=mock_embeddings, url="not a url")
    assert await store.ensure_collection() is None
    chroma_factory.assert_not_awaited()


@pytest.mark.asyncio
async def test_embed_returns_one_vector_per_text(vector_store):
    assert await vector_store.embed(["a", "b"]) == [[0.1, 0.2, 0.3], [0.1, 0.2, 0.3]]
    assert await vector_store.embed([]) == []


@pytest.mark.asyncio
async def test_embed_failure_returns_empty(vector_store, mock_embeddings):
    mock_embeddings.aembed_documents = AsyncMock(side_effect=RuntimeError("401 Unauthorized"))
    assert await vector_store.embed(["a"]) == []


@pytest.mark.asyncio
async def test_add_upserts_batch(vector_store, mock_collection):
    assert await vector_store.add(["x"], ["text"], [{"url": "u"}], [[0.1]]) is False  # no collection yet
    await vector_store.ensure_collection()
    assert await vector_store.add(["x"], ["text"], [{"url": "u"}], [[0.1]]) is True
    mock_collection.upsert.assert_awaited_once_with(
        ids=["x"], documents=["text"], metadatas=[{"url": "u"}], embeddings=[[0.1]]
    )


@pytest.mark.asyncio
async def test_add_failure_returns_false(vector_store, mock_collection):
    await vector_store.ensure_collection()
    mock_collection.upsert = AsyncMock(side_effect=RuntimeError("server error"))
    assert await vector_store.add(["x"], ["text"], [{}], [[0.1]]) is False


@pytest.mark.asyncio
async def test_query_returns_documents(vector_store, mock_collection):
    await vector_store.ensure_collection()
    hits = await vector_store.query([0.1, 0.2, 0.3], 2)
    assert [doc.page_content for doc in hits] == ["Pets are popular", "Markets rose"]
    assert hits[0].metadata == {"title": "A", "url": "u1"}
    assert mock_collection.query.await_args.kwargs["n_results"] == 2


@pytest.mark.asyncio
async def test_query_failure_returns_none(vector_store, mock_collection):
    assert await vector_store.query([0.1], 3) is None  # no collection yet
    await vector_store.ensure_collection()
    mock_collection.query = AsyncMock(side_effect=RuntimeError("timeout"))
    assert await vector_store.query([0.1], 3) is None


@pytest.mark.asyncio
async def test_null_vector_store_is_inert():
    store = NullVectorStore()
    assert store.enabled is False
    assert await store.ensure_collection() is None
    assert await store.embed(["text"]) == []
    assert await store.add(["id"], ["text"], [{}], [[0.1]]) is False
    assert await store.query([0.1], 3) is None


def test_create_vector_store_unconfigured(monkeypatch):
    monkeypatch.setattr(vector_store_module, "vector_store_configured", lambda: False)
    assert isinstance(create_vector_store(), NullVectorStore)
