"""News RAG Navigator: retrieval-augmented answers over ingested news articles."""
