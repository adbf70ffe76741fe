"""Configuration, errors and external collaborators (vector store, news feeds)."""
