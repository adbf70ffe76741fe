"""
RAG (Retrieval-Augmented Generation) Module.

Contains the lexical index, context assembly, answer generation and the
pipeline that ties them together.
"""
