"""Shared components: configuration, embeddings, vector store, logging."""
