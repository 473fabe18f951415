"""Patient-record vault RAG — chunking, embedding, retrieval, chat agent."""

__version__ = "0.1.0"
