"""LLM client for Gemini on Vertex AI."""

from .client import VertexRestClient

__all__ = ["VertexRestClient"]
