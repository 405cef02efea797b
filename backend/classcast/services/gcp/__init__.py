"""
GCP Services Package

Provider clients for the two translation backends.
"""

from classcast.services.gcp.translate import GCPTranslationService
from classcast.services.gcp.gemini import VertexGeminiClient

__all__ = [
    "GCPTranslationService",
    "VertexGeminiClient",
]
