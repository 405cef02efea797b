"""
GCP Translation Service

Low-latency text translation through Google Cloud Translation (v3).
"""

from typing import Optional
from google.cloud import translate

from classcast.config.settings import settings
from classcast.services.broadcast.exceptions import TranslationProviderError
from classcast.services.gcp.credentials import ensure_credentials


class GCPTranslationService:
    """Handles translation operations. Blocking; call from an executor."""

    def __init__(self, project_id: Optional[str] = None, location: str = "global"):
        self.project_id = project_id or settings.GOOGLE_PROJECT_ID
        if not self.project_id:
            raise RuntimeError(
                "GOOGLE_PROJECT_ID is not set. Please update backend/.env accordingly."
            )
        self.location = location
        ensure_credentials()
        self._client = translate.TranslationServiceClient()

    def translate_text(
        self,
        text: str,
        *,
        source_language_code: str,
        target_language_code: str,
    ) -> str:
        """Translate text from source to target language."""
        parent = f"projects/{self.project_id}/locations/{self.location}"

        response = self._client.translate_text(
            request={
                "parent": parent,
                "contents": [text],
                "mime_type": "text/plain",
                "source_language_code": source_language_code,
                "target_language_code": target_language_code,
            }
        )

        if not response.translations:
            raise TranslationProviderError("Cloud Translation returned no translations")

        return response.translations[0].translated_text
