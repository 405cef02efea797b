"""
Vertex AI Gemini client.

Uses existing GCP credentials (google-credentials.json) - no separate API key needed.
"""

import logging
from typing import Optional

from classcast.config.settings import settings
from classcast.config.constants import (
    GEMINI_MODEL_NAME,
    GEMINI_TEMPERATURE,
    GEMINI_MAX_OUTPUT_TOKENS,
    GEMINI_TOP_P,
)
from classcast.services.broadcast.exceptions import TranslationProviderError
from classcast.services.gcp.credentials import ensure_credentials

logger = logging.getLogger(__name__)


class VertexGeminiClient:
    """Blocking text generation through Vertex AI; call from an executor."""

    def __init__(self, project_id: Optional[str] = None, model_name: str = GEMINI_MODEL_NAME):
        import vertexai
        from vertexai.generative_models import GenerativeModel

        self.project_id = project_id or settings.GOOGLE_PROJECT_ID
        if not self.project_id:
            raise RuntimeError(
                "GOOGLE_PROJECT_ID is not set. Please update backend/.env accordingly."
            )
        ensure_credentials()

        vertexai.init(
            project=self.project_id,
            location=settings.VERTEX_AI_LOCATION
        )
        self._model = GenerativeModel(model_name)
        logger.info(
            f"Initialized Vertex AI Gemini "
            f"(project={self.project_id}, "
            f"location={settings.VERTEX_AI_LOCATION}, "
            f"model={model_name})"
        )

    def generate(self, prompt: str) -> str:
        from vertexai.generative_models import GenerationConfig

        generation_config = GenerationConfig(
            temperature=GEMINI_TEMPERATURE,
            max_output_tokens=GEMINI_MAX_OUTPUT_TOKENS,
            top_p=GEMINI_TOP_P,
        )

        response = self._model.generate_content(
            prompt,
            generation_config=generation_config,
        )

        if response and response.text:
            return response.text.strip()

        raise TranslationProviderError("Gemini returned an empty response")
