"""
Groq vision client — reads medicine names off a prescription photo.

One request per scan: no retries, no cancellation. Returns the raw model
text, or None on any error so the caller can fall back to an empty result.
"""

import logging
from typing import Optional

from groq import Groq, APIError, APITimeoutError, RateLimitError

from medshop.core.config import settings

# NEVER log API keys or image payloads
logger = logging.getLogger(__name__)


class GroqVisionClient:
    TEMPERATURE = 0  # Same image, same names
    MAX_TOKENS = 512  # A name list is small

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = settings.GROQ_API_KEY if api_key is None else api_key
        self.model = model or settings.GROQ_VISION_MODEL

        if not api_key:
            logger.warning(
                "[Vision] GROQ_API_KEY not set. Prescription scanning is DISABLED "
                "and will return no medicines."
            )
            self.client = None
        else:
            try:
                self.client = Groq(api_key=api_key, timeout=settings.VISION_TIMEOUT_SECONDS)
                logger.info(f"[Vision] Groq client initialized (model={self.model})")
            except Exception as e:
                logger.error(f"[Vision] Failed to initialize Groq client: {e}")
                self.client = None

    def is_available(self) -> bool:
        return self.client is not None

    def read_prescription(self, prompt: str, photo_data_uri: str) -> Optional[str]:
        """Send the prompt and image; return the model's text answer or None."""
        if not self.is_available():
            logger.debug("[Vision] Client not available - skipping scan")
            return None

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": photo_data_uri}},
                        ],
                    }
                ],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
                response_format={"type": "json_object"},
                stream=False,
            )
        except APITimeoutError:
            logger.warning("[Vision] Groq request timed out")
            return None
        except RateLimitError:
            logger.warning("[Vision] Groq rate limit hit")
            return None
        except APIError as e:
            logger.error(f"[Vision] Groq API error: {e}")
            return None

        if not response.choices:
            logger.warning("[Vision] Empty response from model")
            return None
        content = response.choices[0].message.content
        logger.debug(f"[Vision] Response received: {len(content or '')} chars")
        return content


_vision_client: Optional[GroqVisionClient] = None


def get_vision_client() -> GroqVisionClient:
    """Get or create the shared vision client."""
    global _vision_client
    if _vision_client is None:
        _vision_client = GroqVisionClient()
    return _vision_client
