import logging
from typing import List, Optional

import httpx

from smartalbums.core.errors import InfrastructureUnavailable

logger = logging.getLogger(__name__)


class HttpTextEncoder:
    """Client for the machine-learning service that turns text into CLIP embeddings."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 20.0):
        self._client = client
        self.timeout = timeout

    async def encode_text(self, url: str, text: str, model_name: str) -> List[float]:
        payload = {"modelName": model_name, "modelType": "clip", "text": text}
        endpoint = f"{url.rstrip('/')}/predict"
        try:
            if self._client is not None:
                response = await self._client.post(endpoint, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()
            embedding = response.json()["embedding"]
        except httpx.HTTPError as e:
            logger.error("Text encoding failed at %s: %s", endpoint, e)
            raise InfrastructureUnavailable("text encoder", str(e)) from e
        except (KeyError, TypeError, ValueError) as e:
            raise InfrastructureUnavailable("text encoder", f"malformed response: {e}") from e
        return [float(v) for v in embedding]
