"""
LM Studio client for lmsbridge.

Talks to the OpenAI-compatible API of a running LM Studio server:
chat completions and embeddings via LiteLLM, model listing via httpx.
"""

import logging
from typing import Any

import httpx
import litellm

from lmsbridge.config.schema import ServerConfig
from lmsbridge.providers.exceptions import ModelNotFoundError, wrap_provider_error
from lmsbridge.providers.models import CompletionRequest, EmbeddingResult, ModelInfo

logger = logging.getLogger(__name__)

# Configure LiteLLM defaults
litellm.drop_params = True  # Drop params the server does not support


class LMStudioClient:
    """
    Chat-completion and embedding client for an LM Studio server.

    Transport concerns (endpoint, key, timeout) live here; the
    conversation loop only sees request/response dicts.
    """

    def __init__(self, config: ServerConfig | None = None):
        """
        Initialize the client.

        Args:
            config: Server configuration. Defaults are used if not provided.
        """
        self.config = config or ServerConfig()

    def _resolve_model(self, model: str | None) -> str:
        if model is None or model == "default":
            return self.config.model
        return model

    def _transport_kwargs(self) -> dict[str, Any]:
        return {
            "api_base": self.config.base_url,
            "api_key": self.config.api_key,
            "custom_llm_provider": self.config.provider,
            "timeout": self.config.timeout,
        }

    def complete(self, request: CompletionRequest) -> dict[str, Any]:
        """
        Send a chat-completion request and wait for the full response.

        Args:
            request: The completion request.

        Returns:
            The OpenAI-compatible response as a plain dict.

        Raises:
            ProviderError: If the request fails (subclass per failure type).
        """
        body = request.to_dict()
        body["model"] = self._resolve_model(request.model)
        logger.info(
            f"Completing with model: {body['model']} "
            f"({len(body['messages'])} messages, {len(body.get('tools') or [])} tools)"
        )

        try:
            response = litellm.completion(**body, **self._transport_kwargs())
        except Exception as e:
            logger.error(f"Completion request failed: {e}")
            raise wrap_provider_error(e, provider=self.config.base_url) from e

        return response.model_dump() if hasattr(response, "model_dump") else dict(response)

    def embed(self, texts: list[str], model: str | None = None) -> list[EmbeddingResult]:
        """
        Compute embeddings for a batch of texts.

        Args:
            texts: Input texts.
            model: Embedding model (defaults to the configured one).

        Returns:
            One EmbeddingResult per input, ordered by index.

        Raises:
            ProviderError: If the request fails.
        """
        if not texts:
            return []

        resolved = model or self.config.embedding_model
        logger.info(f"Embedding {len(texts)} text(s) with model: {resolved}")

        try:
            response = litellm.embedding(model=resolved, input=texts, **self._transport_kwargs())
        except Exception as e:
            logger.error(f"Embedding request failed: {e}")
            raise wrap_provider_error(e, provider=self.config.base_url) from e

        results = []
        for position, item in enumerate(response.data):
            embedding = item["embedding"] if isinstance(item, dict) else item.embedding
            index = item.get("index", position) if isinstance(item, dict) else item.index
            results.append(EmbeddingResult(embedding=list(embedding), index=index, text=texts[index]))

        return sorted(results, key=lambda r: r.index)

    def list_models(self) -> list[ModelInfo]:
        """
        List the models the server reports.

        Returns:
            ModelInfo entries from ``GET <base_url>/models``.

        Raises:
            ProviderError: If the server cannot be reached or answers with an error.
        """
        url = f"{self.config.base_url.rstrip('/')}/models"
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        try:
            response = httpx.get(url, headers=headers, timeout=min(self.config.timeout, 30.0))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Model listing failed: {e}")
            raise wrap_provider_error(e, provider=self.config.base_url) from e

        return [
            ModelInfo(
                id=entry.get("id", ""),
                object=entry.get("object", "model"),
                owned_by=entry.get("owned_by"),
                raw=entry,
            )
            for entry in response.json().get("data", [])
        ]

    def require_model(self, model: str) -> ModelInfo:
        """
        Look up a model by id in the server's listing.

        Raises:
            ModelNotFoundError: If the server does not report the model.
        """
        for info in self.list_models():
            if info.id == model:
                return info
        raise ModelNotFoundError(f"Model not available: {model}", provider=self.config.base_url)


# Singleton instance
_client: LMStudioClient | None = None


def get_client(reload: bool = False) -> LMStudioClient:
    """
    Get the global client instance.

    Args:
        reload: Force recreation of the client.

    Returns:
        LMStudioClient instance.
    """
    global _client

    if _client is None or reload:
        from lmsbridge.config import get_config

        config = get_config(reload=reload)
        _client = LMStudioClient(config.server)

    return _client


def clear_client() -> None:
    """Clear the global client instance."""
    global _client
    _client = None
