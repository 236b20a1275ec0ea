"""
lmsbridge provider layer.

Access to a running LM Studio server:
- Chat completions and embeddings via LiteLLM
- Model listing via the OpenAI-compatible REST API
- Vector similarity for embedding results
"""

from lmsbridge.providers.client import LMStudioClient, clear_client, get_client
from lmsbridge.providers.exceptions import (
    AuthenticationError,
    ContextLengthExceededError,
    FailureType,
    InvalidRequestError,
    ModelNotFoundError,
    NetworkError,
    ProviderError,
    ServerError,
    classify_error,
    wrap_provider_error,
)
from lmsbridge.providers.models import (
    ChatCompletionService,
    CompletionRequest,
    EmbeddingResult,
    EmbeddingService,
    ModelInfo,
)
from lmsbridge.providers.similarity import vector_similarity

__all__ = [
    # Client
    "LMStudioClient",
    "get_client",
    "clear_client",
    # Models
    "ChatCompletionService",
    "CompletionRequest",
    "EmbeddingResult",
    "EmbeddingService",
    "ModelInfo",
    # Exceptions
    "ProviderError",
    "AuthenticationError",
    "ModelNotFoundError",
    "ContextLengthExceededError",
    "NetworkError",
    "ServerError",
    "InvalidRequestError",
    "FailureType",
    "classify_error",
    "wrap_provider_error",
    # Similarity
    "vector_similarity",
]
