"""
Embedding providers and the ordered fallback gateway.

Each provider turns one text into a vector. The gateway tries providers in
priority order and returns an empty vector, not an error, when none of them
can answer: callers treat that as "semantic search unavailable".
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Protocol, Sequence

import requests
from google.genai import Client as GenAIClient

from .config import env_float, env_int
from .errors import EmbeddingProviderError, ProviderConfigurationError


logger = logging.getLogger(__name__)

QUERY_TASK = "RETRIEVAL_QUERY"
DOCUMENT_TASK = "RETRIEVAL_DOCUMENT"

_DEFAULT_GEMINI_MODEL = "text-embedding-004"
_DEFAULT_JINA_MODEL = "jina-embeddings-v3"
_DEFAULT_JINA_BASE_URL = "https://api.jina.ai/v1"
_DEFAULT_TIMEOUT_SECONDS = 10.0

_JINA_TASKS: dict[str, str] = {
    QUERY_TASK: "retrieval.query",
    DOCUMENT_TASK: "retrieval.passage",
}


class EmbeddingBackend(Protocol):
    """A single text-to-vector provider."""

    name: str

    async def embed(self, text: str, *, task_type: str = QUERY_TASK) -> list[float]:
        """Return the embedding for *text* or raise on failure."""


class GeminiEmbeddingProvider:
    """Generate text embeddings via Google GenAI."""

    name = "gemini"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv(
            "BRAIN_SEARCH_GEMINI_EMBEDDING_MODEL", _DEFAULT_GEMINI_MODEL
        )
        self.dim = dim or env_int("BRAIN_SEARCH_EMBEDDING_DIM", 0) or None

        if client is not None:
            self._client = client
        else:
            resolved_key = (
                api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            )
            if not resolved_key:
                raise ProviderConfigurationError(
                    "GEMINI_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(api_key=resolved_key)

    async def embed(self, text: str, *, task_type: str = QUERY_TASK) -> list[float]:
        """Embed a single text for retrieval."""
        config: dict[str, Any] = {"task_type": task_type}
        if self.dim:
            config["output_dimensionality"] = self.dim
        result = await self._client.aio.models.embed_content(
            model=self.model,
            contents=[text],
            config=config,
        )
        if not result.embeddings or not result.embeddings[0].values:
            raise EmbeddingProviderError(self.name, "empty embedding response")
        return [float(v) for v in result.embeddings[0].values]


class JinaEmbeddingProvider:
    """Generate text embeddings via Jina's OpenAI-compatible endpoint."""

    name = "jina"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.model = model or os.getenv(
            "BRAIN_SEARCH_JINA_EMBEDDING_MODEL", _DEFAULT_JINA_MODEL
        )
        self.base_url = (base_url or _DEFAULT_JINA_BASE_URL).rstrip("/")
        self.timeout = timeout or _DEFAULT_TIMEOUT_SECONDS
        resolved_key = api_key or os.getenv("JINA_API_KEY")
        if not resolved_key:
            raise ProviderConfigurationError(
                "JINA_API_KEY not found. "
                "Provide api_key or set the environment variable."
            )
        self._api_key = resolved_key
        self._session = session or requests.Session()

    async def embed(self, text: str, *, task_type: str = QUERY_TASK) -> list[float]:
        return await asyncio.to_thread(self._embed_sync, text, task_type)

    def _embed_sync(self, text: str, task_type: str) -> list[float]:
        payload: dict[str, Any] = {"model": self.model, "input": [text]}
        jina_task = _JINA_TASKS.get(task_type)
        if jina_task:
            payload["task"] = jina_task

        resp = self._session.post(
            f"{self.base_url}/embeddings",
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json().get("data") or []
        if not data or not data[0].get("embedding"):
            raise EmbeddingProviderError(self.name, "empty embedding response")
        return [float(v) for v in data[0]["embedding"]]


class EmbeddingGateway:
    """Try embedding providers in order until one answers."""

    def __init__(
        self,
        providers: Sequence[EmbeddingBackend] = (),
        *,
        timeout: float | None = _DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._providers: tuple[EmbeddingBackend, ...] = tuple(providers)
        self.timeout = timeout

    @property
    def providers(self) -> tuple[EmbeddingBackend, ...]:
        return self._providers

    @property
    def available(self) -> bool:
        return bool(self._providers)

    async def embed(self, text: str, *, task_type: str = QUERY_TASK) -> list[float]:
        """Return the first successful embedding, or [] if every provider fails.

        Timeouts and provider errors move on to the next provider. Task
        cancellation is not intercepted.
        """
        if not text or not text.strip():
            logger.debug("Skipping embedding for blank text")
            return []
        if not self._providers:
            logger.debug("No embedding providers configured")
            return []

        for provider in self._providers:
            try:
                vector = await asyncio.wait_for(
                    provider.embed(text, task_type=task_type),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Embedding provider %s timed out after %ss", provider.name, self.timeout
                )
                continue
            except Exception as exc:
                logger.warning("Embedding provider %s failed: %s", provider.name, exc)
                continue
            if vector:
                return list(vector)
            logger.warning("Embedding provider %s returned an empty vector", provider.name)

        logger.warning(
            "All %d embedding providers failed; semantic search unavailable",
            len(self._providers),
        )
        return []


def build_default_gateway(*, timeout: float | None = None) -> EmbeddingGateway:
    """Build the Gemini -> Jina chain from whichever API keys are present."""
    providers: list[EmbeddingBackend] = []
    for factory in (GeminiEmbeddingProvider, JinaEmbeddingProvider):
        try:
            providers.append(factory())
        except ProviderConfigurationError as exc:
            logger.debug("Skipping embedding provider: %s", exc)

    resolved_timeout = timeout
    if resolved_timeout is None:
        resolved_timeout = env_float(
            "BRAIN_SEARCH_EMBEDDING_TIMEOUT", _DEFAULT_TIMEOUT_SECONDS
        )
    return EmbeddingGateway(providers, timeout=resolved_timeout)
