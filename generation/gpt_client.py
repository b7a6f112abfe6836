"""
Generation client for the quiz pipeline.

Anything with an async `complete(prompt, temperature=..., max_output_tokens=...)`
can act as the provider. The default implementation talks to Gemini through
Google's OpenAI-compatible endpoint; point GENERATION_BASE_URL at any other
OpenAI-compatible server to switch providers.

The client is built once at startup (quiz_api.lifespan) and injected into
the routers; nothing here is resolved per call.
"""

import os
from typing import Any, Optional, Protocol

from openai import AsyncOpenAI

# ── Model config ───────────────────────────────────────────────────────────────
GENERATION_MODEL = os.getenv("GENERATION_MODEL", "gemini-2.0-flash")
GENERATION_BASE_URL = os.getenv(
    "GENERATION_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"
)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_OUTPUT_TOKENS = 1024


class GenerationClient(Protocol):
    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    ) -> Any:
        """Return raw provider output: a string or a provider-shaped object."""
        ...


class OpenAICompatibleClient:
    """
    Chat Completions client returning the assistant message text.

    The AsyncOpenAI instance is created lazily so the app can start without
    an API key; the first generation call fails instead.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = GENERATION_BASE_URL,
        model: str = GENERATION_MODEL,
        system: str = "You are a helpful quiz author. Output only what is asked.",
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.system = system
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            api_key = self.api_key or os.getenv("GEMINI_API_KEY") or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise RuntimeError(
                    "GEMINI_API_KEY is not set. Add it to your .env file."
                )
            self._client = AsyncOpenAI(api_key=api_key, base_url=self.base_url)
        return self._client

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    ) -> str:
        """
        Call Chat Completions and return the assistant message text.

        Args:
            prompt:            User-turn message (the rendered quiz prompt)
            temperature:       Sampling temperature (lower = more deterministic)
            max_output_tokens: Max response tokens

        Returns:
            Raw string content of the model response ("" if the model sent none)
        """
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": self.system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_output_tokens,
        )
        return response.choices[0].message.content or ""


def build_generation_client() -> GenerationClient:
    """Build the provider client from the environment. Called once at startup."""
    return OpenAICompatibleClient()
