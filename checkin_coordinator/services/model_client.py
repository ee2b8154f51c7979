# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Generative text model client.
complete(prompt) -> text, backed by the OpenAI chat completions API.
"""

from typing import Protocol

from openai import AsyncOpenAI, OpenAIError

from checkin_coordinator.core.config import settings
from checkin_coordinator.core.errors import CollaboratorUnavailable
from checkin_coordinator.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are the team coordination assistant for a chat workspace. "
    "Follow the output format requested in each prompt exactly."
)


class TextModel(Protocol):
    async def complete(self, prompt: str) -> str: ...


class OpenAITextModel:
    """TextModel over the OpenAI API. The client is created on first use."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self._model = model or settings.OPENAI_MODEL
        self._base_url = base_url if base_url is not None else settings.OPENAI_BASE_URL
        self._timeout = timeout or settings.MODEL_TIMEOUT
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise CollaboratorUnavailable("OPENAI_API_KEY missing")
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url or None,
                timeout=self._timeout,
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        client = self._get_client()
        try:
            resp = await client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as exc:
            logger.warning("Model completion failed: %s", exc)
            raise CollaboratorUnavailable(
                f"Model completion failed: {exc}",
                user_message="❌ I couldn't reach the language model. Please try again later.",
            ) from exc
        return (resp.choices[0].message.content or "").strip()
