"""Chat-completion client that explains single moves."""
import asyncio
import logging
from collections.abc import Callable, Sequence

import httpx

from schemas import BatchExplanationProgress, ExplanationRequest, ExplanationSettings, MoveClassification, MoveExplanation
from settings import default_explanation_settings, settings as app_settings

from .batch import batch_explain
from .errors import ConfigurationError, EmptyResponseError, RemoteServiceError
from .policy import should_explain
from .prompts import SYSTEM_PROMPT, build_prompt
from .response import parse_response

logger = logging.getLogger(__name__)

MAX_TOKENS = 200
TEMPERATURE = 0.3


class MoveExplainer:
    """Explains moves through an OpenAI-compatible chat-completion endpoint.

    The credential is passed in explicitly; callers decide whether it comes
    from a request parameter or the environment.
    """

    def __init__(
        self,
        api_key: str | None,
        settings: ExplanationSettings | None = None,
        *,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError(
                "LLM API key not found. Set OPENAI_API_KEY in the environment or pass it as a parameter."
            )
        self._api_key = api_key
        self.settings = settings or default_explanation_settings()
        self.base_url = base_url or app_settings.openai_base_url
        self.model = model or app_settings.openai_model
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else app_settings.llm_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "MoveExplainer":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this explainer created it."""
        if self._owns_client:
            await self._client.aclose()

    def should_explain_move(self, classification: MoveClassification, eval_change: float) -> bool:
        return should_explain(classification, eval_change, self.settings)

    def build_payload(self, request: ExplanationRequest) -> dict:
        """Build the chat-completion request body for one move."""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(request, self.settings.max_length)},
            ],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }

    async def explain_move(self, request: ExplanationRequest) -> MoveExplanation:
        """Generate an explanation for a single move.

        Args:
            request: The move and its engine context.

        Returns:
            The parsed explanation.

        Raises:
            RemoteServiceError: On a non-success HTTP status or a transport failure.
            EmptyResponseError: If the reply has no message content.
        """
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        try:
            response = await self._client.post(self.base_url, json=self.build_payload(request), headers=headers)
        except httpx.HTTPError as e:
            raise RemoteServiceError(0, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise RemoteServiceError(response.status_code, response.reason_phrase)

        content = _message_content(response)
        if not content:
            raise EmptyResponseError()

        return parse_response(content, request, self.settings.max_length)

    async def batch_explain_moves(
        self,
        requests: Sequence[ExplanationRequest],
        on_progress: Callable[[BatchExplanationProgress], None] | None = None,
        concurrency: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[MoveExplanation]:
        """Explain many moves in windows of ``concurrency`` parallel calls."""
        return await batch_explain(
            requests,
            self.explain_move,
            concurrency=concurrency if concurrency is not None else app_settings.explain_concurrency,
            on_progress=on_progress,
            delay=app_settings.explain_batch_delay_ms / 1000,
            cancel_event=cancel_event,
        )


def _message_content(response: httpx.Response) -> str | None:
    """Pull ``choices[0].message.content`` out of a reply, or None if absent."""
    try:
        data = response.json()
    except ValueError:
        logger.warning("LLM API returned a non-JSON body")
        return None

    choices = data.get("choices") if isinstance(data, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        return None
    return content.strip() or None
