"""LLM client setup and inference — wraps the openai SDK.

Talks to any OpenAI-compatible chat endpoint. The default target is a local
Ollama server (``http://localhost:11434/v1``), which needs no real API key.

The model is an opaque collaborator: one request per paper, no retries, and
no timeout of our own (``Config.timeout_s`` is only forwarded to the SDK).
The instruction travels as the system message; the user message is the
extracted paper text as is. The reply is returned verbatim.
"""

import logging
import os
import time

import openai as _openai

from zotero_summarizer.models import Config, ModelCallError
from zotero_summarizer.prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Client wrapper
# ---------------------------------------------------------------------------


class ChatClient:
    """OpenAI-compatible chat client for Ollama (or any compatible backend).

    Wraps ``openai.OpenAI`` so that the model name is stored at construction
    time and call sites use ``client.complete(system, user)``.

    Attributes:
        model:    The model identifier passed to every completion request.
        base_url: The backend URL, kept for log messages.
    """

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str = "ollama",
        timeout_s: int | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.timeout_s = timeout_s
        self._client = _openai.OpenAI(
            base_url=base_url,
            api_key=api_key,
            max_retries=0,
        )

    def complete(self, system: str, user: str) -> str:
        """Send one chat completion request and return the reply text."""
        kwargs: dict = dict(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        if self.timeout_s is not None:
            kwargs["timeout"] = self.timeout_s
        response = self._client.chat.completions.create(**kwargs)
        return response.choices[0].message.content


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def create_client(config: Config) -> ChatClient:
    """Create a client from configuration, resolving the API key.

    API key resolution order:
        1. ``config.api_key`` (explicit)
        2. ``LLM_API_KEY`` environment variable
        3. ``"ollama"`` placeholder (Ollama ignores the value)
    """
    api_key = config.api_key or os.environ.get("LLM_API_KEY") or "ollama"
    return ChatClient(
        model=config.model,
        base_url=config.base_url,
        api_key=api_key,
        timeout_s=config.timeout_s,
    )


def summarize(client: ChatClient, paper_text: str) -> str:
    """Ask the model for the six-section markdown summary of ``paper_text``.

    Returns:
        The model's reply, unmodified.

    Raises:
        ModelCallError: if the request fails or the reply carries no content.
    """
    logger.info("Calling LLM  model=%s  backend=%s", client.model, client.base_url)
    logger.debug(
        "Prompt size: %s chars (~%s tokens)",
        f"{len(SYSTEM_PROMPT) + len(paper_text):,}",
        f"{(len(SYSTEM_PROMPT) + len(paper_text)) // 4:,}",
    )
    logger.info("Awaiting response...")
    t0 = time.monotonic()
    try:
        text = client.complete(SYSTEM_PROMPT, paper_text)
    except Exception as exc:
        raise ModelCallError(f"LLM call failed: {exc}", cause=exc) from exc
    elapsed = time.monotonic() - t0

    if text is None:
        raise ModelCallError("LLM call returned no content")
    logger.info("Response received (%.1fs, %s chars)", elapsed, f"{len(text):,}")
    return text
