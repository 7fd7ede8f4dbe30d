from __future__ import annotations

import logging

from anthropic import Anthropic
from anthropic.types import TextBlock

from prwarden_core.providers.base import BaseReviewer

logger = logging.getLogger(__name__)

# Prefilled start of the assistant turn, so Claude continues a bare JSON object
# instead of wrapping it in prose or a code fence.
_PREFILL = "{"


class AnthropicReviewer(BaseReviewer):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0

    def __init__(self, api_key: str, client=None, **kwargs):
        super().__init__(**kwargs)
        self.client = client if client is not None else Anthropic(api_key=api_key)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        message = self.client.messages.create(
            model=self.MODEL,
            system=system_prompt,
            messages=[
                {"role": "user", "content": user_prompt},
                {"role": "assistant", "content": _PREFILL},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        if message.stop_reason == "max_tokens":
            logger.warning("%s stopped at max_tokens=%d; the annotation JSON is likely cut off", self.MODEL, self.MAX_TOKENS)
        continuation = "".join(block.text for block in message.content if isinstance(block, TextBlock))
        return _PREFILL + continuation
