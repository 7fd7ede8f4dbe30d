from __future__ import annotations

import logging

from openai import OpenAI

from prwarden_core.providers.base import BaseReviewer

logger = logging.getLogger(__name__)


class OpenAIReviewer(BaseReviewer):
    MODEL = "gpt-4o"
    TEMPERATURE = 0
    # The system prompt asks for {"comments": [...]}; JSON mode enforces the object shape.
    RESPONSE_FORMAT = {"type": "json_object"}

    def __init__(self, api_key: str, client=None, **kwargs):
        super().__init__(**kwargs)
        self.client = client if client is not None else OpenAI(api_key=api_key)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        completion = self.client.chat.completions.create(
            model=self.MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
            response_format=self.RESPONSE_FORMAT,
        )
        choice = completion.choices[0]
        if choice.finish_reason == "length":
            logger.warning("%s stopped at max_tokens=%d; the annotation JSON is likely cut off", self.MODEL, self.MAX_TOKENS)
        return choice.message.content
