"""Base reviewer implementing the Template Method pattern.

All providers share the same review algorithm:
    review() → _build_system_prompt() + _build_user_prompt()
             → _call_api()   ← only this differs per provider
             → _parse()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

There is no retry here: a failed call becomes a TransportError and ends the
run, and the next push retries from the same stored state.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod

from prwarden_core.errors import MalformedResponseError, TransportError
from prwarden_core.matching import AnnotationCandidate

logger = logging.getLogger(__name__)

_MAX_TOKENS = 4096
_MAX_COMMENTS = 3


class BaseReviewer(ABC):
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, max_comments: int = _MAX_COMMENTS, guidelines: str = ""):
        self.max_comments = max_comments
        self.guidelines = guidelines

    def review(self, diff_text: str) -> list[AnnotationCandidate]:
        """Ask the model for up to max_comments issues in a diff."""
        system = self._build_system_prompt()
        user = self._build_user_prompt(diff_text)
        try:
            raw = self._call_api(system, user)
        except Exception as e:
            # SDK exception hierarchies differ per provider; normalize them here.
            raise TransportError(f"{self.__class__.__name__} API call failed: {e}") from e
        return self._parse(raw or "")

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response."""

    def _build_system_prompt(self) -> str:
        prompt = f"""You are a senior code reviewer.

Review ONLY the provided diff.
- Focus on **null checks, error handling, security, performance, or clarity issues**.
- **DO NOT assume problems with class design, static vs instance methods, or unrelated code \
unless explicitly shown in the diff.**
- Provide max {self.max_comments} critical review comments."""
        if self.guidelines:
            prompt += f"\n\nAdditional guidelines:\n{self.guidelines}"
        return prompt

    def _build_user_prompt(self, diff_text: str) -> str:
        return f"""Respond in JSON:

{{"comments":[{{"context":"<code snippet or key line>","comment":"<issue>","suggestion":"<fix>"}}]}}

The "context" must be copied from an added line (starting with '+') so it can be located in the diff.
If there are no issues, return: {{"comments":[]}}
Do not include markdown fences.

Diff:
{diff_text}"""

    def _parse(self, raw: str) -> list[AnnotationCandidate]:
        """Decode the model's answer into annotation candidates.

        Only the outer ```json ... ``` fence is stripped, not backticks inside
        string values. Anything that is not {"comments": [...]} is fatal.
        """
        cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
        cleaned = re.sub(r"\s*```$", "", cleaned.strip())
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"{self.__class__.__name__}: response is not JSON ({e})", raw) from e

        if not isinstance(data, dict) or not isinstance(data.get("comments"), list):
            raise MalformedResponseError(f'{self.__class__.__name__}: expected {{"comments": [...]}}', raw)

        candidates = []
        for entry in data["comments"]:
            if not isinstance(entry, dict) or not isinstance(entry.get("context"), str):
                raise MalformedResponseError(f"{self.__class__.__name__}: comment entry without context", raw)
            candidates.append(
                AnnotationCandidate(
                    context=entry["context"],
                    comment=str(entry.get("comment", "")),
                    suggestion=str(entry.get("suggestion", "")),
                )
            )

        if len(candidates) > self.max_comments:
            logger.warning(
                "%s returned %d comments; keeping the first %d",
                self.__class__.__name__,
                len(candidates),
                self.max_comments,
            )
            candidates = candidates[: self.max_comments]
        return candidates
