"""AI gateway request/response models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class CompletionRequest:
    """Request payload for an OpenAI-compatible multimodal chat completion."""

    model: str
    system_instruction: str
    user_prompt: str
    image_url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_instruction},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.user_prompt},
                        {"type": "image_url", "image_url": {"url": self.image_url}},
                    ],
                },
            ],
        }


def extract_content(data: Any) -> str | None:
    """Return ``choices[0].message.content`` or None if it is missing or blank."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        return None
    return content
