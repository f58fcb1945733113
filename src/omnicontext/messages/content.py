"""Multi-part message content (text, images, audio)."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from omnicontext.models import TypedCollection, TypedRecord
from omnicontext.types import ContentType


class TextContent(TypedRecord):
    type: Literal["text"] = Field(default="text", description="Content part type")
    text: str = Field(description="The text of this content part")


class ImageUrl(TypedRecord):
    url: str = Field(description="Image URL or base64 data URL")
    detail: Literal["auto", "low", "high"] | None = Field(
        default=None,
        description="Requested image detail level",
    )


class ImageContent(TypedRecord):
    type: Literal["image_url"] = Field(default="image_url", description="Content part type")
    image_url: ImageUrl = Field(description="The referenced image")


class InputAudio(TypedRecord):
    data: str = Field(description="Base64 encoded audio data")
    format: Literal["wav", "mp3"] = Field(description="Encoding of the audio data")


class AudioContent(TypedRecord):
    type: Literal["input_audio"] = Field(default="input_audio", description="Content part type")
    input_audio: InputAudio = Field(description="The audio clip")


class MessageContent(TypedCollection):
    """Ordered content parts of one message, discriminated on ``type``."""

    discriminator = "type"
    allowed_models = {
        ContentType.TEXT.value: TextContent,
        ContentType.IMAGE_URL.value: ImageContent,
        ContentType.INPUT_AUDIO.value: AudioContent,
    }

    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "\n".join(part.text for part in self if isinstance(part, TextContent))


__all__ = [
    "TextContent",
    "ImageUrl",
    "ImageContent",
    "InputAudio",
    "AudioContent",
    "MessageContent",
]
