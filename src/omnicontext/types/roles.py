"""Role and content-type enums shared by message records."""

from enum import Enum


class Role(str, Enum):
    USER = "user"
    SYSTEM = "system"
    DEVELOPER = "developer"
    ASSISTANT = "assistant"
    TOOL = "tool"

    @classmethod
    def preserved(cls) -> frozenset["Role"]:
        """Roles that truncation keeps when system preservation is on."""
        return frozenset({cls.SYSTEM, cls.DEVELOPER})


class ContentType(str, Enum):
    TEXT = "text"
    IMAGE_URL = "image_url"
    INPUT_AUDIO = "input_audio"
