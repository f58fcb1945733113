"""Session identities and their composite storage keys."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from omnicontext.models import TypedCollection, TypedRecord


class SessionIdentity(TypedRecord):
    """
    Immutable description of who a stored collection belongs to.

    The key joins (scope, agent_name, chat_name) with ``_``, skipping parts
    that are None, and then appends ``_user-<user_id>`` and ``_group-<group>``
    when they are not None. An empty string is a value, not an absence, so
    it still changes the key, e.g. ``chat_history_SupportAgent_default_user-42``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    agent_name: str = Field(description="Name of the agent owning the session")
    chat_name: str | None = Field(default=None, description="Chat or session name")
    user_id: str | None = Field(default=None, description="User the session belongs to")
    group: str | None = Field(default=None, description="Group or tenant the session belongs to")
    scope: str | None = Field(default=None, description="Storage scope prefix, e.g. chat_history")

    def get_key(self) -> str:
        key = "_".join(part for part in (self.scope, self.agent_name, self.chat_name) if part is not None)
        if self.user_id is not None:
            key += f"_user-{self.user_id}"
        if self.group is not None:
            key += f"_group-{self.group}"
        return key

    @property
    def key(self) -> str:
        return self.get_key()

    def with_scope(self, scope: str | None) -> SessionIdentity:
        return self.model_copy(update={"scope": scope})

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["key"] = self.get_key()
        return data

    def __str__(self) -> str:
        return self.get_key()


class SessionIdentityArray(TypedCollection):
    allowed_models = [SessionIdentity]

    def get_by_key(self, key: str) -> SessionIdentity | None:
        for identity in self:
            if identity.get_key() == key:
                return identity
        return None

    def has_key(self, key: str) -> bool:
        return self.get_by_key(key) is not None

    def remove_by_key(self, key: str) -> bool:
        identity = self.get_by_key(key)
        if identity is None:
            return False
        self.remove(identity)
        return True

    def get_keys(self) -> list[str]:
        return [identity.get_key() for identity in self]

    def get_keys_by_prefix(self, prefix: str) -> list[str]:
        return [key for key in self.get_keys() if key.startswith(prefix)]

    def get_by_scope(self, scope: str) -> SessionIdentityArray:
        return self.filter(lambda identity: identity.scope == scope)


__all__ = [
    "SessionIdentity",
    "SessionIdentityArray",
]
