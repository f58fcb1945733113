"""
Shared pytest fixtures for OmniContext tests.

This file contains reusable fixtures for:
- Session identities
- In-memory, recording and failing storage drivers
- Sample conversations
- A SQLite (aiosqlite) sessionmaker with the context tables created
"""

from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from omnicontext.context.drivers import InMemoryDriver, StorageDriver
from omnicontext.context.identity import SessionIdentity
from omnicontext.messages import (
    AssistantMessage,
    MessageArray,
    SystemMessage,
    ToolCall,
    ToolCallMessage,
    ToolResultMessage,
    Usage,
    UserMessage,
)
from omnicontext.schemas.sql import ContextBase


# ============================================================================
# Driver doubles
# ============================================================================


class RecordingDriver(InMemoryDriver):
    """In-memory driver that counts calls."""

    driver_name = "recording"

    def __init__(self, store: dict[str, Any] | None = None):
        super().__init__(store)
        self.reads = 0
        self.writes = 0
        self.removes = 0

    async def read(self, identity):
        self.reads += 1
        return await super().read(identity)

    async def write(self, identity, data):
        self.writes += 1
        return await super().write(identity, data)

    async def remove(self, identity):
        self.removes += 1
        return await super().remove(identity)


class FailingDriver(StorageDriver):
    """Driver whose backend is always down: reads raise, writes report failure."""

    driver_name = "failing"

    def __init__(self, read_error: Exception | None = None, write_error: Exception | None = None):
        self.read_error = read_error or ConnectionError("backend unavailable")
        self.write_error = write_error
        self.writes = 0

    async def read(self, identity):
        raise self.read_error

    async def write(self, identity, data):
        self.writes += 1
        if self.write_error is not None:
            raise self.write_error
        return False

    async def remove(self, identity):
        return False


class EmptyDriver(StorageDriver):
    """Driver that never holds anything."""

    driver_name = "empty"

    async def read(self, identity):
        return None

    async def write(self, identity, data):
        return True

    async def remove(self, identity):
        return True


# ============================================================================
# Identities
# ============================================================================


@pytest.fixture
def identity() -> SessionIdentity:
    return SessionIdentity(agent_name="SupportAgent", chat_name="default", user_id="42")


@pytest.fixture
def other_identity() -> SessionIdentity:
    return SessionIdentity(agent_name="SupportAgent", chat_name="billing", user_id="7", group="acme")


# ============================================================================
# Drivers
# ============================================================================


@pytest.fixture
def memory_store() -> dict[str, Any]:
    return {}


@pytest.fixture
def memory_driver(memory_store) -> InMemoryDriver:
    return InMemoryDriver(memory_store)


@pytest.fixture
def recording_driver() -> RecordingDriver:
    return RecordingDriver()


@pytest.fixture
def failing_driver() -> FailingDriver:
    return FailingDriver()


@pytest.fixture
def empty_driver() -> EmptyDriver:
    return EmptyDriver()


# ============================================================================
# Sample data
# ============================================================================


@pytest.fixture
def conversation() -> MessageArray:
    """System prompt, two user turns, a tool round trip and a final answer."""
    return MessageArray(
        [
            SystemMessage(content="You are a helpful support agent."),
            UserMessage(content="Where is my order?"),
            ToolCallMessage(
                tool_calls=[ToolCall.create("lookup_order", {"order_id": "A-1"}, call_id="call_1")],
                usage=Usage(prompt_tokens=40, completion_tokens=12),
            ),
            ToolResultMessage(content={"status": "shipped"}, tool_call_id="call_1", tool_name="lookup_order"),
            AssistantMessage(
                content="Your order has shipped.",
                usage=Usage(prompt_tokens=80, completion_tokens=8),
            ),
            UserMessage(content="Thanks!"),
        ]
    )


# ============================================================================
# SQL
# ============================================================================


@pytest_asyncio.fixture
async def sqlite_sessionmaker(tmp_path):
    """Async sessionmaker over a throwaway SQLite file with all context tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'context.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(ContextBase.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
