"""
Unit tests for IdentityStorage, the Context registry and ContextQuery.
"""

import pytest
import pytest_asyncio

from omnicontext.context.context import Context
from omnicontext.context.drivers import InMemoryDriver
from omnicontext.context.events import (
    ContextCleared,
    ContextCreated,
    ContextSaved,
    ContextSaving,
    EventDispatcher,
    IdentityAdded,
    MessageAdded,
    StorageRegistered,
)
from omnicontext.context.identity import SessionIdentity
from omnicontext.context.query import ContextQuery
from omnicontext.context.storages import ChatHistoryStorage, IdentityStorage
from omnicontext.context.types import StorageConfig
from omnicontext.exceptions import StorageError
from omnicontext.messages import Usage, UserMessage
from omnicontext.usage import UsageStorage


@pytest.mark.unit
@pytest.mark.storage
class TestIdentityStorage:
    """Tests for the identity registry."""

    @pytest.fixture
    def registry(self, memory_driver):
        return IdentityStorage(SessionIdentity(agent_name="SupportAgent"), [memory_driver])

    def test_key(self, registry):
        assert registry.get_identity().get_key() == "context_SupportAgent"

    @pytest.mark.asyncio
    async def test_add_identity_dedupes_by_key(self, registry, identity):
        assert await registry.add_identity(identity) is True
        assert await registry.add_identity(SessionIdentity(**identity.model_dump())) is False
        assert await registry.get_keys() == [identity.get_key()]

    @pytest.mark.asyncio
    async def test_lookups(self, registry, identity, other_identity):
        await registry.add_identity(identity)
        await registry.add_identity(other_identity)

        assert await registry.has_key(other_identity.get_key())
        assert await registry.get_by_key(identity.get_key()) == identity
        assert len(await registry.get_identities()) == 2

    @pytest.mark.asyncio
    async def test_remove_by_key(self, registry, identity):
        await registry.add_identity(identity)
        await registry.save()

        assert await registry.remove_by_key(identity.get_key()) is True
        assert registry.is_dirty
        assert await registry.remove_by_key(identity.get_key()) is False

    @pytest.mark.asyncio
    async def test_persists(self, memory_store, identity):
        registry = IdentityStorage(SessionIdentity(agent_name="SupportAgent"), [InMemoryDriver(memory_store)])
        await registry.add_identity(identity)
        await registry.save()

        reloaded = IdentityStorage(SessionIdentity(agent_name="SupportAgent"), [InMemoryDriver(memory_store)])
        assert await reloaded.get_keys() == [identity.get_key()]

    @pytest.mark.asyncio
    async def test_added_event(self, memory_driver, identity):
        events = []
        registry = IdentityStorage(
            SessionIdentity(agent_name="SupportAgent"),
            [memory_driver],
            dispatcher=EventDispatcher([events.append]),
        )
        await registry.add_identity(identity)
        assert any(isinstance(event, IdentityAdded) and event.identity == identity for event in events)


@pytest.mark.unit
@pytest.mark.storage
class TestContext:
    """Tests for the storage registry."""

    @pytest.fixture
    def context(self, identity, memory_driver):
        return Context(identity, [memory_driver])

    def test_registry(self, context):
        history = context.make(ChatHistoryStorage)
        usage = context.make(UsageStorage)

        assert context.get_storage_names() == ["chat_history", "usage"]
        assert context.get_storage("chat_history") is history
        assert context.get_storage(UsageStorage) is usage
        assert context.has(ChatHistoryStorage)
        assert "usage" in context
        assert context.get_storage("missing") is None
        assert history.dispatcher is context.dispatcher

    def test_identity_storage_keyed_by_agent(self, context):
        assert context.identity_storage.get_identity().get_key() == "context_SupportAgent"

    def test_register_replaces_same_prefix(self, context, identity, memory_driver):
        context.make(ChatHistoryStorage)
        replacement = ChatHistoryStorage(identity, [memory_driver])
        context.register(replacement)
        assert context.get_storage("chat_history") is replacement
        assert len(context.get_storage_names()) == 1

    @pytest.mark.asyncio
    async def test_save_saves_all_and_tracks_identities(self, context, memory_driver):
        history = context.make(ChatHistoryStorage)
        usage = context.make(UsageStorage)
        await history.add_message(UserMessage(content="hi"))
        await usage.add_usage(Usage(prompt_tokens=3, completion_tokens=1))

        reports = await context.save()

        assert reports["chat_history"].ok
        assert reports["usage"].ok
        assert reports["context"].ok
        assert await context.identity_storage.get_keys() == [
            history.get_identity().get_key(),
            usage.get_identity().get_key(),
        ]
        assert await memory_driver.read(history.get_identity()) is not None

    @pytest.mark.asyncio
    async def test_clean_storages_are_not_tracked(self, context):
        context.make(ChatHistoryStorage)
        reports = await context.save()
        assert reports["chat_history"] is None
        assert reports["context"] is None

    @pytest.mark.asyncio
    async def test_temporary_storages_are_not_tracked(self, context):
        history = context.make(ChatHistoryStorage, temporary=True)
        await history.add_message(UserMessage(content="hi"))
        await context.save()
        assert await context.identity_storage.get_keys() == []

    @pytest.mark.asyncio
    async def test_tracking_can_be_disabled(self, identity, memory_driver):
        context = Context(identity, [memory_driver], track_identities=False)
        history = context.make(ChatHistoryStorage)
        await history.add_message(UserMessage(content="hi"))
        reports = await context.save()
        assert "context" not in reports

    @pytest.mark.asyncio
    async def test_clear_and_remove(self, context, memory_driver):
        history = context.make(ChatHistoryStorage)
        await history.add_message(UserMessage(content="hi"))
        await context.save()

        context.clear()
        assert await history.count() == 0
        assert history.is_dirty

        reports = await context.remove()
        assert reports["chat_history"].ok
        assert await memory_driver.read(history.get_identity()) is None
        assert await context.identity_storage.get_keys() == []

    @pytest.mark.asyncio
    async def test_read_reloads(self, context):
        history = context.make(ChatHistoryStorage)
        await history.add_message(UserMessage(content="saved"))
        await context.save()
        await history.add_message(UserMessage(content="unsaved"))

        await context.read()
        assert [message.text for message in await history.get_messages()] == ["saved"]

    def test_make_with_own_drivers(self, context):
        own = InMemoryDriver()
        history = context.make(ChatHistoryStorage, [own])
        assert history.drivers == [own]

    def test_from_storage_config(self, identity):
        context = Context(identity, StorageConfig(drivers=["memory"], store_meta=True))
        history = context.make(ChatHistoryStorage)
        assert history.should_store_meta()
        assert isinstance(context.identity_storage.drivers[0], InMemoryDriver)

    @pytest.mark.asyncio
    async def test_events(self, identity, memory_driver):
        events = []
        context = Context(identity, [memory_driver], dispatcher=EventDispatcher([events.append]))
        context.make(ChatHistoryStorage)
        await context.save()
        context.clear()

        types = [type(event) for event in events]
        assert types[0] is ContextCreated
        assert StorageRegistered in types
        assert types.index(ContextSaving) < types.index(ContextSaved)
        assert types[-1] is ContextCleared

    @pytest.mark.asyncio
    async def test_listeners_subscribed_after_assembly_see_storage_events(self, identity, memory_driver):
        dispatcher = EventDispatcher()
        context = Context(identity, [memory_driver], dispatcher=dispatcher)
        history = context.make(ChatHistoryStorage)
        assert context.dispatcher is dispatcher
        assert history.dispatcher is dispatcher

        added = []
        dispatcher.subscribe(added.append, MessageAdded)
        await history.add_message(UserMessage(content="hi"))

        assert [event.message.text for event in added] == ["hi"]


async def _store_session(driver, identity, *texts, usage=False):
    """Save a chat (and optionally usage) for ``identity`` through its own context."""
    context = Context(identity, [driver])
    history = context.make(ChatHistoryStorage)
    for text in texts:
        await history.add_message(UserMessage(content=text))
    if usage:
        await context.make(UsageStorage).add_usage(Usage(prompt_tokens=5, completion_tokens=2))
    await context.save()


@pytest.mark.unit
@pytest.mark.storage
class TestTrackedIdentities:
    """Tests for listing and forgetting the sessions a context has tracked."""

    @pytest_asyncio.fixture
    async def context(self, identity, other_identity, memory_driver):
        await _store_session(memory_driver, identity, "hi", usage=True)
        await _store_session(memory_driver, other_identity, "invoice?")
        return Context(SessionIdentity(agent_name="SupportAgent"), [memory_driver])

    @pytest.mark.asyncio
    async def test_tracked_keys(self, context, identity, other_identity):
        assert await context.get_tracked_keys() == [
            identity.with_scope("chat_history").get_key(),
            identity.with_scope("usage").get_key(),
            other_identity.with_scope("chat_history").get_key(),
        ]

    @pytest.mark.asyncio
    async def test_tracked_keys_by_prefix(self, context, identity):
        assert len(await context.get_tracked_keys_by_prefix("chat_history")) == 2
        assert await context.get_tracked_keys_by_prefix("usage") == [identity.with_scope("usage").get_key()]
        assert await context.get_tracked_keys_by_prefix("notes") == []

    @pytest.mark.asyncio
    async def test_tracked_identities_by_scope(self, context, identity):
        usages = await context.get_tracked_identities_by_scope("usage")
        assert usages.all() == [identity.with_scope("usage")]

    @pytest.mark.asyncio
    async def test_remove_identity_from_tracking(self, context, identity, other_identity, memory_driver):
        assert await context.remove_identity_from_tracking(other_identity.with_scope("chat_history")) is True
        assert await context.remove_identity_from_tracking(identity.with_scope("usage").get_key()) is True
        assert await context.remove_identity_from_tracking("missing") is False
        await context.save()

        reloaded = Context(SessionIdentity(agent_name="SupportAgent"), [memory_driver])
        assert await reloaded.get_tracked_keys() == [identity.with_scope("chat_history").get_key()]
        # only the tracking entry goes; the data stays on the driver
        assert await memory_driver.read(other_identity.with_scope("chat_history")) is not None


@pytest.mark.unit
@pytest.mark.storage
class TestContextQuery:
    """Tests for filtering and cleaning up tracked sessions."""

    @pytest.fixture
    def third_identity(self):
        return SessionIdentity(agent_name="SupportAgent", chat_name="billing", user_id="42")

    @pytest_asyncio.fixture
    async def query(self, identity, other_identity, third_identity, memory_driver):
        await _store_session(memory_driver, identity, "hi", usage=True)
        await _store_session(memory_driver, other_identity, "invoice?", "refund?")
        await _store_session(memory_driver, third_identity, "card declined")
        context = Context(SessionIdentity(agent_name="SupportAgent"), [memory_driver])
        return context.query(storage_classes=[UsageStorage])

    @pytest.mark.asyncio
    async def test_filters(self, query, other_identity):
        assert await query.count() == 4
        assert await query.for_storage(ChatHistoryStorage).count() == 3
        assert await query.for_storage("usage").count() == 1
        assert await query.for_user("42").count() == 3
        assert await query.for_chat("billing").for_group("acme").count() == 1
        assert await query.filter(lambda identity: identity.user_id != "42").first() == other_identity.with_scope(
            "chat_history"
        )
        assert not await query.for_user("nobody").exists()
        assert await query.for_user("nobody").first() is None

    @pytest.mark.asyncio
    async def test_filters_return_new_queries(self, query):
        customer = query.for_user("42")
        assert await customer.for_chat("default").count() == 2
        assert await customer.count() == 3
        assert await query.count() == 4

    @pytest.mark.asyncio
    async def test_map_builds_matching_storages(self, query):
        async def message_count(identity, storage):
            return identity.chat_name, await storage.count()

        counts = await query.chats().map(message_count)
        assert sorted(counts) == [("billing", 1), ("billing", 2), ("default", 1)]

    @pytest.mark.asyncio
    async def test_each_accepts_plain_callbacks(self, query):
        seen = []
        visited = await query.for_user("7").each(lambda identity, storage: seen.append(type(storage)))
        assert visited == 1
        assert seen == [ChatHistoryStorage]

    @pytest.mark.asyncio
    async def test_clear_all_chats_by_user(self, query, identity, third_identity, other_identity, memory_driver):
        assert await query.clear_all_chats_by_user("42") == 2

        assert await memory_driver.read(identity.with_scope("chat_history")) == []
        assert await memory_driver.read(third_identity.with_scope("chat_history")) == []
        assert len(await memory_driver.read(other_identity.with_scope("chat_history"))) == 2
        assert await memory_driver.read(identity.with_scope("usage")) != []
        assert len(await query.chat_keys()) == 3

    @pytest.mark.asyncio
    async def test_remove_all_chats_by_user(self, query, identity, other_identity, memory_driver):
        assert await query.remove_all_chats_by_user("42") == 2

        assert await memory_driver.read(identity.with_scope("chat_history")) is None
        assert await query.chat_keys() == [other_identity.with_scope("chat_history").get_key()]

        reloaded = ContextQuery.named("SupportAgent", [memory_driver])
        assert await reloaded.count() == 2
        assert await reloaded.count_by_user("42") == 1

    @pytest.mark.asyncio
    async def test_clear_and_remove_all_chats_keep_usage(self, query, identity, memory_driver):
        assert await query.clear_all_chats() == 3
        assert await query.chats().count() == 3

        assert await query.remove_all_chats() == 3
        assert await query.keys() == [identity.with_scope("usage").get_key()]
        assert await memory_driver.read(identity.with_scope("usage")) is not None

    @pytest.mark.asyncio
    async def test_identities_by_user(self, query, other_identity):
        identities = await query.identities_by_user("7")
        assert identities.get_keys() == [other_identity.with_scope("chat_history").get_key()]

    @pytest.mark.asyncio
    async def test_unknown_scope_raises(self, query):
        await query.context.identity_storage.add_identity(
            SessionIdentity(agent_name="SupportAgent", chat_name="default", scope="notes")
        )
        with pytest.raises(StorageError, match="No storage class"):
            await query.for_storage("notes").clear()
