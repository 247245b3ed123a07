"""Tests for TopicRegistry, SubscriptionRegistry and MessageChannel."""

import pytest

from topicrelay.backends.inmemory import InMemoryBackend
from topicrelay.core.channel import MessageChannel
from topicrelay.core.errors import (
    StoreError,
    SubscriberNotBoundToTopic,
    TopicAlreadyBound,
    TopicNotFound,
    UnknownSubscriber,
)
from topicrelay.core.keys import KeyScheme
from topicrelay.core.subscriptions import SubscriptionRegistry
from topicrelay.core.topics import TopicRegistry


@pytest.fixture
def topics(backend: InMemoryBackend) -> TopicRegistry:
    return TopicRegistry(backend)


@pytest.fixture
def subscriptions(topics: TopicRegistry, clock) -> SubscriptionRegistry:
    return SubscriptionRegistry(topics, clock=clock)


@pytest.fixture
def channel(backend: InMemoryBackend, clock) -> MessageChannel:
    return MessageChannel(backend, clock=clock)


# =============================================================================
# TopicRegistry
# =============================================================================


class TestTopicRegistry:
    async def test_unbound_topic(self, topics: TopicRegistry):
        assert await topics.get_binding("orders") is None
        assert await topics.is_bound("orders") is False

    async def test_register_binds_generated_id(self, topics: TopicRegistry, backend):
        publisher_id = await topics.register_publisher("orders")

        assert publisher_id
        assert await topics.get_binding("orders") == publisher_id
        assert await backend.get("pub:orders") == publisher_id

    async def test_second_registration_rejected_and_binding_kept(self, topics: TopicRegistry):
        first = await topics.register_publisher("orders")

        with pytest.raises(TopicAlreadyBound) as exc_info:
            await topics.register_publisher("orders")

        assert exc_info.value.topic == "orders"
        assert await topics.get_binding("orders") == first

    async def test_ids_are_unique_per_topic(self, topics: TopicRegistry):
        ids = {await topics.register_publisher(f"t{i}") for i in range(20)}
        assert len(ids) == 20

    async def test_custom_key_scheme_and_id_factory(self, backend: InMemoryBackend):
        registry = TopicRegistry(backend, KeyScheme(prefix="ns:"), id_factory=lambda: "pub-1")

        assert await registry.register_publisher("orders") == "pub-1"
        assert await backend.get("ns:pub:orders") == "pub-1"


# =============================================================================
# SubscriptionRegistry
# =============================================================================


class TestSubscriptionRegistry:
    async def test_subscribe_requires_registered_topic(self, subscriptions):
        with pytest.raises(TopicNotFound):
            await subscriptions.register_subscriber("orders")

    async def test_subscribe_persists_record(self, subscriptions, topics, clock):
        await topics.register_publisher("orders")
        clock.now = 5_000

        subscriber_id = await subscriptions.register_subscriber("orders")
        record = await subscriptions.lookup(subscriber_id)

        assert record is not None
        assert record.subscriber_id == subscriber_id
        assert record.topic == "orders"
        assert record.subscribed_at == 5_000

    async def test_lookup_unknown_returns_none(self, subscriptions):
        assert await subscriptions.lookup("does-not-exist") is None

    async def test_resolve_unknown_subscriber(self, subscriptions):
        with pytest.raises(UnknownSubscriber):
            await subscriptions.resolve("does-not-exist", "orders")

    async def test_resolve_wrong_topic(self, subscriptions, topics):
        await topics.register_publisher("a")
        await topics.register_publisher("b")
        subscriber_id = await subscriptions.register_subscriber("a")

        with pytest.raises(SubscriberNotBoundToTopic):
            await subscriptions.resolve(subscriber_id, "b")

        resolved = await subscriptions.resolve(subscriber_id, "a")
        assert resolved.topic == "a"

    async def test_corrupt_record_is_store_error(self, subscriptions, backend):
        await backend.set(subscriptions.keys.subscription("broken"), "not json")
        with pytest.raises(StoreError):
            await subscriptions.lookup("broken")


# =============================================================================
# MessageChannel
# =============================================================================


class TestMessageChannel:
    async def test_empty_channel(self, channel: MessageChannel):
        assert await channel.peek_head("orders") is None
        assert await channel.pop_head("orders") is None

    async def test_append_stamps_current_time(self, channel: MessageChannel, clock):
        clock.now = 1234
        message = await channel.append("orders", "hello")

        assert message.published_at == 1234
        head = await channel.peek_head("orders")
        assert head == message

    async def test_peek_is_non_destructive(self, channel: MessageChannel, backend):
        await channel.append("orders", "one")

        await channel.peek_head("orders")
        await channel.peek_head("orders")

        assert backend.list_length(channel.keys.channel("orders")) == 1

    async def test_pop_is_fifo(self, channel: MessageChannel, clock):
        for payload in ("one", "two", "three"):
            await channel.append("orders", payload)
            clock.advance()

        popped = [(await channel.pop_head("orders")).payload for _ in range(3)]

        assert popped == ["one", "two", "three"]
        assert await channel.pop_head("orders") is None

    async def test_channels_are_per_topic(self, channel: MessageChannel):
        await channel.append("a", "for-a")
        await channel.append("b", "for-b")

        assert (await channel.peek_head("a")).payload == "for-a"
        assert (await channel.peek_head("b")).payload == "for-b"

    async def test_corrupt_message_is_store_error(self, channel: MessageChannel, backend):
        await backend.append_to_list(channel.keys.channel("orders"), "{}")
        with pytest.raises(StoreError):
            await channel.peek_head("orders")
