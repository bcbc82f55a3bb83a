"""Tests for the conversation store and its analytics read model."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from ethos_chat.models import QualificationData, VisitorInfo
from ethos_chat.prompts import WELCOME_MESSAGE
from ethos_chat.store import (
    ConversationNotFoundError,
    ConversationRepository,
    ConversationStore,
    InMemoryConversationRepository,
)


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore()


def _lead_inputs():
    return (
        VisitorInfo(name="Dana", email="dana@example.com"),
        QualificationData(
            business_type="ecommerce",
            budget="$2,000/month",
            timeline="next quarter",
            primary_goal="more sales",
            current_challenges=["low traffic"],
        ),
    )


# ── TestCreateConversation ───────────────────────────────────────────


class TestCreateConversation:
    def test_starts_with_welcome_message(self, store):
        conversation = store.create_conversation("visitor-1")
        assert conversation.status == "active"
        assert conversation.lead_qualified is False
        assert conversation.intent is None
        assert len(conversation.messages) == 1
        welcome = conversation.messages[0]
        assert welcome.role == "assistant"
        assert welcome.content == WELCOME_MESSAGE
        assert welcome.conversation_id == conversation.id

    def test_initial_message_follows_welcome(self, store):
        conversation = store.create_conversation("visitor-1", "Do you build websites?")
        assert [m.role for m in conversation.messages] == ["assistant", "visitor"]
        assert conversation.messages[1].content == "Do you build websites?"

    def test_ids_are_unique(self, store):
        a = store.create_conversation("visitor-1")
        b = store.create_conversation("visitor-1")
        assert a.id != b.id
        assert a.session_id != b.session_id

    def test_registered_for_lookup(self, store):
        conversation = store.create_conversation("visitor-1")
        assert store.get_conversation(conversation.id) is conversation

    def test_unknown_id_returns_none(self, store):
        assert store.get_conversation("missing") is None


# ── TestAppendMessage ────────────────────────────────────────────────


class TestAppendMessage:
    def test_appends_in_order(self, store):
        conversation = store.create_conversation("visitor-1")
        store.append_message(conversation.id, "visitor", "first")
        updated = store.append_message(
            conversation.id, "assistant", "second", metadata={"intent": "general"},
        )
        assert [m.content for m in updated.messages[1:]] == ["first", "second"]
        assert updated.messages[-1].metadata == {"intent": "general"}
        assert updated.messages[1].timestamp <= updated.messages[2].timestamp

    def test_unknown_conversation_raises(self, store):
        with pytest.raises(ConversationNotFoundError) as exc_info:
            store.append_message("missing", "visitor", "hello")
        assert exc_info.value.conversation_id == "missing"


# ── TestRecordTurnOutcome ────────────────────────────────────────────


class TestRecordTurnOutcome:
    def test_updates_intent(self, store):
        conversation = store.create_conversation("visitor-1")
        store.record_turn_outcome(conversation.id, "pricing", False)
        assert conversation.intent == "pricing"

    def test_lead_flag_is_never_cleared(self, store):
        conversation = store.create_conversation("visitor-1")
        store.record_turn_outcome(conversation.id, "lead_qualification", True)
        store.record_turn_outcome(conversation.id, "general", False)
        assert conversation.lead_qualified is True
        assert conversation.intent == "general"

    def test_unknown_conversation_raises(self, store):
        with pytest.raises(ConversationNotFoundError):
            store.record_turn_outcome("missing", "general", False)


# ── TestCreateLead ───────────────────────────────────────────────────


class TestCreateLead:
    def test_creates_new_lead(self, store):
        conversation = store.create_conversation("visitor-1")
        lead = store.create_lead(conversation.id, *_lead_inputs())
        assert lead.status == "new"
        assert lead.conversation_id == conversation.id
        assert lead.visitor_info.email == "dana@example.com"
        assert lead.qualification_data.current_challenges == ["low traffic"]

    def test_does_not_require_existing_conversation(self, store):
        lead = store.create_lead("not-a-conversation", *_lead_inputs())
        assert lead.conversation_id == "not-a-conversation"


# ── TestQueryAnalytics ───────────────────────────────────────────────


class TestQueryAnalytics:
    def test_conversion_rate_one_in_four(self, store):
        conversations = [store.create_conversation(f"v{i}") for i in range(4)]
        store.record_turn_outcome(conversations[0].id, "pricing", True)

        analytics = store.query_analytics()
        assert analytics.total_conversations == 4
        assert analytics.lead_conversion_rate == 25

    def test_empty_store(self, store):
        analytics = store.query_analytics()
        assert analytics.total_conversations == 0
        assert analytics.total_leads == 0
        assert analytics.average_conversation_length == 0
        assert analytics.lead_conversion_rate == 0
        assert analytics.top_intents == []

    def test_average_length_rounds_half_up(self, store):
        store.create_conversation("v1")  # 1 message
        store.create_conversation("v2", "hi")  # 2 messages
        assert store.query_analytics().average_conversation_length == 2

    def test_counts_leads_in_range(self, store):
        store.create_lead("c1", *_lead_inputs())
        store.create_lead("c2", *_lead_inputs())
        assert store.query_analytics().total_leads == 2

    def test_top_intents_ties_keep_first_seen_order(self, store):
        for intent in ["pricing", "team_info", "team_info", "pricing", "general", None]:
            c = store.create_conversation("v")
            if intent:
                store.record_turn_outcome(c.id, intent, False)

        top = store.query_analytics().top_intents
        assert [(t.intent, t.count) for t in top] == [
            ("pricing", 2), ("team_info", 2), ("general", 1),
        ]

    def test_top_intents_limited_to_five(self, store):
        for intent in ["a", "b", "c", "d", "e", "f"]:
            c = store.create_conversation("v")
            store.record_turn_outcome(c.id, intent, False)
        assert len(store.query_analytics().top_intents) == 5

    def test_time_range_filters_by_start_time(self, store):
        old = store.create_conversation("old")
        old.start_time = datetime.now(UTC) - timedelta(days=45)
        store.create_conversation("recent")

        assert store.query_analytics().total_conversations == 1
        wide = store.query_analytics(start=datetime.now(UTC) - timedelta(days=60))
        assert wide.total_conversations == 2

    def test_naive_datetimes_are_treated_as_utc(self, store):
        store.create_conversation("v")
        start = datetime.now(UTC).replace(tzinfo=None) - timedelta(hours=1)
        assert store.query_analytics(start=start).total_conversations == 1

    def test_default_range_is_thirty_days(self, store):
        time_range = store.query_analytics().time_range
        assert time_range.end - time_range.start == timedelta(days=30)


class TestRepository:
    def test_in_memory_repository_satisfies_protocol(self):
        assert isinstance(InMemoryConversationRepository(), ConversationRepository)

    def test_store_writes_through_custom_repository(self):
        repo = InMemoryConversationRepository()
        store = ConversationStore(repo)
        conversation = store.create_conversation("v")
        store.create_lead(conversation.id, *_lead_inputs())
        assert repo.list_conversations() == [conversation]
        assert len(repo.list_leads()) == 1
