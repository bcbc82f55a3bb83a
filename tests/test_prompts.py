"""Tests for the context window and the prompt template."""

from __future__ import annotations

from ethos_chat.models import Conversation, Message
from ethos_chat.prompts import WELCOME_MESSAGE, build_context, build_prompt


def _conversation(n_messages: int) -> Conversation:
    conversation = Conversation(visitor_id="visitor-1")
    for i in range(n_messages):
        conversation.messages.append(
            Message(
                conversation_id=conversation.id,
                role="visitor" if i % 2 == 0 else "assistant",
                content=f"message {i}",
            )
        )
    return conversation


class TestBuildContext:
    def test_uses_last_six_messages_oldest_first(self):
        context = build_context(_conversation(8))
        lines = context.split("\n")
        assert len(lines) == 6
        assert lines[0] == "Visitor: message 2"
        assert lines[-1] == "Assistant: message 7"
        assert "message 1" not in context

    def test_short_conversation_uses_everything(self):
        context = build_context(_conversation(3))
        assert context == "Visitor: message 0\nAssistant: message 1\nVisitor: message 2"

    def test_empty_conversation(self):
        assert build_context(_conversation(0)) == ""

    def test_custom_window(self):
        assert build_context(_conversation(5), window=2).split("\n") == [
            "Assistant: message 3",
            "Visitor: message 4",
        ]


class TestBuildPrompt:
    def test_includes_context_and_message(self):
        prompt = build_prompt("Do you do SEO?", "Assistant: Hi there")
        assert "CONVERSATION CONTEXT:\nAssistant: Hi there" in prompt
        assert "VISITOR MESSAGE: Do you do SEO?" in prompt

    def test_requests_json_with_reply_fields(self):
        prompt = build_prompt("Hi", "")
        for key in ('"message"', '"intent"', '"confidence"', '"suggestions"', '"shouldQualifyLead"'):
            assert key in prompt
        assert "service_inquiry|pricing|team_info|lead_qualification|appointment|general" in prompt
        assert "|error" not in prompt

    def test_no_slots_directive_without_slots(self):
        assert "AVAILABLE APPOINTMENT SLOTS" not in build_prompt("Hi", "")
        assert "AVAILABLE APPOINTMENT SLOTS" not in build_prompt("Hi", "", [])

    def test_slots_are_appended_verbatim(self):
        slots = ["Wednesday, August 7th at 10:00 AM", "Thursday, August 8th at 11:00 AM"]
        prompt = build_prompt("When are you free?", "", slots)
        assert prompt.endswith(
            "\n\nAVAILABLE APPOINTMENT SLOTS (use these exact times only): "
            "Wednesday, August 7th at 10:00 AM, Thursday, August 8th at 11:00 AM"
        )

    def test_braces_in_visitor_message_are_kept(self):
        prompt = build_prompt("what about {this}?", "")
        assert "VISITOR MESSAGE: what about {this}?" in prompt

    def test_prompt_is_deterministic(self):
        assert build_prompt("Hi", "ctx", ["a"]) == build_prompt("Hi", "ctx", ["a"])


class TestWelcomeMessage:
    def test_mentions_services(self):
        assert "Ethos Digital" in WELCOME_MESSAGE
        assert "SEO" in WELCOME_MESSAGE
