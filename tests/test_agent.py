"""
Tests for the AI assistant. No API key needed: provider clients are faked.
"""

import os
import sys
from types import SimpleNamespace

import pytest

# Allow imports from parent directory
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


# ── Fakes ──────────────────────────────────────────────────────────────────────

class FakeClaudeMessages:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.reply)])


class FakeGeminiModel:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []
        self.histories = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.reply)

    def start_chat(self, history):
        self.histories.append(history)
        return SimpleNamespace(send_message=self.generate_content)


class Forbidden(Exception):
    status_code = 403


def make_assistant(provider="gemini", reply="", error=None, configured=True):
    from agent import BusinessAssistant
    # Bypass __init__ API key lookup for unit tests
    ag = object.__new__(BusinessAssistant)
    ag.provider = provider
    ag.model = "test-model"
    ag.configured = configured
    if provider == "anthropic":
        ag.claude_client = SimpleNamespace(messages=FakeClaudeMessages(reply, error))
    else:
        ag.gemini_client = FakeGeminiModel(reply, error)
        ag.gemini_chat_client = ag.gemini_client
    return ag


# ── Prompts ────────────────────────────────────────────────────────────────────

class TestPrompts:
    def test_email_prompt(self):
        from agent import build_email_prompt
        prompt = build_email_prompt("Jane", "Follow up on quote", "Friendly", "Sent last week")
        assert "- Recipient: Jane" in prompt
        assert "- Purpose: Follow up on quote" in prompt
        assert "- Tone: Friendly" in prompt
        assert "- Context: Sent last week" in prompt
        assert 'separate "Subject:"' in prompt

    def test_insights_prompt(self):
        from agent import build_insights_prompt
        prompt = build_insights_prompt("Total Revenue: $5500.00.")
        assert "Analyze this business data: Total Revenue: $5500.00." in prompt
        assert "exactly 3 insights" in prompt

    def test_client_action_prompt_embeds_profile(self):
        from agent import build_client_action_prompt
        from models import Client
        prompt = build_client_action_prompt(Client(id="c1", name="Acme Corp", total_spent=12000))
        assert '"name":"Acme Corp"' in prompt
        assert '"total_spent":12000.0' in prompt
        assert "Start with a verb" in prompt

    def test_document_notes_prompt(self):
        from agent import build_document_notes_prompt
        from models import LineItem
        items = [LineItem(description="Design"), LineItem(description=""), LineItem(description="Hosting")]
        prompt = build_document_notes_prompt("receipt", "Jane Doe", items)
        assert "footer note for a receipt." in prompt
        assert "Client: Jane Doe" in prompt
        assert "Services: Design, Hosting" in prompt


class TestPermissionErrors:
    def test_status_code(self):
        from agent import is_permission_error
        assert is_permission_error(Forbidden("nope"))

    def test_code_attribute(self):
        from agent import is_permission_error
        err = RuntimeError("denied")
        err.code = 403
        assert is_permission_error(err)

    def test_marker_in_message(self):
        from agent import is_permission_error
        assert is_permission_error(RuntimeError('{"status": "PERMISSION_DENIED"}'))

    def test_other_errors(self):
        from agent import is_permission_error
        assert not is_permission_error(TimeoutError("slow"))


# ── Assistant ──────────────────────────────────────────────────────────────────

class TestAssistant:
    def test_reply_returned_verbatim(self):
        ag = make_assistant(reply="  Subject: Hello\n\nHi Jane  \n")
        assert ag.generate_email("Jane", "Hi", "Warm", "") == "  Subject: Hello\n\nHi Jane  \n"
        assert "Recipient: Jane" in ag.gemini_client.prompts[0]

    def test_anthropic_transport(self):
        ag = make_assistant(provider="anthropic", reply="Call Acme today.")
        from models import Client
        assert ag.suggest_client_action(Client(id="c1", name="Acme")) == "Call Acme today."
        call = ag.claude_client.messages.calls[0]
        assert call["model"] == "test-model"
        assert call["messages"][0]["role"] == "user"

    @pytest.mark.parametrize("method, args, expected", [
        ("generate_email", ("a", "b", "c", "d"), "API Key is missing. Please configure your environment."),
        ("generate_insights", ("ctx",), "Insights unavailable without API Key."),
        ("generate_document_notes", ("invoice", "Jane", []), "Thank you for your business!"),
        ("chat", ([], "hi"), "Chat unavailable without API Key."),
    ])
    def test_unconfigured_fallbacks(self, method, args, expected):
        ag = make_assistant(configured=False)
        assert getattr(ag, method)(*args) == expected
        assert ag.gemini_client.prompts == []

    @pytest.mark.parametrize("method, args, expected", [
        ("generate_email", ("a", "b", "c", "d"), "Permission denied. Check API Key configuration."),
        ("generate_insights", ("ctx",), "AI Access Denied."),
        ("generate_document_notes", ("quote", "Jane", []), "Thank you for your business."),
    ])
    def test_permission_denied_fallbacks(self, method, args, expected):
        ag = make_assistant(error=Forbidden("403"))
        assert getattr(ag, method)(*args) == expected

    def test_other_errors_fall_back(self):
        ag = make_assistant(error=ConnectionError("boom"))
        assert ag.generate_insights("ctx") == "Could not generate insights at this time."
        assert ag.generate_email("a", "b", "c", "d") == (
            "An error occurred while communicating with the AI assistant."
        )

    def test_empty_reply_falls_back(self):
        ag = make_assistant(reply="   ")
        assert ag.generate_email("a", "b", "c", "d") == "Failed to generate email."
        assert ag.generate_insights("ctx") == "No insights available."

    def test_gemini_chat_history(self):
        from models import ChatMessage
        ag = make_assistant(reply="Sure.")
        history = [ChatMessage(role="user", text="Hi"), ChatMessage(role="model", text="Hello!")]
        assert ag.chat(history, "Plan my week") == "Sure."
        assert ag.gemini_client.histories[0] == [
            {"role": "user", "parts": ["Hi"]},
            {"role": "model", "parts": ["Hello!"]},
        ]
        assert ag.gemini_client.prompts == ["Plan my week"]

    def test_anthropic_chat_maps_roles(self):
        from agent import SYSTEM_INSTRUCTION
        from models import ChatMessage
        ag = make_assistant(provider="anthropic", reply="Done.")
        ag.chat([ChatMessage(role="model", text="Hello!")], "Thanks")
        call = ag.claude_client.messages.calls[0]
        assert call["system"] == SYSTEM_INSTRUCTION
        assert call["messages"] == [
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "Thanks"},
        ]


class TestInit:
    def test_missing_key_is_unconfigured(self):
        from agent import BusinessAssistant
        from config import Settings
        ag = BusinessAssistant(Settings(ai_provider="gemini", gemini_api_key=""))
        assert ag.configured is False
        assert ag.generate_insights("ctx") == "Insights unavailable without API Key."

    def test_unknown_provider(self):
        from agent import BusinessAssistant
        from config import Settings
        with pytest.raises(ValueError, match="Unknown AI_PROVIDER"):
            BusinessAssistant(Settings(ai_provider="openai"))
