import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from config import Settings, load_settings
from models import ChatMessage, Client, LineItem

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = (
    "You are Orange Business AI, a dedicated intelligent assistant for a solopreneur. "
    "Your goal is to help with market research, business strategy, drafting "
    "communications, and operational efficiency. You are concise, professional, "
    "and actionable."
)


@dataclass(frozen=True)
class Fallbacks:
    """Fixed replies used instead of model output."""

    unconfigured: str
    denied: str
    failed: str
    empty: str


EMAIL_FALLBACKS = Fallbacks(
    unconfigured="API Key is missing. Please configure your environment.",
    denied="Permission denied. Check API Key configuration.",
    failed="An error occurred while communicating with the AI assistant.",
    empty="Failed to generate email.",
)

INSIGHTS_FALLBACKS = Fallbacks(
    unconfigured="Insights unavailable without API Key.",
    denied="AI Access Denied.",
    failed="Could not generate insights at this time.",
    empty="No insights available.",
)

CLIENT_ACTION_FALLBACKS = Fallbacks(
    unconfigured="Suggestion unavailable.",
    denied="Error generating suggestion.",
    failed="Error generating suggestion.",
    empty="No suggestion available.",
)

DOCUMENT_NOTES_FALLBACKS = Fallbacks(
    unconfigured="Thank you for your business!",
    denied="Thank you for your business.",
    failed="Thank you for your business.",
    empty="Thank you for your business.",
)

CHAT_FALLBACKS = Fallbacks(
    unconfigured="Chat unavailable without API Key.",
    denied="AI Access Denied.",
    failed="An error occurred while communicating with the AI assistant.",
    empty="No response.",
)


# ── Prompts ────────────────────────────────────────────────────────────────────

def build_email_prompt(recipient: str, purpose: str, tone: str, context: str) -> str:
    return f"""You are an expert executive assistant for a busy solopreneur.
Write a concise, effective business email.

Details:
- Recipient: {recipient}
- Purpose: {purpose}
- Tone: {tone}
- Context: {context}

Output Requirements:
1. Subject Line: clear and engaging.
2. Body: Professional, direct, and actionable. No fluff.
3. Format: Clearly separate "Subject:" and the body.
"""


def build_insights_prompt(data_context: str) -> str:
    return f"""Act as an elite business coach for a solopreneur.
Analyze this business data: {data_context}

Provide exactly 3 insights in Markdown bullet points.
Each insight must be:
1. Extremely concise (under 15 words).
2. Action-oriented or celebrating a win.
3. Specific to the numbers provided.

Example format:
* **Revenue up** - Good momentum! Consider raising prices slightly.
"""


def build_client_action_prompt(client: Client) -> str:
    return f"""As a specialized CRM Sales Coach, analyze this client profile: {client.model_dump_json()}

Task: Recommend ONE specific, high-value action to take today.

Guidelines:
- If 'last_contact' > 30 days ago: Suggest a specific re-engagement email topic (e.g. "Send 'Checking In' email").
- If 'total_spent' > $5000: Suggest a VIP loyalty check-in or exclusive offer.
- If 'total_spent' < $1000: Suggest a specific upsell or volume discount.

Output: Start with a verb. Max 15 words. Be specific, not generic.
"""


def build_document_notes_prompt(doc_type: str, client_name: str, items: List[LineItem]) -> str:
    services = ", ".join(item.description for item in items if item.description)
    return f"""Write a professional, 1-sentence footer note for a {doc_type}.
Client: {client_name}
Services: {services}

If Invoice: Polite payment reminder.
If Quote: Excited call to action.
If Receipt: Warm thank you.
"""


def is_permission_error(exc: Exception) -> bool:
    """True for 403 / PERMISSION_DENIED errors from either SDK."""
    for attr in ("status_code", "code", "status"):
        if getattr(exc, attr, None) == 403:
            return True
    return "PERMISSION_DENIED" in str(exc)


# ── Assistant ──────────────────────────────────────────────────────────────────

class BusinessAssistant:
    """
    Thin pass-through to a hosted generative-language API.

    A missing API key leaves the assistant unconfigured: every call then
    returns its fallback text instead of raising.
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or load_settings()
        self.provider = settings.ai_provider
        self.model = settings.model
        self.configured = False

        if self.provider == "anthropic":
            self._init_claude(settings.anthropic_api_key)
        elif self.provider == "gemini":
            self._init_gemini(settings.gemini_api_key)
        else:
            raise ValueError(
                f"Unknown AI_PROVIDER '{self.provider}'. Set AI_PROVIDER to 'anthropic' or 'gemini'."
            )

    # ── Provider Init ──────────────────────────────────────────────────────────

    def _init_claude(self, api_key: str):
        if not api_key:
            logger.warning("ANTHROPIC_API_KEY is not set; AI features will return fallbacks.")
            return
        import anthropic
        self.claude_client = anthropic.Anthropic(api_key=api_key)
        self.configured = True
        logger.info("Provider : Anthropic Claude | Model: %s", self.model)

    def _init_gemini(self, api_key: str):
        if not api_key:
            logger.warning("GEMINI_API_KEY is not set; AI features will return fallbacks.")
            return
        import google.generativeai as genai
        genai.configure(api_key=api_key)
        self.gemini_client = genai.GenerativeModel(self.model)
        self.gemini_chat_client = genai.GenerativeModel(
            self.model, system_instruction=SYSTEM_INSTRUCTION
        )
        self.configured = True
        logger.info("Provider : Google Gemini | Model: %s", self.model)

    # ── Transport ──────────────────────────────────────────────────────────────

    def _complete(self, prompt: str) -> str:
        if self.provider == "anthropic":
            message = self.claude_client.messages.create(
                model=self.model,
                max_tokens=1024,
                messages=[{"role": "user", "content": prompt}],
            )
            return message.content[0].text
        response = self.gemini_client.generate_content(prompt)
        return response.text

    def _converse(self, history: List[ChatMessage], message: str) -> str:
        if self.provider == "anthropic":
            messages = [
                {"role": "assistant" if m.role == "model" else "user", "content": m.text}
                for m in history
            ]
            messages.append({"role": "user", "content": message})
            reply = self.claude_client.messages.create(
                model=self.model,
                max_tokens=2048,
                system=SYSTEM_INSTRUCTION,
                messages=messages,
            )
            return reply.content[0].text
        session = self.gemini_chat_client.start_chat(
            history=[{"role": m.role, "parts": [m.text]} for m in history]
        )
        return session.send_message(message).text

    def _ask(self, operation: str, call: Callable[[], str], fallbacks: Fallbacks) -> str:
        """Run one model call; map every failure mode to its fallback."""
        if not self.configured:
            return fallbacks.unconfigured
        try:
            text = call()
        except Exception as e:
            if is_permission_error(e):
                logger.warning("AI %s denied: %s", operation, e)
                return fallbacks.denied
            logger.exception("AI %s failed", operation)
            return fallbacks.failed
        if not text or not text.strip():
            return fallbacks.empty
        return text

    # ── Features ───────────────────────────────────────────────────────────────

    def generate_email(self, recipient: str, purpose: str, tone: str, context: str) -> str:
        prompt = build_email_prompt(recipient, purpose, tone, context)
        return self._ask("email", lambda: self._complete(prompt), EMAIL_FALLBACKS)

    def generate_insights(self, data_context: str) -> str:
        prompt = build_insights_prompt(data_context)
        return self._ask("insights", lambda: self._complete(prompt), INSIGHTS_FALLBACKS)

    def suggest_client_action(self, client: Client) -> str:
        prompt = build_client_action_prompt(client)
        return self._ask("client-action", lambda: self._complete(prompt), CLIENT_ACTION_FALLBACKS)

    def generate_document_notes(self, doc_type: str, client_name: str, items: List[LineItem]) -> str:
        prompt = build_document_notes_prompt(doc_type, client_name, items)
        return self._ask("document-notes", lambda: self._complete(prompt), DOCUMENT_NOTES_FALLBACKS)

    def chat(self, history: List[ChatMessage], message: str) -> str:
        return self._ask("chat", lambda: self._converse(history, message), CHAT_FALLBACKS)
