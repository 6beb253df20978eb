"""Chat with the AI mentor and the coding buddy."""

from enum import StrEnum

import structlog
from openai import AsyncOpenAI

from algo_grind.config import load_persona
from algo_grind.models.catalog import DEFAULT_CODING_LANGUAGE
from algo_grind.models.services import ChatMessage, ChatReply, ChatRequest

logger = structlog.get_logger()

FALLBACK_REPLY = "Sorry, I couldn't process that. Please try rephrasing."

MAX_HISTORY_MESSAGES = 30


class ChatPersona(StrEnum):
    MENTOR = "mentor"
    CODING_BUDDY = "coding_buddy"


def load_personas() -> dict[ChatPersona, dict]:
    """Read every persona definition from config/personas."""
    return {persona: load_persona(persona.value) for persona in ChatPersona}


def build_system_prompt(
    persona: ChatPersona, profile: dict, preferred_language: str | None = None
) -> str:
    """System prompt for a persona; the coding buddy writes code in ``preferred_language``."""
    parts = [
        f"You are {profile['name']}, a {profile['style']} expert in Data Structures and "
        "Algorithms (DSA).",
        profile["focus"],
        "Keep your responses clear and concise.",
    ]
    if persona == ChatPersona.CODING_BUDDY:
        language = preferred_language or DEFAULT_CODING_LANGUAGE
        parts.append(
            f"When providing code examples, use the language: {language}. If the user "
            "explicitly asks for code in a different language, use that language instead. "
            f"Put code in markdown code blocks that name the language (e.g. ```{language})."
        )
    else:
        parts.append(
            "When asked for code, provide it in markdown code blocks, specifying the "
            "language if possible."
        )
    parts.append("Do not use HTML tags like <br> in your responses; use markdown newlines instead.")
    return "\n".join(parts)


def _to_openai_messages(history: list[ChatMessage]) -> list[dict[str, str]]:
    """Map chat history roles (user/model) onto the OpenAI roles."""
    return [
        {"role": "assistant" if m.role == "model" else "user", "content": m.content}
        for m in history[-MAX_HISTORY_MESSAGES:]
    ]


class ChatService:
    """Answers chat messages in the voice of a persona.

    Args:
        api_key: OpenAI API key.
        model: Model to use for replies.
    """

    def __init__(self, api_key: str | None, model: str = "gpt-4o-mini"):
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model
        self.personas = load_personas()

    async def reply(
        self, request: ChatRequest, persona: ChatPersona = ChatPersona.MENTOR
    ) -> ChatReply:
        """Send a message with its history and return the persona's reply.

        Falls back to a canned apology when the model is unavailable or
        returns nothing.
        """
        if self.client is None:
            logger.warning("chat_unavailable", reason="no_api_key", persona=persona.value)
            return ChatReply(response=FALLBACK_REPLY)

        messages = [
            {
                "role": "system",
                "content": build_system_prompt(
                    persona, self.personas[persona], request.preferred_language
                ),
            },
            *_to_openai_messages(request.history),
            {"role": "user", "content": request.message},
        ]

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.7,
            )
            text = response.choices[0].message.content
            logger.info("chat_reply_generated", persona=persona.value, history=len(request.history))
            return ChatReply(response=text or FALLBACK_REPLY)

        except Exception:
            logger.exception("chat_reply_failed", persona=persona.value)
            return ChatReply(response=FALLBACK_REPLY)
