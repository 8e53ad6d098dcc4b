"""Client for the external question-answering endpoint behind the docs assistant."""
import logging

import httpx
from pydantic import BaseModel

from .config import Settings, settings as default_settings
from .sequencer import RequestSequencer

logger = logging.getLogger(__name__)

ERROR_ANSWER = "Sorry, there was an error processing your question. Please try again."
UNAVAILABLE_ANSWER = "The assistant is not available (no assistant URL configured)."


class AssistantReply(BaseModel):
    tag: int
    answer: str
    error: bool = False


class AssistantClient:
    """Posts ``{question, model}`` and expects ``{answer}`` back.

    Failures never raise: they come back as an error reply. A reply is
    dropped (``None``) when a newer question was asked on the same widget
    before it arrived.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sequencer: RequestSequencer | None = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport
        self.sequencer = sequencer or RequestSequencer()

    async def ask(self, question: str, widget: str = "assistant") -> AssistantReply | None:
        question = question.strip()
        if not question:
            raise ValueError("question must not be empty")
        tag = self.sequencer.next(widget)
        reply = await self._call(question, tag)
        if not self.sequencer.is_latest(widget, tag):
            logger.info("Discarding stale assistant reply for %s (request %d)", widget, tag)
            return None
        return reply

    async def _call(self, question: str, tag: int) -> AssistantReply:
        if not self.settings.assistant_url:
            return AssistantReply(tag=tag, answer=UNAVAILABLE_ANSWER, error=True)
        payload = {"question": question, "model": self.settings.assistant_model}
        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout, transport=self.transport) as client:
                r = await client.post(self.settings.assistant_url, json=payload)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Assistant call failed: %s", e)
            return AssistantReply(tag=tag, answer=ERROR_ANSWER, error=True)

        answer = data.get("answer") if isinstance(data, dict) else None
        if not isinstance(answer, str):
            logger.warning("Assistant response has no answer field: %r", data)
            return AssistantReply(tag=tag, answer=ERROR_ANSWER, error=True)
        return AssistantReply(tag=tag, answer=answer)
