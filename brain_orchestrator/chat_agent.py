"""Conversational editing of the focused slide."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from LLM_API.data_classes import ChatRequest, ChatTurn
from LLM_API.exceptions import LLMError

from .config import DEFAULT_HISTORY_WINDOW
from .directive import DirectiveFound, DirectiveMalformed, extract_directive, strip_directive
from .errors import ChatServiceError
from .models import ChatMessage, GeneratedSlice, ProductData
from .slice_store import EDITABLE_FIELDS, SliceStore

LOGGER = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = "\n".join(
    [
        "당신은 상세페이지 마스터 에디터입니다.",
        '사용자가 특정 페이지의 문구를 수정을 요청하면 [UPDATE_CONTENT: {"copy": "새문구", "description": "새설명"}] 형식으로 답변에 포함시키세요.',
        "문구는 항상 짧고 강렬해야 합니다.",
    ]
)


@dataclass(frozen=True)
class ChatContext:
    product: ProductData
    current_slice: Optional[GeneratedSlice]
    slice_index: int


@dataclass(frozen=True)
class ChatReply:
    text: str
    action: Optional[Dict[str, str]] = None


class ConversationalPatchAgent:
    def __init__(
        self,
        llm_client,
        *,
        model_name: Optional[str] = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
    ) -> None:
        self.llm_client = llm_client
        self.model_name = model_name
        self.history_window = history_window

    async def respond(
        self,
        message: str,
        history: Sequence[ChatMessage],
        context: ChatContext,
    ) -> ChatReply:
        """Send ``message`` and split the reply into display text and an action.

        Raises :class:`ChatServiceError` when the backend call fails. A
        malformed directive never raises; the reply simply carries no action.
        """

        recent = list(history)[-self.history_window:] if self.history_window > 0 else []
        current_copy = context.current_slice.copy if context.current_slice else ""
        request = ChatRequest(
            prompt=f"[현재 {context.slice_index + 1}페이지 문구: {current_copy}] {message}",
            system_instruction=SYSTEM_INSTRUCTION,
            history=[ChatTurn(role=item.role, text=item.text) for item in recent],
            model_name=self.model_name,
        )
        try:
            response = await self.llm_client.chat(request)
        except LLMError as exc:
            raise ChatServiceError(str(exc)) from exc
        if response.error:
            raise ChatServiceError(response.error)

        full_text = response.text or ""
        result = extract_directive(full_text)
        action = None
        if isinstance(result, DirectiveFound):
            action = _editable_fields(result.payload) or None
        elif isinstance(result, DirectiveMalformed):
            LOGGER.debug("Ignoring malformed update directive: %s", result.reason)
        return ChatReply(text=strip_directive(full_text, result), action=action)

    def apply(self, reply: ChatReply, store: SliceStore) -> bool:
        """Patch the focused slide with ``reply.action``; return whether it changed."""

        if not reply.action or not store.slices:
            return False
        store.patch_fields(store.focus, reply.action)
        LOGGER.info("Applied chat update to slide %d: %s", store.focus + 1, sorted(reply.action))
        return True


class ChatSession:
    """Message log plus the single-flight busy flag around the agent."""

    def __init__(self, agent: ConversationalPatchAgent, store: SliceStore) -> None:
        self.agent = agent
        self.store = store
        self.messages: List[ChatMessage] = []
        self.busy = False

    async def submit(self, text: str, product: ProductData) -> Optional[ChatReply]:
        if not text.strip() or self.busy:
            return None
        history = list(self.messages)
        self.messages.append(ChatMessage.user(text))
        self.busy = True
        state = self.store.state
        context = ChatContext(
            product=product,
            current_slice=state.focused,
            slice_index=state.focus,
        )
        try:
            reply = await self.agent.respond(text, history, context)
        except ChatServiceError as exc:
            LOGGER.warning("Chat request failed: %s", exc)
            return None
        finally:
            self.busy = False

        self.messages.append(ChatMessage.model(reply.text))
        self.agent.apply(reply, self.store)
        return reply


def _editable_fields(payload: Dict[str, object]) -> Dict[str, str]:
    return {
        key: value
        for key, value in payload.items()
        if key in EDITABLE_FIELDS and isinstance(value, str)
    }
