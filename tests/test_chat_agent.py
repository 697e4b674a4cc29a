import asyncio

import pytest

from LLM_API.exceptions import LLMError
from brain_orchestrator.chat_agent import (
    ChatContext,
    ChatReply,
    ChatSession,
    ConversationalPatchAgent,
)
from brain_orchestrator.errors import ChatServiceError
from brain_orchestrator.models import ChatMessage, GeneratedSlice, ProductData, SectionType
from brain_orchestrator.slice_store import SliceStore

from tests.llm_stubs import StubGeminiLLM, png_data_url


@pytest.fixture
def product():
    return ProductData(name="무선 청소기", images=(png_data_url(),))


@pytest.fixture
def store():
    store = SliceStore()
    for index in range(3):
        store.append(
            GeneratedSlice(
                url="",
                title=f"title {index}",
                copy=f"copy {index}",
                description=f"description {index}",
                type=SectionType.USP,
            )
        )
    store.set_focus(1)
    return store


def test_respond_splits_directive_from_text(store, product):
    stub = StubGeminiLLM(chat_replies=['결과: [UPDATE_CONTENT: {"copy":"NEW"}] 감사합니다'])
    agent = ConversationalPatchAgent(stub, model_name="chat-model")
    context = ChatContext(product=product, current_slice=store.state.focused, slice_index=1)

    reply = asyncio.run(agent.respond("더 짧게", [], context))

    assert reply.text == "결과: 감사합니다"
    assert reply.action == {"copy": "NEW"}
    request = stub.chat_requests[0]
    assert request.prompt == "[현재 2페이지 문구: copy 1] 더 짧게"
    assert request.model_name == "chat-model"
    assert "UPDATE_CONTENT" in request.system_instruction


def test_malformed_directive_yields_no_action(store, product):
    stub = StubGeminiLLM(chat_replies=["바꿨어요 [UPDATE_CONTENT: {copy: NEW}] 끝"])
    context = ChatContext(product=product, current_slice=store.state.focused, slice_index=1)

    reply = asyncio.run(ConversationalPatchAgent(stub).respond("수정", [], context))

    assert reply.text == "바꿨어요 끝"
    assert reply.action is None


def test_non_editable_keys_are_dropped(store, product):
    stub = StubGeminiLLM(
        chat_replies=['[UPDATE_CONTENT: {"url": "x", "copy": 3, "description": "짧게"}]']
    )
    context = ChatContext(product=product, current_slice=store.state.focused, slice_index=1)

    reply = asyncio.run(ConversationalPatchAgent(stub).respond("수정", [], context))

    assert reply.action == {"description": "짧게"}
    assert reply.text == ""


def test_history_is_limited_to_window(product):
    stub = StubGeminiLLM()
    agent = ConversationalPatchAgent(stub, history_window=2)
    history = [ChatMessage.user("a"), ChatMessage.model("b"), ChatMessage.user("c")]
    context = ChatContext(product=product, current_slice=None, slice_index=0)

    asyncio.run(agent.respond("d", history, context))

    turns = stub.chat_requests[0].history
    assert [(turn.role, turn.text) for turn in turns] == [("model", "b"), ("user", "c")]
    assert stub.chat_requests[0].prompt == "[현재 1페이지 문구: ] d"


def test_backend_failures_raise_chat_service_error(product):
    context = ChatContext(product=product, current_slice=None, slice_index=0)
    with pytest.raises(ChatServiceError):
        asyncio.run(ConversationalPatchAgent(StubGeminiLLM(fail_on=["chat"])).respond("x", [], context))

    class RaisingLLM:
        async def chat(self, request):
            raise LLMError("boom", provider="Gemini")

    with pytest.raises(ChatServiceError):
        asyncio.run(ConversationalPatchAgent(RaisingLLM()).respond("x", [], context))


def test_apply_patches_only_focused_slice(store):
    agent = ConversationalPatchAgent(StubGeminiLLM())

    changed = agent.apply(ChatReply(text="", action={"copy": "NEW"}), store)

    assert changed
    assert [s.copy for s in store.slices] == ["copy 0", "NEW", "copy 2"]
    assert not agent.apply(ChatReply(text="no-op"), store)


def test_session_submit_records_messages_and_applies_action(store, product):
    stub = StubGeminiLLM(chat_replies=['좋아요 [UPDATE_CONTENT: {"copy":"NEW"}]'])
    session = ChatSession(ConversationalPatchAgent(stub), store)

    reply = asyncio.run(session.submit("카피 바꿔줘", product))

    assert reply.text == "좋아요"
    assert [(m.role, m.text) for m in session.messages] == [("user", "카피 바꿔줘"), ("model", "좋아요")]
    assert store.slices[1].copy == "NEW"
    assert stub.chat_requests[0].history == []
    assert session.busy is False


def test_session_failure_appends_only_user_message(store, product):
    session = ChatSession(ConversationalPatchAgent(StubGeminiLLM(fail_on=["chat"])), store)

    assert asyncio.run(session.submit("바꿔줘", product)) is None

    assert [m.role for m in session.messages] == ["user"]
    assert session.busy is False
    assert store.slices[1].copy == "copy 1"


def test_session_ignores_blank_and_busy_submissions(store, product):
    stub = StubGeminiLLM()
    session = ChatSession(ConversationalPatchAgent(stub), store)

    assert asyncio.run(session.submit("   ", product)) is None
    session.busy = True
    assert asyncio.run(session.submit("hello", product)) is None

    assert stub.calls == []
    assert session.messages == []
