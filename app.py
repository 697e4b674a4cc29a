"""Streamlit UI for building and editing a generated product detail page."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import streamlit as st

from LLM_API.data_classes import InlineImage
from LLM_API.exceptions import LLMError
from LLM_API.providers.gemini import GeminiModel

from brain_orchestrator.chat_agent import ChatSession, ConversationalPatchAgent
from brain_orchestrator.config import Settings
from brain_orchestrator.errors import ExportError, ValidationError
from brain_orchestrator.exporter import SliceExporter, export_filename
from brain_orchestrator.knowledge import JsonFileKnowledgeStorage, KnowledgeLog
from brain_orchestrator.models import GeneratedSlice, PipelineStage, ProductData, SectionType
from brain_orchestrator.orchestrator import (
    EventKind,
    PipelineEvent,
    PipelineOrchestrator,
    stage_progress,
)
from brain_orchestrator.planning import DesignPlanGenerator
from brain_orchestrator.section_renderer import SectionRenderer
from brain_orchestrator.slice_store import SliceStore

STATUS_ICONS = {"completed": "✅", "active": "🔵", "pending": "⚪"}


def _upload_to_data_url(data: bytes, mime_type: Optional[str]) -> str:
    return InlineImage(data=data, mime_type=mime_type or "image/jpeg").to_data_url()


def _build_product(name: str, specs: str, uploads: Iterable[Any]) -> ProductData:
    images = tuple(
        _upload_to_data_url(upload.getvalue(), getattr(upload, "type", None))
        for upload in uploads or []
    )
    return ProductData(name=name.strip(), specs=specs, images=images)


def _slice_badge(slice_: GeneratedSlice, index: int) -> str:
    if slice_.type == SectionType.USP:
        return f"{slice_.badge} {index}"
    return slice_.badge


def _progress_line(stage: PipelineStage) -> str:
    return "  →  ".join(
        f"{STATUS_ICONS[step.status]} {step.label}" for step in stage_progress(stage)
    )


def _build_button_label(stage: PipelineStage) -> str:
    if stage in (PipelineStage.IDLE, PipelineStage.COMPLETED):
        return "Build Page"
    return "Orchestrating..."


async def _export_all(
    exporter: SliceExporter, slices: Sequence[GeneratedSlice], directory: Path
) -> None:
    tasks = exporter.schedule_batch(slices, directory)
    if tasks:
        await asyncio.wait(tasks)


def _create_services(settings: Settings) -> Dict[str, Any]:
    llm_client = GeminiModel(
        api_key=settings.gemini_api_key,
        model_name=settings.text_model,
        image_model_name=settings.image_model,
    )
    store = SliceStore()
    services: Dict[str, Any] = {"store": store, "version": 0}

    def bump_version(_state) -> None:
        services["version"] += 1

    store.subscribe(bump_version)
    services["orchestrator"] = PipelineOrchestrator(
        planner=DesignPlanGenerator(llm_client, model_name=settings.text_model),
        renderer=SectionRenderer(
            llm_client,
            text_model=settings.text_model,
            image_model=settings.image_model,
        ),
        store=store,
    )
    services["chat"] = ChatSession(
        ConversationalPatchAgent(
            llm_client,
            model_name=settings.text_model,
            history_window=settings.history_window,
        ),
        store,
    )
    services["exporter"] = SliceExporter(
        font_path=settings.font_path, export_delay=settings.export_delay
    )
    services["knowledge"] = KnowledgeLog(JsonFileKnowledgeStorage(settings.knowledge_path))
    return services


def _preview_bytes(exporter: SliceExporter, slice_: GeneratedSlice) -> Optional[bytes]:
    try:
        return exporter.to_png_bytes(slice_)
    except ExportError:
        return None


def _show_slice(exporter: SliceExporter, slice_: GeneratedSlice, index: int) -> None:
    preview = _preview_bytes(exporter, slice_)
    caption = f"{_slice_badge(slice_, index)} · {slice_.title}"
    if preview:
        st.image(preview, caption=caption, width="stretch")
    else:
        st.warning(f"{caption}: 이미지가 생성되지 않았습니다.")
    if slice_.type == SectionType.SPECS and slice_.description:
        st.caption("Specifications")
        st.text(slice_.description)


def _run_pipeline(services: Dict[str, Any], product: ProductData, progress_slot, preview_slot) -> None:
    orchestrator: PipelineOrchestrator = services["orchestrator"]
    exporter: SliceExporter = services["exporter"]

    def on_event(event: PipelineEvent) -> None:
        progress_slot.markdown(_progress_line(event.stage))
        if event.kind == EventKind.SLICE_ADDED and event.slices:
            with preview_slot.container():
                st.caption(f"{len(event.slices)}번째 페이지 생성 완료")
                _show_slice(exporter, event.slices[-1], len(event.slices) - 1)

    unsubscribe = orchestrator.subscribe(on_event)
    try:
        asyncio.run(orchestrator.run(product))
    finally:
        unsubscribe()


def _render_chat(services: Dict[str, Any], product: ProductData) -> None:
    session: ChatSession = services["chat"]
    st.subheader("Brain Command Center")
    for message in session.messages:
        with st.chat_message("user" if message.role == "user" else "assistant"):
            st.write(message.text)
    prompt = st.chat_input("명령어를 입력하십시오...", disabled=session.busy)
    if prompt:
        with st.spinner("오케스트레이터 분석 중..."):
            reply = asyncio.run(session.submit(prompt, product))
        if reply is None:
            st.warning("응답을 받지 못했습니다. 다시 시도하세요.")
        st.rerun()


def _render_feedback(knowledge_log: KnowledgeLog) -> None:
    knowledge = knowledge_log.load()
    with st.expander(f"브레인 학습 기록 (누적 프로젝트 {knowledge.total_projects}건)"):
        with st.form("feedback_form", clear_on_submit=True):
            improvement = st.text_input("성공 전략")
            critique = st.text_input("개선 포인트")
            reference = st.text_input("참고 레퍼런스 (선택)")
            submitted = st.form_submit_button("기록")
        if submitted:
            if improvement.strip() or critique.strip():
                knowledge_log.record(improvement.strip(), critique.strip())
            if reference.strip():
                knowledge_log.add_reference(reference.strip())
            st.success("기록했습니다.")
        for strategy in knowledge.successful_strategies[-5:]:
            st.markdown(f"- {strategy}")


def main() -> None:
    settings = Settings.from_env()
    settings.configure_logging()

    st.set_page_config(page_title="Brain Orchestrator", layout="wide")
    st.title("Brain Orchestrator")

    if "services" not in st.session_state:
        try:
            st.session_state["services"] = _create_services(settings)
        except LLMError as exc:
            st.error("Gemini 클라이언트를 초기화할 수 없습니다. GEMINI_API_KEY를 확인하세요.")
            st.text(str(exc))
            return
    services = st.session_state["services"]
    store: SliceStore = services["store"]
    orchestrator: PipelineOrchestrator = services["orchestrator"]
    exporter: SliceExporter = services["exporter"]

    input_col, preview_col = st.columns([1, 2])

    with input_col:
        st.subheader("Commander Input")
        product_name = st.text_input("PRODUCT IDENTITY")
        spec_text = st.text_area("TECHNICAL SPECIFICATIONS", height=120)
        uploads = st.file_uploader(
            "상품 이미지", type=["png", "jpg", "jpeg", "webp"], accept_multiple_files=True
        )
        if uploads:
            st.image([upload.getvalue() for upload in uploads], width=80)
        product = _build_product(product_name, spec_text, uploads)

        progress_slot = st.empty()
        progress_slot.markdown(_progress_line(orchestrator.stage))
        build_clicked = st.button(
            _build_button_label(orchestrator.stage),
            type="primary",
            disabled=orchestrator.is_busy,
        )
        if orchestrator.stage == PipelineStage.ERROR and orchestrator.failure_message:
            st.error(orchestrator.failure_message)

        state = store.state
        focused = state.focused
        if focused is not None:
            st.subheader("Manual Edit")
            version = services["version"]
            st.text_input(
                "카피 수정",
                value=focused.copy,
                key=f"copy_{state.focus}_{version}",
                on_change=lambda key, idx: store.patch_field(idx, "copy", st.session_state[key]),
                args=(f"copy_{state.focus}_{version}", state.focus),
            )
            st.text_area(
                "설명 수정",
                value=focused.description,
                key=f"description_{state.focus}_{version}",
                on_change=lambda key, idx: store.patch_field(idx, "description", st.session_state[key]),
                args=(f"description_{state.focus}_{version}", state.focus),
                height=80,
            )

        _render_feedback(services["knowledge"])

    with preview_col:
        preview_slot = st.empty()
        if build_clicked:
            try:
                _run_pipeline(services, product, progress_slot, preview_slot)
            except ValidationError as exc:
                st.error(str(exc))
            else:
                st.rerun()

        slices: List[GeneratedSlice] = list(store.slices)
        if not slices:
            preview_slot.info("Awaiting Core Commands")
        else:
            vertical = st.toggle("Vertical Scroll", value=False)
            action_cols = st.columns(2)
            with action_cols[0]:
                try:
                    st.download_button(
                        "Partial Save",
                        data=exporter.to_png_bytes(slices[store.focus]),
                        file_name=export_filename(store.focus),
                        mime="image/png",
                    )
                except ExportError as exc:
                    st.caption(str(exc))
            with action_cols[1]:
                if st.button("Full Export"):
                    asyncio.run(_export_all(exporter, slices, settings.export_dir))
                    st.info(f"{settings.export_dir} 폴더로 내보내기를 실행했습니다.")

            if vertical:
                for index, slice_ in enumerate(slices):
                    _show_slice(exporter, slice_, index)
            else:
                _show_slice(exporter, slices[store.focus], store.focus)
                nav_cols = st.columns(3)
                with nav_cols[0]:
                    if st.button("←", disabled=store.focus == 0):
                        store.set_focus(store.focus - 1)
                        st.rerun()
                with nav_cols[1]:
                    st.caption(f"{store.focus + 1} / {len(slices)}")
                with nav_cols[2]:
                    if st.button("→", disabled=store.focus >= len(slices) - 1):
                        store.set_focus(store.focus + 1)
                        st.rerun()

        _render_chat(services, product)


if __name__ == "__main__":  # pragma: no cover - Streamlit handles execution
    main()
