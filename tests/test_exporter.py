import asyncio
import io

import pytest
from PIL import Image

from brain_orchestrator.errors import ExportError
from brain_orchestrator.exporter import CANVAS_SIZE, SliceExporter, export_filename
from brain_orchestrator.models import GeneratedSlice, SectionType

from tests.llm_stubs import png_data_url


def _slice(url=None, copy="압도적 흡입", description="먼지 제로"):
    return GeneratedSlice(
        url=png_data_url((200, 200, 200)) if url is None else url,
        title="히어로",
        copy=copy,
        description=description,
        type=SectionType.HERO,
    )


def test_export_filename_is_one_based():
    assert export_filename(0) == "page_1.png"
    assert export_filename(2) == "page_3.png"


def test_render_fills_canvas_with_top_gradient():
    image = SliceExporter().render(_slice(copy="", description=""))

    assert image.size == (1080, 1920)
    assert image.mode == "RGB"
    top = image.getpixel((10, 5))
    bottom = image.getpixel((10, 1900))
    assert bottom == (200, 200, 200)
    assert max(top) < 30


def test_render_draws_text_in_white():
    plain = SliceExporter().render(_slice(copy="", description=""))
    titled = SliceExporter().render(_slice())

    assert plain.tobytes() != titled.tobytes()


def test_export_writes_numbered_png(tmp_path):
    path = SliceExporter().export(_slice(), 2, tmp_path / "out")

    assert path.name == "page_3.png"
    with Image.open(path) as written:
        assert written.size == CANVAS_SIZE
        assert written.format == "PNG"


def test_to_png_bytes_is_decodable():
    data = SliceExporter().to_png_bytes(_slice())
    with Image.open(io.BytesIO(data)) as decoded:
        assert decoded.size == CANVAS_SIZE


def test_missing_or_broken_image_raises_export_error(tmp_path):
    exporter = SliceExporter()
    with pytest.raises(ExportError):
        exporter.render(_slice(url=""))
    with pytest.raises(ExportError):
        exporter.render(_slice(url="data:image/png;base64,aGVsbG8="))
    assert not (tmp_path / "page_1.png").exists()


def test_missing_font_falls_back_to_default(tmp_path):
    exporter = SliceExporter(font_path=tmp_path / "missing.ttf")
    assert exporter.render(_slice()).size == CANVAS_SIZE


def test_schedule_batch_exports_each_slide_independently(tmp_path):
    exporter = SliceExporter(export_delay=0)
    slices = [_slice(), _slice(url=""), _slice()]

    async def run_batch():
        tasks = exporter.schedule_batch(slices, tmp_path)
        return await asyncio.gather(*tasks)

    results = asyncio.run(run_batch())

    assert results[0] == tmp_path / "page_1.png"
    assert results[1] is None
    assert results[2] == tmp_path / "page_3.png"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["page_1.png", "page_3.png"]
