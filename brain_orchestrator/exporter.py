"""Render generated slides into 1080x1920 PNG files with Pillow."""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from PIL import Image, ImageDraw, ImageFont

from LLM_API.data_classes import InlineImage

from .config import DEFAULT_EXPORT_DELAY
from .errors import ExportError
from .models import GeneratedSlice

LOGGER = logging.getLogger(__name__)

CANVAS_SIZE = (1080, 1920)
GRADIENT_HEIGHT = 900
GRADIENT_TOP_ALPHA = 0.95
HEADLINE_Y = 300
DESCRIPTION_Y = 420
HEADLINE_FONT_SIZE = 110
DESCRIPTION_FONT_SIZE = 50


def export_filename(index: int) -> str:
    """File name for the slide at 0-based ``index``."""

    return f"page_{index + 1}.png"


class SliceExporter:
    """Composite a slide image, the top gradient and its overlay text."""

    def __init__(
        self,
        *,
        font_path: Optional[Path] = None,
        export_delay: float = DEFAULT_EXPORT_DELAY,
    ) -> None:
        self.font_path = Path(font_path) if font_path else None
        self.export_delay = export_delay

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def render(self, slice_: GeneratedSlice) -> Image.Image:
        if not slice_.url:
            raise ExportError(f"Slide '{slice_.title}' has no image to export")
        try:
            source = InlineImage.from_data_url(slice_.url)
            with Image.open(io.BytesIO(source.data)) as opened:
                background = opened.convert("RGBA").resize(CANVAS_SIZE)
        except (ValueError, OSError) as exc:
            raise ExportError(f"Cannot decode image of slide '{slice_.title}': {exc}") from exc

        canvas = Image.alpha_composite(background, _top_gradient())
        draw = ImageDraw.Draw(canvas)
        center_x = CANVAS_SIZE[0] // 2
        if slice_.copy:
            draw.text(
                (center_x, HEADLINE_Y),
                slice_.copy,
                font=self._font(HEADLINE_FONT_SIZE),
                fill="white",
                anchor="ms",
            )
        if slice_.description:
            draw.text(
                (center_x, DESCRIPTION_Y),
                slice_.description,
                font=self._font(DESCRIPTION_FONT_SIZE),
                fill="white",
                anchor="ms",
            )
        return canvas.convert("RGB")

    def to_png_bytes(self, slice_: GeneratedSlice) -> bytes:
        buffer = io.BytesIO()
        self.render(slice_).save(buffer, format="PNG")
        return buffer.getvalue()

    def export(self, slice_: GeneratedSlice, index: int, directory: Path) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / export_filename(index)
        path.write_bytes(self.to_png_bytes(slice_))
        LOGGER.info("Exported slide %d to %s", index + 1, path)
        return path

    def schedule_batch(
        self, slices: Sequence[GeneratedSlice], directory: Path
    ) -> List["asyncio.Task[Optional[Path]]"]:
        """Start one delayed export task per slide.

        Tasks are independent: each logs its own failure and resolves to
        ``None``; no combined result is reported. Must be called from a
        running event loop.
        """

        return [
            asyncio.create_task(self._export_later(slice_, index, Path(directory)))
            for index, slice_ in enumerate(slices)
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _export_later(
        self, slice_: GeneratedSlice, index: int, directory: Path
    ) -> Optional[Path]:
        await asyncio.sleep(index * self.export_delay)
        try:
            return await asyncio.to_thread(self.export, slice_, index, directory)
        except (ExportError, OSError) as exc:
            LOGGER.warning("Export of slide %d failed: %s", index + 1, exc)
            return None

    def _font(self, size: int) -> ImageFont.FreeTypeFont:
        if self.font_path is not None:
            try:
                return ImageFont.truetype(str(self.font_path), size)
            except OSError:
                LOGGER.warning("Font %s could not be loaded; using default font", self.font_path)
        return ImageFont.load_default(size=size)


def _top_gradient() -> Image.Image:
    overlay = Image.new("RGBA", CANVAS_SIZE, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    for y in range(GRADIENT_HEIGHT):
        alpha = round(255 * GRADIENT_TOP_ALPHA * (1 - y / GRADIENT_HEIGHT))
        draw.line([(0, y), (CANVAS_SIZE[0] - 1, y)], fill=(0, 0, 0, alpha))
    return overlay
