from typing import Any, List, Sequence

from google.genai import types

from .data_classes import ChatTurn, InlineImage


class GeminiConverter:
    """Convert data classes to and from the Gemini SDK types"""

    @staticmethod
    def convert_image(image: InlineImage) -> types.Part:
        return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)

    @staticmethod
    def convert_contents(
        prompt: str, images: Sequence[InlineImage] = (), *, images_first: bool = False
    ) -> List[types.Part]:
        """Build the part list for a single-turn request.

        The image generation call sends the text first and the reference image
        after it; the text finalisation call leads with the image it describes.
        """
        image_parts = [GeminiConverter.convert_image(image) for image in images]
        text_part = types.Part.from_text(text=prompt)
        if images_first:
            return [*image_parts, text_part]
        return [text_part, *image_parts]

    @staticmethod
    def convert_history(turns: Sequence[ChatTurn]) -> List[types.Content]:
        return [
            types.Content(role=turn.role, parts=[types.Part.from_text(text=turn.text)])
            for turn in turns
        ]

    @staticmethod
    def extract_images(response: Any) -> List[InlineImage]:
        """Collect inline image parts from the first candidate of ``response``"""
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        images: List[InlineImage] = []
        for part in parts:
            inline_data = getattr(part, "inline_data", None)
            if inline_data is None or not getattr(inline_data, "data", None):
                continue
            images.append(
                InlineImage(
                    data=inline_data.data,
                    mime_type=getattr(inline_data, "mime_type", None) or "image/png",
                )
            )
        return images
