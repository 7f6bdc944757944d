"""Imaging Module.

Pillow-backed image primitives used by the certificate renderer:
decoding backgrounds, resolving fonts, measuring and drawing text, and
encoding the composited raster.
"""

from __future__ import annotations

import logging
import os
from io import BytesIO
from pathlib import Path
from typing import Dict, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from certgen.config import PROJECT_ROOT, Settings
from certgen.errors import DecodeError, RenderError
from certgen.layout import wrap_text

logger = logging.getLogger(__name__)

WEIGHTS = ("regular", "bold")

_FONT_CANDIDATES = {
    "regular": [
        "fonts/Montserrat-Regular.ttf",
        "templates/DejaVuSans.ttf",
        "templates/fonts/DejaVuSans.ttf",
    ],
    "bold": [
        "fonts/Montserrat-SemiBold.ttf",
        "templates/DejaVuSans-Bold.ttf",
        "templates/fonts/DejaVuSans-Bold.ttf",
    ],
}

_SYSTEM_FONTS = {
    "regular": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
        "C:/Windows/Fonts/arial.ttf",
    ],
    "bold": [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
        "C:/Windows/Fonts/arialbd.ttf",
    ],
}


def parse_color(color_hex: str) -> Tuple[int, int, int, int]:
    color_hex = (color_hex or "#000000").strip()
    if color_hex.startswith("#") and len(color_hex) in (7, 9):
        try:
            r = int(color_hex[1:3], 16)
            g = int(color_hex[3:5], 16)
            b = int(color_hex[5:7], 16)
            a = int(color_hex[7:9], 16) if len(color_hex) == 9 else 255
            return (r, g, b, a)
        except ValueError:
            pass
    return (0, 0, 0, 255)


def resolve_font_path(weight: str, override: Optional[str] = None) -> Optional[str]:
    """Resolve a TTF/OTF font path for ``weight``; None means Pillow's default font."""
    if override:
        p = Path(override.replace("\\", "/"))
        if not p.is_absolute():
            p = PROJECT_ROOT / p
        if p.is_file():
            return str(p)
        logger.warning("Configured %s font not found: %s", weight, p)

    for candidate in _FONT_CANDIDATES[weight]:
        p = PROJECT_ROOT / candidate
        if p.is_file():
            return str(p)

    for path in _SYSTEM_FONTS[weight]:
        if os.path.isfile(path):
            return path

    return None


class PillowBackend:
    """Image backend for certificate rendering."""

    def __init__(
        self,
        font_paths: Optional[Dict[str, Optional[str]]] = None,
        font_size: Optional[int] = None,
        text_color: str = "#000000",
    ):
        font_paths = font_paths or {}
        self.font_paths = {w: resolve_font_path(w, font_paths.get(w)) for w in WEIGHTS}
        self.font_size = font_size
        self.fill = parse_color(text_color)
        self._fonts: Dict[Tuple[str, int], ImageFont.FreeTypeFont] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "PillowBackend":
        return cls(
            font_paths={"regular": settings.font_regular_path, "bold": settings.font_bold_path},
            font_size=settings.font_size,
            text_color=settings.text_color,
        )

    def decode(self, data: bytes) -> Image.Image:
        try:
            with Image.open(BytesIO(data)) as img_in:
                img_in.load()
                return img_in.convert("RGBA")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeError(f"Background image could not be decoded: {e}") from e

    def font_size_for(self, height: int) -> int:
        if self.font_size:
            return self.font_size
        return max(12, int(height * 0.05))

    def font(self, weight: str, height: int) -> ImageFont.FreeTypeFont:
        if weight not in WEIGHTS:
            raise ValueError(f"Unknown font weight: {weight}")
        size = self.font_size_for(height)
        key = (weight, size)
        if key not in self._fonts:
            path = self.font_paths[weight]
            if path:
                self._fonts[key] = ImageFont.truetype(path, size=size)
            else:
                logger.warning("No %s TrueType font found, using Pillow's default font", weight)
                self._fonts[key] = ImageFont.load_default(size=size)
        return self._fonts[key]

    @staticmethod
    def measure_text(font: ImageFont.FreeTypeFont, text: str) -> float:
        if not text:
            return 0
        left, top, right, bottom = font.getbbox(text)
        return right - left

    def draw_text(
        self,
        image: Image.Image,
        font: ImageFont.FreeTypeFont,
        x: float,
        y: float,
        text: str,
        max_width: float,
    ) -> str:
        """Draw left-aligned ``text`` at (x, y), wrapping any line wider than max_width.

        Returns:
            The text as drawn, one line per row
        """
        rows = []
        for line in text.splitlines():
            rows.extend(wrap_text(line, lambda s: self.measure_text(font, s), max_width).lines)
        drawn = "\n".join(rows)
        if not drawn:
            return drawn

        draw = ImageDraw.Draw(image)
        draw.multiline_text((x, y), drawn, font=font, fill=self.fill, align="left")
        return drawn

    @staticmethod
    def encode(image: Image.Image, path: str) -> str:
        try:
            # Flatten transparency onto white before writing an RGB raster
            if image.mode != "RGB":
                background = Image.new("RGB", image.size, (255, 255, 255))
                background.paste(image, mask=image.split()[-1] if image.mode == "RGBA" else None)
                out_img = background
            else:
                out_img = image
            out_img.save(path, "PNG")
        except (OSError, ValueError) as e:
            raise RenderError(f"Could not write image {path}: {e}") from e
        return path
