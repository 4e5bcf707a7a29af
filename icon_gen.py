"""Generate the window icon (64×64 PIL Image, in-memory)."""

from __future__ import annotations

from datetime import date

from PIL import Image, ImageDraw, ImageFont

ICON_SIZE = 64
HEADER_FILL = "#0078D4"
_FONT_CANDIDATES = ("segoeuib.ttf", "DejaVuSans-Bold.ttf", "Arial Bold.ttf")


def _load_font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    for name in _FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default()


def create_icon_image(day: date | None = None) -> Image.Image:
    """Return a 64×64 RGBA calendar sheet showing the day of month.

    A coloured band across the top stands for the binding of a tear-off
    calendar; the day number fills the white area below it.
    """
    day = day or date.today()
    size = ICON_SIZE
    header_h = size // 4
    img = Image.new("RGBA", (size, size), "white")
    draw = ImageDraw.Draw(img)
    draw.rectangle((0, 0, size - 1, header_h), fill=HEADER_FILL)
    draw.rectangle((0, 0, size - 1, size - 1), outline="#333333")

    text = str(day.day)
    body_h = size - header_h - 4

    # Largest font whose glyphs fit the body area
    font_size = body_h
    font = _load_font(font_size)
    while font_size > 8:
        bbox = draw.textbbox((0, 0), text, font=font)
        if bbox[2] - bbox[0] <= size - 6 and bbox[3] - bbox[1] <= body_h:
            break
        font_size -= 2
        font = _load_font(font_size)

    bbox = draw.textbbox((0, 0), text, font=font)
    x = (size - (bbox[2] - bbox[0])) / 2 - bbox[0]
    y = header_h + (size - header_h - (bbox[3] - bbox[1])) / 2 - bbox[1]
    draw.text((x, y), text, fill="black", font=font)
    return img
