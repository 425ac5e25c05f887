"""
amap_preview.py - Quick PNG previews of imported Advance Map data

Not a tile renderer (no tile graphics are available from .map/.bvd files);
these are overview images for checking that an import looks sane.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from PIL import Image, ImageDraw

from amap_model import Block, Color, Layout, Metatile

logger = logging.getLogger(__name__)


def render_palette(colors: Sequence[Color], swatch: int = 16, columns: int = 16) -> Image.Image:
    if swatch < 1 or columns < 1:
        raise ValueError("swatch and columns must be >= 1")
    rows = max(1, (len(colors) + columns - 1) // columns)
    width = min(columns, max(1, len(colors))) * swatch
    img = Image.new("RGB", (width, rows * swatch))
    draw = ImageDraw.Draw(img)
    for i, color in enumerate(colors):
        x = (i % columns) * swatch
        y = (i // columns) * swatch
        draw.rectangle((x, y, x + swatch - 1, y + swatch - 1), fill=color.to_tuple())
    return img


def _block_color(word: int):
    block = Block.from_raw(word)
    # collision 0..3, elevation 0..15, metatile id 0..1023
    return (block.collision * 85, block.elevation * 17, block.metatile_id >> 2)


def render_layout(layout: Layout, scale: int = 1) -> Image.Image:
    """One pixel per block: red = collision, green = elevation, blue = metatile id."""
    if scale < 1:
        raise ValueError("scale must be >= 1")
    img = Image.new("RGB", (max(1, layout.width), max(1, layout.height)))
    img.putdata([_block_color(w) for w in layout.blockdata] or [(0, 0, 0)])
    if scale != 1:
        img = img.resize((img.width * scale, img.height * scale), Image.NEAREST)
    return img


def render_metatile_attributes(metatiles: Sequence[Metatile], columns: int = 8, cell: int = 8) -> Image.Image:
    if cell < 1 or columns < 1:
        raise ValueError("cell and columns must be >= 1")
    rows = max(1, (len(metatiles) + columns - 1) // columns)
    img = Image.new("L", (columns * cell, rows * cell))
    draw = ImageDraw.Draw(img)
    for i, metatile in enumerate(metatiles):
        x = (i % columns) * cell
        y = (i // columns) * cell
        draw.rectangle((x, y, x + cell - 1, y + cell - 1), fill=metatile.behavior & 0xFF)
    return img


def save_preview(img: Image.Image, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path, format="PNG")
    logger.info("Wrote preview %s (%dx%d)", path, img.width, img.height)
    return path
