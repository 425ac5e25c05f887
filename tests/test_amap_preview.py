import pytest
from PIL import Image

import amap_preview as preview
from amap_model import Color, Family, Layout, Metatile, Tile


def test_palette_swatches():
    colors = [Color(255, 0, 0), Color(0, 255, 0), Color(0, 0, 255)]
    img = preview.render_palette(colors, swatch=4, columns=2)
    assert img.size == (8, 8)
    assert img.getpixel((0, 0)) == (255, 0, 0)
    assert img.getpixel((7, 3)) == (0, 255, 0)
    assert img.getpixel((3, 7)) == (0, 0, 255)


def test_empty_palette_still_renders():
    img = preview.render_palette([], swatch=4)
    assert img.size == (4, 4)


def test_layout_overview_scaled():
    layout = Layout(2, 1, 2, 2, "a", "b", blockdata=[0x0000, 0xFC00])
    img = preview.render_layout(layout, scale=3)
    assert img.size == (6, 3)
    assert img.getpixel((0, 0)) == (0, 0, 0)
    assert img.getpixel((5, 2)) == (255, 255, 0)


def test_layout_overview_rejects_bad_scale():
    layout = Layout(1, 1, 2, 2, "a", "b", blockdata=[0])
    with pytest.raises(ValueError):
        preview.render_layout(layout, scale=0)


def test_metatile_attribute_sheet():
    metatiles = [
        Metatile(tiles=[Tile()] * 8, attributes=0x10, family=Family.RSE),
        Metatile(tiles=[Tile()] * 8, attributes=0x80, family=Family.RSE),
    ]
    img = preview.render_metatile_attributes(metatiles, columns=1, cell=2)
    assert img.size == (2, 4)
    assert img.getpixel((0, 0)) == 0x10
    assert img.getpixel((1, 3)) == 0x80


def test_save_preview_creates_parent(tmp_path):
    path = preview.save_preview(Image.new("RGB", (2, 2)), tmp_path / "out" / "p.png")
    assert path.exists()
    with Image.open(path) as img:
        assert img.size == (2, 2)
