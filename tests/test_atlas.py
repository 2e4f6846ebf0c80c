"""Tests for building named regions and the JSON description from packed pages."""
import json

import pytest

from conftest import solid, with_pixels
from spritepacker import Atlas, Packer, Rect


@pytest.fixture
def dot_atlas():
    packer = Packer(padding=1)
    packer.add("dot", 4, 4, with_pixels(4, 4, {(1, 1): (255, 255, 255, 128)}))
    packer.add("block", 3, 2, solid(3, 2))
    return Atlas.from_packer(packer)


class TestRegions:

    def test_lookup_by_name(self, dot_atlas):
        assert "dot" in dot_atlas
        assert dot_atlas["missing"] is None
        assert len(dot_atlas) == 2

    def test_uv_normalised_by_page_size(self, dot_atlas):
        region = dot_atlas["block"]
        page_width, page_height = dot_atlas.pages[region.page].size
        source = region.source
        assert region.uv == pytest.approx((
            source.x / page_width,
            source.y / page_height,
            (source.x + 3) / page_width,
            (source.y + 2) / page_height,
        ))

    def test_untrimmed_size_and_draw_offset(self, dot_atlas):
        region = dot_atlas["dot"]
        assert (region.width, region.height) == (4, 4)
        assert region.draw_offset == (1, 1)
        assert region.trimmed
        assert region.draw_quad() == [(1, 1), (2, 1), (2, 2), (1, 2)]

    def test_untrimmed_region(self, dot_atlas):
        region = dot_atlas["block"]
        assert region.draw_offset == (0, 0)
        assert not region.trimmed

    def test_empty_region_has_no_uv(self):
        packer = Packer()
        packer.add("blank", 4, 4, bytes(64))
        atlas = Atlas.from_packer(packer)
        assert atlas.pages == []
        region = atlas["blank"]
        assert region.uv == (0.0, 0.0, 0.0, 0.0)
        assert (region.width, region.height) == (4, 4)

    def test_premultiply(self):
        packer = Packer(padding=0)
        packer.add("half", 1, 1, bytes((200, 100, 50, 128)))
        straight = Atlas.from_packer(packer)
        premultiplied = Atlas.from_packer(packer, premultiply=True)
        assert straight.pages[0].getpixel((0, 0)) == (200, 100, 50, 128)
        red, green, blue, alpha = premultiplied.pages[0].tobytes()
        assert alpha == 128
        assert red < 200 and green < 100 and blue < 50


class TestSave:

    def test_writes_pages_and_json(self, dot_atlas, tmp_path):
        atlas_path = dot_atlas.save(str(tmp_path), prefix="sprites")
        assert (tmp_path / "sprites_0.png").exists()

        with open(atlas_path) as f:
            document = json.load(f)
        assert set(document["frames"]) == {"dot", "block"}
        dot = document["frames"]["dot"]
        assert dot["trimmed"] is True
        assert dot["spriteSourceSize"] == {"x": 1, "y": 1, "w": 1, "h": 1}
        assert dot["sourceSize"] == {"w": 4, "h": 4}
        assert document["meta"]["pages"][0]["image"] == "sprites_0.png"

    def test_json_frame_matches_region(self, dot_atlas):
        document = dot_atlas.to_json(["page.png"])
        frame = document["frames"]["block"]["frame"]
        source = dot_atlas["block"].source
        assert Rect(frame["x"], frame["y"], frame["w"], frame["h"]) == source
