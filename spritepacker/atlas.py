"""
Named regions of packed pages, ready for drawing.

An Atlas turns a packing Output into page images plus a lookup from sprite
name to the region of its page, with normalised texture coordinates and the
offset needed to draw a trimmed sprite where the untrimmed one would be.
"""
import json
import logging
import os
from typing import Dict, List, Optional, Tuple

from PIL import Image

from .geometry import Rect
from .output import Entry, Output

logger = logging.getLogger(__name__)


class Region:
    """A sprite's rectangle on one atlas page."""

    def __init__(self, page: int, source: Rect, frame: Rect, page_size: Tuple[int, int]):
        self.page = page
        self.source = source
        self.frame = frame
        page_width, page_height = page_size
        if source.is_empty or page_width <= 0 or page_height <= 0:
            self.uv = (0.0, 0.0, 0.0, 0.0)
        else:
            self.uv = (
                source.x / page_width,
                source.y / page_height,
                source.right / page_width,
                source.bottom / page_height,
            )
        self.draw_offset = (-frame.x, -frame.y)

    def __repr__(self):
        return f"Region(page {self.page}, {self.source!r}, frame {self.frame!r})"

    @property
    def width(self) -> int:
        """Width of the original, untrimmed image."""
        return self.frame.width

    @property
    def height(self) -> int:
        return self.frame.height

    @property
    def trimmed(self) -> bool:
        return (self.frame.x, self.frame.y) != (0, 0) or \
            (self.frame.width, self.frame.height) != (self.source.width, self.source.height)

    def draw_quad(self) -> List[Tuple[int, int]]:
        """Corners of the trimmed pixels relative to the untrimmed image: TL, TR, BR, BL."""
        x, y = self.draw_offset
        return [
            (x, y),
            (x + self.source.width, y),
            (x + self.source.width, y + self.source.height),
            (x, y + self.source.height),
        ]


class Atlas:
    """Page images and named regions built from a packing Output."""

    def __init__(self):
        self.pages: List[Image.Image] = []
        self.regions: Dict[str, Region] = {}

    @classmethod
    def from_output(cls, output: Output, premultiply: bool = False) -> 'Atlas':
        atlas = cls()
        for page in output.pages:
            if premultiply:
                page = page.premultiplied()
            atlas.pages.append(page.to_image())
        for entry in output.entries:
            atlas.regions[entry.name] = atlas._region_for(entry)
        return atlas

    @classmethod
    def from_packer(cls, packer, premultiply: bool = False) -> 'Atlas':
        """Pack the packer's images and build an atlas from the result."""
        return cls.from_output(packer.pack(), premultiply)

    def _region_for(self, entry: Entry) -> Region:
        if entry.page < len(self.pages):
            page_size = self.pages[entry.page].size
        else:
            page_size = (0, 0)
        return Region(entry.page, entry.packed, entry.frame, page_size)

    def __getitem__(self, name: str) -> Optional[Region]:
        return self.regions.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.regions

    def __len__(self):
        return len(self.regions)

    def to_json(self, image_names: List[str]) -> dict:
        """Describe the atlas as a TexturePacker-style document referencing the page images."""
        frames = {}
        for name, region in self.regions.items():
            source = region.source
            frames[name] = {
                "frame": {"x": source.x, "y": source.y, "w": source.width, "h": source.height},
                "rotated": False,
                "trimmed": region.trimmed,
                "spriteSourceSize": {
                    "x": -region.frame.x,
                    "y": -region.frame.y,
                    "w": source.width,
                    "h": source.height
                },
                "sourceSize": {"w": region.frame.width, "h": region.frame.height},
                "page": region.page
            }
        return {
            "frames": frames,
            "meta": {
                "pages": [
                    {"image": image_name, "size": {"w": page.width, "h": page.height}}
                    for image_name, page in zip(image_names, self.pages)
                ],
                "format": "RGBA8888",
                "scale": "1"
            }
        }

    def save(self, output_dir: str, prefix: str = 'sheet') -> str:
        """Save each page as <prefix>_<n>.png and the regions as <prefix>.json. Returns the JSON path."""
        os.makedirs(output_dir, exist_ok=True)
        image_names = []
        for i, page in enumerate(self.pages):
            image_name = f"{prefix}_{i}.png"
            page.save(os.path.join(output_dir, image_name))
            image_names.append(image_name)
            logger.info("Saved page %d/%d: %s (%d×%d)", i + 1, len(self.pages),
                        image_name, page.width, page.height)

        atlas_path = os.path.join(output_dir, f"{prefix}.json")
        with open(atlas_path, 'w') as f:
            json.dump(self.to_json(image_names), f, indent=2)
        return atlas_path
