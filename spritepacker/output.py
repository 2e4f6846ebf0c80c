from dataclasses import dataclass, field
from typing import List, Optional

from PIL import Image

from .geometry import Rect


@dataclass(frozen=True)
class Entry:
    """Placement of one submitted source image.

    ``packed`` is the trimmed image's rectangle on page ``page``; ``frame``
    is the original image footprint relative to the trimmed rectangle, so
    ``(-frame.x, -frame.y)`` is where the trimmed pixels sit inside the
    untrimmed image.
    """
    id: int
    name: str
    page: int
    packed: Rect
    frame: Rect


@dataclass(frozen=True)
class Page:
    """A finished page: ``width * height`` RGBA8 pixels, row-major."""
    width: int
    height: int
    pixels: bytes = field(repr=False)

    def to_image(self) -> Image.Image:
        return Image.frombytes('RGBA', (self.width, self.height), self.pixels)

    def premultiplied(self) -> 'Page':
        """Return a copy of the page with colour channels multiplied by alpha."""
        image = self.to_image().convert('RGBa')
        return Page(self.width, self.height, image.tobytes())


@dataclass
class Output:
    """Result of a packing run. Holds no reference to the packer."""
    pages: List[Page] = field(default_factory=list)
    entries: List[Entry] = field(default_factory=list)

    def find(self, name: str) -> Optional[Entry]:
        """Get the first entry with the given name, or None."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def efficiency(self) -> float:
        """Share of page pixels covered by packed sprites, in percent."""
        total_pixels = sum(page.width * page.height for page in self.pages)
        if total_pixels == 0:
            return 0.0
        # duplicates share their original's rectangle, count it once
        used = {(entry.page, entry.packed) for entry in self.entries if not entry.packed.is_empty}
        sprite_pixels = sum(packed.area() for _, packed in used)
        return sprite_pixels / total_pixels * 100
