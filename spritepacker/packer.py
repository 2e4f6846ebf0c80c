"""
Packs named RGBA images into one or more texture pages.

Images are trimmed of their transparent border as they are added and the
trimmed rows are kept in a single growable pixel arena. ``Packer.pack``
then lays the sources out with a growing binary tree, one tree per page,
and copies the pixels of every placed source onto its page.
"""
import logging
import struct
from typing import List, Optional, Tuple

from PIL import Image

from .errors import OversizedSourceError
from .geometry import Rect, next_power_of_two, previous_power_of_two
from .output import Entry, Output, Page

logger = logging.getLogger(__name__)

BYTES_PER_PIXEL = 4

# Identifiers start at 1, so 0 can never name a real source.
NOT_DUPLICATE = 0


def trim_bounds(width: int, height: int, pixels: bytes) -> Optional[Tuple[int, int, int, int]]:
    """
    Find the tight bounding box of all pixels with a non-zero alpha.
    Returns (left, top, right, bottom), or None if the image is fully transparent.
    """
    if width <= 0 or height <= 0:
        return None
    alpha = Image.frombytes('RGBA', (width, height), pixels).getchannel('A')
    return alpha.getbbox()


def content_hash(rows) -> int:
    """Order-dependent 32-bit rolling hash over the pixels of the given rows."""
    value = 0
    for row in rows:
        for (pixel,) in struct.iter_unpack('>I', row):
            value = (value * 31 + pixel) & 0xFFFFFFFF
    return value


class _Source:
    """One submitted image. Packed position is filled in by ``Packer.pack``."""
    __slots__ = ('id', 'name', 'packed', 'frame', 'hash', 'hashed',
                 'duplicate_of', 'buffer_index', 'buffer_length')

    def __init__(self, source_id: int, name: str):
        self.id = source_id
        self.name = name
        self.packed = Rect()
        self.frame = Rect()
        self.hash = 0
        self.hashed = False
        self.duplicate_of = NOT_DUPLICATE
        self.buffer_index = 0
        self.buffer_length = 0

    @property
    def empty(self) -> bool:
        return self.packed.is_empty


class _PixelArena:
    """Growable byte buffer shared by all sources; doubles when full."""

    def __init__(self, capacity: int = 32 * BYTES_PER_PIXEL):
        self._buffer = bytearray(capacity)
        self.length = 0

    def _reserve(self, size: int):
        needed = self.length + size
        capacity = len(self._buffer)
        if needed <= capacity:
            return
        while capacity < needed:
            capacity *= 2
        self._buffer.extend(bytes(capacity - len(self._buffer)))

    def write(self, data) -> None:
        size = len(data)
        self._reserve(size)
        self._buffer[self.length:self.length + size] = data
        self.length += size

    def read(self, offset: int, length: int) -> bytes:
        return bytes(self._buffer[offset:offset + length])

    def rewind(self):
        self.length = 0


class _PackingNode:
    __slots__ = ('used', 'rect', 'right', 'down')

    def __init__(self):
        self.reset(0, 0, 0, 0)

    def reset(self, x: int, y: int, width: int, height: int):
        self.used = False
        self.rect = Rect(x, y, width, height)
        self.right: Optional[int] = None
        self.down: Optional[int] = None


class _NodeArena:
    """
    Pre-sized store of packing tree nodes, addressed by index.
    Children are stored as indices into the same store.
    """

    def __init__(self, capacity: int):
        self._nodes = [_PackingNode() for _ in range(capacity)]
        self._count = 0

    def __getitem__(self, index: int) -> _PackingNode:
        return self._nodes[index]

    def reset(self):
        self._count = 0

    def new(self, x: int, y: int, width: int, height: int) -> int:
        if self._count == len(self._nodes):
            self._nodes.append(_PackingNode())
        index = self._count
        self._nodes[index].reset(x, y, width, height)
        self._count += 1
        return index

    def find(self, root: int, width: int, height: int) -> Optional[int]:
        """Depth-first search, right subtree before down, for a free node that fits."""
        stack = [root]
        while stack:
            index = stack.pop()
            node = self._nodes[index]
            if node.used:
                if node.down is not None:
                    stack.append(node.down)
                if node.right is not None:
                    stack.append(node.right)
            elif width <= node.rect.width and height <= node.rect.height:
                return index
        return None

    def grow(self, root: int, width: int, height: int, limit: int) -> Tuple[Optional[int], int]:
        """
        Grow the tree right or down so a width×height item fits.
        Returns (node for the item, new root), or (None, root) if the page is full.
        """
        bounds = self._nodes[root].rect
        can_grow_down = width <= bounds.width and bounds.height + height <= limit
        can_grow_right = height <= bounds.height and bounds.width + width <= limit
        # keep the page roughly square
        should_grow_right = can_grow_right and bounds.height >= bounds.width + width
        should_grow_down = can_grow_down and bounds.width >= bounds.height + height

        if should_grow_right or (not should_grow_down and can_grow_right):
            new_root = self.new(0, 0, bounds.width + width, bounds.height)
            node = self.new(bounds.width, 0, width, bounds.height)
            self._nodes[new_root].used = True
            self._nodes[new_root].down = root
            self._nodes[new_root].right = node
            logger.debug("Growing page right to %d×%d", bounds.width + width, bounds.height)
            return node, new_root

        if can_grow_down:
            new_root = self.new(0, 0, bounds.width, bounds.height + height)
            node = self.new(0, bounds.height, bounds.width, height)
            self._nodes[new_root].used = True
            self._nodes[new_root].down = node
            self._nodes[new_root].right = root
            logger.debug("Growing page down to %d×%d", bounds.width, bounds.height + height)
            return node, new_root

        return None, root

    def place(self, index: int, width: int, height: int) -> Rect:
        """Occupy a node with a width×height item and split off the space left over."""
        node = self._nodes[index]
        rect = node.rect
        node.used = True
        node.down = self.new(rect.x, rect.y + height, rect.width, rect.height - height)
        node.right = self.new(rect.x + width, rect.y, rect.width - width, height)
        return rect


class Packer:
    """Packs source images into pages no larger than max_page_size on either side."""

    def __init__(self, trim: bool = True, max_page_size: int = 8192, padding: int = 1,
                 power_of_two: bool = False, combine_duplicates: bool = False):
        self.trim = trim
        self.max_page_size = max_page_size
        self.padding = padding
        self.power_of_two = power_of_two
        self.combine_duplicates = combine_duplicates
        self._sources: List[_Source] = []
        self._arena = _PixelArena()
        self._next_id = 0

    @property
    def source_count(self) -> int:
        """The total number of source images."""
        return len(self._sources)

    def add(self, name: str, width: int, height: int, pixels) -> int:
        """
        Add an image given as width*height RGBA8 pixels, row-major.
        Returns the identifier assigned to the image.
        """
        if width < 0 or height < 0:
            raise ValueError(f"Image {name!r} has a negative size {width}×{height}")
        view = memoryview(pixels).cast('B')
        if len(view) != width * height * BYTES_PER_PIXEL:
            raise ValueError(
                f"Image {name!r} is {width}×{height} but has {len(view)} bytes of pixel data"
            )

        self._next_id += 1
        source = _Source(self._next_id, name)

        if self.trim:
            bounds = trim_bounds(width, height, view.tobytes())
        elif width > 0 and height > 0:
            bounds = (0, 0, width, height)
        else:
            bounds = None

        # fully transparent or zero-sized: nothing to store
        if bounds is None:
            source.frame = Rect(0, 0, width, height)
            self._sources.append(source)
            return source.id

        left, top, right, bottom = bounds
        stride = width * BYTES_PER_PIXEL
        rows = [view[y * stride + left * BYTES_PER_PIXEL:y * stride + right * BYTES_PER_PIXEL]
                for y in range(top, bottom)]

        source.packed = Rect(0, 0, right - left, bottom - top)
        source.frame = Rect(-left, -top, width, height)

        if self.combine_duplicates:
            source.hash = content_hash(rows)
            source.hashed = True
            for other in self._sources:
                if other.hashed and other.hash == source.hash:
                    source.duplicate_of = other.id
                    break

        if source.duplicate_of != NOT_DUPLICATE:
            logger.debug("Image %r is a duplicate of source %d", name, source.duplicate_of)
            source.packed = Rect()
        else:
            source.buffer_index = self._arena.length
            source.buffer_length = source.packed.area() * BYTES_PER_PIXEL
            for row in rows:
                self._arena.write(row)

        self._sources.append(source)
        return source.id

    def add_image(self, name: str, image: Image.Image) -> int:
        """Add a Pillow image, converting it to RGBA first."""
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        return self.add(name, image.width, image.height, image.tobytes())

    def clear(self):
        """Remove all source images. Identifiers are not reused afterwards."""
        self._sources.clear()
        self._arena.rewind()

    def _page_limit(self) -> int:
        if self.power_of_two:
            # rounded pages must still fit within max_page_size
            return previous_power_of_two(self.max_page_size)
        return self.max_page_size

    def pack(self) -> Output:
        """Pack all added images into pages and return the pages with their entries."""
        output = Output()
        if not self._sources:
            return output

        # largest first, insertion order for equal areas
        self._sources.sort(key=lambda s: (-s.packed.area(), s.id))

        limit = self._page_limit()
        for source in self._sources:
            if source.packed.width > limit or source.packed.height > limit:
                raise OversizedSourceError(source.name, source.packed.width,
                                           source.packed.height, limit)

        padding = max(0, self.padding)
        placeable = [source for source in self._sources if not source.empty]
        nodes = _NodeArena(len(placeable) * 4 + 1)

        position = 0
        while position < len(placeable):
            first = position
            nodes.reset()
            root = nodes.new(0, 0, placeable[first].packed.width + padding,
                             placeable[first].packed.height + padding)

            while position < len(placeable):
                source = placeable[position]
                width = source.packed.width + padding
                height = source.packed.height + padding

                node = nodes.find(root, width, height)
                if node is None:
                    node, root = nodes.grow(root, width, height, limit)
                if node is None:
                    # doesn't fit in this page
                    break

                rect = nodes.place(node, width, height)
                source.packed = source.packed.moved(rect.x, rect.y)
                position += 1

            page_index = len(output.pages)
            on_page = placeable[first:position]
            page = self._compose_page(nodes[root].rect, on_page, limit)
            output.pages.append(page)
            for source in on_page:
                output.entries.append(Entry(source.id, source.name, page_index,
                                            source.packed, source.frame))
            logger.debug("Page %d: %d×%d with %d sprites", page_index,
                         page.width, page.height, len(on_page))

        last_page = max(len(output.pages) - 1, 0)
        for source in self._sources:
            if source.empty and source.duplicate_of == NOT_DUPLICATE:
                output.entries.append(Entry(source.id, source.name, last_page,
                                            source.packed, source.frame))

        # make sure duplicates have entries
        placed = {entry.id: entry for entry in output.entries}
        for source in self._sources:
            if source.duplicate_of == NOT_DUPLICATE:
                continue
            original = placed[source.duplicate_of]
            output.entries.append(Entry(source.id, source.name, original.page,
                                        original.packed, original.frame))

        logger.info("Packed %d images into %d pages", len(output.entries), len(output.pages))
        return output

    def _compose_page(self, bounds: Rect, sources: List[_Source], limit: int) -> Page:
        """Create the page image and copy the pixels of each placed source onto it."""
        # the trailing padding of the first source may overhang the limit
        width = min(bounds.width, limit)
        height = min(bounds.height, limit)
        if self.power_of_two:
            width = next_power_of_two(width)
            height = next_power_of_two(height)

        sheet_img = Image.new('RGBA', (width, height), (0, 0, 0, 0))
        for source in sources:
            data = self._arena.read(source.buffer_index, source.buffer_length)
            sprite = Image.frombytes('RGBA', (source.packed.width, source.packed.height), data)
            sheet_img.paste(sprite, (source.packed.x, source.packed.y))

        return Page(width, height, sheet_img.tobytes())
