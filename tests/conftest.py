"""
Shared helpers and fixtures for the sprite packer tests.

Pixel buffers are built as raw RGBA8 bytes so tests can control every pixel.
"""
import pytest
from PIL import Image

from spritepacker import Packer, Rect


def solid(width, height, color=(255, 0, 0, 255)):
    """An opaque (or uniformly coloured) width×height RGBA buffer."""
    return bytes(color) * (width * height)


def with_pixels(width, height, pixels):
    """A transparent buffer with the given {(x, y): (r, g, b, a)} pixels set."""
    data = bytearray(width * height * 4)
    for (x, y), color in pixels.items():
        offset = (y * width + x) * 4
        data[offset:offset + 4] = bytes(color)
    return bytes(data)


def padded_rect(entry, padding):
    packed = entry.packed
    return Rect(packed.x, packed.y, packed.width + padding, packed.height + padding)


@pytest.fixture
def packer():
    return Packer()


@pytest.fixture
def sprite_dir(tmp_path):
    """A directory with a few small PNG sprites, one of them with a transparent border."""
    directory = tmp_path / "sprites"
    directory.mkdir()
    Image.new('RGBA', (16, 16), (255, 0, 0, 255)).save(directory / "red.png")
    Image.new('RGBA', (8, 24), (0, 255, 0, 255)).save(directory / "green.png")
    bordered = Image.new('RGBA', (20, 20), (0, 0, 0, 0))
    bordered.paste(Image.new('RGBA', (10, 6), (0, 0, 255, 255)), (5, 7))
    bordered.save(directory / "blue.png")
    (directory / "notes.txt").write_text("not an image")
    return directory
