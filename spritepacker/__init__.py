"""Sprite atlas packer: trims, deduplicates and packs RGBA images into texture pages."""

from .atlas import Atlas, Region
from .errors import OversizedSourceError, PackingError
from .geometry import Rect, next_power_of_two, previous_power_of_two
from .output import Entry, Output, Page
from .packer import Packer

__all__ = [
    'Atlas', 'Region', 'OversizedSourceError', 'PackingError', 'Rect',
    'next_power_of_two', 'previous_power_of_two', 'Entry', 'Output', 'Page', 'Packer',
]
