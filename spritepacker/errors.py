class PackingError(Exception):
    """Base class for errors raised while packing sprites into pages."""


class OversizedSourceError(PackingError):
    """A single source image is larger than the maximum page size."""

    def __init__(self, name: str, width: int, height: int, max_size: int):
        super().__init__(
            f"Source image {name!r} ({width}×{height}) is larger than the "
            f"maximum page size {max_size}×{max_size}"
        )
        self.name = name
        self.width = width
        self.height = height
        self.max_size = max_size
