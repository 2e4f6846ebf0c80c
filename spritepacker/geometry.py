from typing import NamedTuple


class Rect(NamedTuple):
    """An integer rectangle with position (x, y) and size (width, height)."""
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def __repr__(self):
        return f"Rect({self.width}×{self.height} at ({self.x},{self.y}))"

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def area(self) -> int:
        """Get the area of the rectangle."""
        if self.is_empty:
            return 0
        return self.width * self.height

    def intersects(self, other: 'Rect') -> bool:
        """Check if this rectangle intersects with another."""
        return not (
            self.right <= other.x or
            self.bottom <= other.y or
            self.x >= other.right or
            self.y >= other.bottom
        )

    def contains(self, other: 'Rect') -> bool:
        """Check if another rectangle lies entirely inside this one."""
        return (other.x >= self.x and other.y >= self.y and
                other.right <= self.right and other.bottom <= self.bottom)

    def moved(self, x: int, y: int) -> 'Rect':
        return self._replace(x=x, y=y)


def next_power_of_two(n: int) -> int:
    """Return the next power of two greater than or equal to n."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def previous_power_of_two(n: int) -> int:
    """Return the largest power of two less than or equal to n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (n.bit_length() - 1)
