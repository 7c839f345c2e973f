"""Pixel buffer that receives the final image.

PixelBuffer is the output sink of a render. Colors are clamped to [0, 1]
when they are written; everything upstream works with unclamped colors.
Pixels are addressed as (x, y) with y = 0 at the top row, and stored
row-major in a (height, width, 3) float32 array.

Example:
    >>> buffer = PixelBuffer(4, 3)
    >>> buffer.set_pixel(0, 0, (1.5, 0.25, -0.1))
    >>> buffer.get_pixel(0, 0)
    (1.0, 0.25, 0.0)
"""

import numpy as np
import numpy.typing as npt


class PixelBuffer:
    """A width x height RGB image with clamping on write.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Create a black image.

        Raises:
            ValueError: If width or height is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self._width = width
        self._height = height
        self._pixels = np.zeros((height, width, 3), dtype=np.float32)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    def _check_pixel(self, x: int, y: int) -> None:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise ValueError(f"Pixel ({x}, {y}) outside {self._width}x{self._height} image")

    def set_pixel(self, x: int, y: int, color: tuple[float, float, float]) -> None:
        """Write one pixel, clamping each channel to [0, 1].

        Raises:
            ValueError: If (x, y) lies outside the image.
        """
        self._check_pixel(x, y)
        self._pixels[y, x] = np.clip(np.asarray(color, dtype=np.float32), 0.0, 1.0)

    def get_pixel(self, x: int, y: int) -> tuple[float, float, float]:
        """Read one pixel.

        Raises:
            ValueError: If (x, y) lies outside the image.
        """
        self._check_pixel(x, y)
        r, g, b = self._pixels[y, x]
        return (float(r), float(g), float(b))

    def write_rows(self, y_start: int, rows: npt.NDArray[np.floating]) -> None:
        """Write a block of whole rows, clamping to [0, 1].

        Args:
            y_start: Index of the first row to overwrite.
            rows: Array of shape (n, width, 3).

        Raises:
            ValueError: If the block does not fit inside the image.
        """
        rows = np.asarray(rows, dtype=np.float32)
        if rows.ndim != 3 or rows.shape[1:] != (self._width, 3):
            raise ValueError(
                f"Rows must have shape (n, {self._width}, 3), got {rows.shape}"
            )
        y_end = y_start + rows.shape[0]
        if y_start < 0 or y_end > self._height:
            raise ValueError(
                f"Rows [{y_start}, {y_end}) outside image of height {self._height}"
            )
        self._pixels[y_start:y_end] = np.clip(rows, 0.0, 1.0)

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """Return a copy of the image as a (height, width, 3) float32 array."""
        return self._pixels.copy()

    def to_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Convert to 8-bit with optional gamma correction.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).

        Returns:
            Array of shape (height, width, 3) with dtype uint8.
        """
        image = self._pixels
        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)
        return (image * 255).astype(np.uint8)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self._width}, height={self._height})"
