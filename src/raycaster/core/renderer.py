"""Row-batched renderer with progress reporting.

This module provides a convenient wrapper around the core integrator that
supports:
- Rendering the image in batches of rows
- Progress callbacks for UI updates
- A generator API that yields after every batch
- Copying the result into a PixelBuffer

The Renderer renders whatever scene, camera and lights are currently loaded
into the Taichi fields. Scene.render() sets those up and then drives a
Renderer; use the Renderer directly when the fields are managed by hand.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.core.renderer import Renderer
    >>> from raycaster.camera.thin_lens import ThinLensCamera, setup_camera
    >>>
    >>> setup_camera(ThinLensCamera(width=320, height=240))
    >>> renderer = Renderer(320, 240)
    >>> buffer = renderer.render(callback=lambda done, total: print(done, total))
"""

import logging
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from raycaster.core.image import PixelBuffer
from raycaster.core.integrator import (
    clear_render_target,
    get_image_numpy,
    render_rows,
    setup_render_target,
)

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

# Rows rendered per batch between progress reports
DEFAULT_BATCH_ROWS = 20


class Renderer:
    """Renders the loaded scene into a PixelBuffer, row batch by row batch.

    The renderer keeps its own width/height and delegates to the global
    integrator buffers (which are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        batch_rows: Number of rows per batch.
    """

    def __init__(self, width: int, height: int, batch_rows: int = DEFAULT_BATCH_ROWS) -> None:
        """Initialize the renderer and its render target.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            batch_rows: Rows per batch (>= 1).

        Raises:
            ValueError: If dimensions are invalid or batch_rows < 1.
        """
        if batch_rows < 1:
            raise ValueError(f"batch_rows must be >= 1, got {batch_rows}")
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self.batch_rows = batch_rows

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    def reset(self) -> None:
        """Clear the color buffer without changing the image dimensions."""
        clear_render_target()

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Render the image, yielding progress after each batch of rows.

        This is a generator-based alternative to render() with callbacks.

        Yields:
            Tuple of (rows_done, total_rows).

        Example:
            >>> for done, total in renderer.render_progressive():
            ...     print(f"Finished {done}/{total} rows")
        """
        logger.info("Rendering %dx%d image", self._width, self._height)
        row = 0
        while row < self._height:
            row_end = min(row + self.batch_rows, self._height)
            render_rows(row, row_end)
            row = row_end
            yield (row, self._height)
        logger.info("Finished rendering image")

    def render(
        self,
        output: PixelBuffer | None = None,
        callback: ProgressCallback | None = None,
    ) -> PixelBuffer:
        """Render the whole image into a pixel buffer.

        Args:
            output: Buffer to write into. A new one is created when omitted;
                its size must match the renderer's.
            callback: Optional callback called after each batch of rows.
                Receives (rows_done, total_rows).

        Returns:
            The pixel buffer holding the clamped image.

        Raises:
            ValueError: If the output buffer has the wrong size.
        """
        if output is None:
            output = PixelBuffer(self._width, self._height)
        elif (output.width, output.height) != (self._width, self._height):
            raise ValueError(
                f"Output buffer is {output.width}x{output.height}, "
                f"renderer is {self._width}x{self._height}"
            )

        for done, total in self.render_progressive():
            if callback is not None:
                callback(done, total)

        output.write_rows(0, self.get_image_numpy())
        return output

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the unclamped image as a (height, width, 3) float32 array."""
        return get_image_numpy()

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"batch_rows={self.batch_rows})"
        )
