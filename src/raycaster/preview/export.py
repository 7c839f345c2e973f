"""Image export utilities for rendered images.

This module provides functions for saving rendered images to files with
optional gamma correction. Colors are clamped to [0, 1] before quantizing.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from raycaster.preview.export import save_png
    >>> from raycaster.scene.presets import create_demo_scene
    >>>
    >>> buffer = create_demo_scene().render()
    >>> save_png(buffer, "output.png")
"""

from __future__ import annotations

from os import PathLike
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from raycaster.core.image import PixelBuffer


def image_to_uint8(
    image: npt.NDArray[np.floating],
    *,
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for export.

    Args:
        image: Image array of shape (H, W, 3). Values outside [0, 1] are
            clamped.
        gamma: Gamma correction value (default 1.0, linear).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the image is not (H, W, 3) or gamma is not positive.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Image must have shape (H, W, 3), got {image.shape}")
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")

    processed = np.clip(image.astype(np.float32), 0.0, 1.0)
    if gamma != 1.0:
        processed = np.power(processed, 1.0 / gamma)

    return (processed * 255).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.floating],
    filepath: str | PathLike[str],
    *,
    gamma: float = 1.0,
) -> None:
    """Save a NumPy array as a PNG file.

    Args:
        image: Linear image array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 1.0, linear).
    """
    image_uint8 = image_to_uint8(image, gamma=gamma)

    # Save using Pillow
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)


def save_png(
    buffer: PixelBuffer,
    filepath: str | PathLike[str],
    *,
    gamma: float = 1.0,
) -> None:
    """Save a rendered pixel buffer as a PNG file.

    Args:
        buffer: The PixelBuffer returned by a render.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 1.0, linear).

    Example:
        >>> buffer = scene.render()
        >>> save_png(buffer, "output.png", gamma=2.2)
    """
    save_png_from_array(buffer.to_numpy(), filepath, gamma=gamma)
