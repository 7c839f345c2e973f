"""Preview module for rendered output.

Components:
    export: PNG export utilities (Pillow)

Example:
    >>> from raycaster.preview import save_png
    >>> save_png(buffer, "output.png")
"""

from raycaster.preview.export import (
    image_to_uint8,
    save_png,
    save_png_from_array,
)

__all__ = [
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
]
