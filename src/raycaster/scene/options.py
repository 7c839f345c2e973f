"""Render options for a scene.

SceneOptions collects everything about a render that is not geometry:
output size, camera placement and orientation, lens parameters and sampling
settings. It is immutable; derive variants with with_changes().

Example:
    >>> options = SceneOptions(width=320, height=240, aa_multiplier=2)
    >>> blurry = options.with_changes(aperture_radius=0.05, focal_length=4.0)
"""

import dataclasses
from dataclasses import dataclass

from raycaster.core.sampling import DEFAULT_SEED

# Largest output dimension the render target is preallocated for
MAX_IMAGE_SIZE = 2048

# Accepted shadow policy names (see raycaster.scene.intersection.ShadowTest)
SHADOW_TESTS = ("z_axis", "distance")


@dataclass(frozen=True)
class SceneOptions:
    """Configuration for rendering a scene.

    Attributes:
        width: Output width in pixels.
        height: Output height in pixels.
        camera_position: Camera origin in world space.
        camera_axis: Rotation axis of the camera orientation. With angle 0
            the camera looks along +Z with +Y up, whatever the axis.
        camera_angle: Rotation about camera_axis in degrees.
        aperture_radius: Lens radius for depth of field (>= 0).
        focal_length: Distance to the focal plane (>= 0). Depth of field is
            enabled when aperture_radius > 0 or focal_length != 1.0.
        aa_multiplier: Side length of the sub-pixel grid; each pixel is
            sampled aa_multiplier^2 times.
        dof_samples: Lens samples per sub-pixel when depth of field is on.
        seed: Seed of the per-pixel random streams.
        aa_jitter: Jitter sub-pixel samples inside their grid cell instead of
            using the cell center.
        shadow_test: Occlusion policy, "z_axis" or "distance".
    """

    width: int = 400
    height: int = 400
    camera_position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    camera_axis: tuple[float, float, float] = (0.0, 0.0, 1.0)
    camera_angle: float = 0.0
    aperture_radius: float = 0.0
    focal_length: float = 1.0
    aa_multiplier: int = 1
    dof_samples: int = 50
    seed: int = DEFAULT_SEED
    aa_jitter: bool = False
    shadow_test: str = "z_axis"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_SIZE or self.height > MAX_IMAGE_SIZE:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_SIZE}x{MAX_IMAGE_SIZE})"
            )
        if self.aa_multiplier < 1:
            raise ValueError(f"aa_multiplier must be >= 1, got {self.aa_multiplier}")
        if self.dof_samples < 1:
            raise ValueError(f"dof_samples must be >= 1, got {self.dof_samples}")
        if self.aperture_radius < 0.0:
            raise ValueError(f"aperture_radius must be >= 0, got {self.aperture_radius}")
        if self.focal_length < 0.0:
            raise ValueError(f"focal_length must be >= 0, got {self.focal_length}")
        if self.shadow_test not in SHADOW_TESTS:
            raise ValueError(
                f"Unknown shadow test {self.shadow_test!r}; expected one of {list(SHADOW_TESTS)}"
            )
        for name in ("camera_position", "camera_axis"):
            value = getattr(self, name)
            if len(value) != 3:
                raise ValueError(f"{name} must have 3 components, got {value!r}")
            object.__setattr__(self, name, tuple(float(c) for c in value))
        if not any(self.camera_axis):
            raise ValueError("camera_axis must be a non-zero vector")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @property
    def depth_of_field(self) -> bool:
        """Whether the lens sampling path is used."""
        return self.aperture_radius > 0.0 or self.focal_length != 1.0

    def with_changes(self, **changes) -> "SceneOptions":
        """Return a copy with the given fields replaced (validated again)."""
        return dataclasses.replace(self, **changes)
