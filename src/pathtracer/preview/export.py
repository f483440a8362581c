"""PNG export for rendered images.

The camera's final RGB8 buffer is written with Pillow. Arrays of linear
radiance can also be exported directly; they go through the same tone
mapping pipeline as Camera.image().

Example:
    >>> from pathtracer.preview.export import save_png
    >>> camera.render()
    >>> save_png(camera, "output.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.preview.display import ToneMapMethod, image_to_uint8

if TYPE_CHECKING:
    from pathlib import Path

    from pathtracer.camera.camera import Camera


def save_png(camera: Camera, filepath: str | Path) -> None:
    """Save the camera's tone-mapped image as an 8-bit PNG.

    Args:
        camera: The Camera to save.
        filepath: Output file path (should end in .png).
    """
    PILImage.fromarray(camera.image()).save(filepath)


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "aces",
    gamma: float = 2.2,
) -> None:
    """Save a linear HDR array of shape (H, W, 3) as an 8-bit PNG.

    Args:
        image: Linear radiance image, row 0 at the top.
        filepath: Output file path (should end in .png).
        tone_map: Tone mapping method ("aces" or "none").
        gamma: Gamma correction value (default 2.2).
    """
    image_uint8 = image_to_uint8(image, tone_map=tone_map, gamma=gamma)
    PILImage.fromarray(image_uint8).save(filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
