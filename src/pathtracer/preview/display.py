"""Tone mapping and Matplotlib preview for rendered images.

The display pipeline turns averaged linear radiance into 8-bit RGB:

1. ACES filmic tone mapping (Narkowicz fit), clipped to [0, 1]
2. Gamma encoding with exponent 1 / 2.2
3. Quantization: floor(clip(v, 0, 0.999) * 256)

Example:
    >>> from pathtracer.preview.display import image_to_uint8, show_preview
    >>> rgb8 = image_to_uint8(camera.linear_image())
    >>> show_preview(camera)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from pathtracer.camera.camera import Camera


# Type alias for tone mapping options
ToneMapMethod = Literal["aces", "none"]

# Coefficients of the Narkowicz ACES filmic fit
_ACES_A = 2.51
_ACES_B = 0.03
_ACES_C = 2.43
_ACES_D = 0.59
_ACES_E = 0.14


def tone_map_aces(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Apply the ACES filmic curve x(ax + b) / (x(cx + d) + e).

    Args:
        image: Linear HDR image array of shape (H, W, 3).

    Returns:
        Tone mapped image clipped to [0, 1].
    """
    x = np.maximum(image, 0.0)
    result = (x * (_ACES_A * x + _ACES_B)) / (x * (_ACES_C * x + _ACES_D) + _ACES_E)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode linear values in [0, 1] with exponent 1 / gamma.

    Args:
        image: Linear image array of shape (H, W, 3) in [0, 1] range.
        gamma: Gamma value (default 2.2).

    Returns:
        Gamma encoded image.
    """
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def quantize_to_uint8(image: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Quantize [0, 1] values to bytes as floor(clip(v, 0, 0.999) * 256)."""
    return np.floor(np.clip(image, 0.0, 0.999) * 256.0).astype(np.uint8)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "aces",
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Tone map and gamma encode a linear image.

    Args:
        image: Linear HDR image array of shape (H, W, 3).
        tone_map: "aces" for the filmic curve, "none" to clip only.
        gamma: Gamma correction value (default 2.2).

    Returns:
        Processed image in [0, 1] range.

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    if tone_map == "aces":
        result = tone_map_aces(image)
    elif tone_map == "none":
        result = np.clip(image, 0.0, 1.0).astype(np.float32)
    else:
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "aces",
    gamma: float = 2.2,
) -> npt.NDArray[np.uint8]:
    """Convert a linear image to 8-bit RGB with the full display pipeline.

    Returns:
        Array of shape (H, W, 3) with dtype uint8.
    """
    return quantize_to_uint8(process_image_for_display(image, tone_map=tone_map, gamma=gamma))


def show_preview(
    camera: Camera,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display the camera's current image as a Matplotlib figure.

    Args:
        camera: The Camera whose accumulated image is shown.
        title: Custom title (default shows the sample count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(camera.image())
    ax.axis("off")
    ax.set_title(title if title is not None else f"Render Preview - {camera.sample_count} SPP")

    plt.tight_layout()
    plt.show(block=block)
