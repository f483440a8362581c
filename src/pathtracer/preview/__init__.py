"""Preview module for tone mapping, display and export.

Components:
    display: ACES filmic tone mapping, gamma, quantization and a Matplotlib
        preview window
    export: PNG output through Pillow

Example:
    >>> from pathtracer.preview import save_png, show_preview
    >>> camera.render()
    >>> show_preview(camera)
    >>> save_png(camera, "output.png")
"""

from pathtracer.preview.display import (
    ToneMapMethod,
    apply_gamma,
    image_to_uint8,
    process_image_for_display,
    quantize_to_uint8,
    show_preview,
    tone_map_aces,
)
from pathtracer.preview.export import compute_rmse, save_png, save_png_from_array

__all__ = [
    # Display functions
    "show_preview",
    # Tone mapping
    "ToneMapMethod",
    "tone_map_aces",
    "apply_gamma",
    "quantize_to_uint8",
    "process_image_for_display",
    "image_to_uint8",
    # Export functions
    "save_png",
    "save_png_from_array",
    "compute_rmse",
]
