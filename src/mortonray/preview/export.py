"""Image export utilities for rendered images.

Per-pixel color sums are averaged, gamma corrected with gamma 2 (a square
root) and quantized to 8 bits by truncation, saturating at 0 and 255.

Supported formats:
    - PNG (8-bit RGB via Pillow), or anything else Pillow infers from the
      file extension

Example:
    >>> from mortonray.preview.export import save_image, to_bytes
    >>> pixels = to_bytes(sampler.sums(), sampler.sample_count)
    >>> save_image(pixels, "output.png")
"""

from os import PathLike

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# One step below 256 so that a full-intensity channel maps to 255
MAX_PIXEL = 256.0 - float(np.finfo(np.float32).eps)


def to_bytes(sums: npt.NDArray[np.floating], samples: int) -> npt.NDArray[np.uint8]:
    """Convert accumulated color sums to 8-bit RGB.

    Args:
        sums: Array of shape (H, W, 3) holding the sum of each pixel's samples.
        samples: Number of samples summed per pixel.

    Returns:
        Array of shape (H, W, 3), dtype uint8.

    Raises:
        ValueError: If samples is not positive or sums is not (H, W, 3).
    """
    if samples <= 0:
        raise ValueError(f"Sample count must be positive, got {samples}")
    sums = np.asarray(sums, dtype=np.float64)
    if sums.ndim != 3 or sums.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) array, got shape {sums.shape}")

    mean = np.nan_to_num(sums / samples, nan=0.0, posinf=0.0, neginf=0.0)
    scaled = np.sqrt(np.maximum(mean, 0.0)) * MAX_PIXEL
    return np.clip(np.floor(scaled), 0, 255).astype(np.uint8)


def save_image(pixels: npt.NDArray[np.uint8], filepath: str | PathLike) -> None:
    """Save an 8-bit RGB array (row 0 at the top) to a file.

    Args:
        pixels: Array of shape (H, W, 3), dtype uint8.
        filepath: Output path; the format follows the extension.
    """
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    pil_image.save(filepath)


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
