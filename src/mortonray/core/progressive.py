"""Progressive renderer for batched sample accumulation.

This module wraps a :class:`~mortonray.core.sampler.ParallelSampler` with:
- Batch rendering (several samples per pixel per kernel launch)
- Progress callbacks for UI updates
- A generator interface yielding after every batch

Because every sample's random stream is derived from its indices, the batch
size changes only how often progress is reported, never the image.

Example:
    >>> from mortonray.core.progressive import ProgressiveRenderer
    >>> renderer = ProgressiveRenderer(sampler)
    >>> renderer.render(100, batch_size=10)  # Render 100 SPP
    >>> pixels = renderer.get_image_uint8()
"""

import logging
from collections.abc import Callable, Generator
from os import PathLike

import numpy as np
import numpy.typing as npt

from mortonray.preview.export import save_image

from .sampler import ParallelSampler

log = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    Attributes:
        sampler: The sampler owning the sum buffer.
    """

    def __init__(self, sampler: ParallelSampler) -> None:
        self.sampler = sampler

    @property
    def width(self) -> int:
        return self.sampler.width

    @property
    def height(self) -> int:
        return self.sampler.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return self.sampler.sample_count

    def reset(self) -> None:
        """Clear the accumulated samples."""
        self.sampler.reset()

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples
        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self.sampler.render(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the averaged, gamma-corrected image as 8-bit RGB (H, W, 3)."""
        return self.sampler.image_bytes()

    def save_image(self, filepath: str | PathLike) -> None:
        """Save the rendered image to a file."""
        save_image(self.get_image_uint8(), filepath)
        log.info(f"Saved {self.width}x{self.height} image to {filepath}")

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
