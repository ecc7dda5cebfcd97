"""Parallel (pixel, sample) rendering into a per-pixel sum buffer.

Every pixel's samples are traced by one Taichi task, in sample order, and
added into that pixel's entry of the sum buffer. Each sample draws from its
own random stream, seeded from ``(seed, pixel index, sample index)``, and the
sub-pixel jitter and lens samples come from a fixed hash of the pixel and
sample indices. A sample's value therefore depends only on the seed and its
indices, never on scheduling, and the additions into a pixel always happen in
the same order. Rendering the frame in one call, in bands of rows or in
batches of samples produces identical sums.

Pixel indexing:
    p = row * width + column, rows counted top-down. The camera's vertical
    image coordinate uses j = height - 1 - row, so row 0 is the top.

Example:
    >>> sampler = ParallelSampler(hierarchy, materials, camera, 320, 180, 20, (1, 1, 1), seed=7)
    >>> sampler.render(16)
    >>> pixels = sampler.image_bytes()
"""

import logging
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from mortonray.preview.export import to_bytes

from .integrator import trace
from .rng import jitter_hash, seed_stream

log = logging.getLogger(__name__)

vec3 = tm.vec3


@ti.data_oriented
class ParallelSampler:
    """Renders a scene into a per-pixel color sum.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of scatter events per path.
        background: Background color.
        seed: Global seed of every random stream.
        sum_buffer: Taichi field of shape (height, width), row 0 at the top.
    """

    def __init__(
        self,
        hierarchy,
        materials,
        camera,
        width: int,
        height: int,
        max_depth: int,
        background: Sequence[float],
        seed: int = 0,
    ) -> None:
        """Allocate the sum buffer.

        Args:
            hierarchy: The scene's Hierarchy.
            materials: The scene's MaterialTable.
            camera: The scene's DeviceCamera.
            width: Image width in pixels.
            height: Image height in pixels.
            max_depth: Maximum number of scatter events per path.
            background: Background color.
            seed: Global seed.

        Raises:
            ValueError: If a dimension or max_depth is below 1.
        """
        if width < 1 or height < 1:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")

        self.hierarchy = hierarchy
        self.materials = materials
        self.camera = camera
        self.width = width
        self.height = height
        self.max_depth = max_depth
        self.background = tuple(float(c) for c in background)
        self.seed = seed & 0xFFFFFFFF

        self.sum_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(height, width))
        self._sample_count = 0

    @property
    def sample_count(self) -> int:
        """Samples per pixel accumulated by full-frame renders."""
        return self._sample_count

    def reset(self) -> None:
        """Clear the sum buffer."""
        self.sum_buffer.fill(0.0)
        self._sample_count = 0

    @ti.kernel
    def _render_band(
        self,
        row_start: ti.i32,
        row_end: ti.i32,
        sample_start: ti.i32,
        sample_count: ti.i32,
        seed: ti.u32,
        max_depth: ti.i32,
        background: vec3,
    ):
        width = self.width
        height = self.height
        # Coordinates span [0, 1] across pixel centers; guard 1-pixel images
        s_scale = 1.0 / ti.cast(ti.max(width - 1, 1), ti.f32)
        t_scale = 1.0 / ti.cast(ti.max(height - 1, 1), ti.f32)

        for row, column in ti.ndrange((row_start, row_end), width):
            pixel = ti.cast(row * width + column, ti.u32)
            i = ti.cast(column, ti.u32)
            j = ti.cast(height - 1 - row, ti.u32)
            total = self.sum_buffer[row, column]

            for n in range(sample_count):
                k = ti.cast(sample_start + n, ti.u32)
                s = (ti.cast(i, ti.f32) + jitter_hash(i, j, k)) * s_scale
                t = (ti.cast(j, ti.f32) + jitter_hash(i, k, j)) * t_scale
                lens_r = jitter_hash(j, i, k)
                lens_theta = tm.pi * 2.0 * jitter_hash(j, k, i)

                state = seed_stream(seed, pixel, k)
                ray = self.camera.get_ray(s, t, lens_r, lens_theta)
                color, state = trace(
                    ray.origin,
                    ray.direction,
                    self.hierarchy,
                    self.materials,
                    max_depth,
                    background,
                    state,
                )

                # Drop non-finite samples
                for c in ti.static(range(3)):
                    if tm.isnan(color[c]) or tm.isinf(color[c]):
                        color[c] = 0.0
                total += color

            self.sum_buffer[row, column] = total

    def render_rows(
        self, row_start: int, row_end: int, sample_start: int, sample_count: int
    ) -> None:
        """Add samples [sample_start, sample_start + sample_count) for rows [row_start, row_end).

        Any band of rows and any range of sample indices may be rendered, in
        any order; the resulting sums do not depend on the partition as long
        as each pixel's sample ranges are rendered in ascending order.

        Raises:
            ValueError: If the row range lies outside the image or a count is
                negative.
        """
        if not 0 <= row_start <= row_end <= self.height:
            raise ValueError(f"Invalid row range [{row_start}, {row_end}) for height {self.height}")
        if sample_start < 0 or sample_count < 0:
            raise ValueError("Sample indices must be non-negative")
        if row_start == row_end or sample_count == 0:
            return
        self._render_band(
            row_start,
            row_end,
            sample_start,
            sample_count,
            self.seed,
            self.max_depth,
            vec3(*self.background),
        )

    def render(self, num_samples: int = 1) -> None:
        """Add the next num_samples samples to every pixel."""
        if num_samples <= 0:
            return
        self.render_rows(0, self.height, self._sample_count, num_samples)
        self._sample_count += num_samples
        log.debug(f"Accumulated {self._sample_count} samples per pixel")

    def sums(self) -> npt.NDArray[np.float32]:
        """The raw sum buffer as a (height, width, 3) array, row 0 at the top."""
        return self.sum_buffer.to_numpy()

    def image_bytes(self, samples: int | None = None) -> npt.NDArray[np.uint8]:
        """Convert the sums to 8-bit gamma-2 RGB.

        Args:
            samples: Divisor. Defaults to the accumulated sample count.
        """
        return to_bytes(self.sums(), self._sample_count if samples is None else samples)

    def __repr__(self) -> str:
        return (
            f"ParallelSampler(width={self.width}, height={self.height}, "
            f"samples={self._sample_count}, seed={self.seed})"
        )
