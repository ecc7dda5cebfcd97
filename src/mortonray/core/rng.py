"""Per-task random streams for deterministic parallel rendering.

Every (pixel, sample) task owns its random state: a single 32-bit integer that
is seeded from the global render seed plus the task indices and then threaded
explicitly through every function that draws random numbers. Nothing random is
shared between concurrent tasks, so the image depends only on the seed and
never on the order in which Taichi schedules the work.

The state is advanced with the PCG32 linear congruential step and its output
is whitened with the PCG "RXS-M-XS" permutation.

Each device function has a pure Python counterpart (suffix ``_host``) that
computes exactly the same 32-bit values. They are used for host-side queries
and for checking the device code.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from mortonray.core.rng import next_uniform, seed_stream
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_stream(ti.u32(7), ti.u32(0), ti.u32(0))
    ...     value, state = next_uniform(state)
    ...     return value
"""

import taichi as ti

# PCG32 constants
PCG_MULTIPLIER = 747796405
PCG_INCREMENT = 2891336453
PCG_OUTPUT_MULTIPLIER = 277803737

# Pixel jitter multipliers
JITTER_M1 = 1597334677
JITTER_M2 = 3812015801
JITTER_M3 = 2741598923

# Uniform floats use the top 24 bits so that every value is exact in f32
UNIFORM_SCALE = 1.0 / 16777216.0

_MASK_32 = 0xFFFFFFFF


# =============================================================================
# Device Functions
# =============================================================================


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(
        PCG_OUTPUT_MULTIPLIER
    )
    return (word >> ti.u32(22)) ^ word


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """Hash a 32-bit integer with one PCG step followed by its output permutation.

    Args:
        value: The integer to hash.

    Returns:
        A well-mixed 32-bit integer.
    """
    state = value * ti.u32(PCG_MULTIPLIER) + ti.u32(PCG_INCREMENT)
    return _permute(state)


@ti.func
def seed_stream(seed: ti.u32, pixel: ti.u32, sample: ti.u32) -> ti.u32:
    """Derive the initial stream state for one (pixel, sample) task.

    Args:
        seed: The global render seed.
        pixel: Linear pixel index.
        sample: Sample index within the pixel.

    Returns:
        The initial state of the task's random stream.
    """
    return pcg_hash(pcg_hash(pcg_hash(seed) + pixel) + sample)


@ti.func
def next_uniform(state: ti.u32):
    """Advance a stream and draw a uniform float in [0, 1).

    Args:
        state: The current stream state.

    Returns:
        A tuple (value, new_state).
    """
    new_state = state * ti.u32(PCG_MULTIPLIER) + ti.u32(PCG_INCREMENT)
    word = _permute(new_state)
    value = ti.cast(word >> ti.u32(8), ti.f32) * UNIFORM_SCALE
    return value, new_state


@ti.func
def jitter_hash(x: ti.u32, y: ti.u32, z: ti.u32) -> ti.f32:
    """Fixed hash used for sub-pixel jitter and lens samples.

    A pure function of its three integer inputs with wrapping 32-bit
    arithmetic, so jitter positions are reproducible across runs and
    implementations.

    Args:
        x: First integer input.
        y: Second integer input.
        z: Third integer input.

    Returns:
        A float in [0, 1].
    """
    n = (x * ti.u32(JITTER_M1)) ^ (y * ti.u32(JITTER_M2)) ^ (z * ti.u32(JITTER_M3))
    n = n * ti.u32(JITTER_M1)
    return ti.cast(n, ti.f32) / 4294967295.0


# =============================================================================
# Host Mirrors
# =============================================================================


def _permute_host(state: int) -> int:
    shift = (state >> 28) + 4
    word = (((state >> shift) ^ state) * PCG_OUTPUT_MULTIPLIER) & _MASK_32
    return ((word >> 22) ^ word) & _MASK_32


def pcg_hash_host(value: int) -> int:
    """Python counterpart of :func:`pcg_hash`."""
    state = (value * PCG_MULTIPLIER + PCG_INCREMENT) & _MASK_32
    return _permute_host(state)


def seed_stream_host(seed: int, pixel: int, sample: int) -> int:
    """Python counterpart of :func:`seed_stream`."""
    first = pcg_hash_host(seed & _MASK_32)
    second = pcg_hash_host((first + pixel) & _MASK_32)
    return pcg_hash_host((second + sample) & _MASK_32)


def jitter_hash_host(x: int, y: int, z: int) -> float:
    """Python counterpart of :func:`jitter_hash`, in double precision."""
    n = ((x * JITTER_M1) ^ (y * JITTER_M2) ^ (z * JITTER_M3)) & _MASK_32
    n = (n * JITTER_M1) & _MASK_32
    return n / 4294967295.0


class RngStream:
    """A random stream carried across host-side calls.

    Host queries such as ``Hierarchy.hit`` may consume random numbers (fog
    volumes do). The stream object hands its state to the device, and the
    device hands back the advanced state, so successive queries keep drawing
    fresh values.

    Attributes:
        state: The current 32-bit stream state.
    """

    def __init__(self, seed: int = 0, stream: int = 0) -> None:
        """Create a stream.

        Args:
            seed: Global seed.
            stream: Index distinguishing independent streams with one seed.
        """
        self.state = seed_stream_host(seed, stream, 0)

    def uniform(self) -> float:
        """Draw a uniform float in [0, 1), exactly as next_uniform does."""
        self.state = (self.state * PCG_MULTIPLIER + PCG_INCREMENT) & _MASK_32
        return (_permute_host(self.state) >> 8) * UNIFORM_SCALE

    def __repr__(self) -> str:
        return f"RngStream(state={self.state:#010x})"
