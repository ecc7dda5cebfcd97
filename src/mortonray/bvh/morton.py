"""Morton (Z-order) coding of points in the unit cube.

Each coordinate is quantized to 42 bits and the three quantized integers are
interleaved bit by bit (x in the most significant position of every triple),
giving a 126-bit key. Sorting primitives by key lays them out along a
space-filling curve, so keys sharing a long binary prefix belong to nearby
points. Keys are plain Python integers; no precision is lost to a fixed-width
integer type.

The mapping is monotonic and locality preserving but not injective: points
closer than one quantization step collide, which the hierarchy builder
tolerates.

Example:
    >>> encode((0.5, 0.5, 0.5)) > encode((0.1, 0.1, 0.1))
    True
"""

from collections.abc import Iterable, Sequence

import numpy as np

# Bits per axis
MORTON_BITS = 42

# Total key width (three interleaved axes)
KEY_BITS = 3 * MORTON_BITS

_AXIS_SCALE = 1 << MORTON_BITS
_AXIS_MASK = _AXIS_SCALE - 1

# Padding of the global range so that no center sits exactly on its boundary
RANGE_PADDING = 1e-10

# (shift, mask) steps spreading 42 bits so that two zero bits separate each
# pair of neighbouring input bits
_EXPAND_STEPS = (
    (64, 0x3FF0000000000000000FFFFFFFF),
    (32, 0x3FF00000000FFFF00000000FFFF),
    (16, 0x30000FF0000FF0000FF0000FF0000FF),
    (8, 0x300F00F00F00F00F00F00F00F00F00F),
    (4, 0x30C30C30C30C30C30C30C30C30C30C3),
    (2, 0x9249249249249249249249249249249),
)


def expand_bits(value: int) -> int:
    """Insert two zero bits between consecutive bits of a 42-bit integer."""
    x = value & _AXIS_MASK
    for shift, mask in _EXPAND_STEPS:
        x = (x | (x << shift)) & mask
    return x


def compact_bits(value: int) -> int:
    """Inverse of :func:`expand_bits`: keep every third bit."""
    shifts = [shift for shift, _ in _EXPAND_STEPS]
    masks = [mask for _, mask in _EXPAND_STEPS]
    x = value & masks[-1]
    for i in range(len(_EXPAND_STEPS) - 1, 0, -1):
        x = (x | (x >> shifts[i])) & masks[i - 1]
    return (x | (x >> shifts[0])) & _AXIS_MASK


def quantize(coordinate: float) -> int:
    """Map a coordinate in [0, 1] to an integer in [0, 2^42 - 1], clamping."""
    scaled = min(max(coordinate * _AXIS_SCALE, 0.0), float(_AXIS_MASK))
    return int(scaled)


def encode(point: Sequence[float]) -> int:
    """Compute the Morton key of a point in the normalized unit cube.

    Args:
        point: (x, y, z), each expected in [0, 1]. Values outside are clamped.

    Returns:
        The 126-bit interleaved key.
    """
    x, y, z = (quantize(float(c)) for c in point)
    return (expand_bits(x) << 2) | (expand_bits(y) << 1) | expand_bits(z)


def decode(key: int) -> tuple[float, float, float]:
    """Approximate inverse of :func:`encode`.

    Returns the lower corner of the quantization cell the key designates.
    """
    x = compact_bits(key >> 2)
    y = compact_bits(key >> 1)
    z = compact_bits(key)
    return (x / _AXIS_SCALE, y / _AXIS_SCALE, z / _AXIS_SCALE)


def normalization_range(centers: np.ndarray) -> tuple[float, float]:
    """Single scalar range covering every coordinate of every center.

    The same range is used for all three axes, so the normalization is a
    uniform scale, not a per-axis one.
    """
    lo = float(np.min(centers)) - RANGE_PADDING
    hi = float(np.max(centers)) + RANGE_PADDING
    return lo, hi


def morton_keys(centers: Iterable[Sequence[float]]) -> list[int]:
    """Compute Morton keys for a collection of box centers.

    Args:
        centers: The centers, one (x, y, z) per primitive.

    Returns:
        One key per center, in input order.
    """
    array = np.asarray(list(centers), dtype=np.float64).reshape(-1, 3)
    if len(array) == 0:
        return []
    lo, hi = normalization_range(array)
    normalized = (array - lo) / (hi - lo)
    return [encode(row) for row in normalized.tolist()]


def common_prefix_length(a: int, b: int) -> int:
    """Number of leading bits two keys share, counted on a 128-bit word."""
    return 128 - (a ^ b).bit_length()
