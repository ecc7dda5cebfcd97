"""Color values as written in scene documents.

Accepted forms:
    - ``[r, g, b]`` floats
    - ``"#15A2FF"`` or ``"0x15A2FF"`` hex strings, or a plain integer
      (``0x15A2FF``), read as 8-bit red, green and blue
    - one of the names below, case-insensitive
"""

from collections.abc import Sequence

from mortonray.core.errors import SceneFormatError

Color = tuple[float, float, float]

NAMED_COLORS: dict[str, Color] = {
    "red": (1.0, 0.0, 0.0),
    "yellow": (1.0, 1.0, 0.0),
    "green": (0.0, 1.0, 0.0),
    "cyan": (0.0, 1.0, 1.0),
    "blue": (0.0, 0.0, 1.0),
    "magenta": (1.0, 0.0, 1.0),
    "black": (0.0, 0.0, 0.0),
    "white": (1.0, 1.0, 1.0),
}


def hex_to_color(value: int) -> Color:
    """Split a 24-bit integer into red, green and blue in [0, 1]."""
    blue = (value % 256) / 255.0
    value //= 256
    green = (value % 256) / 255.0
    value //= 256
    red = (value % 256) / 255.0
    return (red, green, blue)


def parse_color(value: str | int | Sequence[float]) -> Color:
    """Read a color in any accepted form.

    Raises:
        SceneFormatError: If the value is not a recognized color.
    """
    if isinstance(value, bool):
        raise SceneFormatError(f"Not a color: {value!r}")
    if isinstance(value, int):
        return hex_to_color(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in NAMED_COLORS:
            return NAMED_COLORS[text]
        for prefix in ("#", "0x"):
            if text.startswith(prefix):
                try:
                    return hex_to_color(int(text[len(prefix) :], 16))
                except ValueError as e:
                    raise SceneFormatError(f"Invalid hex color: {value!r}") from e
        raise SceneFormatError(f"Unknown color name: {value!r}")
    if isinstance(value, Sequence) and len(value) == 3:
        try:
            r, g, b = (float(c) for c in value)
        except (TypeError, ValueError) as e:
            raise SceneFormatError(f"Invalid color components: {value!r}") from e
        return (r, g, b)
    raise SceneFormatError(f"Not a color: {value!r}")
