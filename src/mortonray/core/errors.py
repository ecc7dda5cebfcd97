"""Exception types raised while assembling and indexing a scene.

Numerically degenerate geometry is not an error: planar intersections with a
near-zero determinant simply report no hit.
"""


class RenderError(Exception):
    """Base class for errors that abort a render before it starts."""


class EmptySceneError(RenderError, ValueError):
    """Raised when building a hierarchy from an empty object list."""

    def __init__(self) -> None:
        super().__init__("Could not create BVH from empty scene.")


class UndeclaredMaterialError(RenderError, ValueError):
    """Raised when an object references a material name that was never declared.

    Attributes:
        object_index: Position of the offending object in the scene's object list.
        object_kind: Kind of the offending object ("sphere", "quad", ...).
        material: The undeclared material name.
    """

    def __init__(self, object_index: int, object_kind: str, material: str) -> None:
        self.object_index = object_index
        self.object_kind = object_kind
        self.material = material
        super().__init__(
            f'Could not add {object_kind} with material "{material}": '
            f"undeclared material (object #{object_index})."
        )


class SceneFormatError(RenderError, ValueError):
    """Raised when a scene document is malformed."""
