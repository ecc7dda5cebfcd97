"""Camera module for generating primary rays.

Components:
    thin_lens: Host camera models (thin lens, orthographic) and their
        viewport geometry
    device: Camera state on the device and the ``get_ray`` Taichi function
"""

from .device import DeviceCamera
from .thin_lens import CameraFrame, OrthographicCamera, ThinLensCamera

Camera = ThinLensCamera | OrthographicCamera

__all__ = [
    "Camera",
    "CameraFrame",
    "DeviceCamera",
    "OrthographicCamera",
    "ThinLensCamera",
]
