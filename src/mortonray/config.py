"""Render settings that do not belong in a scene document."""

from dataclasses import dataclass

import taichi as ti

# Backends that support the f64 node boxes
ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
}


@dataclass
class RenderSettings:
    """Options chosen at render time.

    Attributes:
        seed: Seed of every per-sample random stream. The same seed always
            produces the same image.
        batch_size: Samples per pixel rendered between progress updates.
        arch: Taichi backend name, one of ``ARCHES``.
        threads: Worker threads of the CPU backend. None uses every core.
    """

    seed: int = 0
    batch_size: int = 10
    arch: str = "cpu"
    threads: int | None = None

    def __post_init__(self) -> None:
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.arch not in ARCHES:
            raise ValueError(f"Unknown arch {self.arch!r}, expected one of {sorted(ARCHES)}")
        if self.threads is not None and self.threads < 1:
            raise ValueError(f"threads must be positive, got {self.threads}")


def init_taichi(settings: RenderSettings | None = None) -> None:
    """Initialize Taichi for the configured backend.

    Must run before any scene is assembled: device fields are allocated when
    hierarchies, material tables and cameras are created. Fast math stays off
    so that sums do not depend on how a frame is split into kernel launches.
    """
    settings = settings or RenderSettings()
    options = {}
    if settings.threads is not None:
        options["cpu_max_num_threads"] = settings.threads
    ti.init(arch=ARCHES[settings.arch], default_fp=ti.f32, fast_math=False, **options)
