"""Container runtime adapter — docker or podman."""

from homestack.adapters.containers.runtime import (
    ContainerRuntime,
    ContainerRuntimeAdapter,
    find_images,
    normalize_image_name,
)

__all__ = [
    "ContainerRuntime",
    "ContainerRuntimeAdapter",
    "find_images",
    "normalize_image_name",
]
