__all__ = [
    "blocks",
    "config",
    "constants",
    "core",
    "model",
    "platforms",
    "resources",
]


from . import (
    blocks,
    config,
    constants,
    core,
    model,
    platforms,
    resources,
)
