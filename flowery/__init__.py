"""Assemble icon images into a sprite sheet and a matching stylesheet."""

from flowery.errors import FloweryError

__version__ = "0.3.0"

__all__ = ["FloweryError", "__version__"]
