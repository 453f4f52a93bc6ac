from .base import SandboxProvider
from .e2b import E2BProvider

__all__ = ["E2BProvider", "SandboxProvider"]
