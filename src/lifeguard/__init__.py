"""LifeGuard: multimodal emergency scene analysis core."""

__version__ = "0.1.0"
