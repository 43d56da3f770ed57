"""Houston: git-backed ticket tracking workspace engine."""

__version__ = "0.1.0"
