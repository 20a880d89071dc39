"""relcore: keep one version consistent across a project and release it."""

__version__ = "0.4.0"
