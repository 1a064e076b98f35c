"""Continuous GPS path tracking — fix gating, stationary detection, path segmentation."""

__version__ = "0.1.0"
