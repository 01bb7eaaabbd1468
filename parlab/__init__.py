"""RGBA image filters and pipelines, a sinoscope renderer and lab variant checks."""

__version__ = "0.1.0"