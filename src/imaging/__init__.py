"""Imaging package - output raster assembly and encoding."""

from imaging.raster import OutputRaster

__all__ = [
    'OutputRaster',
]
