"""Outdoor navigation: UTM localization from GPS, VFF control and map building from point clouds."""

__version__ = "0.1.0"