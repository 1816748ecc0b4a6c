"""Asclepius: image classification service for cancer screening."""

__version__ = "1.0.0"
