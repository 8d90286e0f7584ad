"""
Dialogue export module
"""

from .exporter import EXPORT_FORMATS, DialogueExporter

__all__ = ["DialogueExporter", "EXPORT_FORMATS"]
