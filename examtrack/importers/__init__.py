"""Importers for examtrack data files."""

from examtrack.importers.json_importer import JsonImporter, detect_shape, merge_import

__all__ = ["JsonImporter", "detect_shape", "merge_import"]
