"""Export pipelines."""

from .export_pipeline import ExportPipeline

__all__ = ["ExportPipeline"]
