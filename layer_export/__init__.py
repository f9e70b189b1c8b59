"""Top-level package for the layer export engine."""

from .config import ExportConfig
from .core import ExportArtifact, ExportRequest, ViewportOverride
from .pipelines.export_pipeline import ExportPipeline

__all__ = ["ExportConfig", "ExportArtifact", "ExportRequest", "ViewportOverride", "ExportPipeline"]
