"""Feature settings __init__ - exports all feature settings."""

from infrastructure.configuration.features.pipeline import PipelineFeatureSettings

__all__ = [
    "PipelineFeatureSettings",
]
