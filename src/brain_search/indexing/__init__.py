"""Enrichment components for brain-search."""

from .keywords import fallback_keywords, fallback_summary
from .pipeline import EnrichmentPipeline, EnrichmentResult

__all__ = [
    "fallback_keywords",
    "fallback_summary",
    "EnrichmentPipeline",
    "EnrichmentResult",
]
