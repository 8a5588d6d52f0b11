"""API components - store query surface for external collaborators."""

from hackathon_indexer.api.query import IndexQueryService

__all__ = ["IndexQueryService"]
