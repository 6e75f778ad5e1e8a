"""
Schemas module - Request schemas for API endpoints.

Schemas are the API contract (what the client sends). Stored documents
are plain dicts; see internhub.services.mongo_service for serialization.
"""

from internhub.schemas.schemas import ApiModel, normalize_list

__all__ = ["ApiModel", "normalize_list"]
