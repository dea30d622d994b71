"""Pydantic schemas for API responses.

Catalog payloads are RAWG's own JSON passed through with extra fields, so
only the gateway's own envelopes are modelled here.
"""

from catalog_gateway.schemas.common import ErrorDetail, ErrorResponse, HealthResponse

__all__ = ["ErrorDetail", "ErrorResponse", "HealthResponse"]
