"""
Common Pydantic schemas shared across the application.

Contains health check, error, and generic success schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Health Check Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """
    Health check response schema.

    Used by monitoring systems to verify service health.
    """

    status: str = Field(
        ...,
        description="Overall health status (healthy, degraded, unhealthy)"
    )
    version: str = Field(
        ...,
        description="Application version"
    )
    timestamp: datetime = Field(
        ...,
        description="Current server timestamp"
    )
    database: str = Field(
        ...,
        description="Database connection status"
    )
    cache: str = Field(
        ...,
        description="Redis cache status"
    )
    environment: str = Field(
        ...,
        description="Runtime environment (development, production)"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "timestamp": "2024-01-15T10:30:00Z",
                "database": "connected",
                "cache": "connected",
                "environment": "development"
            }
        }
    }


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorResponse(BaseModel):
    """
    Standard error response schema.

    Never includes patient contact details.
    """

    success: bool = Field(
        default=False,
        description="Always false for errors"
    )
    error: str = Field(
        ...,
        description="Error type or message"
    )
    message: Optional[str] = Field(
        default=None,
        description="Human-readable error message"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "error": "validation_error",
                "message": "Missing required field: phone",
            }
        }
    }


# =============================================================================
# Success Response Schema
# =============================================================================

class SuccessResponse(BaseModel):
    """
    Generic success response for operations without specific return data.
    """

    success: bool = Field(
        default=True,
        description="Operation success status"
    )
    message: str = Field(
        ...,
        description="Success message"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "Operation completed successfully"
            }
        }
    }
