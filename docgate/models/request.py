"""
Request models for the docgate API.
"""
# pylint: disable=no-self-argument

from pydantic import BaseModel, Field, field_validator


class URLConversionRequest(BaseModel):
    """JSON body accepted by the URL conversion endpoint."""

    url: str = Field(..., description="http(s) URL of the document to convert")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Reject blank URLs."""
        if not v.strip():
            raise ValueError("url must not be empty")
        return v.strip()
