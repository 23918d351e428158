"""
PNR lookup schemas.
"""

from pydantic import Field
from typing import Any, Optional
from backend.app.schemas.common import CamelModel


class PnrLookupRequest(CamelModel):
    """
    Schema for a PNR lookup.

    Used by POST /pnr/lookup endpoint. The PNR is validated by the
    endpoint so malformed values surface as INVALID_PNR.
    """
    pnr: Optional[Any] = Field(default=None, description="10-character PNR")
