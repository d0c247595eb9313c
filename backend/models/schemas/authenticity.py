"""Authenticity scorer output."""

from typing import Literal

from pydantic import BaseModel

ConfidenceLevel = Literal["high", "medium", "low"]


class AuthenticityAssessment(BaseModel):
    """Heuristic read-back confidence for a certificate.

    Not a cryptographic proof: the score only says how many of the
    expected fields were found on the document.
    """
    score: float = 0.0  # 0.0-1.0
    confidence_level: ConfidenceLevel = "low"
    flags: list[str] = []
    recommendations: list[str] = []
