"""Authenticity scorer: a pure function of the analyzer's output."""

from models.schemas.authenticity import AuthenticityAssessment, ConfidenceLevel
from models.schemas.certificate_analysis import AnalysisResult

# Scores are kept in tenths so 0.6 + 0.1 + 0.1 compares as exactly 0.8
BASE_TENTHS = 6
FIELD_BONUS_TENTHS = 1
MAX_TENTHS = 10

HIGH_CONFIDENCE_ABOVE = 0.8
MEDIUM_CONFIDENCE_ABOVE = 0.5
RECOMMEND_BELOW = 0.8

ADD_DETAILS_RECOMMENDATION = (
    "Consider adding more certificate details to improve authenticity score"
)


def confidence_level(score: float) -> ConfidenceLevel:
    if score > HIGH_CONFIDENCE_ABOVE:
        return "high"
    if score > MEDIUM_CONFIDENCE_ABOVE:
        return "medium"
    return "low"


def validate_authenticity(analysis: AnalysisResult) -> AuthenticityAssessment:
    """Score how many expected fields were read back from the certificate.

    Missing issue dates cost points but are never flagged. Discrepancies
    in `analysis.validation` are informational and do not affect the score.
    """
    info = analysis.extracted_info
    present = [info.title, info.issuer, info.issue_date, info.credential_id]

    tenths = BASE_TENTHS + FIELD_BONUS_TENTHS * sum(1 for value in present if value)
    score = round(min(tenths, MAX_TENTHS) / 10, 1)

    flags = []
    if not info.title:
        flags.append("missing_title")
    if not info.issuer:
        flags.append("missing_issuer")
    if not info.credential_id:
        flags.append("missing_credential_id")

    recommendations = []
    if score < RECOMMEND_BELOW:
        recommendations.append(ADD_DETAILS_RECOMMENDATION)

    return AuthenticityAssessment(
        score=score,
        confidence_level=confidence_level(score),
        flags=flags,
        recommendations=recommendations,
    )


def is_authentic(assessment: AuthenticityAssessment, threshold: float) -> bool:
    """Business gate: submissions scoring below `threshold` are rejected."""
    return assessment.score >= threshold
