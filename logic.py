import math
from typing import Any, Optional

import openai
import structlog
from pydantic import ValidationError

import schemas
from llm_interaction import (
    LLMError,
    call_llm_for_cover_letter,
    call_llm_for_job_match,
    call_llm_for_resume_analysis,
    call_llm_for_resume_enhancement,
)

# Set up logging
logger = structlog.get_logger(__name__)

DEFAULT_MATCH_REASONING = "Unable to determine match score"
DEFAULT_COVER_LETTER = "Unable to generate cover letter at this time."

# Failures worth reporting as "try again" rather than a bug
_UPSTREAM_ERRORS = (openai.OpenAIError, LLMError)


class AIServiceError(Exception):
    """An AI-backed operation failed; ``str(exc)`` is safe to show to users."""


def clamp_score(value: Any) -> float:
    """Coerce an LLM-provided score into [0, 100]; anything unusable becomes 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return 0.0
    if not isinstance(value, (int, float)) or math.isnan(value):
        return 0.0
    return float(max(0.0, min(100.0, value)))


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


def normalize_resume_analysis(raw: dict[str, Any]) -> schemas.ResumeAnalysisResult:
    details = raw.get("analysisData")
    if not isinstance(details, dict):
        details = {}
    return schemas.ResumeAnalysisResult(
        ats_score=clamp_score(raw.get("atsScore")),
        keyword_optimization=clamp_score(raw.get("keywordOptimization")),
        suggestions=_string_list(raw.get("suggestions")),
        analysis_data=schemas.AnalysisData(
            strengths=_string_list(details.get("strengths")),
            weaknesses=_string_list(details.get("weaknesses")),
            missing_keywords=_string_list(details.get("missingKeywords")),
            format_issues=_string_list(details.get("formatIssues")),
            content_quality=clamp_score(details.get("contentQuality")),
            structure_score=clamp_score(details.get("structureScore")),
        ),
    )


def normalize_job_match(raw: dict[str, Any]) -> schemas.JobMatchResult:
    reasoning = raw.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        reasoning = DEFAULT_MATCH_REASONING
    return schemas.JobMatchResult(
        match_score=clamp_score(raw.get("matchScore")),
        reasoning=reasoning,
        skills_match=_string_list(raw.get("skillsMatch")),
        skills_gap=_string_list(raw.get("skillsGap")),
        recommendations=_string_list(raw.get("recommendations")),
    )


def merge_enhanced_resume(
    original: schemas.LatexResumeData, raw: dict[str, Any]
) -> schemas.LatexResumeData:
    """Take each top-level field from ``raw`` only if it validates; else keep the original."""
    merged = original.model_dump(by_alias=True)
    for key in list(merged):
        if key not in raw:
            continue
        try:
            schemas.LatexResumeData.model_validate({**merged, key: raw[key]})
        except ValidationError:
            logger.info("Discarding malformed enhanced field", field=key)
            continue
        merged[key] = raw[key]
    return schemas.LatexResumeData.model_validate(merged)


# --- AI operations used by the routes ---


async def analyze_resume(
    resume_text: str, target_job_title: Optional[str] = None
) -> schemas.ResumeAnalysisResult:
    try:
        raw = await call_llm_for_resume_analysis(resume_text, target_job_title)
    except _UPSTREAM_ERRORS as exc:
        logger.error("Resume analysis failed", error=str(exc))
        raise AIServiceError("Failed to analyze resume. Please try again later.") from exc

    result = normalize_resume_analysis(raw)
    logger.info(
        "Resume analyzed",
        ats_score=result.ats_score,
        keyword_optimization=result.keyword_optimization,
    )
    return result


async def calculate_job_match(
    resume_text: str, job_description: str, job_title: str
) -> schemas.JobMatchResult:
    try:
        raw = await call_llm_for_job_match(resume_text, job_description, job_title)
    except _UPSTREAM_ERRORS as exc:
        logger.error("Job match calculation failed", error=str(exc))
        raise AIServiceError("Failed to calculate job match. Please try again later.") from exc
    return normalize_job_match(raw)


async def generate_cover_letter(
    resume_text: str, job_description: str, job_title: str, company_name: str
) -> str:
    try:
        letter = await call_llm_for_cover_letter(
            resume_text, job_description, job_title, company_name
        )
    except _UPSTREAM_ERRORS as exc:
        logger.error("Cover letter generation failed", error=str(exc))
        raise AIServiceError(
            "Failed to generate cover letter. Please try again later."
        ) from exc
    return letter.strip() or DEFAULT_COVER_LETTER


async def enhance_resume_data(
    resume_data: schemas.LatexResumeData, target_job_title: Optional[str] = None
) -> schemas.LatexResumeData:
    try:
        raw = await call_llm_for_resume_enhancement(
            resume_data.model_dump(by_alias=True), target_job_title
        )
    except _UPSTREAM_ERRORS as exc:
        logger.error("Resume enhancement failed", error=str(exc))
        raise AIServiceError("Failed to enhance resume. Please try again later.") from exc
    return merge_enhanced_resume(resume_data, raw)
