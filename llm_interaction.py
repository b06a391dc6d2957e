import json
from functools import lru_cache
from typing import Any, Optional

import structlog
from openai import AsyncOpenAI

from settings import get_settings

logger = structlog.get_logger(__name__)


class LLMError(Exception):
    """The completion could not be obtained or did not have the expected shape."""


@lru_cache()
def get_client() -> AsyncOpenAI:
    settings = get_settings()
    if not settings.openai_api_key:
        logger.error("OPENAI_API_KEY not found in environment variables or .env file.")
        raise LLMError("OPENAI_API_KEY is not configured")
    return AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)


# --- Model Configuration ---
# "model" is filled from settings at call time
MODEL_CONFIG = {
    "resume_analysis": {"temperature": 0.2, "max_tokens": 2048},
    "job_match": {"temperature": 0.2, "max_tokens": 2048},
    "cover_letter": {"temperature": 0.7, "max_tokens": 1024},
    "resume_enhance": {"temperature": 0.4, "max_tokens": 4096},
}

RESUME_ANALYSIS_OUTPUT_EXAMPLE = """{
  "atsScore": number (0-100),
  "keywordOptimization": number (0-100),
  "suggestions": ["suggestion1", "suggestion2", ...],
  "analysisData": {
    "strengths": ["strength1", "strength2", ...],
    "weaknesses": ["weakness1", "weakness2", ...],
    "missingKeywords": ["keyword1", "keyword2", ...],
    "formatIssues": ["issue1", "issue2", ...],
    "contentQuality": number (0-100),
    "structureScore": number (0-100)
  }
}"""

JOB_MATCH_OUTPUT_EXAMPLE = """{
  "matchScore": number (0-100),
  "reasoning": "detailed explanation of the match score",
  "skillsMatch": ["skill1", "skill2", ...],
  "skillsGap": ["missing_skill1", "missing_skill2", ...],
  "recommendations": ["recommendation1", "recommendation2", ...]
}"""


async def call_llm(
    system_prompt: str,
    user_prompt: str,
    model_config: dict,
    json_mode: bool = False,
) -> str:
    """Call the chat-completion API once and return the message text."""

    settings = get_settings()
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]
    extra = {"response_format": {"type": "json_object"}} if json_mode else {}

    response = await get_client().chat.completions.create(
        model=settings.openai_model,
        messages=messages,
        **model_config,
        **extra,
    )
    return response.choices[0].message.content or ""


async def call_llm_json(system_prompt: str, user_prompt: str, model_config: dict) -> dict:
    """JSON-mode completion decoded into a dict."""
    content = await call_llm(system_prompt, user_prompt, model_config, json_mode=True)
    try:
        parsed = json.loads(content or "{}")
    except json.JSONDecodeError as exc:
        logger.warning("LLM returned invalid JSON", content_length=len(content))
        raise LLMError("Completion was not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise LLMError("Completion JSON was not an object")
    return parsed


# --- Specific LLM Interaction Functions --- #


async def call_llm_for_resume_analysis(
    resume_text: str, target_job_title: Optional[str] = None
) -> dict[str, Any]:
    """Ask for ATS / keyword scoring of a resume."""

    system_prompt = (
        "You are an expert resume analyzer and career counselor. Provide detailed, "
        "actionable feedback on resumes to help job seekers improve their chances of getting hired."
    )
    target = f"Consider it for a {target_job_title} position." if target_job_title else ""
    user_prompt = f"""Analyze the following resume and provide a comprehensive assessment. {target}

Resume content:
{resume_text}

Please respond with JSON in this exact format:
{RESUME_ANALYSIS_OUTPUT_EXAMPLE}

Provide actionable insights for ATS optimization, keyword usage, and overall resume quality improvement."""

    return await call_llm_json(system_prompt, user_prompt, MODEL_CONFIG["resume_analysis"])


async def call_llm_for_job_match(
    resume_text: str, job_description: str, job_title: str
) -> dict[str, Any]:
    """Ask how well a resume fits a job."""

    system_prompt = (
        "You are an AI recruiter and career counselor. Analyze job-candidate fit "
        "and provide detailed matching insights."
    )
    user_prompt = f"""Calculate how well this resume matches the job description and provide insights.

Job Title: {job_title}

Job Description:
{job_description}

Resume:
{resume_text}

Please respond with JSON in this exact format:
{JOB_MATCH_OUTPUT_EXAMPLE}

Provide actionable insights for improving the match score."""

    return await call_llm_json(system_prompt, user_prompt, MODEL_CONFIG["job_match"])


async def call_llm_for_cover_letter(
    resume_text: str, job_description: str, job_title: str, company_name: str
) -> str:
    system_prompt = (
        "You are a professional career counselor who writes compelling cover letters "
        "that help candidates stand out to employers."
    )
    user_prompt = f"""Generate a professional cover letter based on the candidate's resume and the job description.

Job Title: {job_title}
Company: {company_name}

Job Description:
{job_description}

Candidate's Resume:
{resume_text}

Write a compelling, personalized cover letter that highlights relevant experience and skills. Keep it professional, engaging, and around 250-300 words."""

    return await call_llm(system_prompt, user_prompt, MODEL_CONFIG["cover_letter"])


async def call_llm_for_resume_enhancement(
    resume_data: dict[str, Any], target_job_title: Optional[str] = None
) -> dict[str, Any]:
    """Ask for a rewritten resume in the same JSON shape as the input."""

    system_prompt = """You are a resume writing assistant. You receive a resume as a JSON object and return an improved version of the SAME JSON object.
Rules:
1. Keep exactly the same keys and nesting. Do not add or rename keys.
2. Never invent employers, institutions, dates, degrees or contact details.
3. Rewrite achievement and detail bullets to start with strong action verbs and include quantifiable results where the original implies them.
4. Tighten wording; each bullet should be one line where possible.
5. Order skills by relevance."""
    target = (
        f"Tailor the wording for a {target_job_title} role.\n\n" if target_job_title else ""
    )
    user_prompt = f"{target}Resume JSON:\n{json.dumps(resume_data, indent=2, sort_keys=True)}"

    return await call_llm_json(system_prompt, user_prompt, MODEL_CONFIG["resume_enhance"])
