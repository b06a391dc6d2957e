from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from models import ApplicationStatus, ExperienceLevel, JobType, UserRole


class CamelModel(BaseModel):
    """Base for everything on the wire: camelCase JSON, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Users & Auth ---


class UserSummary(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole


class User(UserSummary):
    profile_picture: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = []
    experience: Optional[str] = None
    education: Optional[str] = None
    resume_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    is_email_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserProfileUpdate(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    profile_picture: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    experience: Optional[str] = None
    education: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None

    @field_validator("first_name", "last_name", "skills")
    @classmethod
    def not_null(cls, v, info):
        # omitted is fine; an explicit null would hit a NOT NULL column
        if v is None:
            raise ValueError(f"{to_camel(info.field_name)} cannot be null")
        return v


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    # admins are provisioned out of band
    role: Literal["job_seeker", "employer"] = "job_seeker"
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = []

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, v: str) -> str:
        # bcrypt refuses inputs over 72 bytes
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password cannot be longer than 72 bytes")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)


class AuthResponse(CamelModel):
    message: str
    token: str
    user: UserSummary


class UserResponse(CamelModel):
    user: User


# --- Companies ---


class CompanyBase(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    location: Optional[str] = None
    founded_year: Optional[int] = None
    benefits: List[str] = []
    culture: Optional[str] = None


class CompanyCreate(CompanyBase):
    pass


class Company(CompanyBase):
    id: str
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CompanyResponse(CamelModel):
    company: Company


class CompanyListResponse(CamelModel):
    companies: List[Company]


# --- Jobs ---


class JobBase(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    company_id: str
    location: str = Field(min_length=1)
    job_type: JobType
    experience_level: ExperienceLevel
    salary_min: Optional[float] = Field(default=None, ge=0)
    salary_max: Optional[float] = Field(default=None, ge=0)
    currency: str = "PKR"
    skills: List[str] = []
    benefits: List[str] = []
    is_remote: bool = False
    is_active: bool = True
    expires_at: Optional[datetime] = None


class JobCreate(JobBase):
    @model_validator(mode="after")
    def salary_range_ordered(self):
        if (
            self.salary_min is not None
            and self.salary_max is not None
            and self.salary_min > self.salary_max
        ):
            raise ValueError("salaryMin cannot exceed salaryMax")
        return self


class Job(JobBase):
    id: str
    posted_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    company: Optional[Company] = None


class JobFilters(BaseModel):
    """Criteria accepted by ``crud.get_jobs``; falsy values are ignored."""

    search: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    experience_level: Optional[ExperienceLevel] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    limit: int = 20
    offset: int = 0


class JobResponse(CamelModel):
    job: Job


class JobListResponse(CamelModel):
    jobs: List[Job]


class JobStats(CamelModel):
    total_jobs: int
    total_companies: int
    total_candidates: int


# --- Applications ---


class ApplicationCreate(CamelModel):
    job_id: str
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None


class ApplicationStatusUpdate(CamelModel):
    status: ApplicationStatus


class Application(CamelModel):
    id: str
    job_id: str
    user_id: str
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    status: ApplicationStatus
    ai_match_score: Optional[float] = None
    applied_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    job: Optional[Job] = None


class ApplicationResponse(CamelModel):
    application: Application


class ApplicationListResponse(CamelModel):
    applications: List[Application]


# --- Saved jobs ---


class SavedJobCreate(CamelModel):
    job_id: str


class SavedJob(CamelModel):
    id: str
    user_id: str
    job_id: str
    saved_at: Optional[datetime] = None
    job: Optional[Job] = None


class SavedJobResponse(CamelModel):
    saved_job: SavedJob


class SavedJobListResponse(CamelModel):
    saved_jobs: List[SavedJob]


# --- Resume analysis & AI ---


class ResumeAnalyzeRequest(CamelModel):
    resume_text: Optional[str] = None
    target_job_title: Optional[str] = None


class AnalysisData(CamelModel):
    strengths: List[str] = []
    weaknesses: List[str] = []
    missing_keywords: List[str] = []
    format_issues: List[str] = []
    content_quality: float = Field(default=0, ge=0, le=100)
    structure_score: float = Field(default=0, ge=0, le=100)


class ResumeAnalysisResult(CamelModel):
    ats_score: float = Field(ge=0, le=100)
    keyword_optimization: float = Field(ge=0, le=100)
    suggestions: List[str] = []
    analysis_data: AnalysisData


class ResumeAnalysis(CamelModel):
    id: str
    user_id: str
    resume_url: str
    ats_score: Optional[float] = None
    keyword_optimization: Optional[float] = None
    suggestions: List[str] = []
    analysis_data: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None


class ResumeAnalyzeResponse(CamelModel):
    analysis: ResumeAnalysisResult
    id: str


class ResumeAnalysisListResponse(CamelModel):
    analyses: List[ResumeAnalysis]


class ResumeUploadResponse(CamelModel):
    message: str
    resume_url: str
    resume_text: str = ""


class AIJobRequest(CamelModel):
    job_id: str
    resume_text: str = Field(min_length=1)


class JobMatchResult(CamelModel):
    match_score: float = Field(ge=0, le=100)
    reasoning: str
    skills_match: List[str] = []
    skills_gap: List[str] = []
    recommendations: List[str] = []


class JobMatchResponse(CamelModel):
    match: JobMatchResult


class CoverLetterResponse(CamelModel):
    cover_letter: str


# --- LaTeX resumes ---


class EducationEntry(CamelModel):
    institution: str = ""
    location: str = ""
    degree: str = ""
    start_date: str = ""
    end_date: str = ""
    details: List[str] = []


class ExperienceEntry(CamelModel):
    company: str = ""
    location: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str = ""
    achievements: List[str] = []


class LeadershipEntry(CamelModel):
    organization: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str = ""
    achievements: List[str] = []


class LatexResumeData(CamelModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    education: List[EducationEntry] = []
    experience: List[ExperienceEntry] = []
    leadership: List[LeadershipEntry] = []
    certifications: List[str] = []
    skills: List[str] = []


class LatexGenerateRequest(CamelModel):
    resume_data: LatexResumeData


class LatexGenerateResponse(CamelModel):
    latex_content: str


class LatexEnhanceRequest(CamelModel):
    resume_data: LatexResumeData
    target_job_title: Optional[str] = None


class LatexEnhanceResponse(CamelModel):
    enhanced_data: LatexResumeData


class LatexTemplateSave(CamelModel):
    name: str = Field(min_length=1)
    resume_data: LatexResumeData
    latex_content: Optional[str] = None
    is_default: bool = False


class LatexTemplate(CamelModel):
    id: str
    user_id: str
    name: str
    resume_data: LatexResumeData
    latex_content: str
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LatexTemplateResponse(CamelModel):
    template: LatexTemplate


class LatexTemplateListResponse(CamelModel):
    templates: List[LatexTemplate]


class MessageResponse(CamelModel):
    message: str
