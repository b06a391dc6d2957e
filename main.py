import os
from pathlib import Path
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import crud
import documents
import latex
import logic
import models
import schemas
from auth import create_access_token, get_current_user, hash_password, verify_password
from database import create_db_and_tables, get_db
from observability import init_observability
from request_id_middleware import RequestIdMiddleware
from settings import Settings, get_settings

BASE_DIR = Path(__file__).resolve().parent

# Initialise observability before creating app
init_observability()
logger = structlog.get_logger(__name__)

# Create DB tables on startup
create_db_and_tables()

app = FastAPI(
    title="Job Board",
    description="Job board API with AI resume analysis and LaTeX resume building",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestIdMiddleware)

# Uploaded resumes are served back from /uploads
os.makedirs(get_settings().upload_dir, exist_ok=True)
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
app.mount("/uploads", StaticFiles(directory=get_settings().upload_dir), name="uploads")

templates = Jinja2Templates(directory=BASE_DIR / "templates")


# --- Error handlers: every error body is {"message": ...} --- #
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    message = errors[0]["msg"].removeprefix("Value error, ") if errors else "Invalid request"
    logger.info("Request validation failed", errors=errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message, "errors": errors},
    )


@app.exception_handler(logic.AIServiceError)
async def ai_service_exception_handler(request: Request, exc: logic.AIServiceError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": str(exc)}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


# --- Pages --- #
@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def read_root(request: Request, settings: Settings = Depends(get_settings)):
    """Job search page; data is fetched client-side from the JSON API."""
    return templates.TemplateResponse(
        request, "index.html", {"app_base_url": settings.app_base_url}
    )


@app.get("/latex-editor", response_class=HTMLResponse, include_in_schema=False)
async def latex_editor_page(request: Request, settings: Settings = Depends(get_settings)):
    return templates.TemplateResponse(
        request, "latex_editor.html", {"app_base_url": settings.app_base_url}
    )


@app.get("/login", response_class=HTMLResponse, include_in_schema=False)
async def login_page(request: Request, settings: Settings = Depends(get_settings)):
    """Login and registration forms; the issued token is kept in localStorage."""
    return templates.TemplateResponse(
        request, "login.html", {"app_base_url": settings.app_base_url}
    )


@app.get("/profile", response_class=HTMLResponse, include_in_schema=False)
async def profile_page(request: Request, settings: Settings = Depends(get_settings)):
    return templates.TemplateResponse(
        request, "profile.html", {"app_base_url": settings.app_base_url}
    )


@app.get("/companies", response_class=HTMLResponse, include_in_schema=False)
async def companies_page(request: Request, settings: Settings = Depends(get_settings)):
    return templates.TemplateResponse(
        request, "companies.html", {"app_base_url": settings.app_base_url}
    )


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _require_job(db: Session, job_id: str) -> models.Job:
    job = crud.get_job(db, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


# --- Auth Endpoints --- #
@app.post(
    "/api/auth/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Auth"],
)
def register_endpoint(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="User already exists with this email")

    user = crud.create_user(db, payload, password_hash=hash_password(payload.password))
    logger.info("User registered", user_id=user.id, role=user.role.value)
    return {
        "message": "User created successfully",
        "token": create_access_token(user.id),
        "user": user,
    }


@app.post("/api/auth/login", response_model=schemas.AuthResponse, tags=["Auth"])
def login_endpoint(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = crud.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password):
        logger.info("Login rejected", email_domain=payload.email.split("@")[-1])
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {
        "message": "Login successful",
        "token": create_access_token(user.id),
        "user": user,
    }


@app.get("/api/auth/me", response_model=schemas.UserResponse, tags=["Auth"])
def get_me(current_user: models.User = Depends(get_current_user)):
    """Returns the authenticated user's profile (never the password hash)."""
    return {"user": current_user}


@app.patch("/api/users/me", response_model=schemas.UserResponse, tags=["Users"])
def update_me(
    payload: schemas.UserProfileUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = payload.model_dump(exclude_unset=True)
    user = crud.update_user(db, current_user.id, **updates)
    return {"user": user}


# --- Job Endpoints --- #
@app.get("/api/jobs", response_model=schemas.JobListResponse, tags=["Jobs"])
def list_jobs_endpoint(
    search: Optional[str] = None,
    location: Optional[str] = None,
    job_type: Optional[models.JobType] = Query(None, alias="jobType"),
    experience_level: Optional[models.ExperienceLevel] = Query(None, alias="experienceLevel"),
    salary_min: Optional[float] = Query(None, alias="salaryMin", ge=0),
    salary_max: Optional[float] = Query(None, alias="salaryMax", ge=0),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    filters = schemas.JobFilters(
        search=search,
        location=location,
        job_type=job_type,
        experience_level=experience_level,
        salary_min=salary_min,
        salary_max=salary_max,
        limit=limit,
        offset=offset,
    )
    return {"jobs": crud.get_jobs(db, filters)}


@app.get("/api/jobs/featured", response_model=schemas.JobListResponse, tags=["Jobs"])
def featured_jobs_endpoint(db: Session = Depends(get_db)):
    return {"jobs": crud.get_featured_jobs(db, limit=6)}


@app.get("/api/jobs/{job_id}", response_model=schemas.JobResponse, tags=["Jobs"])
def get_job_endpoint(job_id: str, db: Session = Depends(get_db)):
    return {"job": _require_job(db, job_id)}


@app.post(
    "/api/jobs",
    response_model=schemas.JobResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Jobs"],
)
def create_job_endpoint(
    payload: schemas.JobCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not crud.get_company(db, payload.company_id):
        raise HTTPException(status_code=404, detail="Company not found")
    job = crud.create_job(db, payload, posted_by_id=current_user.id)
    logger.info("Job created", job_id=job.id, company_id=job.company_id)
    return {"job": job}


# --- Company Endpoints --- #
@app.get("/api/companies", response_model=schemas.CompanyListResponse, tags=["Companies"])
def list_companies_endpoint(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return {"companies": crud.get_companies(db, limit=limit, offset=offset)}


@app.get("/api/companies/{company_id}", response_model=schemas.CompanyResponse, tags=["Companies"])
def get_company_endpoint(company_id: str, db: Session = Depends(get_db)):
    company = crud.get_company(db, company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return {"company": company}


@app.post(
    "/api/companies",
    response_model=schemas.CompanyResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Companies"],
)
def create_company_endpoint(
    payload: schemas.CompanyCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    company = crud.create_company(db, payload, owner_id=current_user.id)
    logger.info("Company created", company_id=company.id)
    return {"company": company}


# --- Application Endpoints --- #
@app.get("/api/applications", response_model=schemas.ApplicationListResponse, tags=["Applications"])
def list_applications_endpoint(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"applications": crud.get_job_applications_by_user(db, current_user.id)}


@app.post(
    "/api/applications",
    response_model=schemas.ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Applications"],
)
def create_application_endpoint(
    payload: schemas.ApplicationCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_job(db, payload.job_id)
    if not payload.resume_url and current_user.resume_url:
        payload = payload.model_copy(update={"resume_url": current_user.resume_url})
    application = crud.create_job_application(db, payload, user_id=current_user.id)
    logger.info("Application submitted", application_id=application.id, job_id=payload.job_id)
    return {"application": application}


@app.patch(
    "/api/applications/{application_id}/status",
    response_model=schemas.ApplicationResponse,
    tags=["Applications"],
)
def update_application_status_endpoint(
    application_id: str,
    payload: schemas.ApplicationStatusUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    application = crud.get_job_application(db, application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")

    job = application.job
    allowed = (
        current_user.role == models.UserRole.admin
        or job.posted_by_id == current_user.id
        or job.company.owner_id == current_user.id
    )
    if not allowed:
        raise HTTPException(status_code=403, detail="Not allowed to update this application")

    # Any status may follow any other; only the value set is validated
    application = crud.update_job_application(db, application_id, status=payload.status)
    logger.info("Application status changed", application_id=application_id, status=payload.status.value)
    return {"application": application}


# --- Saved Job Endpoints --- #
@app.get("/api/saved-jobs", response_model=schemas.SavedJobListResponse, tags=["Saved Jobs"])
def list_saved_jobs_endpoint(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"saved_jobs": crud.get_saved_jobs_by_user(db, current_user.id)}


@app.post(
    "/api/saved-jobs",
    response_model=schemas.SavedJobResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Saved Jobs"],
)
def save_job_endpoint(
    payload: schemas.SavedJobCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_job(db, payload.job_id)
    try:
        saved_job = crud.create_saved_job(db, user_id=current_user.id, job_id=payload.job_id)
    except crud.DuplicateSavedJobError:
        raise HTTPException(status_code=409, detail="Job already saved")
    return {"saved_job": saved_job}


@app.delete("/api/saved-jobs/{job_id}", response_model=schemas.MessageResponse, tags=["Saved Jobs"])
def delete_saved_job_endpoint(
    job_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not crud.delete_saved_job(db, user_id=current_user.id, job_id=job_id):
        raise HTTPException(status_code=404, detail="Saved job not found")
    return {"message": "Job removed from saved list"}


# --- Resume Endpoints --- #
@app.post("/api/resume/upload", response_model=schemas.ResumeUploadResponse, tags=["Resume"])
async def upload_resume_endpoint(
    resume: UploadFile = File(...),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    resume_url, resume_text = await documents.save_resume_upload(
        resume, settings.upload_dir, settings.max_upload_bytes
    )
    crud.update_user(db, current_user.id, resume_url=resume_url)
    return {
        "message": "Resume uploaded successfully",
        "resume_url": resume_url,
        "resume_text": resume_text,
    }


@app.post("/api/resume/analyze", response_model=schemas.ResumeAnalyzeResponse, tags=["Resume"])
async def analyze_resume_endpoint(
    payload: schemas.ResumeAnalyzeRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not payload.resume_text or not payload.resume_text.strip():
        raise HTTPException(status_code=400, detail="Resume text is required")

    analysis = await logic.analyze_resume(payload.resume_text, payload.target_job_title)
    saved = crud.create_resume_analysis(
        db,
        user_id=current_user.id,
        resume_url=current_user.resume_url or "",
        analysis=analysis,
    )
    return {"analysis": analysis, "id": saved.id}


@app.get("/api/resume/analyses", response_model=schemas.ResumeAnalysisListResponse, tags=["Resume"])
def list_resume_analyses_endpoint(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"analyses": crud.get_resume_analyses_by_user(db, current_user.id)}


# --- Search & Stats --- #
@app.get("/api/search", response_model=schemas.JobListResponse, tags=["Jobs"])
def search_endpoint(q: Optional[str] = None, db: Session = Depends(get_db)):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    return {"jobs": crud.search_jobs(db, q.strip())}


@app.get("/api/stats", response_model=schemas.JobStats, tags=["Jobs"])
def stats_endpoint(db: Session = Depends(get_db)):
    return crud.get_job_stats(db)


# --- AI Endpoints --- #
@app.post("/api/ai/job-match", response_model=schemas.JobMatchResponse, tags=["LLM Features"])
async def job_match_endpoint(
    payload: schemas.AIJobRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = _require_job(db, payload.job_id)
    match = await logic.calculate_job_match(payload.resume_text, job.description, job.title)

    application = crud.get_user_application_for_job(db, current_user.id, job.id)
    if application:
        crud.update_job_application(db, application.id, ai_match_score=match.match_score)
        logger.info("Stored AI match score", application_id=application.id, score=match.match_score)
    return {"match": match}


@app.post("/api/ai/cover-letter", response_model=schemas.CoverLetterResponse, tags=["LLM Features"])
async def cover_letter_endpoint(
    payload: schemas.AIJobRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = _require_job(db, payload.job_id)
    cover_letter = await logic.generate_cover_letter(
        payload.resume_text, job.description, job.title, job.company.name
    )
    return {"cover_letter": cover_letter}


# --- LaTeX Resume Endpoints --- #
@app.get("/api/latex-templates", response_model=schemas.LatexTemplateListResponse, tags=["LaTeX"])
def list_latex_templates_endpoint(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"templates": crud.get_latex_templates_by_user(db, current_user.id)}


@app.post(
    "/api/latex-templates/generate",
    response_model=schemas.LatexGenerateResponse,
    tags=["LaTeX"],
)
def generate_latex_endpoint(
    payload: schemas.LatexGenerateRequest,
    current_user: models.User = Depends(get_current_user),
):
    return {"latex_content": latex.generate_latex_resume(payload.resume_data)}


@app.post(
    "/api/latex-templates/enhance",
    response_model=schemas.LatexEnhanceResponse,
    tags=["LaTeX"],
)
async def enhance_latex_endpoint(
    payload: schemas.LatexEnhanceRequest,
    current_user: models.User = Depends(get_current_user),
):
    enhanced = await logic.enhance_resume_data(payload.resume_data, payload.target_job_title)
    return {"enhanced_data": enhanced}


@app.get(
    "/api/latex-templates/{template_id}",
    response_model=schemas.LatexTemplateResponse,
    tags=["LaTeX"],
)
def get_latex_template_endpoint(
    template_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    template = crud.get_latex_template(db, template_id, current_user.id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return {"template": template}


@app.post(
    "/api/latex-templates",
    response_model=schemas.LatexTemplateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["LaTeX"],
)
def create_latex_template_endpoint(
    payload: schemas.LatexTemplateSave,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    template = crud.create_latex_template(
        db,
        user_id=current_user.id,
        name=payload.name,
        resume_data=payload.resume_data.model_dump(by_alias=True),
        latex_content=payload.latex_content or latex.generate_latex_resume(payload.resume_data),
        is_default=payload.is_default,
    )
    logger.info("LaTeX template saved", template_id=template.id)
    return {"template": template}


@app.put(
    "/api/latex-templates/{template_id}",
    response_model=schemas.LatexTemplateResponse,
    tags=["LaTeX"],
)
def update_latex_template_endpoint(
    template_id: str,
    payload: schemas.LatexTemplateSave,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    template = crud.update_latex_template(
        db,
        template_id=template_id,
        user_id=current_user.id,
        name=payload.name,
        resume_data=payload.resume_data.model_dump(by_alias=True),
        latex_content=payload.latex_content or latex.generate_latex_resume(payload.resume_data),
        is_default=payload.is_default,
    )
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return {"template": template}


@app.delete(
    "/api/latex-templates/{template_id}",
    response_model=schemas.MessageResponse,
    tags=["LaTeX"],
)
def delete_latex_template_endpoint(
    template_id: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not crud.delete_latex_template(db, template_id, current_user.id):
        raise HTTPException(status_code=404, detail="Template not found")
    return {"message": "Template deleted"}


# --- Main execution --- (for running with uvicorn)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
