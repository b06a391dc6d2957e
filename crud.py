from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager, joinedload

import models
import schemas

# Location value the frontend sends for "anywhere"
ALL_LOCATIONS = "All Pakistan"


class DuplicateSavedJobError(Exception):
    """Raised when a user bookmarks a job they have already saved."""


def _jobs_with_company(db: Session):
    return db.query(models.Job).join(models.Job.company).options(
        contains_eager(models.Job.company)
    )


# --- User CRUD ---
def get_user(db: Session, user_id: str) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, user: schemas.RegisterRequest, password_hash: str) -> models.User:
    db_user = models.User(
        email=user.email,
        password=password_hash,
        first_name=user.first_name,
        last_name=user.last_name,
        role=models.UserRole(user.role),
        phone=user.phone,
        location=user.location,
        bio=user.bio,
        skills=list(user.skills),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, user_id: str, **updates) -> Optional[models.User]:
    user = get_user(db, user_id)
    if not user:
        return None
    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


# --- Company CRUD ---
def get_company(db: Session, company_id: str) -> Optional[models.Company]:
    return db.get(models.Company, company_id)


def get_companies(db: Session, limit: int = 50, offset: int = 0):
    return (
        db.query(models.Company)
        .order_by(models.Company.created_at.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def create_company(
    db: Session, company: schemas.CompanyCreate, owner_id: Optional[str] = None
) -> models.Company:
    db_company = models.Company(owner_id=owner_id, **company.model_dump())
    db.add(db_company)
    db.commit()
    db.refresh(db_company)
    return db_company


def update_company(db: Session, company_id: str, **updates) -> Optional[models.Company]:
    company = get_company(db, company_id)
    if not company:
        return None
    for field, value in updates.items():
        setattr(company, field, value)
    db.commit()
    db.refresh(company)
    return company


# --- Job CRUD ---
def get_job(db: Session, job_id: str) -> Optional[models.Job]:
    """Get a job with its company loaded; None when absent."""
    return _jobs_with_company(db).filter(models.Job.id == job_id).first()


def get_jobs(db: Session, filters: Optional[schemas.JobFilters] = None):
    """List active jobs matching the optional filters, newest first."""
    filters = filters or schemas.JobFilters()
    query = _jobs_with_company(db).filter(models.Job.is_active.is_(True))

    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.filter(
            or_(models.Job.title.ilike(pattern), models.Job.description.ilike(pattern))
        )
    if filters.location and filters.location != ALL_LOCATIONS:
        query = query.filter(models.Job.location.ilike(f"%{filters.location}%"))
    if filters.job_type:
        query = query.filter(models.Job.job_type == filters.job_type)
    if filters.experience_level:
        query = query.filter(models.Job.experience_level == filters.experience_level)
    if filters.salary_min:
        query = query.filter(models.Job.salary_min >= filters.salary_min)
    if filters.salary_max:
        query = query.filter(models.Job.salary_max <= filters.salary_max)

    return (
        query.order_by(models.Job.created_at.desc())
        .limit(filters.limit or 20)
        .offset(filters.offset or 0)
        .all()
    )


def get_featured_jobs(db: Session, limit: int = 6):
    return (
        _jobs_with_company(db)
        .filter(models.Job.is_active.is_(True))
        .order_by(models.Job.created_at.desc())
        .limit(limit)
        .all()
    )


def search_jobs(db: Session, query_text: str, limit: int = 20):
    """Substring search over job title, description and company name."""
    pattern = f"%{query_text}%"
    return (
        _jobs_with_company(db)
        .filter(
            or_(
                models.Job.title.ilike(pattern),
                models.Job.description.ilike(pattern),
                models.Company.name.ilike(pattern),
            )
        )
        .order_by(models.Job.created_at.desc())
        .limit(limit)
        .all()
    )


def create_job(
    db: Session, job: schemas.JobCreate, posted_by_id: Optional[str] = None
) -> models.Job:
    db_job = models.Job(posted_by_id=posted_by_id, **job.model_dump())
    db.add(db_job)
    db.commit()
    return get_job(db, db_job.id)


def update_job(db: Session, job_id: str, **updates) -> Optional[models.Job]:
    db_job = db.get(models.Job, job_id)
    if not db_job:
        return None
    for field, value in updates.items():
        setattr(db_job, field, value)
    db.commit()
    return get_job(db, job_id)


def get_job_stats(db: Session) -> dict:
    total_jobs = (
        db.query(func.count(models.Job.id)).filter(models.Job.is_active.is_(True)).scalar()
    )
    total_companies = db.query(func.count(models.Company.id)).scalar()
    total_candidates = (
        db.query(func.count(models.User.id))
        .filter(models.User.role == models.UserRole.job_seeker)
        .scalar()
    )
    return {
        "total_jobs": total_jobs or 0,
        "total_companies": total_companies or 0,
        "total_candidates": total_candidates or 0,
    }


# --- Job Application CRUD ---
def _applications_with_job(db: Session):
    return db.query(models.JobApplication).options(
        joinedload(models.JobApplication.job).joinedload(models.Job.company)
    )


def get_job_application(db: Session, application_id: str) -> Optional[models.JobApplication]:
    return (
        _applications_with_job(db)
        .filter(models.JobApplication.id == application_id)
        .first()
    )


def get_job_applications_by_user(db: Session, user_id: str):
    return (
        _applications_with_job(db)
        .filter(models.JobApplication.user_id == user_id)
        .order_by(models.JobApplication.applied_at.desc())
        .all()
    )


def get_job_applications_by_job(db: Session, job_id: str):
    return (
        db.query(models.JobApplication)
        .filter(models.JobApplication.job_id == job_id)
        .order_by(models.JobApplication.applied_at.desc())
        .all()
    )


def get_user_application_for_job(
    db: Session, user_id: str, job_id: str
) -> Optional[models.JobApplication]:
    return (
        db.query(models.JobApplication)
        .filter(
            models.JobApplication.user_id == user_id,
            models.JobApplication.job_id == job_id,
        )
        .order_by(models.JobApplication.applied_at.desc())
        .first()
    )


def create_job_application(
    db: Session, application: schemas.ApplicationCreate, user_id: str
) -> models.JobApplication:
    db_application = models.JobApplication(user_id=user_id, **application.model_dump())
    db.add(db_application)
    db.commit()
    return get_job_application(db, db_application.id)


def update_job_application(
    db: Session, application_id: str, **updates
) -> Optional[models.JobApplication]:
    db_application = db.get(models.JobApplication, application_id)
    if not db_application:
        return None
    for field, value in updates.items():
        setattr(db_application, field, value)
    db.commit()
    return get_job_application(db, application_id)


# --- Resume Analysis CRUD ---
def get_resume_analysis(db: Session, analysis_id: str) -> Optional[models.ResumeAnalysis]:
    return db.get(models.ResumeAnalysis, analysis_id)


def get_resume_analyses_by_user(db: Session, user_id: str):
    return (
        db.query(models.ResumeAnalysis)
        .filter(models.ResumeAnalysis.user_id == user_id)
        .order_by(models.ResumeAnalysis.created_at.desc())
        .all()
    )


def create_resume_analysis(
    db: Session,
    user_id: str,
    resume_url: str,
    analysis: schemas.ResumeAnalysisResult,
) -> models.ResumeAnalysis:
    db_analysis = models.ResumeAnalysis(
        user_id=user_id,
        resume_url=resume_url,
        ats_score=analysis.ats_score,
        keyword_optimization=analysis.keyword_optimization,
        suggestions=list(analysis.suggestions),
        analysis_data=analysis.analysis_data.model_dump(by_alias=True),
    )
    db.add(db_analysis)
    db.commit()
    db.refresh(db_analysis)
    return db_analysis


# --- Saved Job CRUD ---
def get_saved_jobs_by_user(db: Session, user_id: str):
    return (
        db.query(models.SavedJob)
        .options(joinedload(models.SavedJob.job).joinedload(models.Job.company))
        .filter(models.SavedJob.user_id == user_id)
        .order_by(models.SavedJob.saved_at.desc())
        .all()
    )


def get_saved_job(db: Session, user_id: str, job_id: str) -> Optional[models.SavedJob]:
    return (
        db.query(models.SavedJob)
        .filter(models.SavedJob.user_id == user_id, models.SavedJob.job_id == job_id)
        .first()
    )


def create_saved_job(db: Session, user_id: str, job_id: str) -> models.SavedJob:
    """Bookmark a job; raises DuplicateSavedJobError if the pair already exists."""
    if get_saved_job(db, user_id, job_id):
        raise DuplicateSavedJobError(job_id)

    db_saved = models.SavedJob(user_id=user_id, job_id=job_id)
    db.add(db_saved)
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent request won the race to the unique constraint
        db.rollback()
        raise DuplicateSavedJobError(job_id) from exc
    db.refresh(db_saved)
    return db_saved


def delete_saved_job(db: Session, user_id: str, job_id: str) -> bool:
    db_saved = get_saved_job(db, user_id, job_id)
    if not db_saved:
        return False
    db.delete(db_saved)
    db.commit()
    return True


# --- LaTeX Template CRUD ---
def get_latex_templates_by_user(db: Session, user_id: str):
    return (
        db.query(models.LatexResumeTemplate)
        .filter(models.LatexResumeTemplate.user_id == user_id)
        .order_by(models.LatexResumeTemplate.updated_at.desc())
        .all()
    )


def get_latex_template(
    db: Session, template_id: str, user_id: str
) -> Optional[models.LatexResumeTemplate]:
    return (
        db.query(models.LatexResumeTemplate)
        .filter(
            models.LatexResumeTemplate.id == template_id,
            models.LatexResumeTemplate.user_id == user_id,
        )
        .first()
    )


def _clear_default_templates(db: Session, user_id: str, keep_id: Optional[str] = None):
    query = db.query(models.LatexResumeTemplate).filter(
        models.LatexResumeTemplate.user_id == user_id,
        models.LatexResumeTemplate.is_default.is_(True),
    )
    if keep_id:
        query = query.filter(models.LatexResumeTemplate.id != keep_id)
    query.update({models.LatexResumeTemplate.is_default: False}, synchronize_session="fetch")


def create_latex_template(
    db: Session,
    user_id: str,
    name: str,
    resume_data: dict,
    latex_content: str,
    is_default: bool = False,
) -> models.LatexResumeTemplate:
    if is_default:
        _clear_default_templates(db, user_id)
    db_template = models.LatexResumeTemplate(
        user_id=user_id,
        name=name,
        resume_data=resume_data,
        latex_content=latex_content,
        is_default=is_default,
    )
    db.add(db_template)
    db.commit()
    db.refresh(db_template)
    return db_template


def update_latex_template(
    db: Session,
    template_id: str,
    user_id: str,
    name: str,
    resume_data: dict,
    latex_content: str,
    is_default: bool = False,
) -> Optional[models.LatexResumeTemplate]:
    db_template = get_latex_template(db, template_id, user_id)
    if not db_template:
        return None
    if is_default:
        _clear_default_templates(db, user_id, keep_id=template_id)
    db_template.name = name
    db_template.resume_data = resume_data
    db_template.latex_content = latex_content
    db_template.is_default = is_default
    db.commit()
    db.refresh(db_template)
    return db_template


def delete_latex_template(db: Session, template_id: str, user_id: str) -> bool:
    db_template = get_latex_template(db, template_id, user_id)
    if not db_template:
        return False
    db.delete(db_template)
    db.commit()
    return True
