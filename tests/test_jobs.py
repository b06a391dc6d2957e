from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import crud
import models
import schemas
from conftest import auth_headers, create_test_company, create_test_job, create_test_user


def _seed_jobs(db: Session):
    company = create_test_company(db, name="Systems Ltd")
    lahore_full_time = create_test_job(
        db, company, title="Backend Engineer", location="Lahore", minutes_ago=10,
        salary_min=150000, salary_max=250000,
    )
    lahore_newer = create_test_job(
        db, company, title="Data Engineer", location="Lahore, Punjab", minutes_ago=1,
        description="Pipelines in Python and Spark", salary_min=200000, salary_max=300000,
    )
    karachi = create_test_job(db, company, title="Frontend Engineer", location="Karachi", minutes_ago=5)
    lahore_contract = create_test_job(
        db, company, title="Contract Engineer", location="Lahore",
        job_type=models.JobType.contract, minutes_ago=3,
    )
    inactive = create_test_job(db, company, title="Old Role", location="Lahore", is_active=False)
    return company, {
        "lahore_full_time": lahore_full_time,
        "lahore_newer": lahore_newer,
        "karachi": karachi,
        "lahore_contract": lahore_contract,
        "inactive": inactive,
    }


def test_get_jobs_filters_compose(db_session: Session):
    _, jobs = _seed_jobs(db_session)

    result = crud.get_jobs(
        db_session, schemas.JobFilters(job_type=models.JobType.full_time, location="Lahore")
    )

    assert [job.id for job in result] == [jobs["lahore_newer"].id, jobs["lahore_full_time"].id]
    assert all(job.is_active for job in result)


def test_get_jobs_all_pakistan_means_no_location_filter(db_session: Session):
    _, jobs = _seed_jobs(db_session)

    result = crud.get_jobs(db_session, schemas.JobFilters(location=crud.ALL_LOCATIONS))

    assert len(result) == 4
    assert jobs["inactive"].id not in {job.id for job in result}


def test_get_jobs_ignores_empty_filters(db_session: Session):
    _seed_jobs(db_session)
    result = crud.get_jobs(db_session, schemas.JobFilters(search="", location="", salary_min=0))
    assert len(result) == 4


def test_get_jobs_salary_bounds(db_session: Session):
    _, jobs = _seed_jobs(db_session)

    result = crud.get_jobs(db_session, schemas.JobFilters(salary_min=180000, salary_max=320000))

    assert [job.id for job in result] == [jobs["lahore_newer"].id]


def test_get_jobs_search_matches_description(db_session: Session):
    _, jobs = _seed_jobs(db_session)
    result = crud.get_jobs(db_session, schemas.JobFilters(search="spark"))
    assert [job.id for job in result] == [jobs["lahore_newer"].id]


def test_get_jobs_pagination(db_session: Session):
    _, jobs = _seed_jobs(db_session)

    page = crud.get_jobs(db_session, schemas.JobFilters(limit=2, offset=1))

    # newest first: lahore_newer, lahore_contract, karachi, lahore_full_time
    assert [job.id for job in page] == [jobs["lahore_contract"].id, jobs["karachi"].id]


def test_list_jobs_endpoint_uses_camel_case_params(test_client: TestClient, db_session: Session):
    _, jobs = _seed_jobs(db_session)

    response = test_client.get("/api/jobs", params={"jobType": "full_time", "location": "Lahore"})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()["jobs"]
    assert [job["id"] for job in body] == [jobs["lahore_newer"].id, jobs["lahore_full_time"].id]
    assert body[0]["company"]["name"] == "Systems Ltd"
    assert body[0]["jobType"] == "full_time"
    assert body[0]["experienceLevel"] == "mid"


def test_list_jobs_invalid_job_type(test_client: TestClient):
    response = test_client.get("/api/jobs", params={"jobType": "gig"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "message" in response.json()


def test_featured_jobs(test_client: TestClient, db_session: Session):
    company = create_test_company(db_session)
    for index in range(8):
        create_test_job(db_session, company, title=f"Role {index}", minutes_ago=index)

    response = test_client.get("/api/jobs/featured")

    assert response.status_code == status.HTTP_200_OK
    titles = [job["title"] for job in response.json()["jobs"]]
    assert titles == [f"Role {index}" for index in range(6)]


def test_get_job_by_id(test_client: TestClient, db_session: Session):
    company = create_test_company(db_session)
    job = create_test_job(db_session, company)

    response = test_client.get(f"/api/jobs/{job.id}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["job"]["title"] == "Python Developer"
    assert response.json()["job"]["company"]["id"] == company.id


def test_get_job_not_found(test_client: TestClient):
    response = test_client.get("/api/jobs/does-not-exist")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"message": "Job not found"}


def test_search_matches_company_name(test_client: TestClient, db_session: Session):
    netsol = create_test_company(db_session, name="NetSol Technologies")
    other = create_test_company(db_session, name="Other Co")
    match = create_test_job(db_session, netsol, title="QA Engineer")
    create_test_job(db_session, other, title="QA Engineer")

    response = test_client.get("/api/search", params={"q": "netsol"})

    assert response.status_code == status.HTTP_200_OK
    assert [job["id"] for job in response.json()["jobs"]] == [match.id]


def test_search_requires_query(test_client: TestClient):
    response = test_client.get("/api/search")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"message": "Search query is required"}


def test_stats(test_client: TestClient, db_session: Session):
    _seed_jobs(db_session)
    create_test_user(db_session, email="a@example.com")
    create_test_user(db_session, email="b@example.com")
    create_test_user(db_session, email="boss@example.com", role=models.UserRole.employer)

    response = test_client.get("/api/stats")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"totalJobs": 4, "totalCompanies": 1, "totalCandidates": 2}


def test_create_job(test_client: TestClient, db_session: Session):
    employer = create_test_user(db_session, email="hr@example.com", role=models.UserRole.employer)
    company = create_test_company(db_session, owner=employer)

    response = test_client.post(
        "/api/jobs",
        json={
            "title": "Site Reliability Engineer",
            "description": "Keep things running",
            "companyId": company.id,
            "location": "Islamabad",
            "jobType": "full_time",
            "experienceLevel": "senior",
            "salaryMin": 300000,
            "salaryMax": 450000,
            "skills": ["Kubernetes"],
        },
        headers=auth_headers(employer),
    )

    assert response.status_code == status.HTTP_201_CREATED
    job = response.json()["job"]
    assert job["postedById"] == employer.id
    assert job["currency"] == "PKR"
    assert job["isActive"] is True
    assert job["company"]["id"] == company.id


def test_create_job_unknown_company(test_client: TestClient, db_session: Session):
    user = create_test_user(db_session)

    response = test_client.post(
        "/api/jobs",
        json={
            "title": "Ghost Job",
            "description": "Nobody is hiring",
            "companyId": "missing-company",
            "location": "Lahore",
            "jobType": "contract",
            "experienceLevel": "entry",
        },
        headers=auth_headers(user),
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"message": "Company not found"}
    assert db_session.query(models.Job).count() == 0


def test_create_job_salary_range_validated(test_client: TestClient, db_session: Session):
    user = create_test_user(db_session)
    company = create_test_company(db_session)

    response = test_client.post(
        "/api/jobs",
        json={
            "title": "Backwards Pay",
            "description": "Min above max",
            "companyId": company.id,
            "location": "Lahore",
            "jobType": "full_time",
            "experienceLevel": "mid",
            "salaryMin": 500,
            "salaryMax": 100,
        },
        headers=auth_headers(user),
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "salaryMin cannot exceed salaryMax"


def test_create_job_requires_auth(test_client: TestClient):
    response = test_client.post("/api/jobs", json={})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
