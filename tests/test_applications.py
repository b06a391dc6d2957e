from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import models
from conftest import auth_headers, create_test_company, create_test_job, create_test_user


def _apply(test_client: TestClient, user, job, **extra):
    return test_client.post(
        "/api/applications",
        json={"jobId": job.id, "coverLetter": "I would love to join.", **extra},
        headers=auth_headers(user),
    )


def test_apply_and_list(test_client: TestClient, db_session: Session):
    seeker = create_test_user(db_session)
    job = create_test_job(db_session, create_test_company(db_session))

    response = _apply(test_client, seeker, job)

    assert response.status_code == status.HTTP_201_CREATED
    application = response.json()["application"]
    assert application["status"] == "pending"
    assert application["jobId"] == job.id
    assert application["coverLetter"] == "I would love to join."
    assert application["job"]["company"]["name"] == "Acme Pvt Ltd"

    listing = test_client.get("/api/applications", headers=auth_headers(seeker))
    assert listing.status_code == status.HTTP_200_OK
    assert [item["id"] for item in listing.json()["applications"]] == [application["id"]]


def test_apply_uses_profile_resume_by_default(test_client: TestClient, db_session: Session):
    seeker = create_test_user(db_session, resume_url="/uploads/cv.pdf")
    job = create_test_job(db_session, create_test_company(db_session))

    response = _apply(test_client, seeker, job)

    assert response.json()["application"]["resumeUrl"] == "/uploads/cv.pdf"


def test_apply_to_missing_job(test_client: TestClient, db_session: Session):
    seeker = create_test_user(db_session)

    response = test_client.post(
        "/api/applications", json={"jobId": "missing"}, headers=auth_headers(seeker)
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"message": "Job not found"}


def test_applications_are_per_user(test_client: TestClient, db_session: Session):
    first = create_test_user(db_session, email="first@example.com")
    second = create_test_user(db_session, email="second@example.com")
    job = create_test_job(db_session, create_test_company(db_session))
    _apply(test_client, first, job)

    listing = test_client.get("/api/applications", headers=auth_headers(second))

    assert listing.json() == {"applications": []}


def test_company_owner_updates_status(test_client: TestClient, db_session: Session):
    employer = create_test_user(db_session, email="hr@example.com", role=models.UserRole.employer)
    seeker = create_test_user(db_session)
    job = create_test_job(db_session, create_test_company(db_session, owner=employer))
    application_id = _apply(test_client, seeker, job).json()["application"]["id"]

    response = test_client.patch(
        f"/api/applications/{application_id}/status",
        json={"status": "interview_scheduled"},
        headers=auth_headers(employer),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["application"]["status"] == "interview_scheduled"


def test_applicant_cannot_update_own_status(test_client: TestClient, db_session: Session):
    seeker = create_test_user(db_session)
    job = create_test_job(db_session, create_test_company(db_session))
    application_id = _apply(test_client, seeker, job).json()["application"]["id"]

    response = test_client.patch(
        f"/api/applications/{application_id}/status",
        json={"status": "accepted"},
        headers=auth_headers(seeker),
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    stored = db_session.get(models.JobApplication, application_id)
    assert stored.status == models.ApplicationStatus.pending


def test_update_status_rejects_unknown_value(test_client: TestClient, db_session: Session):
    admin = create_test_user(db_session, email="admin@example.com", role=models.UserRole.admin)
    seeker = create_test_user(db_session)
    job = create_test_job(db_session, create_test_company(db_session))
    application_id = _apply(test_client, seeker, job).json()["application"]["id"]

    response = test_client.patch(
        f"/api/applications/{application_id}/status",
        json={"status": "hired"},
        headers=auth_headers(admin),
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_status_missing_application(test_client: TestClient, db_session: Session):
    admin = create_test_user(db_session, email="admin@example.com", role=models.UserRole.admin)

    response = test_client.patch(
        "/api/applications/missing/status",
        json={"status": "rejected"},
        headers=auth_headers(admin),
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"message": "Application not found"}
