import io
import os

import fitz
import pytest
from docx import Document
from fastapi import HTTPException, UploadFile, status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import documents
from conftest import auth_headers, create_test_user

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _docx_bytes(*paragraphs: str) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _pdf_bytes(text: str) -> bytes:
    pdf = fitz.open()
    page = pdf.new_page()
    page.insert_text((72, 72), text)
    content = pdf.tobytes()
    pdf.close()
    return content


def test_validate_resume_upload_rules():
    assert documents.validate_resume_upload("CV.PDF", 10, 100) == ".pdf"

    with pytest.raises(HTTPException) as wrong_type:
        documents.validate_resume_upload("notes.txt", 10, 100)
    assert wrong_type.value.status_code == status.HTTP_400_BAD_REQUEST

    with pytest.raises(HTTPException) as too_big:
        documents.validate_resume_upload("cv.docx", 101, 100)
    assert too_big.value.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


def test_extract_text_from_pdf():
    text = documents.extract_text(".pdf", _pdf_bytes("Senior Python Engineer"))
    assert "Senior Python Engineer" in text


def test_extract_text_from_legacy_doc_is_empty():
    assert documents.extract_text(".doc", b"\xd0\xcf\x11\xe0binary") == ""


def test_upload_docx_extracts_text(test_client: TestClient, db_session: Session, test_settings):
    user = create_test_user(db_session)

    response = test_client.post(
        "/api/resume/upload",
        files={"resume": ("cv.docx", _docx_bytes("Hamza Ali", "Django developer"), DOCX_MIME)},
        headers=auth_headers(user),
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["message"] == "Resume uploaded successfully"
    assert body["resumeText"] == "Hamza Ali\nDjango developer"
    assert body["resumeUrl"].startswith("/uploads/")
    assert body["resumeUrl"].endswith(".docx")

    stored_name = body["resumeUrl"].rsplit("/", 1)[-1]
    assert os.path.exists(os.path.join(test_settings.upload_dir, stored_name))

    db_session.refresh(user)
    assert user.resume_url == body["resumeUrl"]


def test_upload_unreadable_pdf_keeps_file(test_client: TestClient, db_session: Session, test_settings):
    user = create_test_user(db_session)

    response = test_client.post(
        "/api/resume/upload",
        files={"resume": ("cv.pdf", b"this is not really a pdf", "application/pdf")},
        headers=auth_headers(user),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["resumeText"] == ""
    assert len(os.listdir(test_settings.upload_dir)) == 1


def test_upload_rejects_wrong_type(test_client: TestClient, db_session: Session, test_settings):
    user = create_test_user(db_session)

    response = test_client.post(
        "/api/resume/upload",
        files={"resume": ("cv.txt", b"plain text resume", "text/plain")},
        headers=auth_headers(user),
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"message": documents.INVALID_TYPE_MESSAGE}
    assert not os.path.exists(test_settings.upload_dir) or os.listdir(test_settings.upload_dir) == []
    db_session.refresh(user)
    assert user.resume_url is None


def test_upload_rejects_oversized_file(test_client: TestClient, db_session: Session, test_settings):
    user = create_test_user(db_session)
    oversized = b"0" * (test_settings.max_upload_bytes + 1)

    response = test_client.post(
        "/api/resume/upload",
        files={"resume": ("cv.pdf", oversized, "application/pdf")},
        headers=auth_headers(user),
    )

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert response.json()["message"] == "File too large. Maximum size is 5MB."


def test_upload_requires_auth(test_client: TestClient):
    response = test_client.post(
        "/api/resume/upload", files={"resume": ("cv.pdf", b"%PDF", "application/pdf")}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_save_resume_upload_stops_reading_past_limit(tmp_path):
    max_bytes = 1024
    upload = UploadFile(file=io.BytesIO(b"0" * (max_bytes * 10)), filename="cv.pdf")

    with pytest.raises(HTTPException) as excinfo:
        await documents.save_resume_upload(upload, str(tmp_path), max_bytes)

    assert excinfo.value.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert upload.file.tell() == max_bytes + 1
    assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_save_resume_upload_accepts_file_at_limit(tmp_path):
    content = _docx_bytes("Exactly at the limit")
    upload = UploadFile(file=io.BytesIO(content), filename="cv.docx")

    resume_url, resume_text = await documents.save_resume_upload(upload, str(tmp_path), len(content))

    assert resume_text == "Exactly at the limit"
    assert os.path.getsize(tmp_path / resume_url.rsplit("/", 1)[-1]) == len(content)
