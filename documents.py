"""Resume file handling: type/size checks, storage under the upload dir, text extraction."""
import io
import os
import uuid
import zipfile

import fitz
import structlog
from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from fastapi import HTTPException, UploadFile, status

logger = structlog.get_logger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".doc", ".docx"}
INVALID_TYPE_MESSAGE = "Invalid file type. Only PDF, DOC, and DOCX files are allowed."


def validate_resume_upload(filename: str, size: int, max_bytes: int) -> str:
    """Return the lower-cased extension, or raise 400/413."""
    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_TYPE_MESSAGE)
    if size > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
        )
    return extension


def extract_text(extension: str, file_content: bytes) -> str:
    """Extract plain text from PDF or DOCX bytes; legacy .doc yields ''."""
    if extension == ".pdf":
        # Extract text from PDF using PyMuPDF (fitz)
        extracted_text = ""
        with fitz.open(stream=file_content, filetype="pdf") as doc:
            for page in doc:
                extracted_text += page.get_text() + "\n"
        return extracted_text.strip()

    if extension == ".docx":
        doc = Document(io.BytesIO(file_content))
        return "\n".join(para.text for para in doc.paragraphs).strip()

    # Binary .doc has no pure-python reader in our stack
    return ""


async def save_resume_upload(resume: UploadFile, upload_dir: str, max_bytes: int):
    """Persist an uploaded resume; returns ``(public_url, extracted_text)``."""
    # One byte past the limit is enough to know the upload is too large
    file_content = await resume.read(max_bytes + 1)
    extension = validate_resume_upload(resume.filename, len(file_content), max_bytes)

    os.makedirs(upload_dir, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex}{extension}"
    with open(os.path.join(upload_dir, stored_name), "wb") as out:
        out.write(file_content)
    logger.info(
        "Resume stored",
        stored_name=stored_name,
        original_name=resume.filename,
        size=len(file_content),
    )

    try:
        resume_text = extract_text(extension, file_content)
    except (RuntimeError, ValueError, zipfile.BadZipFile, PackageNotFoundError) as exc:
        # The file is kept; the client can still paste text for analysis
        logger.warning("Could not extract resume text", stored_name=stored_name, error=str(exc))
        resume_text = ""

    return f"/uploads/{stored_name}", resume_text
