import io
import logging
import os

from docx import Document
from pypdf import PdfReader

from .errors import FileParseError, UnsupportedFileError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".pdf", ".docx")


def _read_txt(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileParseError(f"Failed to read text file: {e}. Ensure the file is UTF-8 encoded.") from e


def _read_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
    except Exception as e:
        raise FileParseError("Failed to parse PDF. It might be corrupted or encrypted.") from e

    pages = []
    for i, page in enumerate(reader.pages):
        try:
            text = page.extract_text() or ""
        except Exception as e:
            logger.warning("Failed to extract text from PDF page %d: %s", i + 1, e)
            continue
        if text.strip():
            pages.append(text.strip())

    text = "\n".join(pages)
    if not text.strip():
        logger.warning("No text extracted from PDF; it may be a scanned image")
    return text


def _read_docx(data: bytes) -> str:
    try:
        doc = Document(io.BytesIO(data))
    except Exception as e:
        raise FileParseError("Failed to parse DOCX. It might be corrupted or an older .doc format.") from e

    lines = [p.text.strip() for p in doc.paragraphs if p.text.strip()]
    # resumes often lay out contact details or dates in tables
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text.strip()]
            if cells:
                lines.append(" ".join(cells))
    return "\n".join(lines)


_READERS = {
    ".txt": _read_txt,
    ".pdf": _read_pdf,
    ".docx": _read_docx,
}


def extract_text(filename: str, data: bytes) -> str:
    """Plain text of an uploaded resume, ready for `agent.extract_resume_data`."""
    ext = os.path.splitext(filename or "")[1].lower()
    reader = _READERS.get(ext)
    if reader is None:
        raise UnsupportedFileError("Unsupported file type. Please upload a .txt, .pdf, or .docx file.")
    text = reader(data).strip()
    logger.debug("extracted %d chars from %s", len(text), filename)
    return text
