"""
Plain text from uploaded processing descriptions.

Users describe a processing activity in a note, a Word form or an exported
PDF. Each reader returns normalized text or raises a ``DocumentError`` that
the web route turns into a 400 response.
"""
from pathlib import Path
from typing import Callable, Dict, List
import re
import zipfile

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PyPdfError


TEXT_ENCODINGS = ("utf-8-sig", "cp1252")
BLANK_RUN_PATTERN = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


class DocumentError(ValueError):
    pass


class UnsupportedDocument(DocumentError):
    pass


class UnreadableDocument(DocumentError):
    pass


class EmptyDocument(DocumentError):
    pass


def extract_text(file_path: Path) -> str:
    suffix = file_path.suffix.lower()
    reader = READERS.get(suffix)
    if reader is None:
        raise UnsupportedDocument(f"Unsupported file type: {suffix or file_path.name}")
    text = normalize_text(reader(file_path))
    if not text:
        raise EmptyDocument(f"No text found in {file_path.name}")
    return text


def normalize_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "")
    return BLANK_RUN_PATTERN.sub("\n\n", text).strip()


def read_plain_text(file_path: Path) -> str:
    # Notes saved by older Windows editors are cp1252 rather than UTF-8.
    data = file_path.read_bytes()
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise UnreadableDocument(f"Cannot decode {file_path.name}")


def read_docx(file_path: Path) -> str:
    try:
        document = Document(str(file_path))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise UnreadableDocument(f"Cannot read Word document {file_path.name}") from exc
    lines: List[str] = [paragraph.text for paragraph in document.paragraphs]
    # Processing records are often forms laid out as two-column tables.
    for table in document.tables:
        for row in table.rows:
            cells = []
            for cell in row.cells:
                value = cell.text.strip()
                if value and value not in cells:
                    cells.append(value)
            if cells:
                lines.append(": ".join(cells))
    return "\n".join(line for line in lines if line.strip())


def read_pdf(file_path: Path) -> str:
    try:
        reader = PdfReader(str(file_path))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError, KeyError) as exc:
        raise UnreadableDocument(f"Cannot read PDF {file_path.name}") from exc
    return "\n\n".join(page for page in pages if page.strip())


READERS: Dict[str, Callable[[Path], str]] = {
    ".txt": read_plain_text,
    ".md": read_plain_text,
    ".docx": read_docx,
    ".pdf": read_pdf,
}
SUPPORTED_SUFFIXES = frozenset(READERS)
