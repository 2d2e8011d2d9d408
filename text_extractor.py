"""
Text extraction for the command line: plain strings, text, PDF and DOCX files.
"""

import os
from pathlib import Path
from typing import Optional, Tuple, Union

# Optional imports with fallback
try:
    import PyPDF2

    HAS_PYPDF2 = True
except ImportError:
    HAS_PYPDF2 = False

try:
    import docx

    HAS_DOCX = True
except ImportError:
    HAS_DOCX = False

INPUT_TYPES = ("string", "txt", "pdf", "docx")


def detect_input_type(source: Union[str, Path]) -> str:
    """Guess the input type: existing files by extension, anything else is a string."""
    if not os.path.isfile(source):
        return "string"
    ext = os.path.splitext(str(source))[1].lower()
    return {".pdf": "pdf", ".docx": "docx"}.get(ext, "txt")


def _read_pdf(path: str, page_range: Optional[Tuple[int, int]]) -> str:
    if not HAS_PYPDF2:
        raise ImportError("PyPDF2 is required for PDF extraction")

    with open(path, "rb") as pdf_file:
        reader = PyPDF2.PdfReader(pdf_file)
        total_pages = len(reader.pages)
        start, end = page_range or (0, total_pages)
        start, end = max(0, start), min(total_pages, end)
        pages = [reader.pages[i].extract_text() or "" for i in range(start, end)]
    return "\n".join(pages)


def _read_docx(path: str) -> str:
    if not HAS_DOCX:
        raise ImportError("python-docx is required for DOCX extraction")
    return "\n".join(p.text for p in docx.Document(path).paragraphs)


def extract_text(
    source: Union[str, Path],
    input_type: Optional[str] = None,
    page_range: Optional[Tuple[int, int]] = None,
    encoding: str = "utf-8",
) -> str:
    """
    Read text from a string or a file.

    Args:
        source: Text itself, or a path to a .txt, .pdf or .docx file
        input_type: One of INPUT_TYPES (auto-detected if None)
        page_range: (start, end) pages for PDF input
        encoding: Encoding for text files

    Returns:
        Extracted text
    """
    input_type = (input_type or detect_input_type(source)).lower()
    if input_type not in INPUT_TYPES:
        raise ValueError(f"Unsupported input type: {input_type}")

    if input_type == "string":
        return str(source)
    if input_type == "pdf":
        return _read_pdf(str(source), page_range)
    if input_type == "docx":
        return _read_docx(str(source))
    with open(source, "r", encoding=encoding) as f:
        return f.read()
