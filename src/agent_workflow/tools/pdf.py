"""PDF download and text extraction."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import requests
from pypdf import PdfReader

from agent_workflow.errors import ToolExecutionFailed
from agent_workflow.tools.text import truncate_text_to_token_limit

logger = logging.getLogger(__name__)


def download_pdf(pdf_url: str, timeout: float = 30.0) -> Path:
    """Download a PDF into a temporary file and return its path.

    The caller owns the file and is responsible for deleting it.

    Raises:
        ToolExecutionFailed: If the request fails or returns a non-200 status.
    """
    try:
        response = requests.get(pdf_url, timeout=timeout, stream=True)
    except requests.RequestException as e:
        raise ToolExecutionFailed(f"failed to download PDF: {e}") from e

    with response:
        if response.status_code != 200:
            raise ToolExecutionFailed(
                f"failed to download PDF: status code {response.status_code}"
            )

        with tempfile.NamedTemporaryFile(
            prefix="downloaded-", suffix=".pdf", delete=False
        ) as tmp:
            try:
                for block in response.iter_content(chunk_size=64 * 1024):
                    tmp.write(block)
            except requests.RequestException as e:
                Path(tmp.name).unlink(missing_ok=True)
                raise ToolExecutionFailed(f"failed to save PDF to temp file: {e}") from e

    logger.debug(f"Downloaded PDF from {pdf_url} to {tmp.name}")
    return Path(tmp.name)


def extract_text_from_pdf(path: Path, max_tokens: int = 8000) -> str:
    """Extract plain text from a PDF, stopping once `max_tokens` words are reached."""
    try:
        reader = PdfReader(str(path))
    except Exception as e:
        raise ToolExecutionFailed(f"failed to open PDF file: {e}") from e

    parts: list[str] = []
    for page_num, page in enumerate(reader.pages, start=1):
        try:
            page_text = page.extract_text() or ""
        except Exception as e:
            raise ToolExecutionFailed(f"failed to extract text from page {page_num}: {e}") from e

        parts.append(page_text)
        text = "".join(parts)
        truncated = truncate_text_to_token_limit(text, max_tokens)
        if len(truncated) < len(text):
            return truncated

    return "".join(parts)
