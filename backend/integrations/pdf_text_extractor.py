"""PDF-to-text extraction backed by pdfplumber."""

import logging
from io import BytesIO

import pdfplumber

from integrations.exceptions import PdfExtractionError

logger = logging.getLogger(__name__)


class PdfPlumberTextExtractor:
    """Extracts plain text from every page of a PDF, pages joined by newlines."""

    @property
    def service_name(self) -> str:
        return "pdfplumber"

    def extract_text(self, pdf_bytes: bytes) -> str:
        """Return the document text.

        Raises:
            PdfExtractionError: If the bytes are not a readable PDF.
        """
        try:
            with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            logger.warning("PDF text extraction failed", exc_info=True)
            raise PdfExtractionError(
                f"Could not read PDF: {exc}", service_name=self.service_name
            ) from exc

        logger.debug("Extracted text from %d PDF pages", len(pages))
        return "\n".join(pages)
