"""
Text extraction service for plain text, PDF and image documents
"""
import asyncio
import logging
from io import BytesIO, StringIO
from pathlib import Path
from typing import Callable, Dict, Optional

import fitz  # PyMuPDF
import pytesseract
from PIL import Image, UnidentifiedImageError
from pdfminer.high_level import extract_text_to_fp
from pdfminer.layout import LAParams

from ..config import settings
from ..errors import ExtractionError, UnsupportedFileType
from ..models import Document

logger = logging.getLogger(__name__)


class TextExtractor:
    """Converts one document into plain text, chosen by declared MIME type"""

    def __init__(self, ocr_language: Optional[str] = None, tesseract_cmd: Optional[str] = None):
        self.ocr_language = ocr_language or settings.ocr_language
        if tesseract_cmd or settings.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd or settings.tesseract_cmd

        self._handlers: Dict[str, Callable[[Path], str]] = {
            "text/plain": self.extract_plain_text,
            "application/pdf": self.extract_pdf_text,
            "image/jpeg": self.extract_image_text,
            "image/png": self.extract_image_text,
        }

    async def extract(self, document: Document) -> str:
        """Extract trimmed text from a document without blocking the event loop"""
        handler = self._handlers.get(document.mime_type)
        if handler is None:
            raise UnsupportedFileType(
                f"Unsupported document type: {document.mime_type}",
                field="mime_type"
            )

        logger.info(f"Extracting text from {document.path.name} ({document.mime_type})")
        text = await asyncio.to_thread(handler, document.path)
        logger.info(f"Extracted {len(text)} characters from {document.path.name}")
        return text

    def extract_plain_text(self, path: Path) -> str:
        """Read a UTF-8 text file as-is"""
        try:
            return path.read_bytes().decode("utf-8").strip()
        except OSError as e:
            raise ExtractionError(f"Cannot read text file {path.name}: {e}") from e
        except UnicodeDecodeError as e:
            raise ExtractionError(f"Text file {path.name} is not valid UTF-8: {e}") from e

    def extract_pdf_text_pymupdf(self, pdf_content: bytes) -> str:
        """Extract the embedded text layer using PyMuPDF (fitz)"""
        doc = fitz.open(stream=pdf_content, filetype="pdf")
        try:
            text = ""
            for page_num in range(len(doc)):
                page = doc.load_page(page_num)
                text += page.get_text()
        finally:
            doc.close()
        return text.strip()

    def extract_pdf_text_pdfminer(self, pdf_content: bytes) -> str:
        """Extract the embedded text layer using pdfminer.six - fallback method"""
        output = StringIO()
        extract_text_to_fp(BytesIO(pdf_content), output, laparams=LAParams())
        return output.getvalue().strip()

    def extract_pdf_text(self, path: Path) -> str:
        """Extract text from a PDF; scans without a text layer give an empty string"""
        try:
            pdf_content = path.read_bytes()
        except OSError as e:
            raise ExtractionError(f"Cannot read PDF file {path.name}: {e}") from e

        # Try PyMuPDF first, fallback to pdfminer
        try:
            return self.extract_pdf_text_pymupdf(pdf_content)
        except Exception as e:
            logger.warning(f"PyMuPDF failed on {path.name}, trying pdfminer: {e}")

        try:
            return self.extract_pdf_text_pdfminer(pdf_content)
        except Exception as e:
            logger.error(f"Both PDF extraction methods failed for {path.name}: {e}")
            raise ExtractionError(f"PDF text extraction failed: {e}") from e

    def extract_image_text(self, path: Path) -> str:
        """Run Tesseract OCR over a raster image"""
        try:
            with Image.open(path) as image:
                image.load()
                text = pytesseract.image_to_string(image, lang=self.ocr_language)
        except pytesseract.TesseractNotFoundError as e:
            raise ExtractionError(f"Tesseract is not installed: {e}") from e
        except pytesseract.TesseractError as e:
            raise ExtractionError(f"OCR failed for {path.name}: {e}") from e
        except Image.DecompressionBombError as e:
            raise ExtractionError(f"Image {path.name} exceeds the pixel limit: {e}") from e
        except (OSError, UnidentifiedImageError) as e:
            raise ExtractionError(f"Cannot open image {path.name}: {e}") from e
        return text.strip()
