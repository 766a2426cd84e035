from __future__ import annotations

import shutil

import fitz
import pytest
import pytesseract
from PIL import Image, ImageDraw, ImageFont

from scholarship.errors import ExtractionError, UnsupportedFileType
from scholarship.services import TextExtractor


@pytest.fixture
def extractor() -> TextExtractor:
    return TextExtractor(ocr_language="eng")


def _pdf_bytes(text: str = "") -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text, fontsize=12)
    content = doc.tobytes()
    doc.close()
    return content


@pytest.mark.asyncio
async def test_plain_text_is_returned_trimmed(extractor, make_document) -> None:
    document = make_document("note.txt", b"  Monthly Salary: 15000\nGWA: 1.75\n\n")

    text = await extractor.extract(document)

    assert text == "Monthly Salary: 15000\nGWA: 1.75"


@pytest.mark.asyncio
async def test_plain_text_must_be_utf8(extractor, make_document) -> None:
    document = make_document("note.txt", b"\xff\xfe\xfa broken")

    with pytest.raises(ExtractionError):
        await extractor.extract(document)


@pytest.mark.asyncio
async def test_pdf_text_layer_is_extracted(extractor, make_document) -> None:
    document = make_document("report.pdf", _pdf_bytes("General Weighted Average: 1.75"))

    text = await extractor.extract(document)

    assert "General Weighted Average: 1.75" in text


@pytest.mark.asyncio
async def test_pdf_without_text_layer_gives_empty_string(extractor, make_document) -> None:
    document = make_document("scan.pdf", _pdf_bytes())

    assert await extractor.extract(document) == ""


@pytest.mark.asyncio
async def test_pdf_falls_back_to_pdfminer(extractor, make_document, monkeypatch) -> None:
    def broken(content: bytes) -> str:
        raise RuntimeError("cannot open broken document")

    monkeypatch.setattr(extractor, "extract_pdf_text_pymupdf", broken)
    monkeypatch.setattr(extractor, "extract_pdf_text_pdfminer", lambda content: "from pdfminer")
    document = make_document("report.pdf", _pdf_bytes("ignored"))

    assert await extractor.extract(document) == "from pdfminer"


@pytest.mark.asyncio
async def test_pdf_fails_when_both_engines_fail(extractor, make_document, monkeypatch) -> None:
    def broken(content: bytes) -> str:
        raise RuntimeError("cannot open broken document")

    monkeypatch.setattr(extractor, "extract_pdf_text_pymupdf", broken)
    monkeypatch.setattr(extractor, "extract_pdf_text_pdfminer", broken)
    document = make_document("report.pdf", b"not really a pdf")

    with pytest.raises(ExtractionError):
        await extractor.extract(document)


@pytest.mark.asyncio
async def test_image_ocr_uses_configured_language(extractor, make_document, monkeypatch, tmp_path) -> None:
    calls = []

    def fake_image_to_string(image, lang=None):
        calls.append((image.size, lang))
        return "  Monthly Income: 12000 \n"

    monkeypatch.setattr(pytesseract, "image_to_string", fake_image_to_string)
    image_path = tmp_path / "source.png"
    Image.new("RGB", (120, 40), "white").save(image_path)
    document = make_document("certificate.png", image_path.read_bytes())

    text = await extractor.extract(document)

    assert text == "Monthly Income: 12000"
    assert calls == [((120, 40), "eng")]


@pytest.mark.asyncio
async def test_unreadable_image_fails(extractor, make_document) -> None:
    document = make_document("certificate.jpg", b"definitely not a jpeg")

    with pytest.raises(ExtractionError):
        await extractor.extract(document)


@pytest.mark.asyncio
async def test_image_over_pixel_limit_fails(extractor, make_document, monkeypatch, tmp_path) -> None:
    def unexpected_ocr(image, lang=None):
        raise AssertionError("OCR must not run on an oversized image")

    monkeypatch.setattr(pytesseract, "image_to_string", unexpected_ocr)
    image_path = tmp_path / "source.png"
    Image.new("1", (200, 200)).save(image_path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    document = make_document("huge.png", image_path.read_bytes())

    with pytest.raises(ExtractionError, match="pixel limit"):
        await extractor.extract(document)


@pytest.mark.asyncio
async def test_unknown_mime_type_is_rejected(extractor, make_document) -> None:
    document = make_document("archive.zip", b"PK", mime_type="application/zip")

    with pytest.raises(UnsupportedFileType):
        await extractor.extract(document)


@pytest.mark.ocr
@pytest.mark.skipif(shutil.which("tesseract") is None, reason="tesseract binary not installed")
@pytest.mark.asyncio
async def test_real_ocr_reads_rendered_text(extractor, make_document, tmp_path) -> None:
    image = Image.new("RGB", (900, 160), "white")
    draw = ImageDraw.Draw(image)
    draw.text((20, 40), "MONTHLY INCOME 12000", fill="black", font=ImageFont.load_default(size=56))
    image_path = tmp_path / "rendered.png"
    image.save(image_path)
    document = make_document("certificate.png", image_path.read_bytes())

    text = await extractor.extract(document)

    assert "INCOME" in text.upper()
