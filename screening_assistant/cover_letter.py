"""Cover Letter rendering: writes a generated cover letter to a .docx file."""

from __future__ import annotations

from datetime import date
from io import BytesIO

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor

from screening_assistant.models import GeneratedCoverLetter

_GREETINGS = ("dear ", "to whom", "hello ", "hi ")
_CLOSINGS = ("sincerely", "best regards", "kind regards", "regards", "thank you,")


def _body_paragraphs(cover_letter: GeneratedCoverLetter) -> list[str]:
    """Paragraphs without the LLM's own greeting and sign-off."""
    paragraphs = cover_letter.paragraphs or [cover_letter.content]
    if paragraphs and paragraphs[0].lower().startswith(_GREETINGS):
        paragraphs = paragraphs[1:]
    for i, para in enumerate(paragraphs):
        if para.lower().startswith(_CLOSINGS):
            paragraphs = paragraphs[:i]
            break
    return paragraphs


def render_cover_letter_docx(
    cover_letter: GeneratedCoverLetter,
    candidate_name: str = "",
    company_name: str = "",
) -> bytes:
    """Render a cover letter as a formatted .docx file.

    Args:
        cover_letter: Result of AnswerGenerator.generate_cover_letter()
        candidate_name: Candidate's full name (for header/closing)
        company_name: Target company name (for the greeting)

    Returns:
        Bytes of the .docx file.
    """
    doc = Document()

    for section in doc.sections:
        section.top_margin = Inches(1)
        section.bottom_margin = Inches(1)
        section.left_margin = Inches(1)
        section.right_margin = Inches(1)

    style = doc.styles["Normal"]
    font = style.font
    font.name = "Calibri"
    font.size = Pt(11)
    font.color.rgb = RGBColor(0x33, 0x33, 0x33)
    style.paragraph_format.space_after = Pt(6)

    if candidate_name:
        name_para = doc.add_paragraph()
        name_para.alignment = WD_ALIGN_PARAGRAPH.LEFT
        run = name_para.add_run(candidate_name)
        run.bold = True
        run.font.size = Pt(14)

    doc.add_paragraph(date.today().strftime("%B %d, %Y"))

    if company_name:
        doc.add_paragraph(f"Dear {company_name} Hiring Team,")
    else:
        doc.add_paragraph("Dear Hiring Manager,")

    for para_text in _body_paragraphs(cover_letter):
        para = doc.add_paragraph(para_text)
        para.paragraph_format.space_after = Pt(8)

    doc.add_paragraph("Sincerely,")
    if candidate_name:
        closing = doc.add_paragraph()
        closing.add_run(candidate_name).bold = True

    buffer = BytesIO()
    doc.save(buffer)
    buffer.seek(0)
    return buffer.read()
