import logging
import re
from datetime import datetime
from typing import List

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt

from .models import EnhancedProject, ResumeData

logger = logging.getLogger(__name__)

FONT_NAME = "Cambria"
LINK_COLOR = "0563C1"
_BULLET_PREFIX = re.compile(r"^[-*•]\s*")


def format_date(value: str) -> str:
    """'' -> 'Present'; 2023-05-10 / 2023-05 -> 'May 2023'; anything else unchanged."""
    value = (value or "").strip()
    if not value:
        return "Present"
    for fmt in ("%Y-%m-%d", "%Y-%m"):
        try:
            return datetime.strptime(value, fmt).strftime("%b %Y")
        except ValueError:
            continue
    return value


def split_bullets(text: str) -> List[str]:
    out = []
    for line in (text or "").splitlines():
        clean = _BULLET_PREFIX.sub("", line.strip()).strip()
        if clean:
            out.append(clean)
    return out


def tools_line(entry: EnhancedProject) -> str:
    line = entry.effective_tools or ""
    for label, value in (("Database", entry.suggested_database),
                         ("Cloud", entry.suggested_cloud),
                         ("Dashboard", entry.suggested_dashboard)):
        if value:
            line += f" | {label}: {value}"
    return line.strip(" |")


def experience_entries(resume_data: ResumeData) -> List[EnhancedProject]:
    entries = []
    if resume_data.internship is not None:
        entries.append(resume_data.internship)
    entries.extend(resume_data.projects)
    return entries


def resume_to_markdown(resume_data: ResumeData) -> str:
    info = resume_data.personal_info
    parts = ["# " + (info.name or "Your Name")]

    contact = []
    if info.phone_number:
        contact.append(info.phone_number)
    if info.email:
        contact.append(info.email)
    if info.linkedin:
        contact.append(f"[LinkedIn]({info.linkedin})")
    if info.portfolio:
        contact.append(f"[Portfolio]({info.portfolio})")
    if contact:
        parts.append(" • ".join(contact))
    parts.append("")

    if resume_data.summary:
        parts.extend(["**SUMMARY**", "", resume_data.summary, ""])

    if resume_data.education:
        parts.extend(["**EDUCATION**", ""])
        for edu in resume_data.education:
            line = f"**{edu.degree}**" if edu.degree else ""
            if edu.university:
                line = f"{line}, {edu.university}" if line else edu.university
            if edu.location:
                line += f" ({edu.location})"
            line += f" | {format_date(edu.start_date)} – {format_date(edu.end_date)}"
            if edu.gpa:
                line += f" | GPA: {edu.gpa}"
            parts.append("- " + line)
        parts.append("")

    entries = experience_entries(resume_data)
    if entries:
        parts.extend(["**EXPERIENCE**", ""])
        for entry in entries:
            header = f"**{entry.display_title or 'Untitled'}**"
            meta = [m for m in (entry.location, f"{format_date(entry.start_date)} – {format_date(entry.end_date)}") if m]
            parts.append(header + " | " + " | ".join(meta))
            if entry.effective_description:
                parts.append(entry.effective_description)
            for b in split_bullets(entry.effective_responsibilities):
                parts.append("- " + b)
            tools = tools_line(entry)
            if tools:
                parts.append(f"*Tools:* {tools}")
            parts.append("")

    if resume_data.skills:
        parts.extend(["**SKILLS**", ""])
        for skill in resume_data.skills:
            if ":" in skill:
                cat, rest = skill.split(":", 1)
                parts.append(f"- **{cat.strip()}:** {rest.strip()}")
            else:
                parts.append("- " + skill)
        parts.append("")

    return "\n".join(parts).strip() + "\n"


def _tight(p, before=0, after=0):
    p.paragraph_format.space_before = Pt(before)
    p.paragraph_format.space_after = Pt(after)


def _add_run(paragraph, text: str, *, font_size: int = 11, bold: bool = False, italic: bool = False):
    if not text:
        return None
    run = paragraph.add_run(text)
    run.font.name = FONT_NAME
    run.font.size = Pt(font_size)
    run.bold = bold
    run.italic = italic
    return run


def _add_hyperlink(paragraph, label: str, url: str):
    """Append a clickable `label` pointing at `url`, styled like the other runs."""
    rel_id = paragraph.part.relate_to(url, RT.HYPERLINK, is_external=True)

    props = OxmlElement("w:rPr")
    fonts = OxmlElement("w:rFonts")
    fonts.set(qn("w:ascii"), FONT_NAME)
    fonts.set(qn("w:hAnsi"), FONT_NAME)
    color = OxmlElement("w:color")
    color.set(qn("w:val"), LINK_COLOR)
    underline = OxmlElement("w:u")
    underline.set(qn("w:val"), "single")
    for el in (fonts, color, underline):
        props.append(el)

    text = OxmlElement("w:t")
    text.text = label
    run = OxmlElement("w:r")
    run.append(props)
    run.append(text)

    link = OxmlElement("w:hyperlink")
    link.set(qn("r:id"), rel_id)
    link.append(run)
    paragraph._p.append(link)
    return link


def _with_scheme(url: str) -> str:
    if url.lower().startswith(("http://", "https://")):
        return url
    return "https://" + url


def _section_heading(doc, title: str):
    p = doc.add_paragraph()
    _tight(p, before=6, after=2)
    r = _add_run(p, title, bold=True)
    r.underline = True


def render_docx(resume_data: ResumeData, path_or_stream):
    """Write the resume as a Word document.

    `path_or_stream` is anything `Document.save` accepts: a filename or a
    binary file-like object (the app passes a BytesIO for download).
    """
    doc = Document()

    for sec in doc.sections:
        sec.top_margin = Inches(0.65)
        sec.bottom_margin = Inches(0.65)
        sec.left_margin = Inches(0.70)
        sec.right_margin = Inches(0.70)

    info = resume_data.personal_info

    # --- NAME ---
    p = doc.add_paragraph()
    _tight(p)
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _add_run(p, info.name or "Your Name", font_size=20, bold=True)

    # --- CONTACT LINE WITH HYPERLINKS ---
    contact = []
    if info.phone_number:
        contact.append(("text", info.phone_number))
    if info.email:
        contact.append(("text", info.email))
    if info.linkedin:
        contact.append(("LinkedIn", info.linkedin))
    if info.portfolio:
        contact.append(("Portfolio", info.portfolio))
    if contact:
        p = doc.add_paragraph()
        _tight(p, after=4)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        for idx, (kind, value) in enumerate(contact):
            if kind == "text":
                _add_run(p, value)
            else:
                _add_hyperlink(p, kind, _with_scheme(value))
            if idx < len(contact) - 1:
                _add_run(p, " • ")

    if resume_data.summary:
        _section_heading(doc, "SUMMARY")
        p = doc.add_paragraph()
        _tight(p)
        _add_run(p, resume_data.summary)

    if resume_data.education:
        _section_heading(doc, "EDUCATION")
        for edu in resume_data.education:
            p = doc.add_paragraph()
            _tight(p)
            _add_run(p, edu.degree, bold=True)
            if edu.university:
                _add_run(p, (", " if edu.degree else "") + edu.university)
            if edu.location:
                _add_run(p, f" ({edu.location})")
            _add_run(p, f" | {format_date(edu.start_date)} – {format_date(edu.end_date)}")
            if edu.gpa:
                _add_run(p, f" | GPA: {edu.gpa}")

    entries = experience_entries(resume_data)
    if entries:
        _section_heading(doc, "EXPERIENCE")
        for idx, entry in enumerate(entries):
            p = doc.add_paragraph()
            _tight(p, before=0 if idx == 0 else 3)
            _add_run(p, entry.display_title or "Untitled", bold=True)
            meta = [m for m in (entry.location, f"{format_date(entry.start_date)} – {format_date(entry.end_date)}") if m]
            _add_run(p, " | " + " | ".join(meta))

            if entry.effective_description:
                p = doc.add_paragraph()
                _tight(p)
                _add_run(p, entry.effective_description, italic=True)

            for b in split_bullets(entry.effective_responsibilities):
                p = doc.add_paragraph()
                _tight(p)
                p.paragraph_format.left_indent = Pt(18)
                _add_run(p, "• ")
                _add_run(p, b)

            tools = tools_line(entry)
            if tools:
                p = doc.add_paragraph()
                _tight(p)
                _add_run(p, "Tools: ", bold=True)
                _add_run(p, tools)

    if resume_data.skills:
        _section_heading(doc, "SKILLS")
        for line in resume_data.skills:
            p = doc.add_paragraph()
            _tight(p)
            if ":" in line:
                cat, rest = line.split(":", 1)
                _add_run(p, cat.strip() + ": ", bold=True)
                _add_run(p, rest.strip())
            else:
                _add_run(p, line)

    doc.save(path_or_stream)
    logger.debug("rendered resume for %r", info.name)
