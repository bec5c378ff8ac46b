import io

import pytest
from docx import Document

from resume_builder.models import ResumeData
from resume_builder.render import format_date, render_docx, resume_to_markdown, split_bullets, tools_line


@pytest.mark.parametrize("value,expected", [
    ("", "Present"),
    ("2023-05-10", "May 2023"),
    ("2023-05", "May 2023"),
    ("2023", "2023"),
    ("Summer 2021", "Summer 2021"),
])
def test_format_date(value, expected):
    assert format_date(value) == expected


def test_split_bullets():
    text = "- Built REST endpoints\n\n* Wrote tests\n• Led reviews\nPlain line\n   "
    assert split_bullets(text) == ["Built REST endpoints", "Wrote tests", "Led reviews", "Plain line"]


def test_tools_line_appends_suggestions(resume):
    p = resume.projects[0]
    assert tools_line(p) == "Python, Flask"
    p.enhanced_tools = "Python, Flask, Redis"
    p.suggested_cloud = "AWS"
    p.suggested_dashboard = "Grafana"
    assert tools_line(p) == "Python, Flask, Redis | Cloud: AWS | Dashboard: Grafana"


def test_markdown_layout(resume):
    md = resume_to_markdown(resume)
    lines = md.splitlines()

    assert lines[0] == "# Jane Doe"
    assert lines[1] == "555-0100 • jane@example.com • [LinkedIn](linkedin.com/in/janedoe)"
    assert "**Backend Engineer at Globex** | Dallas, TX | Jun 2022 – Present" in lines
    assert "- Built REST endpoints" in lines
    assert "*Tools:* Python, Flask" in lines
    assert "- **Languages:** Python, SQL" in lines
    # internship is listed ahead of projects
    assert md.index("Data Intern at Acme") < md.index("Backend Engineer at Globex")
    assert md.index("**SUMMARY**") < md.index("**EDUCATION**") < md.index("**EXPERIENCE**") < md.index("**SKILLS**")


def test_markdown_prefers_enhanced_content(resume):
    resume.projects[0].enhanced_description = "Payments API handling 2M requests/day"
    resume.projects[0].enhanced_responsibilities = "Cut p99 latency by 40%"
    md = resume_to_markdown(resume)
    assert "Payments API handling 2M requests/day" in md
    assert "- Cut p99 latency by 40%" in md
    assert "- Built REST endpoints" not in md


def test_markdown_for_empty_resume():
    md = resume_to_markdown(ResumeData())
    assert md == "# Your Name\n"


def test_render_docx(resume):
    buf = io.BytesIO()
    render_docx(resume, buf)
    buf.seek(0)

    doc = Document(buf)
    texts = [p.text for p in doc.paragraphs]
    assert texts[0] == "Jane Doe"
    for heading in ("SUMMARY", "EDUCATION", "EXPERIENCE", "SKILLS"):
        assert heading in texts
    assert "• Built REST endpoints" in texts
    assert "Tools: Python, Flask" in texts
    assert "Languages: Python, SQL" in texts


def test_render_docx_to_path(resume, tmp_path):
    out = tmp_path / "resume.docx"
    render_docx(resume, str(out))
    assert out.stat().st_size > 0


def test_render_docx_links_contact_urls(resume):
    resume.personal_info.portfolio = "https://jane.dev"
    buf = io.BytesIO()
    render_docx(resume, buf)
    buf.seek(0)

    doc = Document(buf)
    targets = sorted(r.target_ref for r in doc.part.rels.values() if r.is_external)
    assert targets == ["https://jane.dev", "https://linkedin.com/in/janedoe"]
    links = doc.paragraphs[1]._p.xpath("./w:hyperlink/w:r/w:t")
    assert [t.text for t in links] == ["LinkedIn", "Portfolio"]
