import json

import pytest
from langchain_core.prompts import ChatPromptTemplate

from resume_builder.models import ResumeData, ResumeLength
from resume_builder.prompts import (
    ENHANCE_PROMPT,
    EXTRACT_PROMPT,
    MATCH_PROMPT,
    TAILOR_PROMPT,
    build_experience_payload,
    build_jd_block,
    build_length_directive,
    build_resume_json,
)


def test_experience_payload_puts_internship_first(resume):
    payload = build_experience_payload(resume)
    assert [(e["id"], e["type"]) for e in payload] == [("int-1", "Internship"), ("p1", "Project"), ("p2", "Project")]
    assert payload[1]["companyName"] == "Globex"
    assert set(payload[0]) == {"id", "type", "companyName", "location", "startDate", "endDate", "role",
                               "description", "responsibilities", "tools"}


def test_experience_payload_without_internship():
    assert build_experience_payload(ResumeData()) == []


def test_resume_json_is_valid_json(resume):
    data = json.loads(build_resume_json(resume))
    assert data["personalInfo"]["name"] == "Jane Doe"
    assert data["education"][0]["university"] == "State University"
    assert len(data["experience"]) == 3


def test_jd_block_is_omitted_when_blank():
    assert build_jd_block("") == ""
    assert build_jd_block("   \n") == ""
    assert "Senior Python role" in build_jd_block(" Senior Python role ")


def test_length_directive():
    assert "1-page" in build_length_directive(ResumeLength.ONE_PAGE)
    assert "2-page" in build_length_directive("2-page")
    with pytest.raises(ValueError):
        build_length_directive("3-page")


@pytest.mark.parametrize("template,variables", [
    (ENHANCE_PROMPT, {"company", "role", "description", "responsibilities", "tools", "jd_block", "format_instructions"}),
    (TAILOR_PROMPT, {"resume_json", "job_description", "length_directive", "format_instructions"}),
    (EXTRACT_PROMPT, {"resume_text", "format_instructions"}),
    (MATCH_PROMPT, {"resume_json", "job_description", "format_instructions"}),
])
def test_templates_declare_expected_variables(template, variables):
    prompt = ChatPromptTemplate.from_messages([("human", template)])
    assert set(prompt.input_variables) == variables
