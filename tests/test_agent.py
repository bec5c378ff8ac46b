import pytest
from langchain_core.language_models import FakeListChatModel

from resume_builder import agent
from resume_builder.errors import AIServiceError, API_KEY_ERROR, API_KEY_NOT_SELECTED, ApiKeyMissingError, InputError
from resume_builder.merge import apply_tailored_resume
from resume_builder.models import MatchAnalysis, ProjectEnhancement, ResumeExtraction, ResumeLength, TailoredResume

ENHANCEMENT = {
    "enhancedDescription": "Designed a PCI-compliant payments API serving 2M requests/day.",
    "enhancedResponsibilities": "Built 14 REST endpoints\nRaised coverage to 90%",
    "enhancedTools": "Python, Flask, PostgreSQL, AWS",
    "suggestedDatabase": "PostgreSQL",
    "suggestedCloud": "AWS",
    "suggestedDashboard": "Grafana",
}


def test_enhance_project_parses_response(resume, recording_llm):
    llm = recording_llm(ENHANCEMENT)
    out = agent.enhance_project(resume.projects[0], "Fintech backend role", llm=llm.runnable())

    assert isinstance(out, ProjectEnhancement)
    assert out.suggested_cloud == "AWS"
    prompt = llm.prompts[0]
    assert "Company: Globex" in prompt
    assert "Fintech backend role" in prompt
    # the schema the model must follow is part of the prompt
    assert "enhancedDescription" in prompt


def test_enhance_project_without_job_description(resume, recording_llm):
    llm = recording_llm(ENHANCEMENT)
    agent.enhance_project(resume.projects[0], llm=llm.runnable())
    assert "Consider this Job Description" not in llm.prompts[0]


def test_enhance_project_accepts_fenced_json(resume):
    import json
    fenced = "```json\n" + json.dumps(ENHANCEMENT) + "\n```"
    out = agent.enhance_project(resume.projects[0], llm=FakeListChatModel(responses=[fenced]))
    assert out.suggested_dashboard == "Grafana"


def test_generate_tailored_resume_round_trip(resume, recording_llm):
    reply = {
        "summary": "Backend engineer with payments depth.",
        "skills": ["Languages: Python", "Cloud Platforms: AWS"],
        "enhancedProjects": [{"id": "p1", "companyName": "Globex", "enhancedDescription": "Payments platform"}],
        "enhancedInternship": None,
    }
    llm = recording_llm(reply)
    tailored = agent.generate_tailored_resume(resume, "Python payments engineer", ResumeLength.TWO_PAGE, llm=llm.runnable())

    assert isinstance(tailored, TailoredResume)
    assert tailored.enhanced_internship is None
    prompt = llm.prompts[0]
    assert "Python payments engineer" in prompt
    assert "Detailed (2-page)" in prompt
    assert '"id": "int-1"' in prompt

    merged = apply_tailored_resume(resume, tailored)
    assert merged.projects[0].enhanced_description == "Payments platform"
    assert merged.projects[0].responsibilities == resume.projects[0].responsibilities
    assert merged.internship == resume.internship


def test_generate_tailored_resume_requires_job_description(resume, recording_llm):
    llm = recording_llm({})
    with pytest.raises(InputError, match="Job description cannot be empty"):
        agent.generate_tailored_resume(resume, "  ", llm=llm.runnable())
    assert llm.prompts == []


def test_extract_resume_data(recording_llm):
    reply = {
        "personalInfo": {"name": "Sam Lee", "phoneNumber": "", "email": "sam@example.com", "linkedin": "", "portfolio": ""},
        "education": [{"id": "e1", "degree": "BS", "university": "Tech", "location": "", "startDate": "2016",
                       "endDate": "2020", "gpa": ""}],
        "internship": None,
        "projects": [{"id": "x1", "companyName": "Initech", "location": "", "startDate": "2020-07", "endDate": "",
                      "role": "Engineer", "description": "TPS reports", "responsibilities": "Fixed bugs",
                      "tools": "Java"}],
        "summary": "Engineer.",
        "skills": ["Java"],
    }
    llm = recording_llm(reply)
    out = agent.extract_resume_data("Sam Lee\nEngineer at Initech", llm=llm.runnable())
    assert isinstance(out, ResumeExtraction)
    assert out.personal_info.email == "sam@example.com"
    assert out.projects[0].end_date == ""
    assert "Engineer at Initech" in llm.prompts[0]


def test_extract_resume_data_requires_text(recording_llm):
    with pytest.raises(InputError, match="Resume text cannot be empty"):
        agent.extract_resume_data("\n ", llm=recording_llm({}).runnable())


def test_analyze_match_drops_suggestions_for_unknown_projects(resume, recording_llm):
    reply = {
        "matchPercentage": 64,
        "matchSummary": "Good backend fit, light on cloud.",
        "missingKeywords": ["kubernetes", "terraform"],
        "improvementSuggestions": [
            {"projectId": "p1", "projectName": "Backend Engineer at Globex", "suggestion": "Deployed on Kubernetes"},
            {"projectId": "ghost", "projectName": "?", "suggestion": "x"},
        ],
    }
    out = agent.analyze_resume_job_match(resume, "Kubernetes backend engineer", llm=recording_llm(reply).runnable())
    assert isinstance(out, MatchAnalysis)
    assert out.match_percentage == 64
    assert [s.project_id for s in out.improvement_suggestions] == ["p1"]


def test_analyze_match_offline_needs_no_llm(resume, monkeypatch):
    monkeypatch.setattr(agent, "create_llm", lambda *a, **k: pytest.fail("LLM should not be created"))
    out = agent.analyze_resume_job_match(resume, "Python Flask engineer", use_llm=False)
    assert 0 <= out.match_percentage <= 100


def test_analyze_match_requires_job_description(resume):
    with pytest.raises(InputError):
        agent.analyze_resume_job_match(resume, "", use_llm=False)


@pytest.mark.parametrize("raised,expected", [
    ("Incorrect API key provided: sk-xxx", API_KEY_ERROR),
    ("API_KEY_INVALID", API_KEY_ERROR),
    ("Requested entity was not found.", API_KEY_NOT_SELECTED),
    ("connection reset", "Failed to enhance project. Details: connection reset"),
])
def test_provider_errors_are_mapped_to_user_messages(resume, failing_llm, raised, expected):
    with pytest.raises(AIServiceError) as excinfo:
        agent.enhance_project(resume.projects[0], llm=failing_llm(raised))
    assert str(excinfo.value) == expected


def test_unparseable_response_raises_service_error(resume):
    with pytest.raises(AIServiceError, match="Failed to extract resume data"):
        agent.extract_resume_data("some resume", llm=FakeListChatModel(responses=["not json at all"]))


def test_create_llm_without_key(monkeypatch):
    monkeypatch.setattr(agent, "load_settings", _no_key_settings)
    with pytest.raises(ApiKeyMissingError):
        agent.create_llm()


def test_create_llm_prefers_manual_key(monkeypatch):
    monkeypatch.setattr(agent, "load_settings", _no_key_settings)
    llm = agent.create_llm("sk-manual", temperature=0.0)
    assert llm.openai_api_key.get_secret_value() == "sk-manual"
    assert llm.temperature == 0.0


def test_missing_key_is_raised_before_any_call(resume, monkeypatch):
    monkeypatch.setattr(agent, "load_settings", _no_key_settings)
    with pytest.raises(ApiKeyMissingError):
        agent.generate_tailored_resume(resume, "a job")


def _no_key_settings():
    from resume_builder.config import Settings
    return Settings(api_key=None)
