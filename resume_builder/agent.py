import logging
from typing import Dict, Optional, Type

import openai
from langchain_core.output_parsers import PydanticOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

try:
    from langchain.output_parsers import OutputFixingParser
except ImportError:
    OutputFixingParser = None

from .config import load_settings, resolve_api_key
from .errors import AIServiceError, API_KEY_ERROR, ApiKeyMissingError, InputError, describe_ai_failure
from .match import heuristic_match
from .models import (
    MatchAnalysis,
    Project,
    ProjectEnhancement,
    ResumeData,
    ResumeExtraction,
    ResumeLength,
    TailoredResume,
)
from .prompts import (
    ENHANCE_PROMPT,
    EXTRACT_PROMPT,
    MATCH_PROMPT,
    SYSTEM_BASE,
    SYSTEM_PARSER,
    TAILOR_PROMPT,
    build_jd_block,
    build_length_directive,
    build_resume_json,
)

logger = logging.getLogger(__name__)


def create_llm(api_key: Optional[str] = None, temperature: Optional[float] = None) -> ChatOpenAI:
    settings = load_settings()
    key = resolve_api_key(api_key, settings)
    if not key:
        raise ApiKeyMissingError()
    return ChatOpenAI(
        model=settings.model,
        temperature=settings.temperature if temperature is None else temperature,
        api_key=key,
        base_url=settings.base_url,
    )


def _run_structured(system: str, template: str, schema: Type[BaseModel], variables: Dict, llm, stage: str) -> BaseModel:
    parser = PydanticOutputParser(pydantic_object=schema)
    prompt = ChatPromptTemplate.from_messages([
        ("system", system),
        ("human", template),
    ])
    chain = prompt | llm
    raw = chain.invoke({**variables, "format_instructions": parser.get_format_instructions()})
    text = raw.content if hasattr(raw, "content") else str(raw)
    try:
        return parser.parse(text)
    except Exception:
        if OutputFixingParser is None:
            raise
        logger.info("%s: response did not match schema, asking the model to fix it", stage)
        fixing = OutputFixingParser.from_llm(parser=parser, llm=llm)
        return fixing.parse(text)


def _call(stage: str, failure_prefix: str, system: str, template: str, schema: Type[BaseModel], variables: Dict, llm=None, api_key: Optional[str] = None, temperature: Optional[float] = None):
    # ApiKeyMissingError propagates untouched so the UI can ask for a key.
    if llm is None:
        llm = create_llm(api_key, temperature)
    try:
        return _run_structured(system, template, schema, variables, llm, stage)
    except Exception as exc:
        logger.exception("%s failed", stage)
        if isinstance(exc, openai.AuthenticationError):
            raise AIServiceError(API_KEY_ERROR) from exc
        raise AIServiceError(describe_ai_failure(failure_prefix, exc)) from exc


def enhance_project(project: Project, job_description: str = "", *, api_key: Optional[str] = None, llm=None) -> ProjectEnhancement:
    """Rewrite one project's description, responsibilities and tools.

    Also suggests one database, one cloud platform and one dashboard tool. The
    job description is optional; when blank the prompt leaves it out.
    """
    variables = {
        "company": project.company_name,
        "role": project.role,
        "description": project.description,
        "responsibilities": project.responsibilities,
        "tools": project.tools,
        "jd_block": build_jd_block(job_description),
    }
    return _call("enhance_project", "Failed to enhance project.", SYSTEM_BASE, ENHANCE_PROMPT,
                 ProjectEnhancement, variables, llm=llm, api_key=api_key)


def generate_tailored_resume(resume_data: ResumeData, job_description: str, length=ResumeLength.ONE_PAGE, *, api_key: Optional[str] = None, llm=None) -> TailoredResume:
    """Tailor summary, skills and every experience entry to a job description.

    The returned entries carry the original ids; use `merge.apply_tailored_resume`
    to fold them back into `resume_data`.
    """
    if not job_description or not job_description.strip():
        raise InputError("Job description cannot be empty for tailoring the resume.")

    variables = {
        "resume_json": build_resume_json(resume_data),
        "job_description": job_description.strip(),
        "length_directive": build_length_directive(length),
    }
    logger.info("tailoring resume: %d projects, internship=%s, length=%s",
                len(resume_data.projects), resume_data.internship is not None, ResumeLength(length).value)
    return _call("generate_tailored_resume", "Failed to generate tailored resume.", SYSTEM_BASE, TAILOR_PROMPT,
                 TailoredResume, variables, llm=llm, api_key=api_key)


def extract_resume_data(raw_resume_text: str, *, api_key: Optional[str] = None, llm=None) -> ResumeExtraction:
    if not raw_resume_text or not raw_resume_text.strip():
        raise InputError("Resume text cannot be empty for extraction.")

    # Extraction should be as literal as possible.
    return _call("extract_resume_data", "Failed to extract resume data.", SYSTEM_PARSER, EXTRACT_PROMPT,
                 ResumeExtraction, {"resume_text": raw_resume_text.strip()}, llm=llm, api_key=api_key,
                 temperature=0.0)


def analyze_resume_job_match(resume_data: ResumeData, job_description: str, *, api_key: Optional[str] = None, llm=None, use_llm: bool = True) -> MatchAnalysis:
    if not job_description or not job_description.strip():
        raise InputError("Please paste a job description to analyze.")

    if not use_llm:
        return heuristic_match(resume_data, job_description)

    variables = {
        "resume_json": build_resume_json(resume_data),
        "job_description": job_description.strip(),
    }
    analysis = _call("analyze_resume_job_match", "Failed to analyze resume match.", SYSTEM_BASE, MATCH_PROMPT,
                     MatchAnalysis, variables, llm=llm, api_key=api_key, temperature=0.0)

    known = {p.id for p in resume_data.projects}
    dropped = [s for s in analysis.improvement_suggestions if s.project_id not in known]
    if dropped:
        logger.warning("dropping %d suggestions for unknown project ids", len(dropped))
        analysis.improvement_suggestions = [s for s in analysis.improvement_suggestions if s.project_id in known]
    return analysis
