import random
import string
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id(length: int = 7) -> str:
    return "".join(random.choice(_ID_ALPHABET) for _ in range(length))


class Record(BaseModel):
    """Base for every resume record.

    Attributes are snake_case in Python and camelCase on the wire, which is the
    shape the model is asked to return and the shape profiles are exported in.
    Either spelling is accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class PersonalInfo(Record):
    name: str = ""
    phone_number: str = ""
    email: str = ""
    linkedin: str = ""
    portfolio: str = ""


class Education(Record):
    id: str = ""
    degree: str = ""
    university: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    gpa: str = ""


class Project(Record):
    id: str = ""
    company_name: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    role: str = ""
    description: str = ""
    responsibilities: str = ""
    tools: str = ""


class EnhancedProject(Project):
    enhanced_description: Optional[str] = None
    enhanced_responsibilities: Optional[str] = None
    enhanced_tools: Optional[str] = None
    suggested_database: Optional[str] = None
    suggested_cloud: Optional[str] = None
    suggested_dashboard: Optional[str] = None

    # Enhanced values win when present; the preview and export read these.
    @property
    def effective_description(self) -> str:
        return self.enhanced_description or self.description

    @property
    def effective_responsibilities(self) -> str:
        return self.enhanced_responsibilities or self.responsibilities

    @property
    def effective_tools(self) -> str:
        return self.enhanced_tools or self.tools

    @property
    def display_title(self) -> str:
        return " at ".join(part for part in (self.role.strip(), self.company_name.strip()) if part)


class Internship(EnhancedProject):
    pass


class ResumeData(Record):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    education: List[Education] = Field(default_factory=list)
    internship: Optional[Internship] = None
    projects: List[EnhancedProject] = Field(default_factory=list)
    summary: str = ""
    skills: List[str] = Field(default_factory=list)

    def find_project(self, project_id: str) -> Optional[EnhancedProject]:
        for p in self.projects:
            if p.id == project_id:
                return p
        return None


class Profile(Record):
    id: str = Field(default_factory=generate_id)
    name: str = ""
    resume_data: ResumeData = Field(default_factory=ResumeData)


# --- LLM response shapes ---

class ProjectEnhancement(Record):
    enhanced_description: str = Field(description="A rewritten, impactful project description.")
    enhanced_responsibilities: str = Field(description="Rewritten, quantifiable responsibilities in bullet points, one per line.")
    enhanced_tools: str = Field(description="A comprehensive list of tools, including original and suggested ones, formatted as a comma-separated string.")
    suggested_database: str = Field(description="A single, relevant database technology (e.g., PostgreSQL, MongoDB, DynamoDB).")
    suggested_cloud: str = Field(description="A single, relevant cloud platform (e.g., AWS, Azure, Google Cloud).")
    suggested_dashboard: str = Field(description="A single, relevant dashboard/visualization tool (e.g., Tableau, Power BI, Looker Studio, Grafana).")


class TailoredResume(Record):
    summary: str = Field(description="Professional summary tailored to the job description.")
    skills: List[str] = Field(default_factory=list, description="Categorized technical skills, e.g. 'Databases: SQL, MongoDB'.")
    enhanced_projects: List[EnhancedProject] = Field(default_factory=list, description="Every project entry with its original fields and enhanced versions.")
    enhanced_internship: Optional[Internship] = Field(default=None, description="The enhanced internship entry, or null when no internship was provided.")


class ResumeExtraction(Record):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    education: List[Education] = Field(default_factory=list)
    internship: Optional[Internship] = Field(default=None, description="A single clearly indicated internship, otherwise null.")
    projects: List[Project] = Field(default_factory=list)
    summary: str = Field(default="", description="Concise professional summary (2-5 sentences).")
    skills: List[str] = Field(default_factory=list)


class ImprovementSuggestion(Record):
    project_id: str = Field(description="The id of the project the suggestion applies to.")
    project_name: str = Field(default="", description="Role and company of that project, for display.")
    suggestion: str = Field(description="One new resume bullet that closes a gap against the job description.")


class MatchAnalysis(Record):
    match_percentage: int = Field(description="How well the resume matches the job description, 0-100.")
    match_summary: str = Field(default="", description="One or two sentences explaining the score.")
    missing_keywords: List[str] = Field(default_factory=list)
    improvement_suggestions: List[ImprovementSuggestion] = Field(default_factory=list)

    @field_validator("match_percentage", mode="before")
    @classmethod
    def _clamp_percentage(cls, v):
        try:
            v = int(round(float(v)))
        except (TypeError, ValueError, OverflowError):
            v = 0
        return max(0, min(100, v))


class ResumeLength(str, Enum):
    ONE_PAGE = "1-page"
    TWO_PAGE = "2-page"


INITIAL_PERSONAL_INFO = PersonalInfo()

INITIAL_EDUCATION = Education(id="edu-1")

INITIAL_PROJECT = EnhancedProject(id="proj-1")

INITIAL_RESUME_DATA = ResumeData(personal_info=INITIAL_PERSONAL_INFO)

DEFAULT_PROFILE_NAME = "New Profile"
UPLOADED_PROFILE_NAME = "Uploaded Resume"
