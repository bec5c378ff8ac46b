import logging
from typing import Dict, List, Optional

from .errors import LastProfileError, ProfileNotFoundError
from .merge import (
    apply_enhancement,
    apply_suggestion,
    apply_tailored_resume,
    ensure_ids,
    resume_from_extraction,
    update_resume_data,
)
from .models import (
    DEFAULT_PROFILE_NAME,
    INITIAL_EDUCATION,
    INITIAL_PROJECT,
    INITIAL_RESUME_DATA,
    UPLOADED_PROFILE_NAME,
    Education,
    EnhancedProject,
    ImprovementSuggestion,
    PersonalInfo,
    Profile,
    Project,
    ProjectEnhancement,
    ResumeData,
    ResumeExtraction,
    TailoredResume,
    generate_id,
)

logger = logging.getLogger(__name__)


def _blank_resume() -> ResumeData:
    return INITIAL_RESUME_DATA.model_copy(deep=True)


class ProfileStore:
    """Named resume profiles and the one currently being edited.

    Every edit replaces the current profile's `ResumeData` with a new object, so
    a snapshot taken before an AI call is never mutated by it.
    """

    def __init__(self, profiles: Optional[List[Profile]] = None, last_selected_id: Optional[str] = None):
        self.profiles: List[Profile] = [
            p.model_copy(update={"resume_data": ensure_ids(p.resume_data)}) for p in profiles or []
        ]
        if not self.profiles:
            self.profiles.append(Profile(id=generate_id(), name=DEFAULT_PROFILE_NAME, resume_data=_blank_resume()))

        ids = [p.id for p in self.profiles]
        self.current_profile_id: str = last_selected_id if last_selected_id in ids else ids[0]

    # --- selection ---

    def _index(self, profile_id: str) -> int:
        for i, p in enumerate(self.profiles):
            if p.id == profile_id:
                return i
        raise ProfileNotFoundError(f"No profile with id {profile_id!r}.")

    def get(self, profile_id: str) -> Profile:
        return self.profiles[self._index(profile_id)]

    @property
    def current(self) -> Profile:
        return self.get(self.current_profile_id)

    @property
    def resume_data(self) -> ResumeData:
        return self.current.resume_data

    def select(self, profile_id: str) -> Profile:
        profile = self.get(profile_id)
        self.current_profile_id = profile.id
        return profile

    # --- profile lifecycle ---

    def new_profile(self) -> Profile:
        profile = Profile(
            id=generate_id(),
            name=f"{DEFAULT_PROFILE_NAME} {len(self.profiles) + 1}",
            resume_data=_blank_resume(),
        )
        self.profiles.append(profile)
        self.current_profile_id = profile.id
        return profile

    def add_profile_from_extraction(self, extraction: ResumeExtraction) -> Profile:
        profile = Profile(id=generate_id(), name=UPLOADED_PROFILE_NAME, resume_data=resume_from_extraction(extraction))
        self.profiles.append(profile)
        self.current_profile_id = profile.id
        logger.info("created profile %s from extracted resume", profile.id)
        return profile

    def rename(self, profile_id: str, name: str) -> Profile:
        i = self._index(profile_id)
        self.profiles[i] = self.profiles[i].model_copy(update={"name": name})
        return self.profiles[i]

    def delete(self, profile_id: str) -> None:
        i = self._index(profile_id)
        if len(self.profiles) == 1:
            raise LastProfileError(
                "You cannot delete the last profile. Please create a new one first if you wish to clear data."
            )
        del self.profiles[i]
        if self.current_profile_id == profile_id:
            self.current_profile_id = self.profiles[0].id

    # --- editing the current profile ---

    def _replace_resume(self, resume_data: ResumeData) -> ResumeData:
        i = self._index(self.current_profile_id)
        self.profiles[i] = self.profiles[i].model_copy(update={"resume_data": resume_data})
        return resume_data

    def update_resume_data(self, **changes) -> ResumeData:
        return self._replace_resume(update_resume_data(self.resume_data, **changes))

    def update_personal_info(self, **fields) -> ResumeData:
        unknown = set(fields) - set(PersonalInfo.model_fields)
        if unknown:
            raise TypeError(f"unknown personal info fields: {', '.join(sorted(unknown))}")
        info = PersonalInfo.model_validate({**self.resume_data.personal_info.model_dump(), **fields})
        return self.update_resume_data(personal_info=info)

    def add_education(self) -> Education:
        edu = INITIAL_EDUCATION.model_copy(update={"id": generate_id()})
        self.update_resume_data(education=self.resume_data.education + [edu])
        return edu

    def update_education(self, education: Education) -> ResumeData:
        items = [education if e.id == education.id else e for e in self.resume_data.education]
        return self.update_resume_data(education=items)

    def remove_education(self, education_id: str) -> ResumeData:
        return self.update_resume_data(education=[e for e in self.resume_data.education if e.id != education_id])

    def add_project(self) -> EnhancedProject:
        project = INITIAL_PROJECT.model_copy(update={"id": generate_id()})
        self.update_resume_data(projects=self.resume_data.projects + [project])
        return project

    def update_project(self, project: Project) -> ResumeData:
        if not isinstance(project, EnhancedProject):
            project = EnhancedProject.model_validate(project.model_dump())
        items = [project if p.id == project.id else p for p in self.resume_data.projects]
        return self.update_resume_data(projects=items)

    def remove_project(self, project_id: str) -> ResumeData:
        return self.update_resume_data(projects=[p for p in self.resume_data.projects if p.id != project_id])

    def save_enhanced_project(self, project: EnhancedProject) -> ResumeData:
        return self.update_project(project)

    def apply_enhancement(self, project_id: str, enhancement: ProjectEnhancement) -> ResumeData:
        project = self.resume_data.find_project(project_id)
        if project is None:
            raise ProfileNotFoundError(f"No project with id {project_id!r} in the current profile.")
        return self.save_enhanced_project(apply_enhancement(project, enhancement))

    def apply_tailored(self, tailored: TailoredResume) -> ResumeData:
        return self._replace_resume(apply_tailored_resume(self.resume_data, tailored))

    def apply_suggestion(self, suggestion: ImprovementSuggestion) -> ResumeData:
        return self._replace_resume(apply_suggestion(self.resume_data, suggestion))

    # --- snapshots ---

    def to_dict(self) -> Dict:
        return {
            "profiles": [p.to_dict() for p in self.profiles],
            "lastSelectedProfileId": self.current_profile_id,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ProfileStore":
        data = data or {}
        profiles = [Profile.model_validate(p) for p in data.get("profiles") or []]
        return cls(profiles, data.get("lastSelectedProfileId"))
