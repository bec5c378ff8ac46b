"""Fold AI-returned records back into the user's data.

Fields present in a response override the original; fields the response leaves
out (or sets to null) keep their original value. Nothing the user entered is
dropped: entries the model did not return stay as they were.
"""
import logging
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel

from .models import (
    EnhancedProject,
    ImprovementSuggestion,
    Internship,
    Project,
    ProjectEnhancement,
    ResumeData,
    ResumeExtraction,
    TailoredResume,
    generate_id,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def merge_record(original: Optional[BaseModel], update: Optional[BaseModel], cls: Optional[Type[T]] = None) -> Optional[T]:
    if update is None:
        if original is None:
            return None
        return (cls or type(original)).model_validate(original.model_dump())
    cls = cls or type(original if original is not None else update)

    data = original.model_dump() if original is not None else {}
    # Only what the response actually carried; pydantic defaults don't count.
    data.update(update.model_dump(exclude_unset=True, exclude_none=True))
    return cls.model_validate(data)


def _identity(p: Project):
    return (p.role.strip().lower(), p.company_name.strip().lower())


def merge_enhanced_projects(originals: List[Project], enhanced: List[Project]) -> List[EnhancedProject]:
    known = {o.id for o in originals if o.id}
    # Originals without an id are matched on role and company instead.
    anonymous = {}
    for o in originals:
        if not o.id:
            anonymous.setdefault(_identity(o), o)

    updates = {}
    anonymous_updates = {}
    unmatched = []
    for e in enhanced:
        if e.id in known:
            # first occurrence of a duplicated id wins
            updates.setdefault(e.id, e)
        elif not e.id and _identity(e) in anonymous and _identity(e) not in anonymous_updates:
            anonymous_updates[_identity(e)] = e
        elif not e.id or all(u.id != e.id for u in unmatched):
            unmatched.append(e)

    merged = []
    for orig in originals:
        if orig.id:
            update = updates.get(orig.id)
        elif anonymous.get(_identity(orig)) is orig:
            update = anonymous_updates.get(_identity(orig))
        else:
            update = None
        merged.append(merge_record(orig, update, EnhancedProject))
    for e in unmatched:
        item = merge_record(None, e, EnhancedProject)
        if not item.id:
            item.id = generate_id()
        merged.append(item)
    return merged


def merge_internship(original: Optional[Internship], enhanced: Optional[Internship]) -> Optional[Internship]:
    if original is None:
        return None
    if enhanced is None:
        return original
    if original.id and enhanced.id and original.id != enhanced.id:
        logger.warning("enhanced internship id %r does not match %r; keeping original", enhanced.id, original.id)
        return original
    merged = merge_record(original, enhanced, Internship)
    # The model may blank the id; the user's id is authoritative.
    if original.id:
        merged.id = original.id
    return merged


def apply_tailored_resume(resume_data: ResumeData, tailored: TailoredResume) -> ResumeData:
    returned = tailored.model_fields_set
    summary = resume_data.summary
    if "summary" in returned and tailored.summary and tailored.summary.strip():
        summary = tailored.summary
    skills = list(tailored.skills) if "skills" in returned else list(resume_data.skills)
    return update_resume_data(
        resume_data,
        summary=summary,
        skills=skills,
        projects=merge_enhanced_projects(resume_data.projects, tailored.enhanced_projects),
        internship=merge_internship(resume_data.internship, tailored.enhanced_internship),
    )


def apply_enhancement(project: Project, enhancement: ProjectEnhancement) -> EnhancedProject:
    return merge_record(project, enhancement, EnhancedProject)


def apply_suggestion(resume_data: ResumeData, suggestion: ImprovementSuggestion) -> ResumeData:
    projects = []
    found = False
    for p in resume_data.projects:
        if p.id == suggestion.project_id and not found:
            found = True
            base = p.enhanced_responsibilities or p.responsibilities or ""
            p = p.model_copy(update={"enhanced_responsibilities": f"{base}\n{suggestion.suggestion}".strip()})
        projects.append(p)

    if not found:
        logger.warning("could not find project %r to apply suggestion", suggestion.project_id)
        return resume_data
    return update_resume_data(resume_data, projects=projects)


def resume_from_extraction(extraction: ResumeExtraction) -> ResumeData:
    education = []
    for edu in extraction.education:
        education.append(edu.model_copy(update={"id": edu.id or generate_id()}))

    projects = []
    for proj in extraction.projects:
        item = EnhancedProject.model_validate(proj.model_dump())
        item.id = item.id or generate_id()
        projects.append(item)

    internship = None
    if extraction.internship is not None:
        internship = extraction.internship.model_copy(update={"id": extraction.internship.id or generate_id()})

    return ResumeData(
        personal_info=extraction.personal_info.model_copy(),
        education=education,
        internship=internship,
        projects=projects,
        summary=extraction.summary,
        skills=list(extraction.skills),
    )


def update_resume_data(resume_data: ResumeData, **changes) -> ResumeData:
    unknown = set(changes) - set(ResumeData.model_fields)
    if unknown:
        raise TypeError(f"unknown resume fields: {', '.join(sorted(unknown))}")
    return resume_data.model_copy(update=changes, deep=False)


def ensure_ids(resume_data: ResumeData) -> ResumeData:
    """Give every education, project and internship entry an id.

    Snapshots written by hand or by older sessions may carry blank ids, which
    would keep AI results from being matched back to their entries.
    """
    education = [e if e.id else e.model_copy(update={"id": generate_id()}) for e in resume_data.education]
    projects = [p if p.id else p.model_copy(update={"id": generate_id()}) for p in resume_data.projects]
    internship = resume_data.internship
    if internship is not None and not internship.id:
        internship = internship.model_copy(update={"id": generate_id()})

    if education == resume_data.education and projects == resume_data.projects and internship is resume_data.internship:
        return resume_data
    return update_resume_data(resume_data, education=education, projects=projects, internship=internship)
