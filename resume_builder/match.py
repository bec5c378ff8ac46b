import re
from collections import Counter
from typing import List, Set

from .models import ImprovementSuggestion, MatchAnalysis, ResumeData

MAX_MISSING_KEYWORDS = 12

STOP_WORDS = {
    "about", "above", "across", "after", "also", "among", "and", "been", "being", "both",
    "build", "candidate", "candidates", "company", "could", "daily", "each", "ensure",
    "excellent", "experience", "from", "good", "great", "have", "help", "highly", "including",
    "into", "join", "knowledge", "like", "looking", "more", "most", "must", "other", "over",
    "plus", "preferred", "required", "requirements", "responsibilities", "role", "should",
    "skills", "strong", "team", "teams", "that", "their", "them", "these", "this", "through",
    "using", "well", "were", "what", "when", "where", "which", "while", "will", "with",
    "work", "working", "would", "years", "your", "ability", "able", "such", "than", "then",
    "there", "they", "within", "without", "understanding", "opportunity",
}

_TOKEN = re.compile(r"[a-z][a-z0-9+#.\-]{3,}")
_SENTENCE = re.compile(r"[.!?;\n]+(?:\s|$)")


def _tokens(text: str) -> List[str]:
    out = []
    for t in _TOKEN.findall((text or "").lower()):
        t = t.strip(".-")
        if len(t) >= 4 and t not in STOP_WORDS:
            out.append(t)
    return out


def _closest_keyword(missing: List[str], project_tokens: Set[str], sentences: List[Set[str]]) -> str:
    """Missing keyword that most often shares a JD sentence with the project.

    Ties keep the frequency order of `missing`.
    """
    related = [s for s in sentences if s & project_tokens]
    return max(missing, key=lambda kw: (sum(1 for s in related if kw in s), -missing.index(kw)))


def resume_text(resume_data: ResumeData) -> str:
    parts = [resume_data.summary, " ".join(resume_data.skills)]
    for edu in resume_data.education:
        parts.extend([edu.degree, edu.university])
    entries = list(resume_data.projects)
    if resume_data.internship is not None:
        entries.append(resume_data.internship)
    for e in entries:
        parts.extend([
            e.role, e.company_name,
            e.description, e.responsibilities, e.tools,
            e.enhanced_description or "", e.enhanced_responsibilities or "", e.enhanced_tools or "",
            e.suggested_database or "", e.suggested_cloud or "", e.suggested_dashboard or "",
        ])
    return "\n".join(p for p in parts if p)


def heuristic_match(resume_data: ResumeData, job_description: str) -> MatchAnalysis:
    """Keyword-coverage match used when the LLM is switched off.

    Coverage is the share of distinct job-description terms (4+ letters, stop
    words removed) that appear anywhere in the resume.
    """
    jd_counts = Counter(_tokens(job_description))
    resume_tokens = set(_tokens(resume_text(resume_data)))

    found = sum(1 for t in jd_counts if t in resume_tokens)
    coverage = found / float(len(jd_counts)) if jd_counts else 0.0

    # most frequent JD terms first
    ranked = sorted(jd_counts.items(), key=lambda kv: (-kv[1], kv[0]))
    missing = [t for t, _ in ranked if t not in resume_tokens][:MAX_MISSING_KEYWORDS]

    sentences = [set(_tokens(s)) for s in _SENTENCE.split(job_description or "")]
    suggestions = []
    if missing:
        for p in resume_data.projects:
            project_tokens = set(_tokens(" ".join([p.role, p.description, p.responsibilities, p.tools])))
            if not project_tokens & set(jd_counts):
                continue
            kw = _closest_keyword(missing, project_tokens, sentences)
            suggestions.append(ImprovementSuggestion(
                project_id=p.id,
                project_name=p.display_title,
                suggestion=f"Highlight how you applied {kw} in this work, with a measurable outcome.",
            ))

    pct = int(round(coverage * 100))
    if pct >= 70:
        verdict = "Strong keyword alignment with the job description."
    elif pct >= 40:
        verdict = "Partial keyword alignment with the job description."
    else:
        verdict = "Low keyword alignment with the job description."

    return MatchAnalysis(
        match_percentage=pct,
        match_summary=f"{verdict} {found} of {len(jd_counts)} key terms found.",
        missing_keywords=missing,
        improvement_suggestions=suggestions,
    )
