import json
from typing import Dict, List

from .models import ResumeData, ResumeLength

SYSTEM_BASE = """You are an expert resume writer and AI career coach focused on
producing competitive, role-tailored technical resumes. Keep the candidate's
employers, roles, dates and education exactly as given. Write impactful,
quantifiable, action-first content and return ONLY the JSON object requested.
"""

SYSTEM_PARSER = """You are an expert resume parser. Extract structured
information faithfully from the text you are given and return ONLY the JSON
object requested.
"""

ENHANCE_PROMPT = """Your task is to significantly enhance the following project details for a professional resume. Focus on making the description and responsibilities more impactful, quantifiable, and aligned with industry best practices. Additionally, identify and suggest ONE relevant database technology, ONE cloud platform, and ONE dashboard tool that would logically fit or substantially enhance this project, even if not explicitly stated by the user, to make it sound more impressive and modern for a tech resume. If any of these are already mentioned, ensure they are highlighted and potentially expanded upon.

Project Details:
Company: {company}
Role: {role}
Original Description: {description}
Original Responsibilities: {responsibilities}
Original Tools: {tools}

{jd_block}
Responsibilities must be bullet points, each on a new line.
Return JSON only. {format_instructions}
"""

TAILOR_PROMPT = """Your task is to craft a complete, tailored resume output based on the user's current resume data and a specific job description.

You need to:
1. Generate a professional summary (3-5 sentences) that highlights the candidate's key qualifications and career aspirations, highly relevant to the job description.
2. Generate a comprehensive list of technical skills (as an array of strings, categorized where appropriate, e.g. "Programming Languages: Python, Java", "Databases: SQL, MongoDB", "Cloud Platforms: AWS", "Tools: Git, Docker") derived from the user's projects, internship, original tools, and keywords from the job description.
3. Enhance each provided experience entry (projects and internship): rewrite 'description' and 'responsibilities' into 'enhancedDescription' and 'enhancedResponsibilities' so they are more impactful, quantifiable, and aligned with the job description. Responsibilities are bullet points, each on a new line. Suggest ONE relevant database technology, ONE cloud platform, and ONE dashboard tool per entry. Combine original and suggested tools into a single comma-separated 'enhancedTools' string.

Current resume data (personal info, education, experience):
{resume_json}

Job Description to tailor for:
{job_description}

Rules:
- Echo every original field of each experience entry (id, companyName, location, startDate, endDate, role, description, responsibilities, tools) unchanged next to its enhanced versions. The 'id' must be copied exactly.
- 'enhancedProjects' contains one entry per experience of type Project.
- 'enhancedInternship' is the enhanced entry of type Internship, or null if no internship was provided.

{length_directive}

Return JSON only. {format_instructions}
"""

EXTRACT_PROMPT = """Your task is to extract structured information from the following raw resume text. Identify personal information, education, all work experiences (categorizing as either an 'internship' if clearly indicated by role or duration, or a 'project' otherwise), skills, and a summary.

If multiple similar experiences exist, structure them as projects. If there is a clear single internship, extract it into the 'internship' field; otherwise set 'internship' to null and include all work experience under 'projects'. For projects and internship, infer missing details like location, dates, or tools if not explicitly stated, but prioritize accuracy from the text. Responsibilities are bullet points separated by newlines; tools are comma-separated. For skills, provide a concise list of technologies, tools, and soft skills. The summary should be concise (2-5 sentences) and reflective of the resume content. Give every education, project and internship entry a short unique id.

Use YYYY-MM-DD for dates if specific days are available, otherwise YYYY-MM or YYYY. If a date is "Present", represent the endDate as an empty string. If a GPA/grade or any other field is not found, use an empty string.

Raw Resume Text:
{resume_text}

Return JSON only. {format_instructions}
"""

MATCH_PROMPT = """Evaluate how well this resume matches the job description, as a strict technical recruiter.

Resume data:
{resume_json}

Job Description:
{job_description}

Provide:
- matchPercentage: an integer 0-100.
- matchSummary: one or two sentences explaining the score.
- missingKeywords: important skills/keywords from the job description that the resume lacks (max 12, deduplicated).
- improvementSuggestions: for experience entries that could better reflect the job description, ONE new resume bullet each. Copy the entry's 'id' into 'projectId' exactly and use "<role> at <companyName>" as 'projectName'. Only reference ids of type Project.

Return JSON only. {format_instructions}
"""

LENGTH_DIRECTIVES = {
    ResumeLength.ONE_PAGE: (
        "LENGTH: Concise (1-page). Keep the summary to at most 3 sentences, "
        "at most 4 responsibility bullets per entry, and at most 12 skill lines. "
        "Prefer the most relevant, highest-impact content."
    ),
    ResumeLength.TWO_PAGE: (
        "LENGTH: Detailed (2-page). The summary may use up to 5 sentences, "
        "entries may carry up to 6 responsibility bullets, and the skills list "
        "may be comprehensive."
    ),
}


def build_length_directive(length) -> str:
    return LENGTH_DIRECTIVES[ResumeLength(length)]


def build_jd_block(job_description: str) -> str:
    jd = (job_description or "").strip()
    if not jd:
        return ""
    return "Consider this Job Description for tailoring:\n" + jd + "\n"


def build_experience_payload(resume_data: ResumeData) -> List[Dict]:
    # Internship first so it is numbered ahead of projects in the prompt.
    entries = []
    if resume_data.internship is not None:
        entries.append(("Internship", resume_data.internship))
    entries.extend(("Project", p) for p in resume_data.projects)

    payload = []
    for kind, item in entries:
        payload.append({
            "id": item.id,
            "type": kind,
            "companyName": item.company_name,
            "location": item.location,
            "startDate": item.start_date,
            "endDate": item.end_date,
            "role": item.role,
            "description": item.description,
            "responsibilities": item.responsibilities,
            "tools": item.tools,
        })
    return payload


def build_resume_json(resume_data: ResumeData) -> str:
    return json.dumps({
        "personalInfo": resume_data.personal_info.to_dict(),
        "education": [e.to_dict() for e in resume_data.education],
        "experience": build_experience_payload(resume_data),
    }, ensure_ascii=False)
