import io
import logging

import streamlit as st

from resume_builder.agent import analyze_resume_job_match, enhance_project, extract_resume_data, generate_tailored_resume
from resume_builder.config import load_settings, probe_api_key, resolve_api_key
from resume_builder.errors import ResumeBuilderError
from resume_builder.merge import apply_enhancement
from resume_builder.models import Education, EnhancedProject, ResumeLength
from resume_builder.profiles import ProfileStore
from resume_builder.render import render_docx, resume_to_markdown
from resume_builder.upload import extract_text

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Resume Builder", layout="wide")
st.title("Resume Builder")

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Profiles live for the browser session only.
st.session_state.setdefault('store', ProfileStore())
st.session_state.setdefault('manual_api_key', '')
st.session_state.setdefault('match_analysis', None)
st.session_state.setdefault('analysis_for', None)
st.session_state.setdefault('applied_suggestions', [])
st.session_state.setdefault('enhancements', {})

store: ProfileStore = st.session_state['store']
api_key = resolve_api_key(st.session_state['manual_api_key'])


def _get_docx_bytes(resume_data):
    buf = io.BytesIO()
    render_docx(resume_data, buf)
    return buf.getvalue()


def _show_error(exc: Exception):
    st.error(str(exc) or "An unexpected error occurred.")


# --- API key ---
if not api_key:
    st.error("API Key is not configured. AI features will be disabled. Please enter your API Key below.")
    with st.container(border=True):
        st.subheader("Enter Your OpenAI API Key")
        st.caption("The key is kept in this session only. Setting OPENAI_API_KEY in the environment or a .env file works too.")
        key_col, btn_col = st.columns([4, 1])
        typed = key_col.text_input("API Key", type="password", placeholder="sk-...", label_visibility="collapsed")
        if btn_col.button("Save Key"):
            with st.spinner("Checking key..."):
                ok, probe_msg = probe_api_key(typed.strip(), load_settings().base_url)
            if ok:
                st.session_state["manual_api_key"] = typed.strip()
                st.rerun()
            else:
                st.error(probe_msg)

# --- Profiles ---
with st.container(border=True):
    st.subheader("Profiles")
    ids = [p.id for p in store.profiles]
    names = {p.id: p.name for p in store.profiles}
    sel_col, new_col, del_col = st.columns([3, 1, 1])
    chosen = sel_col.selectbox(
        "Current profile", ids, index=ids.index(store.current_profile_id),
        format_func=lambda pid: names[pid],
    )
    if chosen != store.current_profile_id:
        store.select(chosen)
        st.rerun()
    if new_col.button("New Profile", use_container_width=True):
        store.new_profile()
        st.rerun()
    if del_col.button("Delete Profile", use_container_width=True):
        try:
            store.delete(store.current_profile_id)
            st.rerun()
        except ResumeBuilderError as exc:
            _show_error(exc)

    new_name = st.text_input("Profile name", value=store.current.name, key=f"name_{store.current_profile_id}")
    if new_name.strip() and new_name != store.current.name:
        store.rename(store.current_profile_id, new_name.strip())

# --- Start from an existing resume ---
with st.expander("Start from Existing Resume (upload or paste text)"):
    uploaded = st.file_uploader("Upload Resume File (Optional)", type=["txt", "pdf", "docx"])
    raw_text = ""
    if uploaded is not None:
        try:
            raw_text = extract_text(uploaded.name, uploaded.getvalue())
            st.caption(f"Text extracted from {uploaded.name}. Review it below before parsing.")
        except ResumeBuilderError as exc:
            _show_error(exc)
    raw_text = st.text_area("Or Paste Resume Text Here", value=raw_text, height=260)
    if st.button("Parse Resume with AI", disabled=not api_key or not raw_text.strip()):
        with st.spinner("AI is structuring your resume..."):
            try:
                extraction = extract_resume_data(raw_text, api_key=api_key)
                store.add_profile_from_extraction(extraction)
                st.rerun()
            except ResumeBuilderError as exc:
                _show_error(exc)

# --- Tailor for a job ---
with st.container(border=True):
    st.subheader("Tailor Resume for a Job")
    st.caption("Paste a job description to analyze your resume's match and then generate a tailored version.")
    jd = st.text_area("Job Description", height=200, key="jd_input", placeholder="Paste the full job description here...")

    analysis_for = (store.current_profile_id, jd)
    if st.session_state['analysis_for'] != analysis_for:
        st.session_state['match_analysis'] = None
        st.session_state['applied_suggestions'] = []

    disabled = not api_key or not jd.strip()
    a_col, t_col = st.columns(2)
    offline = a_col.checkbox("Offline keyword analysis (no AI call)", value=False)
    length = t_col.radio(
        "Resume length", [ResumeLength.ONE_PAGE, ResumeLength.TWO_PAGE], horizontal=True,
        format_func=lambda v: "Concise (1-Page)" if v == ResumeLength.ONE_PAGE else "Detailed (2-Page)",
    )
    if a_col.button("Analyze Match", disabled=(not jd.strip()) or (not api_key and not offline), use_container_width=True):
        with st.spinner("Analyzing..."):
            try:
                st.session_state['match_analysis'] = analyze_resume_job_match(
                    store.resume_data, jd, api_key=api_key, use_llm=not offline)
                st.session_state['analysis_for'] = analysis_for
                st.session_state['applied_suggestions'] = []
            except ResumeBuilderError as exc:
                _show_error(exc)
    if t_col.button("Generate Tailored Resume", type="primary", disabled=disabled, use_container_width=True):
        with st.spinner("Generating..."):
            try:
                tailored = generate_tailored_resume(store.resume_data, jd, length, api_key=api_key)
                store.apply_tailored(tailored)
                st.success("Resume tailored. Review the preview below.")
            except ResumeBuilderError as exc:
                _show_error(exc)

analysis = st.session_state['match_analysis']
if analysis is not None:
    with st.container(border=True):
        st.subheader("Match Analysis Report")
        score_col, detail_col = st.columns([1, 2])
        score_col.metric("Match Score", f"{analysis.match_percentage}%")
        score_col.caption(analysis.match_summary)
        with detail_col:
            st.markdown("**Missing Keywords & Skills**")
            if analysis.missing_keywords:
                st.write(", ".join(analysis.missing_keywords))
            else:
                st.write("No critical keywords seem to be missing. Great job!")
            st.markdown("**Improvement Suggestions**")
            if not analysis.improvement_suggestions:
                st.write("Your projects are well-aligned. No specific suggestions at this time.")
            for idx, sugg in enumerate(analysis.improvement_suggestions):
                applied = sugg.suggestion in st.session_state['applied_suggestions']
                s_col, b_col = st.columns([5, 1])
                s_col.markdown(f"**{sugg.project_name}**  \n_\"{sugg.suggestion}\"_")
                if b_col.button("Applied" if applied else "Apply", key=f"apply_{idx}", disabled=applied):
                    store.apply_suggestion(sugg)
                    st.session_state['applied_suggestions'].append(sugg.suggestion)
                    st.rerun()

edit_col, preview_col = st.columns(2)

with edit_col:
    data = store.resume_data
    pid = store.current_profile_id

    with st.form(f"personal_{pid}"):
        st.subheader("Personal Information")
        info = data.personal_info
        name = st.text_input("Full Name", value=info.name, placeholder="John Doe")
        phone = st.text_input("Phone Number", value=info.phone_number, placeholder="+1 (123) 456-7890")
        email = st.text_input("Email Address", value=info.email, placeholder="john.doe@example.com")
        linkedin = st.text_input("LinkedIn Profile URL", value=info.linkedin)
        portfolio = st.text_input("Portfolio/Website URL", value=info.portfolio)
        if st.form_submit_button("Save"):
            store.update_personal_info(name=name, phone_number=phone, email=email, linkedin=linkedin, portfolio=portfolio)
            st.rerun()

    st.subheader("Education")
    for edu in data.education:
        with st.expander(edu.degree or edu.university or "New education entry"):
            with st.form(f"edu_{pid}_{edu.id}"):
                degree = st.text_input("Degree", value=edu.degree)
                university = st.text_input("University", value=edu.university)
                location = st.text_input("Location", value=edu.location)
                d1, d2 = st.columns(2)
                start = d1.text_input("Start Date (YYYY-MM)", value=edu.start_date)
                end = d2.text_input("End Date (blank = Present)", value=edu.end_date)
                gpa = st.text_input("GPA", value=edu.gpa)
                save_col, rm_col = st.columns(2)
                if save_col.form_submit_button("Save"):
                    store.update_education(Education(id=edu.id, degree=degree, university=university, location=location,
                                                     start_date=start, end_date=end, gpa=gpa))
                    st.rerun()
                if rm_col.form_submit_button("Remove"):
                    store.remove_education(edu.id)
                    st.rerun()
    if st.button("Add Education"):
        store.add_education()
        st.rerun()

    st.subheader("Experience / Projects")
    for proj in data.projects:
        with st.expander(proj.display_title or "New project"):
            with st.form(f"proj_{pid}_{proj.id}"):
                company = st.text_input("Company Name", value=proj.company_name)
                role = st.text_input("Role", value=proj.role)
                location = st.text_input("Location", value=proj.location)
                d1, d2 = st.columns(2)
                start = d1.text_input("Start Date (YYYY-MM)", value=proj.start_date)
                end = d2.text_input("End Date (blank = Present)", value=proj.end_date)
                description = st.text_area("Description", value=proj.description)
                responsibilities = st.text_area("Responsibilities (one per line)", value=proj.responsibilities)
                tools = st.text_input("Tools", value=proj.tools)
                save_col, rm_col = st.columns(2)
                if save_col.form_submit_button("Save"):
                    store.update_project(proj.model_copy(update={
                        "company_name": company, "role": role, "location": location,
                        "start_date": start, "end_date": end, "description": description,
                        "responsibilities": responsibilities, "tools": tools,
                    }))
                    st.rerun()
                if rm_col.form_submit_button("Remove"):
                    store.remove_project(proj.id)
                    st.rerun()
    if st.button("Add Project"):
        store.add_project()
        st.rerun()

    with st.container(border=True):
        st.subheader("AI Individual Project Enhancements")
        if not data.projects:
            st.write("_No projects added yet. Add a project above to enhance it._")
        for proj in data.projects:
            with st.expander(f"Enhance: {proj.display_title or 'Untitled project'}"):
                proj_jd = st.text_area("Optional: Paste Job Description for tailored enhancement",
                                       key=f"enh_jd_{proj.id}", height=120)
                if st.button("Enhance with AI", key=f"enh_btn_{proj.id}", disabled=not api_key):
                    with st.spinner("AI is crafting your project enhancements..."):
                        try:
                            st.session_state['enhancements'][proj.id] = enhance_project(proj, proj_jd, api_key=api_key)
                        except ResumeBuilderError as exc:
                            _show_error(exc)

                enhancement = st.session_state['enhancements'].get(proj.id)
                if enhancement is None:
                    continue
                draft: EnhancedProject = apply_enhancement(proj, enhancement)
                with st.form(f"enh_form_{proj.id}"):
                    st.caption(f"Original description: {proj.description}")
                    desc = st.text_area("Enhanced Description (Editable)", value=draft.enhanced_description)
                    st.caption(f"Original responsibilities: {proj.responsibilities}")
                    resp = st.text_area("Enhanced Responsibilities (Editable)", value=draft.enhanced_responsibilities)
                    st.caption(f"Original tools: {proj.tools}")
                    tl = st.text_input("Enhanced Tools (Editable)", value=draft.enhanced_tools)
                    c1, c2, c3 = st.columns(3)
                    db = c1.text_input("Suggested Database", value=draft.suggested_database)
                    cloud = c2.text_input("Suggested Cloud", value=draft.suggested_cloud)
                    dash = c3.text_input("Suggested Dashboard", value=draft.suggested_dashboard)
                    if st.form_submit_button("Save Enhancements"):
                        store.save_enhanced_project(draft.model_copy(update={
                            "enhanced_description": desc, "enhanced_responsibilities": resp,
                            "enhanced_tools": tl, "suggested_database": db,
                            "suggested_cloud": cloud, "suggested_dashboard": dash,
                        }))
                        st.session_state['enhancements'].pop(proj.id, None)
                        st.rerun()

with preview_col:
    st.subheader("Preview")
    current = store.resume_data
    with st.container(border=True):
        st.markdown(resume_to_markdown(current))
    file_stem = (current.personal_info.name or "resume").replace(" ", "_")
    try:
        st.download_button("Download DOCX", data=_get_docx_bytes(current), file_name=f"{file_stem}.docx", mime=DOCX_MIME)
    except Exception:
        logging.getLogger(__name__).exception("DOCX export failed")
        st.error("Failed to prepare resume file for download.")
