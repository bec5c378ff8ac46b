import json

import pytest
from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableLambda

from resume_builder.models import Education, EnhancedProject, Internship, PersonalInfo, ResumeData


@pytest.fixture
def resume():
    return ResumeData(
        personal_info=PersonalInfo(name="Jane Doe", phone_number="555-0100", email="jane@example.com",
                                   linkedin="linkedin.com/in/janedoe", portfolio=""),
        education=[Education(id="edu-a", degree="BSc Computer Science", university="State University",
                             location="Austin, TX", start_date="2018-09", end_date="2022-05", gpa="3.8")],
        internship=Internship(id="int-1", company_name="Acme", location="Remote", start_date="2021-06",
                              end_date="2021-08", role="Data Intern", description="Built reports",
                              responsibilities="Wrote SQL queries", tools="SQL, Excel"),
        projects=[
            EnhancedProject(id="p1", company_name="Globex", location="Dallas, TX", start_date="2022-06",
                            end_date="", role="Backend Engineer", description="Payments API",
                            responsibilities="- Built REST endpoints\n- Wrote tests", tools="Python, Flask"),
            EnhancedProject(id="p2", company_name="", location="", start_date="2020-01", end_date="2020-05",
                            role="Student Project", description="Chat app", responsibilities="Designed UI",
                            tools="React"),
        ],
        summary="Backend engineer.",
        skills=["Languages: Python, SQL"],
    )


class RecordingLLM:
    """Stands in for the chat model: records prompts and replies with canned text."""

    def __init__(self, *replies):
        self.replies = [r if isinstance(r, str) else json.dumps(r) for r in replies]
        self.prompts = []

    def _reply(self, prompt_value):
        messages = prompt_value.to_messages()
        self.prompts.append("\n".join(m.content for m in messages))
        reply = self.replies[min(len(self.prompts), len(self.replies)) - 1]
        return AIMessage(content=reply)

    def runnable(self):
        return RunnableLambda(self._reply)


@pytest.fixture
def recording_llm():
    return RecordingLLM


@pytest.fixture
def failing_llm():
    def make(message):
        def boom(_):
            raise RuntimeError(message)
        return RunnableLambda(boom)
    return make
