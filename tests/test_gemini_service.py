import json

import pytest

from lms.exceptions import OracleError
from lms.schemas.grading import OracleItem
from lms.services.gemini_service import GeminiService


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return FakeResponse(self.text)


ITEMS = [
    OracleItem(question_id="q1", question="Capital of France?", answer="Paris"),
    OracleItem(question_id="q2", question="2+2?", answer="5"),
]

REPLY = {
    "questions": [
        {"question_id": "q1", "status": "correct", "feedback": "Right."},
        {"question_id": "q2", "status": "incorrect", "feedback": "It is 4."},
    ]
}


def service_with(model):
    service = GeminiService()
    service.model = model
    return service


@pytest.mark.asyncio
async def test_grade_sends_one_prompt_and_parses_verdicts():
    model = FakeModel(json.dumps(REPLY))

    verdicts = await service_with(model).grade(ITEMS)

    assert len(model.prompts) == 1
    assert '"question_id": "q1"' in model.prompts[0]
    assert [(v.question_id, v.status) for v in verdicts] == [("q1", "correct"), ("q2", "incorrect")]
    assert verdicts[1].feedback == "It is 4."


@pytest.mark.asyncio
async def test_empty_batch_skips_model():
    model = FakeModel(json.dumps(REPLY))

    assert await service_with(model).grade([]) == []
    assert model.prompts == []


@pytest.mark.asyncio
async def test_call_failure_becomes_oracle_error():
    model = FakeModel(error=RuntimeError("quota exceeded"))

    with pytest.raises(OracleError):
        await service_with(model).grade(ITEMS)


def test_parse_strips_markdown_fence():
    text = "```json\n" + json.dumps(REPLY) + "\n```"

    verdicts = service_with(FakeModel())._parse_grading_response(text)

    assert [v.question_id for v in verdicts] == ["q1", "q2"]


@pytest.mark.parametrize("text", [
    "not json",
    json.dumps({"answers": []}),
    json.dumps({"questions": [{"question_id": "q1", "status": "partially correct"}]}),
    json.dumps({"questions": ["q1"]}),
])
def test_parse_rejects_malformed_reply(text):
    with pytest.raises(OracleError):
        service_with(FakeModel())._parse_grading_response(text)


def test_missing_feedback_defaults_to_empty():
    text = json.dumps({"questions": [{"question_id": "q1", "status": "correct"}]})

    [verdict] = service_with(FakeModel())._parse_grading_response(text)

    assert verdict.feedback == ""


def test_parse_tolerates_unclosed_fence():
    text = "```json\n" + json.dumps(REPLY)

    verdicts = service_with(FakeModel())._parse_grading_response(text)

    assert [v.status for v in verdicts] == ["correct", "incorrect"]
