import pytest

from errorbook.ai.errors import AIResponseError, AIValidationError
from errorbook.ai.schema import normalize_reply, validate_parsed_question
from errorbook.ai.types import ParsedQuestion


def _valid(**overrides):
    data = {
        "questionText": "Q",
        "answerText": "A",
        "analysis": "An",
        "subject": "数学",
        "knowledgePoints": ["函数", "函数"],
    }
    data.update(overrides)
    return data


def test_valid_mapping_becomes_parsed_question():
    result = validate_parsed_question(_valid())

    assert isinstance(result, ParsedQuestion)
    assert result.question_text == "Q"
    assert result.knowledge_points == ("函数", "函数")


def test_valid_parsed_question_is_returned_as_is():
    pq = ParsedQuestion(question_text="Q", subject="物理")
    assert validate_parsed_question(pq) is pq


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_empty_question_text_is_rejected(text):
    with pytest.raises(AIValidationError) as exc_info:
        validate_parsed_question(_valid(questionText=text))

    assert exc_info.value.field == "questionText"
    assert exc_info.value.reason == "must not be empty"


def test_empty_question_text_rejected_on_dataclass_too():
    with pytest.raises(AIValidationError):
        validate_parsed_question(ParsedQuestion(question_text=" "))


def test_subject_outside_enum_is_rejected():
    with pytest.raises(AIValidationError) as exc_info:
        validate_parsed_question(_valid(subject="math"))
    assert exc_info.value.field == "subject"


def test_blank_knowledge_point_is_rejected():
    with pytest.raises(AIValidationError) as exc_info:
        validate_parsed_question(_valid(knowledgePoints=["ok", ""]))
    assert exc_info.value.field == "knowledgePoints.1"


def test_missing_required_field_is_named():
    data = _valid()
    del data["subject"]
    with pytest.raises(AIValidationError) as exc_info:
        validate_parsed_question(data)
    assert exc_info.value.field == "subject"


def test_validation_error_is_structured():
    err = AIValidationError("questionText", "must not be empty")
    assert err.to_dict() == {
        "code": "AI_RESPONSE_ERROR",
        "message": "Invalid AI result: questionText: must not be empty",
        "field": "questionText",
        "reason": "must not be empty",
    }


def test_normalize_reply_round_trip(tagged_reply):
    result = normalize_reply(tagged_reply)
    assert result.to_dict()["questionText"] == "Q"
    assert (result.question_text, result.answer_text, result.analysis, result.subject) == (
        "Q",
        "A",
        "An",
        "数学",
    )


def test_normalize_reply_rejects_empty_text():
    with pytest.raises(AIResponseError, match="Empty response"):
        normalize_reply("  ")


def test_normalize_reply_rejects_blank_question_section():
    with pytest.raises(AIValidationError):
        normalize_reply("<question_text>   </question_text><answer_text>A</answer_text>")
