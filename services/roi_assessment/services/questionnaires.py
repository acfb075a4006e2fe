"""
Questionnaire Answer Checks
===========================

Decides which required questions still lack an answer before a response
can be marked completed. A question with ``depends_on`` only counts when
the question it depends on has the triggering answer.

Version: 0.1.0
"""

from collections.abc import Iterator
from typing import Any


def iter_questions(questionnaire: dict[str, Any]) -> Iterator[dict[str, Any]]:
    for section in questionnaire.get("sections", []):
        for subsection in section.get("subsections", []):
            yield from subsection.get("questions", [])


def collect_answers(sections: list[dict[str, Any]]) -> dict[str, Any]:
    """Flatten a response's nested sections into question_id -> value."""
    answers: dict[str, Any] = {}
    for section in sections:
        for subsection in section.get("subsections", []):
            for answer in subsection.get("questions", []):
                answers[answer["question_id"]] = answer.get("value")
    return answers


def is_answered(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict)):
        return bool(value)
    return True


def dependency_met(question: dict[str, Any], answers: dict[str, Any]) -> bool:
    dependency = question.get("depends_on")
    if not dependency:
        return True
    answer = answers.get(dependency.get("question_id"))
    expected = dependency.get("value")
    if isinstance(answer, list):
        return expected in answer
    return answer == expected


def find_missing_answers(
    questionnaire: dict[str, Any],
    sections: list[dict[str, Any]],
) -> list[str]:
    """Ids of required, applicable questions without an answer."""
    answers = collect_answers(sections)
    return [
        q["id"]
        for q in iter_questions(questionnaire)
        if q.get("required")
        and dependency_met(q, answers)
        and not is_answered(answers.get(q["id"]))
    ]
