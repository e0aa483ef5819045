"""Heuristic mock interview scoring.

응답 길이와 코드 구조 키워드만 보는 단순 휴리스틱 (1~5점).
"""

import math
from dataclasses import asdict, dataclass
from typing import Iterable

from learnpath.models.interview import QuestionType

MAX_SCORE = 5
CODE_KEYWORDS = ("function", "class", "for", "while")


@dataclass(frozen=True)
class ResponseScore:
    question_id: int
    question: str
    score: int
    feedback: str


def score_response(question_type: QuestionType, answer: str) -> tuple[int, str]:
    """Score a single answer -> (score, feedback)."""
    length = len(answer)
    if question_type == QuestionType.VERBAL:
        if length > 300:
            return 5, "Excellent detailed response with good depth."
        if length > 150:
            return 4, "Good response with adequate detail."
        if length > 80:
            return 3, "Average response, could use more detail."
        return 2, "Response needs more detail and explanation."

    if question_type == QuestionType.CODE:
        has_structure = any(keyword in answer for keyword in CODE_KEYWORDS)
        if length > 200 and has_structure:
            return 5, "Good code solution with proper structure."
        if has_structure:
            return 4, "Acceptable code solution, could be more thorough."
        return 3, "Solution lacks proper code structure."

    return 3, "Standard response."


def overall_score(scores: Iterable[int]) -> int:
    scores = list(scores)
    if not scores:
        return 0
    ratio = sum(scores) / (MAX_SCORE * len(scores))
    return int(math.floor(ratio * 100 + 0.5))


def overall_message(score: int) -> str:
    if score >= 90:
        return (
            "Excellent interview performance! You demonstrated strong knowledge "
            "and communication skills."
        )
    if score >= 75:
        return "Good interview performance. You showed solid understanding of most concepts."
    if score >= 60:
        return "Satisfactory interview performance. There are some areas for improvement."
    return "This interview indicates several areas where more preparation would be beneficial."


def _quoted(items: list[ResponseScore]) -> str:
    return ", ".join(f'"{item.question}"' for item in items[:2])


def strengths(analysis: list[ResponseScore]) -> list[str]:
    found = []
    high = [item for item in analysis if item.score >= 4]
    if high:
        found.append("Good responses to several questions, particularly: " + _quoted(high))
    if analysis:
        average = sum(item.score for item in analysis) / len(analysis)
        if average > 3.5:
            found.append("Overall strong communication skills")
        if any("technical" in item.question.lower() and item.score >= 4 for item in analysis):
            found.append("Good technical knowledge")
    return found or ["No specific strengths identified"]


def improvements(analysis: list[ResponseScore]) -> list[str]:
    found = []
    low = [item for item in analysis if item.score <= 2]
    if low:
        found.append("Areas to improve include: " + _quoted(low))
    if any("code" in item.question.lower() and item.score < 4 for item in analysis):
        found.append("Consider practicing more coding problems")
    return found or ["Keep practicing to maintain your skills"]


def generate_feedback(analysis: list[ResponseScore]) -> dict:
    """Build the stored feedback document from per-response scores."""
    score = overall_score(item.score for item in analysis)
    return {
        "overallFeedback": overall_message(score),
        "overallScore": score,
        "responseAnalysis": [asdict(item) for item in analysis],
        "strengths": strengths(analysis),
        "areasForImprovement": improvements(analysis),
    }
