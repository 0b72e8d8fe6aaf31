"""
Quiz mapping: shuffle question order and answer order per attempt, keep a mapping
(mapping[shuffled_index] = original_index) so submissions can be graded against ground truth.
isCorrect never leaves the server in questions_for_ui; only isMultipleChoice is exposed.

All shuffles take an optional rng (random.Random). When omitted a fresh generator is created
per call, so concurrent requests never share random state.
"""
import logging
import math
import random
from typing import Any, NamedTuple, Sequence, TypeVar

from quizbank import metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QuizMappingResult(NamedTuple):
    shuffled_questions: list[dict]
    answer_mapping: dict[str, list[int]]
    questions_for_ui: list[dict]


class GradedQuestion(NamedTuple):
    question: dict
    user_selected_indexes: list[int]  # shuffled space, as the user saw them
    is_correct: bool
    answers: list[dict]  # presented order, with isCorrect


class GradeReport(NamedTuple):
    questions: list[GradedQuestion]
    correct_count: int
    total_questions: int
    score: int  # 0-10


def round_half_up(x: float) -> int:
    """Round halves up; scores are non-negative."""
    return int(math.floor(x + 0.5))


def _rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else random.Random()


def shuffle(seq: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Uniform random permutation (Durstenfeld). Returns a new list; input is not mutated."""
    r = _rng(rng)
    out = list(seq)
    for i in range(len(out) - 1, 0, -1):
        j = r.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def shuffle_answers_with_mapping(
    answers: Sequence[dict], rng: random.Random | None = None
) -> tuple[list[dict], list[int]]:
    """
    Shuffle answers and return (shuffled_answers, mapping) with mapping[new_index] = original_index.
    Zero answers -> ([], []); one answer -> ([a], [0]).
    """
    shuffled_indexes = shuffle(range(len(answers)), rng)
    shuffled_answers = [answers[i] for i in shuffled_indexes]
    return shuffled_answers, shuffled_indexes


def canonical_answers(answers: Sequence[dict]) -> list[dict]:
    """Answers in canonical order: stable sort on the optional "order" field, else stored position."""
    indexed = list(enumerate(answers or []))
    indexed.sort(key=lambda pair: (pair[1].get("order") if pair[1].get("order") is not None else pair[0], pair[0]))
    return [a for _, a in indexed]


def _correct_count(answers: Sequence[dict]) -> int:
    return sum(1 for a in answers if isinstance(a, dict) and a.get("isCorrect"))


def process_quiz_set(questions: Sequence[dict], rng: random.Random | None = None) -> QuizMappingResult:
    """
    Shuffle question order, then each question's answers independently.
    Returns shuffled questions (copies with answers in canonical order, the list the mapping indexes),
    answer_mapping keyed by question id, and questions_for_ui whose answers carry only "content".
    """
    r = _rng(rng)
    shuffled_questions: list[dict] = []
    answer_mapping: dict[str, list[int]] = {}
    questions_for_ui: list[dict] = []
    for q in shuffle(questions or [], r):
        answers = canonical_answers(q.get("answers") or [])
        shuffled_questions.append({**q, "answers": answers})
        ui = {k: v for k, v in q.items() if k != "answers"}
        if answers:
            shuffled_answers, mapping = shuffle_answers_with_mapping(answers, r)
            answer_mapping[str(q["id"])] = mapping
            ui["answers"] = [{"content": a.get("content", "")} for a in shuffled_answers]
        else:
            ui["answers"] = []
        ui["isMultipleChoice"] = _correct_count(answers) > 1
        questions_for_ui.append(ui)
    return QuizMappingResult(shuffled_questions, answer_mapping, questions_for_ui)


def process_retry_quiz(original_questions: Sequence[dict], rng: random.Random | None = None) -> QuizMappingResult:
    """Retry: same algorithm on the original question set, never on a previous presentation."""
    return process_quiz_set(original_questions, rng)


def decode_submitted_answers(
    user_answers: Sequence[dict], answer_mapping: dict[str, list[int]] | None
) -> list[dict]:
    """
    Translate [{"questionId", "answerIndex": [shuffled...]}] to original indexes.
    Indexes outside the mapping are dropped. A question with no mapping passes through unchanged
    and is logged as a data-integrity warning.
    """
    answer_mapping = answer_mapping or {}
    out = []
    missing = 0
    for ua in user_answers or []:
        qid = str(ua.get("questionId"))
        selected = list(ua.get("answerIndex") or [])
        mapping = answer_mapping.get(qid) or []
        if not mapping:
            missing += 1
            logger.warning("No answer mapping for question %s; passing submission through", qid)
            out.append({**ua, "questionId": qid, "answerIndex": selected})
            continue
        original = [
            mapping[i] for i in selected
            if isinstance(i, int) and not isinstance(i, bool) and 0 <= i < len(mapping)
        ]
        out.append({**ua, "questionId": qid, "answerIndex": original})
    if missing:
        metrics.increment_missing_mapping_decodes_total(missing)
    return out


def answers_in_presented_order(original_answers: Sequence[dict], mapping: Sequence[int] | None) -> list[dict]:
    """Rebuild answers in the order the user saw them, keeping isCorrect (for results screens)."""
    if not mapping:
        return [{"content": a.get("content", ""), "isCorrect": bool(a.get("isCorrect"))} for a in original_answers]
    out = []
    for original_index in mapping:
        if not 0 <= original_index < len(original_answers):
            continue
        a = original_answers[original_index]
        out.append({"content": a.get("content", ""), "isCorrect": bool(a.get("isCorrect"))})
    return out


def correct_answer_indexes(answers: Sequence[dict]) -> list[int]:
    """Ground truth: indexes of correct answers after a stable sort on the optional "order" field."""
    return [idx for idx, a in enumerate(canonical_answers(answers)) if a.get("isCorrect")]


def is_exact_match(selected: Sequence[int], correct: Sequence[int]) -> bool:
    """All-or-nothing: same size and same set. No partial credit for multi-select."""
    return len(selected) == len(correct) and set(selected) == set(correct)


def grade_quiz(
    questions: Sequence[dict],
    user_answers: Sequence[dict] | None,
    answer_mapping: dict[str, list[int]] | None,
) -> GradeReport:
    """
    Grade a submission. questions are ground-truth records (with isCorrect) in presented order;
    user_answers carry shuffled indexes. Correctness is always re-derived from questions.
    """
    answer_mapping = answer_mapping or {}
    user_answers = list(user_answers or [])
    decoded = {a["questionId"]: a["answerIndex"] for a in decode_submitted_answers(user_answers, answer_mapping)}
    submitted = {str(a.get("questionId")): list(a.get("answerIndex") or []) for a in user_answers}

    graded: list[GradedQuestion] = []
    correct_count = 0
    for q in questions:
        qid = str(q["id"])
        answers = canonical_answers(q.get("answers") or [])
        presented = answers_in_presented_order(answers, answer_mapping.get(qid))
        given = submitted.get(qid) or []
        if not given or not answers:
            graded.append(GradedQuestion(q, [], False, presented))
            continue
        original = decoded.get(qid, [])
        # An index that did not decode (out of range) makes the selection wrong.
        ok = len(original) == len(given) and is_exact_match(original, correct_answer_indexes(answers))
        logger.debug("Question %s: result=%s", qid, "correct" if ok else "incorrect")
        if ok:
            correct_count += 1
        graded.append(GradedQuestion(q, given, ok, presented))

    total = len(questions)
    score = round_half_up(correct_count / total * 10) if total else 0
    return GradeReport(graded, correct_count, total, score)


def strip_correctness(answers: Sequence[Any]) -> list[dict]:
    """Answers reduced to {"content"} for any UI payload of an unfinished quiz."""
    return [{"content": a.get("content", "")} for a in answers]
