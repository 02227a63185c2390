from typing import Any, Dict, Iterable, List, Mapping, Optional

from examdesk.exams.errors import ValidationError
from examdesk.exams.identifiers import canonical_id


def _canonical_or_none(value: Any) -> Optional[str]:
    try:
        return canonical_id(value)
    except ValidationError:
        return None


def distinct_question_ids(answers: Iterable[Mapping]) -> List[str]:
    """Canonical question ids in first-seen order. Unusable ids are dropped."""
    seen: Dict[str, None] = {}
    for answer in answers:
        qid = _canonical_or_none(answer.get("question_id"))
        if qid is not None:
            seen.setdefault(qid, None)
    return list(seen)


def score(correct_map: Mapping[Any, Any], answers: Iterable[Mapping]) -> int:
    """
    Count correctly answered questions.

    Each question id counts once: the first answer submitted for it is the
    one graded. Ids missing from correct_map score nothing.
    """
    correct = {canonical_id(k): canonical_id(v) for k, v in correct_map.items()}

    total = 0
    graded = set()
    for answer in answers:
        qid = _canonical_or_none(answer.get("question_id"))
        if qid is None or qid in graded:
            continue
        graded.add(qid)

        expected = correct.get(qid)
        if expected is None:
            continue
        if _canonical_or_none(answer.get("selected_option_id")) == expected:
            total += 1
    return total


def review(questions: Iterable[dict], answers: Iterable[Mapping]) -> List[dict]:
    """Attach each student's selected option and correctness to its question."""
    selected: Dict[str, Optional[str]] = {}
    for answer in answers:
        qid = _canonical_or_none(answer.get("question_id"))
        if qid is not None and qid not in selected:
            selected[qid] = _canonical_or_none(answer.get("selected_option_id"))

    merged = []
    for q in questions:
        choice = selected.get(q["question_id"])
        expected = _canonical_or_none(q.get("correct_option_id"))
        merged.append({
            **q,
            "selected_option_id": choice,
            "is_correct": choice is not None and choice == expected,
        })
    return merged
