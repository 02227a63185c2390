import asyncio
from datetime import date, datetime

import pytest

from examdesk.exams.database import AttemptRecorder, PaperStore, QuestionStore
from examdesk.exams.duplicates import DuplicateDetector, normalize_text
from examdesk.exams.errors import NotFound, PersistenceError
from examdesk.exams.models import ExamKind

from conftest import make_bank, make_question


def test_fetch_all_pages_past_single_batch(db):
    db.mock_questions.seed(make_bank("C1", 25, 0))
    db.mock_questions.seed(make_bank("OTHER", 5, 0))
    store = QuestionStore(db, ExamKind.MOCK, batch_size=10)

    questions = asyncio.run(store.fetch_all("C1"))

    assert len(questions) == 25
    assert {q["course_id"] for q in questions} == {"C1"}
    # 3 full/partial pages plus the empty one that ends the loop
    assert db.mock_questions.find_calls == 4
    assert all("_id" not in q for q in questions)


def test_fetch_all_required_raises_not_found(db):
    store = QuestionStore(db, ExamKind.MOCK)
    assert asyncio.run(store.fetch_all("EMPTY")) == []
    with pytest.raises(NotFound):
        asyncio.run(store.fetch_all("EMPTY", require=True))


def test_fetch_correct_options_handles_numeric_storage(db):
    db.pyq_questions.seed([
        make_question(1, "P1", correct=2, scope_field="paper_id"),
        make_question("2", "P1", correct="B", scope_field="paper_id"),
        make_question(3, "P2", correct="C", scope_field="paper_id"),
    ])
    store = QuestionStore(db, ExamKind.PYQ)

    correct = asyncio.run(store.fetch_correct_options("P1", ["1", "2", "3", "99"]))

    assert correct == {"1": "2", "2": "B"}


def test_fetch_correct_options_matches_negative_and_padded_ids(db):
    db.mock_questions.seed([
        make_question(-1, "C1", correct="A"),
        make_question(7, "C1", correct="B"),
    ])
    store = QuestionStore(db, ExamKind.MOCK)

    correct = asyncio.run(store.fetch_correct_options("C1", ["-1", "007"]))

    assert correct == {"-1": "A"}


def test_count_is_scoped(db):
    db.pyq_questions.seed([make_question(f"P{i}", "P1", scope_field="paper_id") for i in range(4)])
    db.pyq_questions.seed([make_question("X", "P2", scope_field="paper_id")])
    store = QuestionStore(db, ExamKind.PYQ)

    assert asyncio.run(store.count("P1")) == 4
    assert asyncio.run(store.count("EMPTY")) == 0


def test_read_failure_is_wrapped(db):
    db.mock_questions.fail_reads = True
    store = QuestionStore(db, ExamKind.MOCK)
    with pytest.raises(PersistenceError):
        asyncio.run(store.fetch_all("C1"))


def test_record_attempt_assigns_id_and_server_time(db):
    recorder = AttemptRecorder(db, ExamKind.MOCK)
    answers = [{"question_id": "Q1", "selected_option_id": "A"}]

    attempt = asyncio.run(recorder.record("S1", "C1", answers, 1, 1))

    assert attempt["attempt_id"].startswith("ATT_")
    assert isinstance(attempt["submitted_at"], datetime)
    stored = asyncio.run(recorder.get(attempt["attempt_id"]))
    assert stored["answers"] == answers
    assert stored["score"] == 1
    assert stored["course_id"] == "C1"


def test_failed_attempt_write_leaves_nothing_behind(db):
    recorder = AttemptRecorder(db, ExamKind.MOCK)
    db.mock_attempts.fail_inserts = True

    with pytest.raises(PersistenceError):
        asyncio.run(recorder.record("S1", "C1", [{"question_id": "Q1"}], 0, 1))

    db.mock_attempts.fail_inserts = False
    assert asyncio.run(recorder.list_for_student("S1")) == []


def test_list_for_student_date_window_includes_end_day(db):
    db.mock_attempts.seed([
        {"attempt_id": "A1", "student_id": "S1", "course_id": "C1", "score": 1,
         "submitted_at": datetime(2026, 3, 1, 9, 0)},
        {"attempt_id": "A2", "student_id": "S1", "course_id": "C1", "score": 2,
         "submitted_at": datetime(2026, 3, 5, 23, 59)},
        {"attempt_id": "A3", "student_id": "S1", "course_id": "C1", "score": 3,
         "submitted_at": datetime(2026, 3, 6, 0, 1)},
        {"attempt_id": "A4", "student_id": "S2", "course_id": "C1", "score": 4,
         "submitted_at": datetime(2026, 3, 3)},
    ])
    recorder = AttemptRecorder(db, ExamKind.MOCK)

    attempts = asyncio.run(recorder.list_for_student("S1", date(2026, 3, 2), date(2026, 3, 5)))
    assert [a["attempt_id"] for a in attempts] == ["A2"]

    everything = asyncio.run(recorder.list_for_student("S1"))
    assert [a["attempt_id"] for a in everything] == ["A3", "A2", "A1"]


def test_papers_listed_newest_year_first(db):
    papers = PaperStore(db)
    asyncio.run(papers.create("C1", {"year": 2021}))
    asyncio.run(papers.create("C1", {"year": 2024, "exam_day": "Day 2"}))
    asyncio.run(papers.create("C2", {"year": 2023}))

    listed = asyncio.run(papers.list_for_course("C1"))

    assert [p["year"] for p in listed] == [2024, 2021]
    assert listed[0]["paper_id"].startswith("PAPER_")


def test_normalize_text():
    assert normalize_text("  What is  the\tcapital Of\nFrance? ") == "what is the capital of france"
    assert normalize_text("Is 2 > 1 ?!") == "is 2 > 1"
    assert normalize_text("Define e.g. in a sentence.") == "define e.g. in a sentence"
    assert normalize_text("Pick the odd one: 3, 5, 8") == "pick the odd one: 3, 5, 8"


def test_duplicate_detection_is_scoped_to_course(db):
    db.mock_questions.seed([
        make_question("Q1", "C1", text="what is the capital of france"),
    ])
    detector = DuplicateDetector(QuestionStore(db, ExamKind.MOCK))

    assert asyncio.run(detector.is_duplicate("C1", "What is  the capital Of France?"))
    assert not asyncio.run(detector.is_duplicate("C2", "What is  the capital Of France?"))
    assert not asyncio.run(detector.is_duplicate("C1", "what is the capital of spain?"))


def test_duplicate_detection_reads_every_page(db):
    bank = make_bank("C1", 30, 0)
    bank[-1]["question_text"] = "Last  question on the final page"
    db.mock_questions.seed(bank)
    detector = DuplicateDetector(QuestionStore(db, ExamKind.MOCK, batch_size=7))

    assert asyncio.run(detector.is_duplicate("C1", "last question on the final page"))
