from fastapi import APIRouter, Depends, HTTPException
from datetime import date
from typing import Optional

from examdesk.auth.auth_utils import verify_token, require_admin, ensure_self_or_admin
from examdesk.exams.dependencies import get_current_user_id, get_mock_service
from examdesk.exams.models import MockSubmit, QuestionCreate
from examdesk.exams.service import ExamService, decode_image

router = APIRouter(tags=["Mock Tests"])

# ==================== STUDENT ENDPOINTS ====================

@router.get("/{course_id}/questions")
async def get_mock_questions(
    course_id: str,
    service: ExamService = Depends(get_mock_service),
    user_id: str = Depends(get_current_user_id)
):
    """Random mock test for a course (correct answers hidden)"""
    questions = await service.generate_test(course_id)
    return {
        "success": True,
        "totalQuestions": len(questions),
        "data": questions
    }

@router.post("/submit", status_code=201)
async def submit_mock_attempt(
    submission: MockSubmit,
    service: ExamService = Depends(get_mock_service),
    user_id: str = Depends(get_current_user_id)
):
    """Submit a mock test attempt and auto-evaluate score"""
    attempt = await service.submit_attempt(
        submission.course_id,
        user_id,
        [a.dict() for a in submission.answers]
    )
    return {
        "success": True,
        "message": "Mock test submitted successfully",
        "score": attempt["score"],
        "totalQuestions": attempt["total_questions"],
        "data": attempt
    }

@router.get("/attempts/{student_id}")
async def get_mock_attempts_by_student(
    student_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: ExamService = Depends(get_mock_service),
    user: dict = Depends(verify_token)
):
    """Attempt history, newest first, optionally limited to a date range"""
    ensure_self_or_admin(user, student_id)
    attempts = await service.list_attempts(student_id, start_date, end_date)
    return {
        "success": True,
        "count": len(attempts),
        "data": attempts,
        "appliedFilters": {
            "start_date": start_date,
            "end_date": end_date
        }
    }

@router.get("/attempt/{attempt_id}/details")
async def get_mock_attempt_details(
    attempt_id: str,
    service: ExamService = Depends(get_mock_service),
    user: dict = Depends(verify_token)
):
    """Every answered question with the student's choice and correctness"""
    details = await service.attempt_details(attempt_id)
    ensure_self_or_admin(user, details["student_id"])
    questions = details.pop("questions")
    return {
        "success": True,
        "attempt_id": details["attempt_id"],
        "student_id": details["student_id"],
        "course_id": details["course_id"],
        "score": details["score"],
        "total_questions": details.get("total_questions"),
        "answered": len(questions),
        "submitted_at": details["submitted_at"],
        "data": questions
    }

# ==================== ADMIN ENDPOINTS ====================

@router.post("/{course_id}/questions", status_code=201)
async def create_mock_question(
    course_id: str,
    payload: QuestionCreate,
    service: ExamService = Depends(get_mock_service),
    admin: dict = Depends(require_admin)
):
    """Add a question to a course bank. Rejects duplicate text."""
    if payload.image_base64 and payload.image_url:
        raise HTTPException(status_code=400, detail="Provide either image_base64 or image_url, not both")

    question = await service.create_question(
        course_id,
        payload.question_text,
        [o.dict() for o in payload.options],
        payload.correct_option_id,
        image=decode_image(payload.image_base64),
        image_content_type=payload.image_content_type,
        image_url=payload.image_url,
        difficulty=payload.difficulty.value if payload.difficulty else None
    )
    return {
        "success": True,
        "message": "Question created successfully",
        "data": question
    }

@router.get("/{course_id}/questions/all")
async def list_mock_questions(
    course_id: str,
    service: ExamService = Depends(get_mock_service),
    admin: dict = Depends(require_admin)
):
    """Whole course bank including correct options"""
    questions = await service.list_questions(course_id)
    return {
        "success": True,
        "count": len(questions),
        "data": questions
    }
