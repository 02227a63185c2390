from fastapi import APIRouter, Depends, HTTPException

from examdesk.auth.auth_utils import verify_token, require_admin, ensure_self_or_admin
from examdesk.exams.dependencies import get_current_user_id, get_pyq_service
from examdesk.exams.models import PaperCreate, PYQSubmit, QuestionCreate
from examdesk.exams.service import ExamService, decode_image

router = APIRouter(tags=["Past Year Questions"])

# ==================== PAPERS ====================

@router.get("/{course_id}/papers")
async def get_pyq_papers(
    course_id: str,
    service: ExamService = Depends(get_pyq_service),
    user_id: str = Depends(get_current_user_id)
):
    """All past-year papers for a course, newest first"""
    papers = await service.list_papers(course_id)
    return {"success": True, "count": len(papers), "data": papers}

@router.post("/{course_id}/papers", status_code=201)
async def create_pyq_paper(
    course_id: str,
    payload: PaperCreate,
    service: ExamService = Depends(get_pyq_service),
    admin: dict = Depends(require_admin)
):
    paper = await service.create_paper(course_id, payload.dict())
    return {"success": True, "message": "Paper created successfully", "data": paper}

# ==================== QUESTIONS ====================

@router.get("/paper/{paper_id}/questions")
async def get_pyq_questions(
    paper_id: str,
    service: ExamService = Depends(get_pyq_service),
    user_id: str = Depends(get_current_user_id)
):
    """Whole paper (correct answers hidden)"""
    questions = await service.generate_test(paper_id)
    return {"success": True, "totalQuestions": len(questions), "data": questions}

@router.post("/paper/{paper_id}/questions", status_code=201)
async def create_pyq_question(
    paper_id: str,
    payload: QuestionCreate,
    service: ExamService = Depends(get_pyq_service),
    admin: dict = Depends(require_admin)
):
    if payload.image_base64 and payload.image_url:
        raise HTTPException(status_code=400, detail="Provide either image_base64 or image_url, not both")

    question = await service.create_question(
        paper_id,
        payload.question_text,
        [o.dict() for o in payload.options],
        payload.correct_option_id,
        image=decode_image(payload.image_base64),
        image_content_type=payload.image_content_type,
        image_url=payload.image_url,
        difficulty=payload.difficulty.value if payload.difficulty else None
    )
    return {"success": True, "message": "Question created successfully", "data": question}

# ==================== ATTEMPTS ====================

@router.post("/attempt/submit", status_code=201)
async def submit_pyq_attempt(
    submission: PYQSubmit,
    service: ExamService = Depends(get_pyq_service),
    user_id: str = Depends(get_current_user_id)
):
    attempt = await service.submit_attempt(
        submission.paper_id,
        user_id,
        [a.dict() for a in submission.answers]
    )
    return {
        "success": True,
        "message": "PYQ attempt submitted successfully",
        "score": attempt["score"],
        "totalQuestions": attempt["total_questions"],
        "data": attempt
    }

@router.get("/attempts/{student_id}")
async def get_pyq_attempts_by_student(
    student_id: str,
    service: ExamService = Depends(get_pyq_service),
    user: dict = Depends(verify_token)
):
    ensure_self_or_admin(user, student_id)
    attempts = await service.list_attempts(student_id)
    return {"success": True, "count": len(attempts), "data": attempts}

@router.get("/attempt/{attempt_id}/details")
async def get_pyq_attempt_details(
    attempt_id: str,
    service: ExamService = Depends(get_pyq_service),
    user: dict = Depends(verify_token)
):
    details = await service.attempt_details(attempt_id)
    ensure_self_or_admin(user, details["student_id"])
    questions = details.pop("questions")
    return {
        "success": True,
        "attempt_id": details["attempt_id"],
        "paper_id": details["paper_id"],
        "student_id": details["student_id"],
        "score": details["score"],
        "total_questions": details.get("total_questions"),
        "answered": len(questions),
        "submitted_at": details["submitted_at"],
        "data": questions
    }
