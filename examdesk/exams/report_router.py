"""
Admin score reports
Per-student mock scores for a course and PYQ attempts with paper info
"""

from fastapi import APIRouter, Depends

from examdesk.auth.auth_utils import require_admin
from examdesk.exams.dependencies import get_mock_service, get_pyq_service
from examdesk.exams.models import MockScoreReportRequest, PYQScoreReportRequest
from examdesk.exams.service import ExamService

router = APIRouter(tags=["Admin Reports"])


@router.post("/mock-scores")
async def get_mock_test_scores(
    payload: MockScoreReportRequest,
    service: ExamService = Depends(get_mock_service),
    admin: dict = Depends(require_admin)
):
    scores = await service.student_scores(payload.student_id, payload.course_id)
    return {
        "success": True,
        "message": "Mock test score fetched successfully" if scores else "No mock test attempts found",
        "data": scores
    }


@router.post("/pyq-scores")
async def get_pyq_test_data(
    payload: PYQScoreReportRequest,
    service: ExamService = Depends(get_pyq_service),
    admin: dict = Depends(require_admin)
):
    attempts = await service.list_attempts(payload.student_id)
    data = [
        {
            "attempt_id": a["attempt_id"],
            "score": a["score"],
            "total_questions": a.get("total_questions"),
            "submitted_at": a["submitted_at"],
            "paper_id": a["paper_id"],
            "paper": a.get("paper")
        }
        for a in attempts
    ]
    return {
        "success": True,
        "message": "PYQ test score fetched successfully" if data else "No PYQ attempts found for this student",
        "data": data
    }
