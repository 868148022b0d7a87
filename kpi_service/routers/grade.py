from fastapi import APIRouter
from kpi_service.schemas.kpi import GradePreviewRequest, GradeResponse
from kpi_service.services.kpi import compute_final_grade
from kpi_service.services.review import grade_to_dict

router = APIRouter(prefix="/kpi/grade", tags=["kpi-grade"])

@router.post("/preview", response_model=GradeResponse)
async def preview_grade(preview_in: GradePreviewRequest):
    """Grade ad-hoc inputs without touching stored reviews."""
    result = compute_final_grade(
        preview_in.config,
        preview_in.criteria,
        preview_in.goals,
        preview_in.scores,
        preview_in.stats,
    )
    return grade_to_dict(result)
