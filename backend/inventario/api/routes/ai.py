from fastapi import APIRouter, Depends
from loguru import logger

from inventario.core.report_ai import ReportGenerator, get_report_generator
from inventario.schemas.report import ReportOut, ReportRequest

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/generate-report", response_model=ReportOut)
async def generate_report(
    payload: ReportRequest,
    generator: ReportGenerator = Depends(get_report_generator),
):
    report = await generator.generate_structured_filter(payload.query, payload.data)
    logger.bind(query=payload.query, items=len(payload.data), matched=len(report)).info(
        "ai_report_generated"
    )
    return ReportOut(report_data=report)
