"""Opinion endpoint: attendees rate the response they got.

The opinion word is mapped to an annotation and attached to the reported
interaction identified by ``evaluation_id``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import log_attendee_key
from config.settings import Settings, get_settings
from models.request import OpinionRequest, OpinionResponse, annotation_for
from services.evaluation_reporter import EvaluationReporter, get_evaluation_reporter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["opinion"])


@router.post(
    "/opinion",
    response_model=OpinionResponse,
    dependencies=[Depends(log_attendee_key)],
)
async def post_opinion(
    req: OpinionRequest,
    reporter: EvaluationReporter = Depends(get_evaluation_reporter),
    settings: Settings = Depends(get_settings),
):
    annotation = annotation_for(req.opinion)
    logger.info("Opinion %r on %s → %s", req.opinion, req.evaluation_id, annotation.value)
    report = await reporter.report_opinion(
        req.evaluation_id, annotation, settings.deepchecks_opinion_app_version_id,
    )
    return OpinionResponse(
        evaluation_id=req.evaluation_id,
        opinion=req.opinion,
        annotation=annotation,
        reported=report.reported,
        success=report.success,
        message=report.message,
    )
