from __future__ import annotations

import logging
import uuid

from gradebook.core.db import SessionLocal
from gradebook.services.gradebook_service import gradebook_service

logger = logging.getLogger(__name__)


def batch_recompute_job(gradebook_id: str, term_id: str, batch_size: int | None = None) -> dict:
    gradebook_uuid = uuid.UUID(gradebook_id)
    term_uuid = uuid.UUID(term_id)

    try:
        result = gradebook_service.batch_calculate_cumulative_grades(
            SessionLocal, gradebook_uuid, term_uuid, batch_size=batch_size
        )
    except Exception:  # noqa: BLE001
        logger.exception(f"Failed to recompute grade book {gradebook_id} for term {term_id}")
        raise

    logger.info(
        f"Recomputed grade book {gradebook_id} for term {term_id}: "
        f"{len(result.succeeded)} ok, {len(result.failed)} failed"
    )
    return result.model_dump(mode="json")
