"""
Semester settings writes. Only one configuration is active: saving replaces it.
"""

import uuid
from datetime import datetime, timezone
from supabase import Client
from odportal.core.logging import get_logger
from odportal.schemas.academic import SemesterConfig

logger = get_logger(__name__)


def save_semester_config(db: Client, config: SemesterConfig) -> SemesterConfig:
    now = datetime.now(timezone.utc).isoformat()
    data = {**config.model_dump(mode="json"), "updated_at": now}

    existing = (
        db.table("semester_settings")
        .select("id")
        .order("updated_at", desc=True)
        .limit(1)
        .execute()
    )

    if existing.data:
        result = (
            db.table("semester_settings")
            .update(data)
            .eq("id", existing.data[0]["id"])
            .execute()
        )
    else:
        result = (
            db.table("semester_settings")
            .insert({**data, "id": str(uuid.uuid4()), "created_at": now})
            .execute()
        )

    logger.info(
        "semester_settings.saved",
        semester_start=config.semester_start.isoformat(),
        semester_end=config.semester_end.isoformat(),
        subjects=len(config.subjects),
    )
    return SemesterConfig.model_validate(result.data[0])
