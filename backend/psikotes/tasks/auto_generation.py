import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..core.async_task import AsyncTask
from ..core.celery_app import celery_app
from ..core.config import settings
from ..core.database import AsyncSessionLocal
from ..schemas.test import TestSessionCreate
from ..services.test_service import TestService
from ..services.user_service import UserService
from ..utils.gemini_service import GeminiService

logger = logging.getLogger(__name__)

ATTEMPTS_PER_JOB = 2


class AutoJob(BaseModel):
    label: str
    payload: TestSessionCreate


class AutoJobConfig(BaseModel):
    enabled: bool = False
    email: Optional[str] = None
    jobs: List[AutoJob] = Field(default_factory=list)


def load_job_config(path: str) -> Optional[AutoJobConfig]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return AutoJobConfig.model_validate(json.load(f))
    except FileNotFoundError:
        logger.error(f"Auto job config not found: {path}")
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Failed to parse auto job config {path}: {e}")
    return None


async def run_auto_jobs(config: AutoJobConfig, session_factory=AsyncSessionLocal, generator=None) -> Dict[str, Any]:
    """Create one session per configured job for the configured user. Never raises."""
    summary = {"created": [], "failed": []}
    if not config.enabled:
        logger.info("Auto generator disabled in config.")
        return summary
    if not config.email:
        logger.error("Auto job config must include email.")
        return summary

    generator = generator or GeminiService()
    async with session_factory() as db:
        user = await UserService(db).get_user_by_email(config.email)
        if user is None:
            logger.error(f"Auto job user not found: {config.email}")
            return summary
        user_id = user.id

        for job in config.jobs:
            for attempt in range(1, ATTEMPTS_PER_JOB + 1):
                try:
                    logger.info(f"Running auto job '{job.label}' (attempt {attempt})")
                    db_session = await TestService(db, generator).create_session(user_id, job.payload)
                    logger.info(f"Auto job '{job.label}' success: session {db_session.id}")
                    summary["created"].append({"label": job.label, "session_id": db_session.id})
                    break
                except Exception as e:
                    await db.rollback()
                    logger.error(f"Auto job '{job.label}' failed (attempt {attempt}): {e}")
            else:
                summary["failed"].append(job.label)

    return summary


@celery_app.task(base=AsyncTask, name="psikotes.tasks.auto_generation.run_auto_generation")
async def run_auto_generation(config_path: Optional[str] = None):
    config = load_job_config(config_path or settings.auto_job_config)
    if config is None:
        return {"created": [], "failed": []}
    return await run_auto_jobs(config)
