import json

from psikotes.core.database import AsyncSessionLocal
from psikotes.services.test_service import TestService as SessionService
from psikotes.services.user_service import UserService
from psikotes.tasks.auto_generation import AutoJobConfig, load_job_config, run_auto_jobs

JOBS = {
    "enabled": True,
    "email": "bot@example.com",
    "jobs": [
        {"label": "deret", "payload": {"user_type": "serius", "category": "deret_matematika", "difficulty": "sulit", "count": 3}},
        {"label": "padanan", "payload": {"user_type": "santai", "category": "padanan_kata", "difficulty": "mudah", "count": 2}},
    ],
}


async def create_bot_user() -> str:
    async with AsyncSessionLocal() as db:
        user = await UserService(db).create_user("bot@example.com", "botpass123")
        return user.id


async def test_each_job_creates_a_session(generator):
    user_id = await create_bot_user()

    summary = await run_auto_jobs(AutoJobConfig.model_validate(JOBS), generator=generator)

    assert [item["label"] for item in summary["created"]] == ["deret", "padanan"]
    assert summary["failed"] == []
    async with AsyncSessionLocal() as db:
        sessions = await SessionService(db).list_sessions(user_id)
    assert sorted(s["question_count"] for s in sessions) == [2, 3]


async def test_failing_jobs_are_retried_then_reported(generator):
    await create_bot_user()
    generator.unavailable = True

    summary = await run_auto_jobs(AutoJobConfig.model_validate(JOBS), generator=generator)

    assert summary == {"created": [], "failed": ["deret", "padanan"]}
    assert len(generator.calls) == 4


async def test_disabled_or_unknown_user_does_nothing(generator):
    disabled = await run_auto_jobs(AutoJobConfig.model_validate({**JOBS, "enabled": False}), generator=generator)
    unknown = await run_auto_jobs(AutoJobConfig.model_validate(JOBS), generator=generator)

    assert disabled == {"created": [], "failed": []}
    assert unknown == {"created": [], "failed": []}
    assert generator.calls == []


def test_load_job_config(tmp_path):
    path = tmp_path / "auto-jobs.json"
    path.write_text(json.dumps(JOBS), encoding="utf-8")
    config = load_job_config(str(path))
    assert config.enabled is True
    assert config.jobs[0].payload.count == 3

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert load_job_config(str(broken)) is None
    assert load_job_config(str(tmp_path / "missing.json")) is None
