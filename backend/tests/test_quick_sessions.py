from psikotes.core.cache import MemoryBackend, cache
from psikotes.core.config import settings

from .conftest import FakeClock

GENERATE = {"category": "hafalan_kata", "difficulty": "sedang", "user_type": "simulasi", "count": 4}


async def test_fresh_then_cached_questions(client, generator):
    first = await client.post("/api/generate-questions", json=GENERATE)
    second = await client.post("/api/generate-questions", json=GENERATE)

    assert first.status_code == 200
    assert first.json()["source"] == "fresh"
    assert second.json()["source"] == "cache"
    assert second.json()["questions"] == first.json()["questions"]
    assert second.json()["session_id"] != first.json()["session_id"]
    assert len(generator.calls) == 1


async def test_known_session_id_resumes_without_generation(client, generator):
    created = (await client.post("/api/generate-questions", json=GENERATE)).json()

    resumed = await client.post(
        "/api/generate-questions", json={**GENERATE, "count": 9, "session_id": created["session_id"]}
    )

    assert resumed.json()["source"] == "resume"
    assert resumed.json()["session_id"] == created["session_id"]
    assert len(resumed.json()["questions"]) == 4
    assert len(generator.calls) == 1


async def test_unknown_session_id_generates_new_session(client):
    response = await client.post("/api/generate-questions", json={**GENERATE, "session_id": "tidak-ada"})
    assert response.json()["source"] == "fresh"
    assert response.json()["session_id"] != "tidak-ada"


async def test_defaults_and_count_clamping(client, generator):
    response = await client.post("/api/generate-questions", json={"count": 500})

    config = response.json()["config"]
    assert config["category"] == "mixed"
    assert config["difficulty"] == "sulit"
    assert config["user_type"] == "santai"
    assert config["count"] == 50
    assert generator.calls[0].count == 50


async def test_generation_failure_answers_503(client, generator):
    generator.unavailable = True
    response = await client.post("/api/generate-questions", json=GENERATE)
    assert response.status_code == 503


async def test_progress_patch_and_delete(client):
    session_id = (await client.post("/api/generate-questions", json=GENERATE)).json()["session_id"]
    url = f"/api/session/{session_id}"

    patched = await client.patch(url, json={
        "answers": {"0": {"selected": "A", "is_correct": True, "time_spent": 3.5}},
        "current_index": 1,
    })
    assert patched.status_code == 200
    assert patched.json()["progress"]["current_index"] == 1
    assert patched.json()["progress"]["answers"]["0"]["selected"] == "A"

    resumed = await client.post("/api/generate-questions", json={**GENERATE, "session_id": session_id})
    assert resumed.json()["progress"]["current_index"] == 1

    listed = (await client.get("/api/session")).json()
    assert [record["session_id"] for record in listed] == [session_id]

    assert (await client.delete(url)).json() == {"success": True}
    assert (await client.get(url)).status_code == 404
    assert (await client.delete(url)).status_code == 404


async def test_unknown_session_is_404(client):
    assert (await client.get("/api/session/tidak-ada")).status_code == 404
    assert (await client.patch("/api/session/tidak-ada", json={"completed": True})).status_code == 404


async def test_get_patch_and_list_share_the_generate_shape(client):
    created = (await client.post("/api/generate-questions", json=GENERATE)).json()
    url = f"/api/session/{created['session_id']}"

    fetched = (await client.get(url)).json()
    patched = (await client.patch(url, json={"completed": True})).json()
    listed = (await client.get("/api/session")).json()

    shape = set(created) - {"source"}
    assert set(fetched) == shape
    assert set(patched) == shape
    assert set(listed[0]) == shape
    assert fetched["questions"] == created["questions"]
    assert fetched["progress"] == created["progress"]
    assert patched["progress"]["completed"] is True
    assert patched["updated_at"] >= created["updated_at"]


async def test_cached_questions_expire_after_ttl(client, generator):
    clock = FakeClock()
    cache._async_client = MemoryBackend(clock=clock)

    first = await client.post("/api/generate-questions", json=GENERATE)
    clock.advance(settings.question_cache_ttl - 1)
    cached = await client.post("/api/generate-questions", json=GENERATE)
    clock.advance(2)
    expired = await client.post("/api/generate-questions", json=GENERATE)

    assert first.json()["source"] == "fresh"
    assert cached.json()["source"] == "cache"
    assert expired.json()["source"] == "fresh"
    assert len(generator.calls) == 2
