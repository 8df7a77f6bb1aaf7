from types import SimpleNamespace

from psikotes.services.kreplin_service import build_analysis_prompt

from .conftest import register

RESULT = {
    "mode": "tryout",
    "duration_seconds": 120,
    "total_sections": 2,
    "total_answered": 60,
    "total_correct": 54,
    "total_incorrect": 6,
    "accuracy": 90.0,
    "per_section_stats": [{"index": 0, "correct": 28, "total": 30}, {"index": 1, "correct": 26, "total": 30}],
    "speed_timeline": [{"index": 0, "correct": 29, "total": 30}, {"index": 1, "correct": 25, "total": 30}],
}


async def save(client) -> str:
    response = await client.post("/api/kreplin-results", json=RESULT)
    assert response.status_code == 201, response.text
    return response.json()["result_id"]


async def test_save_list_get_delete(user_client):
    result_id = await save(user_client)

    listed = (await user_client.get("/api/kreplin-results")).json()
    assert [item["id"] for item in listed] == [result_id]

    detail = (await user_client.get(f"/api/kreplin-results/{result_id}")).json()
    assert detail["per_section_stats"][1] == {"index": 1, "correct": 26, "total": 30}
    assert detail["ai_analysis_text"] is None

    assert (await user_client.delete(f"/api/kreplin-results/{result_id}")).json() == {"success": True}
    assert (await user_client.get(f"/api/kreplin-results/{result_id}")).status_code == 404
    assert (await user_client.delete(f"/api/kreplin-results/{result_id}")).status_code == 404


async def test_results_are_private(user_client, make_client):
    result_id = await save(user_client)
    other = make_client()
    await register(other, "sari@example.com")

    assert (await other.get(f"/api/kreplin-results/{result_id}")).status_code == 404
    assert (await other.post(f"/api/kreplin-results/{result_id}/analyze")).status_code == 404


async def test_invalid_mode_is_rejected(user_client):
    response = await user_client.post("/api/kreplin-results", json={**RESULT, "mode": "bebas"})
    assert response.status_code == 400


async def test_analysis_is_stored_once(user_client, generator):
    result_id = await save(user_client)

    first = await user_client.post(f"/api/kreplin-results/{result_id}/analyze")
    assert first.status_code == 200
    assert first.json()["model"] == "fake-model"
    assert first.json()["analysis"].startswith("Ringkasan")

    second = await user_client.post(f"/api/kreplin-results/{result_id}/analyze")
    assert second.status_code == 400
    assert generator.text_calls == 1

    detail = (await user_client.get(f"/api/kreplin-results/{result_id}")).json()
    assert detail["ai_analysis_model"] == "fake-model"


async def test_analysis_failure_answers_500(user_client, generator):
    result_id = await save(user_client)
    generator.unavailable = True

    response = await user_client.post(f"/api/kreplin-results/{result_id}/analyze")
    assert response.status_code == 500
    assert response.json()["detail"] == "Gagal membuat analisis AI. Coba lagi nanti."


def test_analysis_prompt_summarises_rhythm():
    prompt = build_analysis_prompt(SimpleNamespace(**RESULT))

    assert "Durasi: 2 menit" in prompt
    assert "Menit terbaik: 1" in prompt
    assert "Kolom 0: 28/30" in prompt
    assert "Paruh pertama vs kedua: 96.7% vs 83.3%" in prompt


def test_analysis_prompt_handles_empty_stats():
    prompt = build_analysis_prompt(SimpleNamespace(**{**RESULT, "per_section_stats": [], "speed_timeline": []}))
    assert "Menit terbaik/terburuk: tidak tersedia" in prompt
