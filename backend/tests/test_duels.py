from psikotes.core.database import AsyncSessionLocal
from psikotes.schemas.duel import DuelSubmit
from psikotes.services.duel_service import KreplinDuelService

from .conftest import register

GENERATED = {"type": "generated", "user_type": "serius", "category": "padanan_kata", "difficulty": "sedang", "count": 3}


async def players(make_client):
    host, guest = make_client(), make_client()
    await register(host, "host@example.com", name="Host")
    await register(guest, "guest@example.com", name="Guest")
    return host, guest


async def test_kreplin_duel_ready_cycle(make_client):
    host, guest = await players(make_client)

    created = await host.post("/api/kreplin-duels", json={"duration_seconds": 300})
    assert created.status_code == 201
    duel = created.json()
    assert duel["status"] == "waiting"
    assert duel["host"]["ready"] is False
    assert len(duel["room_code"]) == 6

    joined = await guest.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"].lower()})
    assert joined.status_code == 200
    assert joined.json()["guest"]["name"] == "Guest"
    assert joined.json()["status"] == "waiting"

    url = f"/api/kreplin-duels/{duel['id']}"
    host_ready = (await host.patch(url, json={"ready": True})).json()
    assert host_ready["status"] == "ready"
    assert host_ready["started_at"] is None

    both_ready = (await guest.patch(url, json={"ready": True})).json()
    assert both_ready["status"] == "active"
    assert both_ready["started_at"] is not None

    unready = (await host.patch(url, json={"ready": False})).json()
    assert unready["status"] == "ready"
    assert unready["started_at"] is None

    nobody_ready = (await guest.patch(url, json={"ready": False})).json()
    assert nobody_ready["status"] == "ready"
    assert nobody_ready["host"]["ready"] is False
    assert nobody_ready["guest"]["ready"] is False


async def test_kreplin_duel_completes_after_both_submissions(make_client):
    host, guest = await players(make_client)
    duel = (await host.post("/api/kreplin-duels", json={})).json()
    await guest.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})
    submit_url = f"/api/kreplin-duels/{duel['id']}/submit"

    first = await host.post(submit_url, json={
        "result_id": "hasil-host", "total_correct": 40, "total_answered": 50, "accuracy": 80,
    })
    assert first.json()["status"] != "completed"

    second = await guest.post(submit_url, json={
        "result_id": "hasil-guest", "total_correct": 30, "total_answered": 45, "accuracy": 66.7,
    })
    body = second.json()
    assert body["status"] == "completed"
    assert body["ended_at"] is not None
    assert body["host"]["total_correct"] == 40
    assert body["guest"]["accuracy"] == 66.7

    # completed rooms can no longer be joined
    late = make_client()
    await register(late, "late@example.com")
    assert (await late.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})).status_code == 404


async def test_full_room_rejects_third_player(make_client):
    host, guest = await players(make_client)
    duel = (await host.post("/api/kreplin-duels", json={})).json()
    await guest.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})

    third = make_client()
    await register(third, "third@example.com")
    response = await third.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})
    assert response.status_code == 404

    assert (await third.get(f"/api/kreplin-duels/{duel['id']}")).status_code == 403


async def test_rejoining_is_idempotent(make_client):
    host, guest = await players(make_client)
    duel = (await host.post("/api/kreplin-duels", json={})).json()

    first = (await guest.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})).json()
    again = await guest.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})
    host_again = await host.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})

    assert again.status_code == 200
    assert again.json()["guest"]["user_id"] == first["guest"]["user_id"]
    assert host_again.json()["guest"]["user_id"] == first["guest"]["user_id"]


async def test_unknown_duel_is_404(user_client):
    assert (await user_client.get("/api/kreplin-duels/tidak-ada")).status_code == 404
    assert (await user_client.post("/api/kreplin-duels/join", json={"room_code": "ZZZZZZ"})).status_code == 404


async def test_generated_test_duel_gives_each_player_a_session(make_client, generator):
    host, guest = await players(make_client)

    created = await host.post("/api/test-duels", json=GENERATED)
    assert created.status_code == 201
    duel = created.json()["duel"]
    host_session_id = created.json()["session_id"]
    assert duel["question_count"] == 3
    assert duel["host"]["session_id"] == host_session_id

    joined = (await guest.post("/api/test-duels/join", json={"room_code": duel["room_code"]})).json()
    guest_session_id = joined["session_id"]
    assert guest_session_id and guest_session_id != host_session_id

    host_session = (await host.get(f"/api/test-sessions/{host_session_id}")).json()
    guest_session = (await guest.get(f"/api/test-sessions/{guest_session_id}")).json()
    assert host_session["questions"] == guest_session["questions"]
    assert host_session["duel_role"] == "host"
    assert guest_session["duel_role"] == "guest"
    assert guest_session["duel_id"] == duel["id"]
    assert len(generator.calls) == 1


async def test_test_duel_result_defaults_to_session_id(make_client):
    host, guest = await players(make_client)
    created = (await host.post("/api/test-duels", json=GENERATED)).json()
    duel_id = created["duel"]["id"]
    joined = (await guest.post("/api/test-duels/join", json={"room_code": created["duel"]["room_code"]})).json()

    submit_url = f"/api/test-duels/{duel_id}/submit"
    await host.post(submit_url, json={"total_correct": 2, "total_answered": 3, "accuracy": 66.7})
    done = (await guest.post(submit_url, json={"total_correct": 3, "total_answered": 3, "accuracy": 100})).json()

    assert done["status"] == "completed"
    assert done["host"]["result_id"] == created["session_id"]
    assert done["guest"]["result_id"] == joined["session_id"]
    assert done["session_id"] == joined["session_id"]


async def test_public_test_duel_copies_public_questions(make_client):
    host, guest = await players(make_client)
    source = (await host.post("/api/test-sessions", json={
        "user_type": "santai", "category": "sinonim_antonim", "difficulty": "mudah", "count": 2,
    })).json()
    public_id = (await host.patch(
        f"/api/test-sessions/{source['session_id']}", json={"action": "publish"}
    )).json()["public_id"]

    created = await guest.post("/api/test-duels", json={"type": "public", "public_id": public_id})
    assert created.status_code == 201
    assert created.json()["duel"]["source_type"] == "public"
    assert created.json()["duel"]["questions_json"] == source["questions"]

    missing = await guest.post("/api/test-duels", json={"type": "public", "public_id": "tidak-ada"})
    assert missing.status_code == 404


async def test_generated_duel_requires_settings(user_client):
    response = await user_client.post("/api/test-duels", json={"type": "generated", "category": "mixed"})
    assert response.status_code == 400


async def test_test_duel_generation_failure_answers_503(user_client, generator):
    generator.unavailable = True
    assert (await user_client.post("/api/test-duels", json=GENERATED)).status_code == 503


async def test_kreplin_submission_requires_result_id(make_client):
    host, guest = await players(make_client)
    duel = (await host.post("/api/kreplin-duels", json={})).json()
    await guest.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})
    submit_url = f"/api/kreplin-duels/{duel['id']}/submit"

    missing = await host.post(submit_url, json={"total_correct": 40, "total_answered": 50, "accuracy": 80})
    blank = await host.post(submit_url, json={
        "result_id": "", "total_correct": 40, "total_answered": 50, "accuracy": 80,
    })

    assert missing.status_code == 400
    assert blank.status_code == 400
    assert (await host.get(f"/api/kreplin-duels/{duel['id']}")).json()["host"].get("result_id") is None


async def test_resubmission_without_id_keeps_stored_result(make_client):
    host, guest = await players(make_client)
    duel = (await host.post("/api/kreplin-duels", json={})).json()
    await guest.post("/api/kreplin-duels/join", json={"room_code": duel["room_code"]})
    submit_url = f"/api/kreplin-duels/{duel['id']}/submit"
    await host.post(submit_url, json={"result_id": "hasil-host", "total_correct": 40, "total_answered": 50, "accuracy": 80})
    await guest.post(submit_url, json={"result_id": "hasil-guest", "total_correct": 30, "total_answered": 45, "accuracy": 66.7})
    host_id = (await host.get("/api/users/me")).json()["id"]

    async with AsyncSessionLocal() as db:
        again = await KreplinDuelService(db).submit_result(
            duel["id"], host_id, DuelSubmit(total_correct=41, total_answered=50, accuracy=82),
        )

    assert again.status == "completed"
    assert again.host["result_id"] == "hasil-host"
    assert again.host["total_correct"] == 41


async def test_test_duel_resubmission_keeps_session_result(make_client):
    host, guest = await players(make_client)
    created = (await host.post("/api/test-duels", json=GENERATED)).json()
    submit_url = f"/api/test-duels/{created['duel']['id']}/submit"

    first = await host.post(submit_url, json={"result_id": "sesi-lain", "total_correct": 1, "total_answered": 3, "accuracy": 33.3})
    again = (await host.post(submit_url, json={"total_correct": 2, "total_answered": 3, "accuracy": 66.7})).json()

    assert first.status_code == 200
    assert again["host"]["result_id"] == "sesi-lain"
    assert again["host"]["total_correct"] == 2
