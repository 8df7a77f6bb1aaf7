import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="psikotes-tests-")

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["SESSION_STORE_PATH"] = os.path.join(_TMP_DIR, "session-store.json")
os.environ["AUTH_RATE_LIMIT"] = "10000"
os.environ["GENERATION_RATE_LIMIT"] = "10000"
os.environ["GEMINI_API_KEYS"] = ""

import pytest
from httpx import ASGITransport, AsyncClient

from psikotes.api import deps
from psikotes.core.cache import cache
from psikotes.core.database import Base, async_engine, create_db_and_tables
from psikotes.main import app
from psikotes.services.session_store import QuickSessionStore
from psikotes.utils.gemini_service import GenerationUnavailableError


def make_question(index: int, category: str = "deret_matematika", difficulty: str = "sulit") -> dict:
    return {
        "category": category,
        "difficulty": difficulty,
        "question_type": "Deret Angka",
        "question_text": f"Soal nomor {index + 1}: 2, 4, 8, __",
        "options": [
            {"label": "A", "text": "16"},
            {"label": "B", "text": "12"},
            {"label": "C", "text": "10"},
            {"label": "D", "text": "14"},
        ],
        "correct_option_label": "A",
        "explanation": "Setiap suku dikali dua.",
    }


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeGenerator:
    """Stands in for GeminiService behind the generator dependency."""

    def __init__(self):
        self.unavailable = False
        self.calls = []
        self.text_calls = 0

    async def generate_questions(self, params):
        self.calls.append(params)
        if self.unavailable:
            raise GenerationUnavailableError("Layanan Gemini sedang penuh. Coba lagi dalam beberapa saat.")
        category = "padanan_kata" if params.category == "mixed" else params.category
        return [make_question(i, category, params.difficulty) for i in range(params.count)]

    async def generate_text(self, prompt, temperature=0.6):
        self.text_calls += 1
        if self.unavailable:
            raise GenerationUnavailableError("Semua model Gemini sedang tidak tersedia.")
        return "Ringkasan: ritme stabil, akurasi baik.", "fake-model"


@pytest.fixture(autouse=True)
async def database():
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await create_db_and_tables(async_engine)
    yield
    await async_engine.dispose()


@pytest.fixture(autouse=True)
async def fresh_cache():
    await cache.close()
    yield
    await cache.close()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def quick_store(tmp_path):
    return QuickSessionStore(str(tmp_path / "quick-sessions.json"))


@pytest.fixture(autouse=True)
def overrides(generator, quick_store):
    app.dependency_overrides[deps.get_question_generator] = lambda: generator
    app.dependency_overrides[deps.get_quick_session_store] = lambda: quick_store
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def make_client():
    """Factory for clients with their own cookie jar, one per simulated user."""
    clients = []

    def factory() -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.aclose()


@pytest.fixture
async def client(make_client):
    return make_client()


async def register(client: AsyncClient, email: str, password: str = "rahasia123", name: str = None) -> dict:
    response = await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name or email.split("@")[0]},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def user_client(make_client):
    client = make_client()
    await register(client, "budi@example.com", name="Budi")
    return client
