import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from ..core.config import settings
from .prompts import build_question_prompt

logger = logging.getLogger(__name__)


class GenerationUnavailableError(Exception):
    """Raised when every key/model combination failed for every attempt."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class QuestionOption(BaseModel):
    label: str = Field(min_length=1)
    text: str


class GeneratedQuestion(BaseModel):
    """One question as returned by the model. Accepts camelCase keys, dumps snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: str
    difficulty: str
    question_type: str
    question_text: str
    options: List[QuestionOption] = Field(min_length=2)
    correct_option_label: str
    explanation: str

    @model_validator(mode="after")
    def check_labels(self):
        labels = [option.label for option in self.options]
        if len(set(labels)) != len(labels):
            raise ValueError("option labels must be unique")
        if self.correct_option_label not in labels:
            raise ValueError("correct_option_label must match one of the options")
        return self


@dataclass(frozen=True)
class GenerationParams:
    user_type: str
    category: str
    difficulty: str
    count: int


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 1.0

    def delay_for(self, attempt: int) -> float:
        # linear: 1x after the first failed round, 2x after the second
        return self.backoff_seconds * attempt


@dataclass(frozen=True)
class Provider:
    api_key: str
    model: str

    @property
    def masked_key(self) -> str:
        return f"****{self.api_key[-4:]}"


def extract_json_payload(text: str) -> Any:
    """Parse the model reply, tolerating prose or code fences around the JSON array."""
    if not text or not text.strip():
        raise ValueError("empty response")
    stripped = text.strip()
    try:
        payload = json.loads(stripped)
    except json.JSONDecodeError:
        start = stripped.find("[")
        end = stripped.rfind("]")
        if start == -1 or end <= start:
            raise ValueError("no JSON array found in response")
        payload = json.loads(stripped[start:end + 1])

    if isinstance(payload, dict) and isinstance(payload.get("questions"), list):
        payload = payload["questions"]
    if not isinstance(payload, list):
        raise ValueError("response is not a JSON array")
    return payload


def parse_question_batch(text: str, expected: int) -> List[Dict[str, Any]]:
    payload = extract_json_payload(text)
    if len(payload) < expected:
        raise ValueError(f"expected {expected} questions, got {len(payload)}")
    questions = [GeneratedQuestion.model_validate(item) for item in payload[:expected]]
    return [question.model_dump() for question in questions]


class GeminiService:
    """Gemini through its OpenAI-compatible endpoint, with chunking and key/model fallback."""

    def __init__(
        self,
        api_keys: Optional[Sequence[str]] = None,
        models: Optional[Sequence[str]] = None,
        analysis_models: Optional[Sequence[str]] = None,
        base_url: Optional[str] = None,
        chunk_size: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ):
        self.api_keys = list(api_keys if api_keys is not None else settings.api_keys)
        self.models = list(models or settings.question_models)
        self.analysis_models = list(analysis_models or settings.analysis_models)
        self.base_url = base_url or settings.gemini_base_url
        self.chunk_size = max(1, chunk_size or settings.generation_chunk_size)
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.generation_max_attempts,
            backoff_seconds=settings.generation_backoff_seconds,
        )
        self._client_factory = client_factory or self._default_client
        self._clients: Dict[str, Any] = {}
        self._sleep = sleep

    def _default_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=api_key, base_url=self.base_url, max_retries=0)

    def _client(self, api_key: str):
        if api_key not in self._clients:
            self._clients[api_key] = self._client_factory(api_key)
        return self._clients[api_key]

    def providers(self, models: Optional[Sequence[str]] = None) -> List[Provider]:
        return [Provider(key, model) for key in self.api_keys for model in (models or self.models)]

    def chunk_sizes(self, count: int) -> List[int]:
        sizes = []
        remaining = count
        while remaining > 0:
            size = min(self.chunk_size, remaining)
            sizes.append(size)
            remaining -= size
        return sizes

    async def _complete(self, provider: Provider, prompt: str, temperature: float) -> str:
        response = await self._client(provider.api_key).chat.completions.create(
            model=provider.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("empty response")
        return content

    async def _generate_chunk(self, params: GenerationParams, size: int) -> List[Dict[str, Any]]:
        prompt = build_question_prompt(params.user_type, params.category, params.difficulty, size)
        providers = self.providers()
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.retry_policy.max_attempts + 1):
            for provider in providers:
                try:
                    text = await self._complete(provider, prompt, temperature=0.7)
                    return parse_question_batch(text, size)
                except (ValidationError, ValueError) as e:
                    last_error = e
                    logger.warning(
                        f"Invalid question batch from key {provider.masked_key} model {provider.model} "
                        f"(attempt {attempt}): {e}"
                    )
                except Exception as e:
                    last_error = e
                    logger.warning(
                        f"Gemini error for key {provider.masked_key} model {provider.model} "
                        f"(attempt {attempt}), trying next key/model: {e}"
                    )
            if attempt < self.retry_policy.max_attempts:
                await self._sleep(self.retry_policy.delay_for(attempt))

        raise GenerationUnavailableError(
            "Layanan Gemini sedang penuh. Coba lagi dalam beberapa saat.", last_error
        )

    async def generate_questions(self, params: GenerationParams) -> List[Dict[str, Any]]:
        if not self.api_keys:
            raise GenerationUnavailableError("Gemini API key is not configured.")
        if params.count <= 0:
            return []

        questions: List[Dict[str, Any]] = []
        sizes = self.chunk_sizes(params.count)
        for number, size in enumerate(sizes, start=1):
            logger.info(
                f"Generating chunk {number}/{len(sizes)} ({size} questions) "
                f"for {params.category}/{params.difficulty}"
            )
            questions.extend(await self._generate_chunk(params, size))
        return questions

    async def generate_text(self, prompt: str, temperature: float = 0.6) -> Tuple[str, str]:
        """One pass over keys x analysis models. Returns (text, model name)."""
        if not self.api_keys:
            raise GenerationUnavailableError("Gemini API key is not configured.")

        last_error: Optional[BaseException] = None
        for provider in self.providers(self.analysis_models):
            try:
                text = await self._complete(provider, prompt, temperature=temperature)
                return text.strip(), provider.model
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Gemini text error for key {provider.masked_key} model {provider.model}: {e}"
                )

        raise GenerationUnavailableError("Semua model Gemini sedang tidak tersedia.", last_error)
