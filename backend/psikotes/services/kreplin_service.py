import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.kreplin import KreplinResult
from ..schemas.kreplin import KreplinResultCreate
from ..utils.timezone import utc_now

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str, temperature: float = 0.6) -> Tuple[str, str]:
        ...


class AnalysisExistsError(Exception):
    pass


def _ratio(correct: int, total: int) -> Optional[float]:
    return correct / total * 100 if total > 0 else None


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def build_analysis_prompt(result: KreplinResult) -> str:
    """Prompt psikolog industri berdasarkan rincian numerik hasil Tes Koran."""
    sections = result.per_section_stats or []
    timeline = result.speed_timeline or []

    minutes = [
        {"minute": bucket["index"] + 1, "acc": _ratio(bucket["correct"], bucket["total"]), "volume": bucket["total"]}
        for bucket in timeline
    ]
    minutes = [item for item in minutes if item["acc"] is not None]
    half = len(minutes) / 2
    first_half = [item["acc"] for item in minutes if item["minute"] <= half]
    second_half = [item["acc"] for item in minutes if item["minute"] > half]

    columns = [
        {"section": s["index"], "acc": _ratio(s["correct"], s["total"]), "volume": s["total"], "correct": s["correct"]}
        for s in sections
    ]
    columns = [item for item in columns if item["acc"] is not None]

    if minutes:
        best = max(minutes, key=lambda item: item["acc"])
        worst = min(minutes, key=lambda item: item["acc"])
        minute_line = (
            f"Menit terbaik: {best['minute']} ({best['acc']:.1f}%, {best['volume']} soal), "
            f"terburuk: {worst['minute']} ({worst['acc']:.1f}%, {worst['volume']} soal)"
        )
        trend = f"{minutes[0]['acc']:.1f}% -> {minutes[-1]['acc']:.1f}%"
    else:
        minute_line = "Menit terbaik/terburuk: tidak tersedia"
        trend = "tidak tersedia"

    if columns:
        col_best = max(columns, key=lambda item: item["acc"])
        col_worst = min(columns, key=lambda item: item["acc"])
        column_line = (
            f"Rata akurasi per kolom: {_mean([c['acc'] for c in columns]):.1f}% | "
            f"Kolom terbaik: {col_best['section']} ({col_best['acc']:.1f}%, {col_best['correct']}/{col_best['volume']}) | "
            f"Terburuk: {col_worst['section']} ({col_worst['acc']:.1f}%, {col_worst['correct']}/{col_worst['volume']})"
        )
    else:
        column_line = "Rata akurasi per kolom: tidak tersedia"

    section_summary = "; ".join(f"Kolom {s['index']}: {s['correct']}/{s['total']}" for s in sections)
    speed_summary = "; ".join(f"Menit {b['index'] + 1}: {b['correct']}/{b['total']}" for b in timeline)

    return f"""
Anda adalah psikolog industri dan organisasi yang menilai hasil Tes Koran/Kraepelin untuk seleksi karyawan.
Berikan analisis ringkas (maks 160 kata) dalam bahasa Indonesia, dengan fokus pada ketahanan, konsistensi ritme, dan akurasi.
Gunakan format:
- Ringkasan
- Ketahanan & ritme (sertakan data numerik tren per menit)
- Kesalahan & risiko (cantumkan menit/kolom terburuk)
- Rekomendasi latihan (spesifik dan terukur)
- Keputusan singkat (fit / perlu latihan / tidak disarankan)

Data numerik:
- Mode: {result.mode}
- Durasi: {round(result.duration_seconds / 60)} menit
- Total dijawab: {result.total_answered}
- Benar: {result.total_correct}, Salah: {result.total_incorrect}, Akurasi: {result.accuracy:.1f}%
- Rata-rata akurasi per menit: {_mean([m['acc'] for m in minutes]):.1f}%
- Paruh pertama vs kedua: {_mean(first_half):.1f}% vs {_mean(second_half):.1f}%
- {minute_line}
- Tren awal-akhir: {trend}
- {column_line}
- Benar per kolom (raw): {section_summary or "tidak tersedia"}
- Benar per menit (speed timeline): {speed_summary or "tidak tersedia"}

Berikan interpretasi kuantitatif (misal delta akurasi awal-akhir, tren turun/naik), lalu simpulkan implikasi ketahanan & fokus kerja.
"""


class KreplinService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def save_result(self, user_id: str, data: KreplinResultCreate) -> KreplinResult:
        result = KreplinResult(user_id=user_id, **data.model_dump())
        self.db.add(result)
        await self.db.commit()
        await self.db.refresh(result)
        return result

    async def list_results(self, user_id: str, limit: int = 20) -> List[KreplinResult]:
        rows = await self.db.execute(
            select(KreplinResult)
            .filter(KreplinResult.user_id == user_id)
            .order_by(KreplinResult.created_at.desc())
            .limit(limit)
        )
        return list(rows.scalars().all())

    async def get_result(self, user_id: str, result_id: str) -> Optional[KreplinResult]:
        rows = await self.db.execute(
            select(KreplinResult).filter(KreplinResult.id == result_id, KreplinResult.user_id == user_id)
        )
        return rows.scalars().first()

    async def delete_result(self, user_id: str, result_id: str) -> int:
        deletion = await self.db.execute(
            delete(KreplinResult).where(KreplinResult.id == result_id, KreplinResult.user_id == user_id)
        )
        await self.db.commit()
        return deletion.rowcount or 0

    async def save_analysis(self, user_id: str, result_id: str, text: str, model: str) -> Dict[str, Any]:
        """Write the analysis only while none exists; a concurrent writer loses."""
        created_at = utc_now()
        outcome = await self.db.execute(
            update(KreplinResult)
            .where(
                KreplinResult.id == result_id,
                KreplinResult.user_id == user_id,
                KreplinResult.ai_analysis_text.is_(None),
            )
            .values(ai_analysis_text=text, ai_analysis_model=model, ai_analysis_created_at=created_at)
        )
        await self.db.commit()
        if not outcome.rowcount:
            raise AnalysisExistsError("Analisis sudah pernah dibuat.")
        return {"analysis": text, "model": model, "created_at": created_at}

    async def analyze(self, result: KreplinResult, generator: TextGenerator) -> Dict[str, Any]:
        if result.ai_analysis_text:
            raise AnalysisExistsError("Analisis sudah pernah dibuat.")
        user_id, result_id = result.user_id, result.id
        text, model = await generator.generate_text(build_analysis_prompt(result), temperature=0.6)
        saved = await self.save_analysis(user_id, result_id, text, model)
        logger.info(f"Kreplin analysis stored for result {result_id} using {model}")
        return saved
