"""Prompt templates untuk pembuatan soal psikotes."""

CATEGORIES = (
    "padanan_kata",
    "sinonim_antonim",
    "hafalan_kata",
    "deret_matematika",
    "perbandingan_senilai_berbalik",
    "mixed",
)

CATEGORY_LABELS = {
    "padanan_kata": "Padanan Kata",
    "sinonim_antonim": "Sinonim & Antonim",
    "hafalan_kata": "Hafalan Kata",
    "deret_matematika": "Deret Matematika",
    "perbandingan_senilai_berbalik": "Perbandingan Senilai & Berbalik Nilai",
    "mixed": "Campuran Variatif",
}

DIFFICULTY_LABELS = {
    "mudah": "Mudah",
    "sedang": "Sedang",
    "sulit": "Sulit",
}

CATEGORY_INSTRUCTIONS = {
    "padanan_kata": """
Jenis soal: PADANAN KATA (hubungan arti).
- Berikan pasangan kata utama, lalu beberapa pasangan kata sebagai pilihan.
- Peserta diminta memilih pasangan yang hubungan katanya PALING MIRIP dengan pasangan utama.
- Contoh gaya (jangan digunakan persis): "Dokter : Rumah Sakit = ...".
""",
    "sinonim_antonim": """
Jenis soal: SINONIM / ANTONIM.
- Berikan satu kata utama.
- Tentukan apakah soal meminta SINONIM atau ANTONIM (pilih salah satu).
- Tuliskan jelas di soal, misalnya: "Pilih SINONIM yang paling tepat untuk kata berikut".
- Sediakan 4 sampai 5 pilihan jawaban.
""",
    "hafalan_kata": """
Jenis soal: HAFALAN KATA.
- Di awal soal, tampilkan 8 sampai 12 kata acak (boleh dibagi beberapa baris).
- Setelah itu beri pertanyaan yang menguji ingatan, misalnya:
  - "Kata mana yang TIDAK ada dalam daftar di atas?"
  - atau "Pasangan kata mana yang muncul berurutan di daftar?"
- Sediakan 4 sampai 5 pilihan jawaban.
""",
    "deret_matematika": """
Jenis soal: DERET MATEMATIKA SULIT.
- Fokus pada deret yang butuh penalaran, bukan hanya pola sederhana.
- Gunakan pola campuran: aritmetika, geometri, pola selang-seling, kombinasi huruf dan angka, atau operasi berbeda di posisi ganjil/genap.
- Boleh gunakan lebih dari satu titik kosong, misalnya: 3, 6, __, 24, __, 96, ...
- Pilihan jawaban harus berupa isi titik kosong yang benar (boleh satu nilai, boleh dua nilai seperti "8 dan 48").
""",
    "perbandingan_senilai_berbalik": """
Jenis soal: PERBANDINGAN SENILAI & BERBALIK NILAI (cerita).
- Setiap soal harus berupa cerita kontekstual (tokoh, objek, situasi) yang relevan dengan kehidupan sehari-hari.
- Tentukan apakah masalahnya termasuk perbandingan senilai atau berbalik nilai dan tekankan di pembahasan.
- Jika ada satuan berbeda (m, cm, liter, kg, dst.), selaraskan terlebih dahulu sebelum menghitung perbandingan.
- Untuk perbandingan senilai, gunakan proporsi langsung.
- Untuk perbandingan berbalik nilai, gunakan proporsi terbalik.
- Tuliskan "questionType" yang mencerminkan tipe soal, misalnya "Perbandingan Senilai" atau "Perbandingan Berbalik Nilai".
- Pastikan jawaban benar didukung perhitungan sederhana yang dijelaskan di "explanation".
""",
    "mixed": """
Kategori CAMPURAN:
- Untuk setiap soal, pilih secara acak salah satu dari:
  - padanan_kata
  - sinonim_antonim
  - hafalan_kata
  - deret_matematika (sulit)
  - perbandingan_senilai_berbalik (cerita)
- Pastikan field "category" di JSON mencerminkan kategori aktual tiap soal.
""",
}

MODE_HINTS = {
    "simulasi": "Mode ini seperti simulasi tes kerja sungguhan. Soal boleh dibuat agak menekan waktu dan menguji konsentrasi.",
    "serius": "Mode ini fokus untuk belajar serius dan memperkuat konsep psikotes.",
    "tantangan": (
        "Mode ini adalah mode tantangan. Tingkatkan tingkat kesulitan soal dan dorong peserta "
        "untuk berpikir cepat dengan variasi pola yang tidak terduga."
    ),
}
DEFAULT_MODE_HINT = "Mode ini lebih santai, tapi tetap gunakan gaya soal psikotes resmi (bukan kuis santai)."


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def difficulty_label(difficulty: str) -> str:
    return DIFFICULTY_LABELS.get(difficulty, difficulty)


def build_question_prompt(user_type: str, category: str, difficulty: str, count: int) -> str:
    instruction = CATEGORY_INSTRUCTIONS.get(category, CATEGORY_INSTRUCTIONS["mixed"]).strip()
    mode_hint = MODE_HINTS.get(user_type, DEFAULT_MODE_HINT)

    return f"""
Anda adalah asisten yang membuat soal latihan psikotes bergaya Bappenas.
{mode_hint}
Kembalikan array JSON murni tanpa teks lain.
Schema tiap item:
{{
  "category": string,
  "difficulty": string,
  "questionType": string,
  "questionText": string,
  "options": [{{ "label": string, "text": string }}],
  "correctOptionLabel": string,
  "explanation": string
}}

Konteks:
- userType: {user_type}
- category: {category}
- difficulty: {difficulty}
- jumlah soal: {count}

Ketentuan:
- Buat tepat {count} soal.
- Tulis pertanyaan dan opsi dalam bahasa Indonesia ringkas.
- Gunakan label opsi huruf kapital A-D (atau A-E bila perlu 5 opsi).
- Explanation harus berisi pembahasan singkat.
- Jangan bungkus JSON dalam blok kode atau penjelasan.

Fokus kategori:
{instruction}
"""
