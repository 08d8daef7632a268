"""
Static exam configuration for the analytics core.

Subjects, categories (blocks) and score levels are fixed data; the engines are
parameterized by these tables rather than branching per category.
"""

# Subject keys in canonical order (column names in the record store)
SUBJECTS = (
    'toan',
    'ngu_van',
    'ngoai_ngu',
    'vat_li',
    'hoa_hoc',
    'sinh_hoc',
    'lich_su',
    'dia_li',
    'gdcd',
)

SUBJECT_NAMES = {
    'toan': 'Toán',
    'ngu_van': 'Ngữ Văn',
    'ngoai_ngu': 'Ngoại Ngữ',
    'vat_li': 'Vật Lý',
    'hoa_hoc': 'Hóa Học',
    'sinh_hoc': 'Sinh Học',
    'lich_su': 'Lịch Sử',
    'dia_li': 'Địa Lý',
    'gdcd': 'GDCD',
}

# Category (block) code -> ordered subject triple
CATEGORY_SUBJECTS = {
    'A': ('toan', 'vat_li', 'hoa_hoc'),
    'B': ('toan', 'hoa_hoc', 'sinh_hoc'),
    'C': ('ngu_van', 'lich_su', 'dia_li'),
    'D': ('toan', 'ngu_van', 'ngoai_ngu'),
}

CATEGORIES = tuple(CATEGORY_SUBJECTS)

CATEGORY_NAMES = {code: f"Khối {code}" for code in CATEGORIES}

ALL_SELECTOR = 'all'


class ScoreLevels:
    """Level buckets for a single subject score."""

    EXCELLENT = 'excellent'  # [8, 10]
    GOOD = 'good'            # [6, 8)
    AVERAGE = 'average'      # [4, 6)
    POOR = 'poor'            # [0, 4)

    # Canonical order, highest bucket first
    ALL = (EXCELLENT, GOOD, AVERAGE, POOR)

    # Inclusive lower bounds; anything below the last bound is POOR
    EXCELLENT_MIN = 8
    GOOD_MIN = 6
    AVERAGE_MIN = 4

    LABELS = {
        EXCELLENT: 'Xuất sắc (≥ 8)',
        GOOD: 'Khá (6-8)',
        AVERAGE: 'Trung bình (4-6)',
        POOR: 'Yếu (< 4)',
    }


class CacheKeys:
    """Cache key layout. Keys are relative to the cache namespace."""

    FULL_STATISTICS = 'stats:full'

    @staticmethod
    def category_ranking(category: str) -> str:
        return f"ranking:{category}"

    @staticmethod
    def student(student_id: str) -> str:
        return f"student:{student_id}"
