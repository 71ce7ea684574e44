"""
Car Market Analytics — Configuration: paths, column map, parsing constants.
"""
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths: override with CARLENS_DATA_DIR env var for deployment
# ---------------------------------------------------------------------------
_data_dir = Path(os.environ.get("CARLENS_DATA_DIR", "data"))
DATA_FOLDER = _data_dir
EXPORT_FOLDER = Path(os.environ.get("CARLENS_EXPORT_DIR", str(_data_dir / "exports")))
EXCLUDE_KEYWORDS_FILENAME = "exclude_keywords.txt"
EXCLUDE_KEYWORDS_FILE = _data_dir / EXCLUDE_KEYWORDS_FILENAME

# Model folder loaded at startup; first folder alphabetically when unset
DEFAULT_MODEL = os.environ.get("CARLENS_MODEL") or None

# Tried in order when reading listing CSVs
CSV_ENCODINGS = ["utf-8-sig", "cp932"]

# ---------------------------------------------------------------------------
# Column mapping from raw listing CSV → internal names
# ---------------------------------------------------------------------------
COLUMN_MAP = {
    "車種名": "name",
    "グレード": "grade",
    "支払総額": "price",
    "年式": "year",
    "走行距離": "mileage",
    "ミッション": "transmission",
    "修復歴": "repair_history",
    "モデル": "model",
    "車両URL": "detail_url",
    "ソースURL": "source_url",
    "取得日時": "acquisition_datetime",
    "取得日": "acquisition_date",
    "取得時刻": "acquisition_time",
    "排気量": "engine_capacity",
    "コメント": "comments",
    "備考": "comments",
}

# Japanese header used for each canonical column in CSV exports
EXPORT_HEADERS = {
    "id": "ID",
    "name": "車種名",
    "model": "モデル",
    "grade": "グレード",
    "price": "支払総額",
    "year": "年式",
    "mileage": "走行距離",
    "transmission": "ミッション",
    "has_repair_history": "修復歴",
    "engine_capacity": "排気量",
    "acquisition_datetime": "取得日時",
    "acquisition_date": "取得日",
    "acquisition_time": "取得時刻",
    "source_url": "ソースURL",
    "detail_url": "車両URL",
    "comments": "コメント",
    "batch_date": "データ日付",
    "source_group": "車種フォルダ",
}

# ---------------------------------------------------------------------------
# Parsing constants
# ---------------------------------------------------------------------------
MAN = 10_000                       # 万 multiplier
MAN_MARKER = "万"

# Tokens removed from price text before digit extraction ("万円" before "円")
PRICE_STRIP_TOKENS = [
    "万円", "円", ",", "，", "￥", "¥", "\u3000", " ", "\t", "\r", "\n", "'", "\u00a0",
]
MILEAGE_STRIP_TOKENS = [
    "万km", "km", "万", ",", "，", "\u3000", " ", "'", "\u00a0",
]
FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９．", "0123456789.")

# Heisei / Reiwa / Showa prefixes ("H30", "R2", "S63")
ERA_LETTERS = ["H", "R", "S"]
TWO_DIGIT_YEAR_PIVOT = 30          # ≤30 → 20xx, else 19xx
ERA_YEAR_OFFSET = 1988             # 3-digit era-relative offsets

REPAIR_PRESENT = "あり"

# ---------------------------------------------------------------------------
# Grade cleaning rules, applied top to bottom
# ---------------------------------------------------------------------------
GRADE_CLEAN_PATTERNS = [
    r"\d+\.?\d*万?円",           # embedded price "1489.5万円"
    r"売#?\d+台",                 # dealer sales count "売#200台"
    r"\d+-?SPEED",                # transmission speeds "8-SPEED"
    r"自然吸気|エンジン最終搭載",
]
GRADE_MAX_LENGTH = 50
GRADE_ELLIPSIS = "..."

# ---------------------------------------------------------------------------
# Filter panel sentinels and options
# ---------------------------------------------------------------------------
ALL_OPTION = "すべて"
NO_LOWER_BOUND = "下限なし"
NO_UPPER_BOUND = "上限なし"
TRANSMISSION_TYPES = [ALL_OPTION, "AT", "CVT", "MT", "その他"]
MILEAGE_OPTION_STEP = 10_000

# Upper bound used when a filter range is left open. Parsed prices, years and
# mileages above it are out of range.
OPEN_MAX = 2**62

# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------
PRICE_BIN_SIZE = 25                # 万円 per histogram bin
TOP_GRADES = 15
TREND_METRICS = ("average", "median", "min", "max")
UNKNOWN_DATE_LABEL = "不明"

# View-mode labels from the dashboard selector → chart keys
VIEW_MODES = {
    "概要": "year_distribution",
    "価格分布": "price_distribution",
    "価格推移": "price_trend",
    "グレード分析": "grade_analysis",
    "走行距離vs価格": "mileage_vs_price",
}
