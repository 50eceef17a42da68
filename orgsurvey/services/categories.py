"""Fixed category tables for organizational and growth surveys."""

CATEGORY_COUNT = 8

# id -> (日本語ラベル, English label)
ORGANIZATIONAL_CATEGORIES = {
    1: ("自己評価意識", "Self-Evaluation Consciousness"),
    2: ("変化意識", "Transformation Consciousness"),
    3: ("成果視点", "Result View"),
    4: ("行動優先意識", "Behavioral Precognition"),
    5: ("結果明確", "Result Confirmation"),
    6: ("時感覚", "Time Sensation"),
    7: ("組織内位置認識", "Recognition of Organizational Position"),
    8: ("免責意識", "Freedom of Blame"),
}

CATEGORY_IDS = tuple(range(1, CATEGORY_COUNT + 1))
CATEGORY_LABELS = [ja for ja, _ in ORGANIZATIONAL_CATEGORIES.values()]

_LABEL_TO_ID = {}
for _cid, (_ja, _en) in ORGANIZATIONAL_CATEGORIES.items():
    _LABEL_TO_ID[_ja] = _cid
    _LABEL_TO_ID[_en] = _cid


def get_category_id(label):
    if not label:
        return None
    trimmed = str(label).strip()
    if trimmed in _LABEL_TO_ID:
        return _LABEL_TO_ID[trimmed]
    lowered = trimmed.lower()
    for key, cid in _LABEL_TO_ID.items():
        if key.lower() == lowered:
            return cid
    return None


def category_label(category_id):
    entry = ORGANIZATIONAL_CATEGORIES.get(category_id)
    return entry[0] if entry else None


def score_field(category_id):
    return f"category{category_id}_score"


# 組織サーベイの6択（左から回答1〜6）
ANSWER_LABELS = [
    "まったくそう思わない",
    "そう思わない",
    "どちらかと言えばそう思わない",
    "どちらかといえばそう思う",
    "そう思う",
    "非常にそう思う",
]

# グロースサーベイ
GROWTH_CATEGORIES = ["ルール", "組織体制", "評価制度", "週報・会議"]
GROWTH_BONUS_CATEGORY = "識学サーベイ"
GROWTH_DISPLAY_CATEGORIES = GROWTH_CATEGORIES + [GROWTH_BONUS_CATEGORY]
GROWTH_CATEGORY_ALIASES = {"主保・会議": "週報・会議"}

DEFAULT_GROWTH_SCALE_OPTIONS = [
    {"text": label, "score": float(i)} for i, label in enumerate(ANSWER_LABELS, start=1)
]


def normalize_growth_category(category):
    if not category:
        return None
    category = str(category).strip()
    return GROWTH_CATEGORY_ALIASES.get(category, category)
