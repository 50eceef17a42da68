"""Question catalog: ordering, input parsing for problems and growth questions."""
from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from .aggregation import round_half_up
from .categories import (
    DEFAULT_GROWTH_SCALE_OPTIONS,
    GROWTH_CATEGORIES,
    get_category_id,
    normalize_growth_category,
)


class ReorderError(ValueError):
    pass


class QuestionInputError(ValueError):
    pass


# ---- ordering -------------------------------------------------------------

def move_item(seq, src, dst):
    """Drag: take the item at ``src`` and insert it at ``dst``."""
    items = list(seq)
    if not (0 <= src < len(items)) or not (0 <= dst < len(items)) or src == dst:
        return items
    item = items.pop(src)
    items.insert(dst, item)
    return items


def move_up(seq, index):
    items = list(seq)
    if 0 < index < len(items):
        items[index - 1], items[index] = items[index], items[index - 1]
    return items


def move_down(seq, index):
    items = list(seq)
    if 0 <= index < len(items) - 1:
        items[index], items[index + 1] = items[index + 1], items[index]
    return items


def ordered_query(model):
    return model.query.order_by(func.coalesce(model.display_order, model.id).asc(), model.id.asc())


def current_order(model):
    return [row.id for row in ordered_query(model).all()]


def reorder(model, ids):
    """Persist display_order = position + 1 for every id, all or nothing."""
    if not isinstance(ids, (list, tuple)) or not ids:
        raise ReorderError("questionIdsは空でない配列である必要があります")
    try:
        ids = [int(i) for i in ids]
    except (TypeError, ValueError):
        raise ReorderError("questionIdsは数値の配列である必要があります")
    if len(set(ids)) != len(ids):
        raise ReorderError("questionIdsに重複があります")

    rows = {row.id: row for row in model.query.filter(model.id.in_(ids)).all()}
    missing = [i for i in ids if i not in rows]
    if missing:
        raise ReorderError(f"存在しない質問IDがあります: {missing}")
    try:
        for position, qid in enumerate(ids, start=1):
            rows[qid].display_order = position
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return ids


MOVES = {
    "up": lambda seq, index, target: move_up(seq, index),
    "down": lambda seq, index, target: move_down(seq, index),
    "drag": lambda seq, index, target: move_item(seq, index, target),
}


def apply_move(model, kind, index, target=None):
    """Reorder locally, persist, and fall back to the stored order on failure.

    Returns ``(order, ok)``.
    """
    if kind not in MOVES:
        raise ReorderError(f"不明な移動方法です: {kind}")
    if kind == "drag" and target is None:
        raise ReorderError("targetIndexは必須です")
    before = current_order(model)
    after = MOVES[kind](before, index, target)
    if after == before:
        return before, True
    try:
        reorder(model, after)
        return after, True
    except Exception:
        current_app.logger.exception('Persisting question order failed; reloading stored order')
        db.session.rollback()
        return current_order(model), False


def next_display_order(model):
    top = db.session.query(func.max(model.display_order)).scalar()
    return (top or 0) + 1


# ---- problems -------------------------------------------------------------

def _score(value, name):
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise QuestionInputError(f"{name}は数値である必要があります")


def parse_problem_input(payload, partial=False, existing=None):
    """Column values for a Problem from an API payload."""
    payload = payload or {}
    out = {}
    text = payload.get("questionText")
    if text is not None or not partial:
        text = (text or "").strip()
        if not text:
            raise QuestionInputError("問題文は必須です")
        out["question_text"] = text

    qtype = payload.get("questionType") or (existing.question_type if existing is not None else "single_choice")
    if qtype not in ("single_choice", "free_text"):
        raise QuestionInputError("questionTypeが不正です")
    out["question_type"] = qtype

    if qtype == "free_text":
        out["category"] = ""
        out["category_id"] = None
        for i in range(1, 7):
            out[f"answer{i}_score"] = 0.0
        return out

    category = payload.get("category")
    if category is None and existing is not None:
        category = existing.category
    category = (category or "").strip()
    if not category:
        raise QuestionInputError("カテゴリは必須です")
    cid = get_category_id(category)
    if cid is None:
        raise QuestionInputError(f"カテゴリ「{category}」は無効です")
    out["category"] = category
    out["category_id"] = cid
    for i in range(1, 7):
        key = f"answer{i}Score"
        if key in payload or not partial:
            out[f"answer{i}_score"] = _score(payload.get(key), key)
    return out


# ---- growth questions -----------------------------------------------------

@dataclass(frozen=True)
class SingleChoiceQuestionInput:
    question_text: str
    category: str
    answers: List[dict]
    weight: Optional[float] = None
    target_jobs: List[str] = field(default_factory=list)
    is_active: bool = True
    question_type: str = "single_choice"


@dataclass(frozen=True)
class FreeTextQuestionInput:
    question_text: str
    target_jobs: List[str] = field(default_factory=list)
    is_active: bool = True
    question_type: str = "free_text"


def _target_jobs(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _weight(value):
    if value is None or value == "":
        return None
    try:
        weight = float(value)
    except (TypeError, ValueError):
        raise QuestionInputError("問題比重は数値である必要があります")
    if weight < 0:
        raise QuestionInputError("問題比重は0以上である必要があります")
    return round_half_up(weight, 2)


def _answers(value):
    if not value:
        return [dict(opt) for opt in DEFAULT_GROWTH_SCALE_OPTIONS]
    out = []
    for i, ans in enumerate(value, start=1):
        if not isinstance(ans, dict):
            raise QuestionInputError(f"回答{i}の形式が不正です")
        text = str(ans.get("text") or "").strip()
        if not text:
            raise QuestionInputError(f"回答{i}の文言は必須です")
        score = ans.get("score")
        out.append({"text": text, "score": None if score in (None, "") else _score(score, f"回答{i}のスコア")})
    return out


def parse_growth_question_input(payload):
    payload = payload or {}
    text = (payload.get("questionText") or "").strip()
    if not text:
        raise QuestionInputError("質問文は必須です")
    target_jobs = _target_jobs(payload.get("targetJobs"))
    is_active = payload.get("isActive")
    is_active = True if is_active is None else bool(is_active)

    qtype = payload.get("questionType") or "single_choice"
    if qtype == "free_text":
        return FreeTextQuestionInput(question_text=text, target_jobs=target_jobs, is_active=is_active)
    if qtype != "single_choice":
        raise QuestionInputError("questionTypeが不正です")

    category = normalize_growth_category(payload.get("category"))
    if not category:
        raise QuestionInputError("カテゴリは必須です")
    if category not in GROWTH_CATEGORIES:
        raise QuestionInputError(f"カテゴリ「{category}」は無効です")
    return SingleChoiceQuestionInput(
        question_text=text,
        category=category,
        answers=_answers(payload.get("answers")),
        weight=_weight(payload.get("weight")),
        target_jobs=target_jobs,
        is_active=is_active,
    )


def apply_growth_input(question, data):
    question.question_text = data.question_text
    question.question_type = data.question_type
    question.target_jobs = list(data.target_jobs)
    question.is_active = data.is_active
    if isinstance(data, FreeTextQuestionInput):
        question.category = None
        question.weight = None
        question.answers = []
    else:
        question.category = data.category
        question.weight = data.weight
        question.answers = list(data.answers)
    return question
