"""Growth survey scoring: weighted single-choice answers per category plus the bonus category."""
from collections import namedtuple

from .aggregation import round_half_up, row_value
from .categories import GROWTH_BONUS_CATEGORY, GROWTH_CATEGORIES, normalize_growth_category

GrowthScoreResult = namedtuple("GrowthScoreResult", ["category_scores", "total_respondents", "free_text_answers"])

BONUS_BASE = 1.5
BONUS_MAX = 6.0


def question_applies(question, job_name):
    targets = [t for t in (question.target_jobs or []) if t]
    if not targets or not job_name:
        return True
    return job_name in targets


def option_index(answer):
    try:
        return int(str(answer).strip())
    except (TypeError, ValueError):
        return None


def score_answer(question, answer):
    """Weighted contribution of one answer; free text and invalid choices contribute 0."""
    if question.question_type == "free_text":
        return 0.0
    idx = option_index(answer)
    options = question.answers or []
    if idx is None or not (0 <= idx < len(options)):
        return 0.0
    score = options[idx].get("score")
    if score is None:
        return 0.0
    weight = question.weight if question.weight is not None else 1.0
    return float(score) * float(weight)


def score_growth_responses(questions, answers, job_by_user=None):
    """Aggregate answers ({userId, questionId, answer}) into category totals.

    Every responder with at least one applicable answer is counted, including
    those who only answered free-text questions.
    """
    job_by_user = job_by_user or {}
    by_id = {q.id: q for q in questions}
    totals = {c: 0.0 for c in GROWTH_CATEGORIES}
    respondents = set()
    free_text = []

    for ans in answers or []:
        uid = row_value(ans, "userId", "user_id")
        qid = row_value(ans, "questionId", "question_id")
        value = row_value(ans, "answer")
        question = by_id.get(qid)
        if question is None or not question_applies(question, job_by_user.get(uid)):
            continue
        if value is None or str(value).strip() == "":
            continue
        respondents.add(uid)
        if question.question_type == "free_text":
            free_text.append({"userId": uid, "questionId": qid, "text": str(value)})
            continue
        category = normalize_growth_category(question.category)
        if category in totals:
            totals[category] += score_answer(question, value)

    return GrowthScoreResult(
        category_scores={k: round_half_up(v, 2) for k, v in totals.items()},
        total_respondents=len(respondents),
        free_text_answers=free_text,
    )


def _meets(stats, threshold):
    return (
        stats["averageTotal"] >= threshold
        and stats["averageCategory1"] >= threshold
        and stats["averageCategory7"] >= threshold
    )


def organizational_bonus_score(overall, managers):
    """識学サーベイ category derived from organizational survey statistics."""
    if overall is None or not overall.get("count"):
        return BONUS_BASE
    managers = managers or {"averageTotal": 0.0, "averageCategory1": 0.0, "averageCategory7": 0.0, "count": 0}
    score = BONUS_BASE
    if _meets(overall, 60):
        score += 1.0
    if _meets(overall, 65):
        score += 1.0
    if _meets(managers, 65):
        # 管理職条件は2項目として別々に加点する
        score += 2.0
    cat1_and_7 = (overall["averageCategory1"] + overall["averageCategory7"]) / 2
    if overall["averageTotal"] >= 70 and managers["averageTotal"] >= 80 and cat1_and_7 >= 70:
        score += 0.5
    return min(score, BONUS_MAX)


def category_scores_payload(result, bonus):
    categories = dict(result.category_scores)
    categories[GROWTH_BONUS_CATEGORY] = bonus
    return {
        "categories": categories,
        "totalRespondents": result.total_respondents,
        "freeTextAnswers": result.free_text_answers,
    }
