"""Employee answers: organizational results and growth survey responses."""
from flask import current_app

from ..extensions import db
from ..jobs.summarize import rebuild_summary
from ..models.growth_survey_question import GrowthSurveyQuestion
from ..models.growth_survey_response import GrowthSurveyResponse
from ..models.problem import Problem
from ..models.survey import Survey
from ..models.survey_result import OrganizationalSurveyResult
from .categories import normalize_growth_category
from .growth_scoring import option_index, question_applies, score_answer
from .response_status import organizational_answered_count, rate


class SubmissionError(ValueError):
    pass


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def running_survey(survey_type, survey_id=None):
    q = Survey.query.filter_by(survey_type=survey_type, running=True, status="active")
    if survey_id is not None:
        q = q.filter_by(id=survey_id)
    survey = q.order_by(Survey.created_at.desc(), Survey.id.desc()).first()
    if survey is None:
        label = "組織" if survey_type == "organizational" else "グロース"
        raise SubmissionError(f"現在、{label}サーベイのサーベイ期間ではありません")
    return survey


def normalize_response_items(items, problems):
    """Items are {questionId, answerIndex} or {questionId, categoryId, score}."""
    if not isinstance(items, list):
        raise SubmissionError("responseは配列である必要があります")
    out = []
    seen = set()
    for item in items:
        if not isinstance(item, dict):
            raise SubmissionError("responseの形式が不正です")
        qid = item.get("questionId", item.get("qid"))
        if not _is_number(qid):
            raise SubmissionError("responseの各項目はquestionIdを含む必要があります")
        qid = int(qid)
        if qid in seen:
            continue
        problem = problems.get(qid)
        idx = item.get("answerIndex")
        if idx is not None:
            if problem is None or problem.question_type != "single_choice":
                raise SubmissionError(f"問題ID {qid} は選択式の問題ではありません")
            if not _is_number(idx) or not (0 <= int(idx) < len(problem.answer_scores)):
                raise SubmissionError(f"問題ID {qid} の回答が不正です")
            cid, score = problem.category_id, problem.answer_scores[int(idx)]
        else:
            cid = item.get("categoryId", item.get("cid"))
            score = item.get("score", item.get("s"))
            if not _is_number(cid) or not _is_number(score):
                raise SubmissionError(
                    "responseの各項目はquestionId、categoryId、score（すべて数値）を含む必要があります")
        seen.add(qid)
        out.append({"questionId": qid, "categoryId": int(cid) if cid is not None else None, "score": float(score)})
    return out


def normalize_free_text(items):
    out = []
    for item in items or []:
        if not isinstance(item, dict) or not _is_number(item.get("questionId")):
            raise SubmissionError("freeTextの各項目はquestionIdとtextを含む必要があります")
        text = str(item.get("text") or "").strip()
        if text:
            out.append({"questionId": int(item["questionId"]), "text": text})
    return out


def submit_organizational_result(user, survey, response, free_text=None):
    problems = {p.id: p for p in Problem.query.all()}
    items = normalize_response_items(response, problems)
    texts = normalize_free_text(free_text)

    result = OrganizationalSurveyResult.query.filter_by(survey_id=survey.id, user_id=user.id).first()
    if result is None:
        result = OrganizationalSurveyResult(survey_id=survey.id, user_id=user.id)
        db.session.add(result)
    result.response = items
    result.free_text = texts
    result.response_rate = rate(organizational_answered_count(result), len(problems))
    db.session.flush()
    rebuild_summary(result)
    db.session.commit()
    current_app.logger.info('Organizational result saved: survey=%s user=%s rate=%s',
                            survey.id, user.id, result.response_rate)
    return result


def applicable_growth_questions(user):
    job_name = user.job.name if user.job else None
    questions = GrowthSurveyQuestion.query.filter_by(is_active=True).all()
    return [q for q in questions if question_applies(q, job_name)]


def save_growth_answers(user, survey, answers):
    if not isinstance(answers, list):
        raise SubmissionError("responsesは配列である必要があります")
    questions = {q.id: q for q in applicable_growth_questions(user)}
    existing = {
        r.question_id: r
        for r in GrowthSurveyResponse.query.filter_by(survey_id=survey.id, user_id=user.id).all()
    }
    saved = []
    for item in answers:
        if not isinstance(item, dict):
            raise SubmissionError("responsesの形式が不正です")
        question = questions.get(item.get("questionId"))
        if question is None:
            raise SubmissionError(f"質問ID {item.get('questionId')} には回答できません")
        answer = item.get("answer")
        if answer is None or str(answer).strip() == "":
            continue
        answer = str(answer).strip()
        if not question.is_free_text:
            idx = option_index(answer)
            if idx is None or not (0 <= idx < len(question.answers or [])):
                raise SubmissionError(f"質問ID {question.id} の回答が不正です")

        resp = existing.get(question.id)
        if resp is None:
            resp = GrowthSurveyResponse(survey_id=survey.id, user_id=user.id, question_id=question.id)
            db.session.add(resp)
            existing[question.id] = resp
        resp.answer = answer
        if question.is_free_text:
            resp.score = None
            resp.category = None
            resp.weight = None
        else:
            resp.score = question.answers[option_index(answer)].get("score")
            resp.category = normalize_growth_category(question.category)
            resp.weight = question.weight
        resp.total_score = score_answer(question, answer)
        saved.append(resp)
    db.session.commit()
    return saved


def growth_progress(user, survey):
    questions = applicable_growth_questions(user)
    answered = {
        r.question_id
        for r in GrowthSurveyResponse.query.filter_by(survey_id=survey.id, user_id=user.id).all()
    }
    done = sum(1 for q in questions if q.id in answered)
    return {
        "answeredCount": done,
        "totalQuestions": len(questions),
        "responseRate": rate(done, len(questions)),
        "completed": bool(questions) and done >= len(questions),
    }
