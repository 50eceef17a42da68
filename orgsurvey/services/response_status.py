"""Per-employee response rates for a survey and the non-responder selection."""
from ..models.user import User
from ..models.problem import Problem
from ..models.survey_result import OrganizationalSurveyResult
from ..models.growth_survey_question import GrowthSurveyQuestion
from ..models.growth_survey_response import GrowthSurveyResponse
from .aggregation import response_rate, round_half_up
from .growth_scoring import question_applies

RESPONDED = "responded"
RESPONDING = "responding"
NOT_RESPONDED = "not_responded"


def rate(answered, total):
    if answered <= 0 or total <= 0:
        return 0.0
    return min(100.0, round_half_up(answered / total * 100, 2))


def classify(rate_value, has_response):
    if not has_response:
        return NOT_RESPONDED
    if rate_value >= 100:
        return RESPONDED
    if rate_value > 0:
        return RESPONDING
    return NOT_RESPONDED


def organizational_answered_count(result):
    choice = {item.get("questionId", item.get("qid")) for item in (result.response or [])}
    text = {item.get("questionId") for item in (result.free_text or [])}
    return len({q for q in choice | text if q is not None})


def organizational_rates(survey_id):
    total = Problem.query.count()
    out = {}
    for result in OrganizationalSurveyResult.query.filter_by(survey_id=survey_id).all():
        out[result.user_id] = (rate(organizational_answered_count(result), total), result.updated_at)
    return out


def growth_rates(survey_id, employees):
    questions = GrowthSurveyQuestion.query.filter_by(is_active=True).all()
    answered = {}
    latest = {}
    for resp in GrowthSurveyResponse.query.filter_by(survey_id=survey_id).all():
        answered.setdefault(resp.user_id, set()).add(resp.question_id)
        if resp.updated_at and (resp.user_id not in latest or resp.updated_at > latest[resp.user_id]):
            latest[resp.user_id] = resp.updated_at

    out = {}
    for emp in employees:
        if emp.id not in answered:
            continue
        job_name = emp.job.name if emp.job else None
        applicable = [q for q in questions if question_applies(q, job_name)]
        out[emp.id] = (rate(len(answered[emp.id]), len(applicable)), latest.get(emp.id))
    return out


def survey_response_status(survey):
    employees = (
        User.query.filter(User.role.in_(("employee", "admin")))
        .order_by(User.name.asc())
        .all()
    )
    if survey.survey_type == "growth":
        rates = growth_rates(survey.id, employees)
    else:
        rates = organizational_rates(survey.id)

    statuses = []
    for emp in employees:
        entry = rates.get(emp.id)
        rate_value = entry[0] if entry else 0.0
        statuses.append({
            "id": emp.id,
            "name": emp.name,
            "email": emp.email,
            "departmentId": emp.department_id,
            "departmentName": emp.department.name if emp.department else "-",
            "jobId": emp.job_id,
            "jobName": emp.job.name if emp.job else "-",
            "role": emp.role,
            "responseRate": rate_value,
            "status": classify(rate_value, entry is not None),
            "respondedAt": entry[1].isoformat() if entry and entry[1] else None,
        })

    return {
        "surveyId": survey.id,
        "surveyType": survey.survey_type,
        "employees": statuses,
        "totalEmployees": len(statuses),
        "respondedCount": sum(1 for s in statuses if s["status"] == RESPONDED),
        "respondingCount": sum(1 for s in statuses if s["status"] == RESPONDING),
        "notRespondedCount": sum(1 for s in statuses if s["status"] == NOT_RESPONDED),
        "responseRate": response_rate(statuses),
        "nonResponderIds": select_non_responders(statuses),
    }


def select_non_responders(statuses):
    return [s["id"] for s in statuses if s["status"] != RESPONDED]
