"""Report payloads built from stored summaries: per-survey details, dashboard, growth scores."""
from datetime import datetime

from ..extensions import db
from ..models.department import Department
from ..models.growth_survey_question import GrowthSurveyQuestion
from ..models.growth_survey_response import GrowthSurveyResponse
from ..models.survey import Survey
from ..models.survey_result import OrganizationalSurveyResult, OrganizationalSurveySummary
from ..models.user import User
from .aggregation import (
    category_averages,
    compute_overall_score,
    department_category_scores,
    organization_category_averages,
    describe_categories,
    historical_trend,
    manager_statistics,
    survey_statistics,
)
from .comparison import comparison_payload, select_current_and_previous
from .response_status import survey_response_status
from .growth_scoring import category_scores_payload, organizational_bonus_score, score_growth_responses
from .survey_status import derive_status, select_current_survey


def summary_rows(survey_id=None, user_id=None):
    q = OrganizationalSurveySummary.query.join(Survey).filter(Survey.survey_type == "organizational")
    if survey_id is not None:
        q = q.filter(OrganizationalSurveySummary.survey_id == survey_id)
    if user_id is not None:
        q = q.filter(OrganizationalSurveySummary.user_id == user_id)
    return q.order_by(Survey.end_date.desc(), OrganizationalSurveySummary.updated_at.desc()).all()


def _result_rates(survey_id=None):
    q = db.session.query(OrganizationalSurveyResult.survey_id, OrganizationalSurveyResult.user_id,
                         OrganizationalSurveyResult.response_rate)
    if survey_id is not None:
        q = q.filter(OrganizationalSurveyResult.survey_id == survey_id)
    return {(sid, uid): rate for sid, uid, rate in q.all()}


def detailed_rows(survey_id=None):
    """Summary rows joined with the employee's department and job."""
    rates = _result_rates(survey_id)
    out = []
    for row in summary_rows(survey_id):
        user = row.user
        dept = user.department if user else None
        job = user.job if user else None
        entry = row.to_dict()
        entry.update({
            "userName": user.name if user else "",
            "email": user.email if user else "",
            "departmentId": dept.id if dept else None,
            "departmentName": dept.name if dept else "",
            "departmentCode": dept.code if dept else None,
            "jobName": job.name if job else "",
            "jobCode": job.code if job else None,
            "responseRate": rates.get((row.survey_id, row.user_id)),
        })
        out.append(entry)
    return out


def organizational_surveys():
    return Survey.query.filter_by(survey_type="organizational").all()


def current_organizational_survey(now=None):
    return select_current_survey(organizational_surveys(), now)


def department_scores(survey_id, code_min):
    rows = summary_rows(survey_id)
    employee_departments = dict(db.session.query(User.id, User.department_id).all())
    return department_category_scores(rows, employee_departments, Department.query.all(), code_min)


def organization_scores(survey_id):
    return organization_category_averages(summary_rows(survey_id))


def _employee_job_codes():
    return {u.id: (u.job.code if u.job else None) for u in User.query.all()}


def statistics(survey_id, manager_codes):
    rows = summary_rows(survey_id)
    return {
        "overall": survey_statistics(rows),
        "managers": manager_statistics(rows, _employee_job_codes(), manager_codes),
    }


def all_surveys_details():
    surveys = Survey.query.filter_by(survey_type="organizational") \
        .order_by(Survey.start_date.desc(), Survey.created_at.desc()).all()
    details = detailed_rows()
    by_survey = {}
    for entry in details:
        by_survey.setdefault(entry["surveyId"], []).append(entry)

    out = []
    for survey in surveys:
        rows = by_survey.get(survey.id, [])
        status = derive_status(survey)
        out.append({
            "survey": survey.to_dict(),
            "periodStatus": status.status,
            "participants": rows,
            "participantCount": len(rows),
            "overall": compute_overall_score(rows),
            "categories": describe_categories(category_averages(rows)),
        })
    return {"surveys": out, "trend": historical_trend(details)}


def dashboard(user, now=None):
    now = now or datetime.now()
    survey = current_organizational_survey(now)
    all_rows = summary_rows()
    payload = {
        "currentSurvey": survey.to_dict() if survey else None,
        "overallScore": None,
        "categories": [],
        "responseRate": None,
        "trend": historical_trend(all_rows),
        "comparison": comparison_payload(select_current_and_previous(all_rows)),
    }
    if survey is None:
        return payload
    rows = [r for r in all_rows if r.survey_id == survey.id]
    payload["overallScore"] = compute_overall_score(rows)
    payload["categories"] = describe_categories(category_averages(rows))
    if user.is_admin:
        payload["responseRate"] = survey_response_status(survey)["responseRate"]
    else:
        own = next((r for r in rows if r.user_id == user.id), None)
        payload["myScore"] = own.to_dict() if own else None
    return payload


# ---- growth ---------------------------------------------------------------

def growth_survey_ids_with_data():
    rows = (
        db.session.query(GrowthSurveyResponse.survey_id, db.func.max(GrowthSurveyResponse.created_at).label("latest"))
        .group_by(GrowthSurveyResponse.survey_id)
        .order_by(db.desc("latest"), GrowthSurveyResponse.survey_id.desc())
        .all()
    )
    return [sid for sid, _ in rows]


def _active_organizational_survey(now=None):
    active = [s for s in organizational_surveys() if derive_status(s, now).status == "active"]
    active.sort(key=lambda s: (s.start_date, s.created_at or datetime.min), reverse=True)
    return active[0] if active else None


def growth_category_scores(survey_id, manager_codes, now=None):
    questions = GrowthSurveyQuestion.query.all()
    answers = GrowthSurveyResponse.query.filter_by(survey_id=survey_id).all()
    job_by_user = {u.id: (u.job.name if u.job else None) for u in User.query.all()}
    result = score_growth_responses(questions, answers, job_by_user)

    org = _active_organizational_survey(now)
    if org is None:
        bonus = organizational_bonus_score(None, None)
    else:
        stats = statistics(org.id, manager_codes)
        bonus = organizational_bonus_score(stats["overall"], stats["managers"])
    payload = category_scores_payload(result, bonus)
    payload["surveyId"] = survey_id
    payload["organizationalSurveyId"] = org.id if org else None
    return payload
