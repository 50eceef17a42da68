from flask import current_app, request
from flask_login import login_required, current_user
from . import bp
from ...extensions import db, rq
from ...jobs.summarize import rebuild_survey_summaries
from ...models.growth_survey_response import GrowthSurveyResponse
from ...models.survey import Survey
from ...models.survey_result import OrganizationalSurveyResult
from ...services import reports
from ...services.comparison import (
    comparison_payload,
    select_current_and_previous,
    select_growth_current_and_previous,
)
from ...services.submissions import (
    SubmissionError,
    growth_progress,
    running_survey,
    save_growth_answers,
    submit_organizational_result,
)
from ...utils.decorators import admin_required
from ...utils.forms import request_json
from ...utils.responses import ApiError, success


def _truthy(value):
    return str(value or "").lower() in ("1", "true", "yes")


def _survey_or_current():
    """surveyId from the query string, or the current organizational survey."""
    survey_id = request.args.get("surveyId", type=int)
    if survey_id is not None:
        survey = db.session.get(Survey, survey_id)
        if survey is None:
            raise ApiError("サーベイが見つかりません", 404)
        return survey
    return reports.current_organizational_survey()


@bp.route("/organizational-survey-summary", methods=["GET"])
@login_required
def summary_index():
    survey_id = request.args.get("surveyId", type=int)
    for_org = _truthy(request.args.get("forOrganization"))
    # 一般ユーザーは組織全体の指定がない限り自分の結果だけ
    user_id = None if (current_user.is_admin or for_org) else current_user.id
    rows = reports.summary_rows(survey_id, user_id)
    return success(summaries=[r.to_dict() for r in rows])


@bp.route("/organizational-survey-summary/detailed", methods=["GET"])
@admin_required
def summary_detailed():
    survey_id = request.args.get("surveyId", type=int)
    if survey_id is None:
        return success(details=[], surveyName=None)
    details = reports.detailed_rows(survey_id)
    survey = db.session.get(Survey, survey_id)
    return success(details=details, surveyName=survey.name if survey else None)


@bp.route("/organizational-survey-summary/department-category", methods=["GET"])
@admin_required
def summary_department_category():
    survey = _survey_or_current()
    if survey is None:
        return success(departments=[], organization=None, surveyId=None)
    scores = reports.department_scores(survey.id, current_app.config["DEPARTMENT_CODE_MIN"])
    return success(departments=scores, organization=reports.organization_scores(survey.id), surveyId=survey.id)


@bp.route("/organizational-survey-summary/statistics", methods=["GET"])
@admin_required
def summary_statistics():
    survey = _survey_or_current()
    if survey is None:
        return success(surveyId=None, overall=None, managers=None)
    stats = reports.statistics(survey.id, current_app.config["MANAGER_JOB_CODES"])
    return success(surveyId=survey.id, **stats)


@bp.route("/organizational-survey-summary/all-surveys-details", methods=["GET"])
@bp.route("/organizational-survey-summary/all-surveys-detail", methods=["GET"])
@admin_required
def summary_all_surveys():
    return success(**reports.all_surveys_details())


@bp.route("/organizational-survey-summary/comparison", methods=["GET"])
@login_required
def summary_comparison():
    rows = reports.summary_rows()
    return success(**comparison_payload(select_current_and_previous(rows)))


@bp.route("/organizational-survey-summary/rebuild", methods=["POST"])
@admin_required
def summary_rebuild():
    survey_id = request_json().get("surveyId")
    if not isinstance(survey_id, int):
        raise ApiError("surveyIdは必須です", 400)
    if db.session.get(Survey, survey_id) is None:
        raise ApiError("サーベイが見つかりません", 404)
    rq.enqueue(rebuild_survey_summaries, survey_id, job_timeout=600)
    return success(message="集計の再計算を開始しました")


@bp.route("/dashboard", methods=["GET"])
@login_required
def dashboard():
    return success(**reports.dashboard(current_user))


# ---- submissions ----------------------------------------------------------

@bp.route("/organizational-survey-results", methods=["POST"])
@login_required
def results_submit():
    payload = request_json()
    try:
        survey = running_survey("organizational", payload.get("surveyId"))
        result = submit_organizational_result(
            current_user, survey, payload.get("response"), payload.get("freeText"))
    except SubmissionError as e:
        raise ApiError(str(e), 400)
    return success(message="サーベイ結果を保存しました", resultId=result.id, responseRate=result.response_rate)


@bp.route("/organizational-survey-results", methods=["GET"])
@login_required
def results_mine():
    q = OrganizationalSurveyResult.query.filter_by(user_id=current_user.id)
    survey_id = request.args.get("surveyId", type=int)
    if survey_id is not None:
        q = q.filter_by(survey_id=survey_id)
    return success(results=[r.to_dict() for r in q.all()])


@bp.route("/growth-survey-responses", methods=["GET"])
@login_required
def growth_responses_mine():
    try:
        survey = running_survey("growth", request.args.get("surveyId", type=int))
    except SubmissionError as e:
        raise ApiError(str(e), 400)
    rows = GrowthSurveyResponse.query.filter_by(survey_id=survey.id, user_id=current_user.id).all()
    return success(surveyId=survey.id, responses=[r.to_dict() for r in rows], **growth_progress(current_user, survey))


@bp.route("/growth-survey-responses", methods=["POST"])
@login_required
def growth_responses_submit():
    payload = request_json()
    try:
        survey = running_survey("growth", payload.get("surveyId"))
        saved = save_growth_answers(current_user, survey, payload.get("responses"))
    except SubmissionError as e:
        raise ApiError(str(e), 400)
    progress = growth_progress(current_user, survey)
    if _truthy(payload.get("submit")) and not progress["completed"]:
        remaining = progress["totalQuestions"] - progress["answeredCount"]
        raise ApiError(f"未回答の質問が{remaining}件あります", 400)
    message = "グロースサーベイを提出しました" if progress["completed"] else "回答を保存しました"
    return success(message=message, savedCount=len(saved), **progress)


# ---- growth category scores -----------------------------------------------

@bp.route("/growth-survey-category-scores/surveys", methods=["GET"])
@login_required
def growth_scores_surveys():
    return success(surveyIds=reports.growth_survey_ids_with_data())


@bp.route("/growth-survey-category-scores/<int:survey_id>", methods=["GET"])
@login_required
def growth_scores(survey_id):
    survey = db.session.get(Survey, survey_id)
    if survey is None or survey.survey_type != "growth":
        raise ApiError("グロースサーベイが見つかりません", 404)
    return success(**reports.growth_category_scores(survey.id, current_app.config["MANAGER_JOB_CODES"]))


@bp.route("/growth-survey-category-scores/comparison", methods=["GET"])
@login_required
def growth_scores_comparison():
    surveys = Survey.query.filter_by(survey_type="growth").all()
    pair = select_growth_current_and_previous(surveys, reports.growth_survey_ids_with_data())
    codes = current_app.config["MANAGER_JOB_CODES"]
    return success(
        current=reports.growth_category_scores(pair.current.id, codes) if pair.current else None,
        previous=reports.growth_category_scores(pair.previous.id, codes) if pair.previous else None,
    )
