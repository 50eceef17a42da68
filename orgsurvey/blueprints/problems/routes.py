from flask import current_app, request, Response
from flask_login import login_required, current_user
from . import bp
from ...extensions import db
from ...models.growth_survey_question import GrowthSurveyQuestion
from ...models.growth_survey_response import GrowthSurveyResponse
from ...models.problem import Problem
from ...services.growth_scoring import question_applies
from ...services.importer import (
    export_growth_questions_csv,
    export_problems_csv,
    import_growth_questions,
    import_problems,
    read_csv_rows,
)
from ...services.problem_bank import (
    QuestionInputError,
    ReorderError,
    apply_growth_input,
    apply_move,
    next_display_order,
    ordered_query,
    parse_growth_question_input,
    parse_problem_input,
    reorder,
)
from ...utils.decorators import admin_required
from ...utils.forms import request_json
from ...utils.responses import ApiError, failure, success


def _get_or_404(model, obj_id):
    obj = db.session.get(model, obj_id)
    if obj is None:
        raise ApiError("質問が見つかりません", 404)
    return obj


def _order_payload(model, order, ok):
    rows = {r.id: r for r in model.query.filter(model.id.in_(order)).all()} if order else {}
    return {
        "questionIds": order,
        "questions": [rows[i].to_dict() for i in order if i in rows],
        "persisted": ok,
    }


def _csv_upload():
    f = request.files.get("file")
    if f is None or not f.filename:
        raise ApiError("ファイルが選択されていません", 400)
    if not f.filename.lower().endswith(".csv"):
        raise ApiError("CSVファイルのみアップロードできます", 400)
    try:
        return read_csv_rows(f)
    except UnicodeDecodeError:
        raise ApiError("CSVファイルはUTF-8で保存してください", 400)


def _csv_response(body, filename):
    return Response(body, mimetype="text/csv",
                    headers={"Content-Disposition": f"attachment; filename={filename}"})


def _move(model):
    payload = request_json()
    kind = payload.get("direction") or payload.get("kind")
    index = payload.get("index")
    target = payload.get("targetIndex")
    if not isinstance(index, int) or isinstance(index, bool):
        raise ApiError("indexは数値である必要があります", 400)
    if target is not None and (not isinstance(target, int) or isinstance(target, bool)):
        raise ApiError("targetIndexは数値である必要があります", 400)
    try:
        order, ok = apply_move(model, kind, index, target)
    except ReorderError as e:
        raise ApiError(str(e), 400)
    if not ok:
        return failure("並び順の保存に失敗しました", 500, **_order_payload(model, order, ok))
    return success(**_order_payload(model, order, ok))


def _reorder(model):
    payload = request_json()
    try:
        ids = reorder(model, payload.get("questionIds"))
    except ReorderError as e:
        raise ApiError(str(e), 400)
    return success(message="並び順を更新しました", questionIds=ids)


# ---- problems -------------------------------------------------------------

@bp.route("/problems/public", methods=["GET"])
def problems_public():
    return success(problems=[p.to_dict() for p in ordered_query(Problem).all()])


@bp.route("/problems", methods=["GET"])
@login_required
def problems_index():
    return success(problems=[p.to_dict() for p in ordered_query(Problem).all()])


@bp.route("/problems", methods=["POST"])
@admin_required
def problems_create():
    try:
        values = parse_problem_input(request_json())
    except QuestionInputError as e:
        raise ApiError(str(e), 400)
    problem = Problem(**values)
    problem.display_order = next_display_order(Problem)
    db.session.add(problem)
    db.session.commit()
    return success(201, problem=problem.to_dict())


@bp.route("/problems/<int:problem_id>", methods=["PUT"])
@admin_required
def problems_update(problem_id):
    problem = _get_or_404(Problem, problem_id)
    try:
        values = parse_problem_input(request_json(), partial=True, existing=problem)
    except QuestionInputError as e:
        raise ApiError(str(e), 400)
    for key, value in values.items():
        setattr(problem, key, value)
    db.session.commit()
    return success(problem=problem.to_dict())


@bp.route("/problems/<int:problem_id>", methods=["DELETE"])
@admin_required
def problems_delete(problem_id):
    problem = _get_or_404(Problem, problem_id)
    db.session.delete(problem)
    db.session.commit()
    return success(message="問題を削除しました")


@bp.route("/problems/order", methods=["POST"])
@admin_required
def problems_order():
    return _reorder(Problem)


@bp.route("/problems/move", methods=["POST"])
@admin_required
def problems_move():
    return _move(Problem)


@bp.route("/problems/import", methods=["POST"])
@admin_required
def problems_import():
    report = import_problems(_csv_upload())
    current_app.logger.info('Problem import: %d created, %d updated, %d errors',
                            report.created, report.updated, len(report.errors))
    return success(**report.to_dict("問題"))


@bp.route("/problems/export", methods=["GET"])
@admin_required
def problems_export():
    return _csv_response(export_problems_csv(), "problems.csv")


# ---- growth survey questions ----------------------------------------------

def _truthy(value):
    return str(value).lower() in ("1", "true", "yes")


@bp.route("/growth-survey-questions", methods=["GET"])
@login_required
def growth_questions_index():
    questions = ordered_query(GrowthSurveyQuestion).all()
    if current_user.is_admin:
        if _truthy(request.args.get("activeOnly", "false")):
            questions = [q for q in questions if q.is_active]
        job = request.args.get("job")
    else:
        # 一般ユーザーは有効かつ自分の職種向けの質問だけ
        questions = [q for q in questions if q.is_active]
        job = current_user.job.name if current_user.job else None
    if job:
        questions = [q for q in questions if question_applies(q, job)]
    return success(questions=[q.to_dict() for q in questions])


@bp.route("/growth-survey-questions", methods=["POST"])
@admin_required
def growth_questions_create():
    try:
        data = parse_growth_question_input(request_json())
    except QuestionInputError as e:
        raise ApiError(str(e), 400)
    question = apply_growth_input(GrowthSurveyQuestion(), data)
    question.display_order = next_display_order(GrowthSurveyQuestion)
    db.session.add(question)
    db.session.commit()
    return success(201, question=question.to_dict())


@bp.route("/growth-survey-questions/<int:question_id>", methods=["PUT"])
@admin_required
def growth_questions_update(question_id):
    question = _get_or_404(GrowthSurveyQuestion, question_id)
    merged = question.to_dict()
    merged.update(request_json())
    try:
        data = parse_growth_question_input(merged)
    except QuestionInputError as e:
        raise ApiError(str(e), 400)
    apply_growth_input(question, data)
    db.session.commit()
    return success(question=question.to_dict())


@bp.route("/growth-survey-questions/<int:question_id>", methods=["DELETE"])
@admin_required
def growth_questions_delete(question_id):
    question = _get_or_404(GrowthSurveyQuestion, question_id)
    if GrowthSurveyResponse.query.filter_by(question_id=question.id).first() is not None:
        raise ApiError("回答済みの質問は削除できません。無効化してください", 400)
    db.session.delete(question)
    db.session.commit()
    return success(message="質問を削除しました")


@bp.route("/growth-survey-questions/order", methods=["POST"])
@admin_required
def growth_questions_order():
    return _reorder(GrowthSurveyQuestion)


@bp.route("/growth-survey-questions/move", methods=["POST"])
@admin_required
def growth_questions_move():
    return _move(GrowthSurveyQuestion)


@bp.route("/growth-survey-questions/import", methods=["POST"])
@admin_required
def growth_questions_import():
    report = import_growth_questions(_csv_upload())
    return success(**report.to_dict("質問"))


@bp.route("/growth-survey-questions/export", methods=["GET"])
@admin_required
def growth_questions_export():
    return _csv_response(export_growth_questions_csv(), "growth_survey_questions.csv")
