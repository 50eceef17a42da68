from datetime import date, datetime

from flask import current_app, request
from flask_login import login_required, current_user
from . import bp
from ...extensions import db
from .forms import SurveyForm
from ...models.base import utcnow
from ...models.notification import Notification
from ...models.survey import Survey, normalize_survey_type
from ...services.notifications import NotificationError, send_survey_notifications
from ...services.response_status import survey_response_status
from ...services.survey_status import ToggleConflict, check_flag_changes, derive_status, sort_for_display
from ...utils.decorators import admin_required
from ...utils.forms import request_json
from ...utils.responses import ApiError, success


def _survey_payload(survey, now=None):
    out = survey.to_dict()
    st = derive_status(survey, now)
    out["periodStatus"] = st.status
    out["periodStatusLabel"] = st.label
    out["periodStatusColor"] = st.color
    return out


def _same_type(survey_type, exclude_id=None):
    q = Survey.query.filter(Survey.survey_type == survey_type)
    if exclude_id is not None:
        q = q.filter(Survey.id != exclude_id)
    # 同時更新時の競合を狭めるため、判定と書き込みを同じトランザクションで行う
    return q.with_for_update().all()


def _raise_conflict(e):
    raise ApiError(e.message, 409, conflicts=[{"id": s.id, "name": s.name} for s in e.conflicts])


@bp.route("/surveys", methods=["GET"])
@admin_required
def surveys_index():
    q = Survey.query
    survey_type = request.args.get("type") or request.args.get("surveyType")
    if survey_type:
        q = q.filter(Survey.survey_type == normalize_survey_type(survey_type))
    now = datetime.now()
    surveys = sort_for_display(q.all(), now)
    return success(surveys=[_survey_payload(s, now) for s in surveys])


@bp.route("/surveys", methods=["POST"])
@admin_required
def surveys_create():
    form = SurveyForm.from_json().validate_or_raise()
    survey = Survey(
        name=form.name.data.strip(),
        survey_type=normalize_survey_type(form.survey_type.data),
        start_date=form.start_date.data,
        end_date=form.end_date.data,
        status=form.status.data or "active",
        running=False,
        display=False,
        created_by=current_user.id,
    )
    others = _same_type(survey.survey_type)
    limit = current_app.config["DISPLAY_LIMIT_PER_TYPE"]

    if form.provided("running") or form.provided("display"):
        try:
            check_flag_changes(survey, others, running=form.running.data, display=form.display.data, display_limit=limit)
        except ToggleConflict as e:
            db.session.rollback()
            _raise_conflict(e)
        survey.running = bool(form.running.data)
        survey.display = bool(form.display.data)
    else:
        # 指定がなければ空き枠がある場合だけ ON で作成する
        survey.running = not any(s.running for s in others)
        survey.display = sum(1 for s in others if s.display) < limit

    db.session.add(survey)
    db.session.commit()
    current_app.logger.info('Survey %s created by %s', survey.id, current_user.id)
    return success(201, survey=_survey_payload(survey))


@bp.route("/surveys/<int:survey_id>", methods=["GET"])
@login_required
def surveys_show(survey_id):
    survey = db.session.get(Survey, survey_id)
    if survey is None:
        raise ApiError("サーベイが見つかりません", 404)
    return success(survey=_survey_payload(survey))


@bp.route("/surveys/<int:survey_id>", methods=["PUT"])
@admin_required
def surveys_update(survey_id):
    survey = db.session.get(Survey, survey_id)
    if survey is None:
        raise ApiError("サーベイが見つかりません", 404)
    payload = request_json()
    merged = {
        "name": survey.name,
        "surveyType": survey.survey_type,
        "startDate": survey.start_date.isoformat(),
        "endDate": survey.end_date.isoformat(),
        "status": survey.status,
    }
    merged.update(payload)
    form = SurveyForm.from_json(merged).validate_or_raise()

    new_type = normalize_survey_type(form.survey_type.data)
    running = form.running.data if "running" in payload else survey.running
    display = form.display.data if "display" in payload else survey.display

    others = _same_type(new_type, exclude_id=survey.id)
    try:
        check_flag_changes(survey, others, running=running, display=display,
                           display_limit=current_app.config["DISPLAY_LIMIT_PER_TYPE"], survey_type=new_type)
    except ToggleConflict as e:
        db.session.rollback()
        _raise_conflict(e)

    survey.name = form.name.data.strip()
    survey.survey_type = new_type
    survey.start_date = form.start_date.data
    survey.end_date = form.end_date.data
    survey.status = form.status.data or survey.status
    survey.running = bool(running)
    survey.display = bool(display)
    db.session.commit()
    return success(survey=_survey_payload(survey))


@bp.route("/surveys/<int:survey_id>", methods=["DELETE"])
@admin_required
def surveys_delete(survey_id):
    survey = db.session.get(Survey, survey_id)
    if survey is None:
        raise ApiError("サーベイが見つかりません", 404)
    db.session.delete(survey)
    db.session.commit()
    current_app.logger.info('Survey %s deleted by %s', survey_id, current_user.id)
    return success(message="サーベイを削除しました")


@bp.route("/surveys/period", methods=["GET"])
def surveys_period():
    raw_type = request.args.get("type") or request.args.get("surveyType")
    survey_type = normalize_survey_type(raw_type) if raw_type else None

    q = Survey.query.filter(Survey.status == "active", Survey.running.is_(True))
    upcoming = Survey.query.filter(Survey.status == "active", Survey.start_date > date.today())
    if survey_type:
        q = q.filter(Survey.survey_type == survey_type)
        upcoming = upcoming.filter(Survey.survey_type == survey_type)
    survey = q.order_by(Survey.created_at.desc(), Survey.id.desc()).first()
    nxt = upcoming.order_by(Survey.start_date.asc()).first()
    next_start = nxt.start_date.isoformat() if nxt else None

    if survey is None:
        return success(available=False, surveyType=survey_type,
                       message="サーベイのサーベイ期間ではありません。", nextStartDate=next_start)
    return success(available=True, surveyType=survey.survey_type, survey=survey.to_dict(), nextStartDate=next_start)


@bp.route("/survey-response-status", methods=["GET"])
@admin_required
def survey_response_status_index():
    survey_id = request.args.get("surveyId", type=int)
    if survey_id is None:
        raise ApiError("surveyIdは必須です", 400)
    survey = db.session.get(Survey, survey_id)
    if survey is None:
        raise ApiError("サーベイが見つかりません", 404)
    return success(**survey_response_status(survey))


# ---- notifications --------------------------------------------------------

@bp.route("/notifications/send", methods=["POST"])
@admin_required
def notifications_send():
    payload = request_json()
    survey_id = payload.get("surveyId")
    if survey_id is None:
        raise ApiError("surveyIdとuserIdsは必須です", 400)
    survey = db.session.get(Survey, survey_id)
    if survey is None:
        raise ApiError("サーベイが見つかりません", 404)
    message = (payload.get("message") or "").strip() or None
    try:
        sent = send_survey_notifications(survey, payload.get("userIds"), message, sender_id=current_user.id)
    except NotificationError as e:
        raise ApiError(str(e), 400)
    return success(message=f"{len(sent)}名に通知を送信しました", notifications=sent, sentCount=len(sent))


@bp.route("/notifications", methods=["GET"])
@login_required
def notifications_index():
    rows = (
        Notification.query.filter_by(user_id=current_user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )
    return success(notifications=[n.to_dict() for n in rows], unreadCount=sum(1 for n in rows if not n.is_read))


@bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
@login_required
def notifications_read(notification_id):
    n = Notification.query.filter_by(id=notification_id, user_id=current_user.id).first()
    if n is None:
        raise ApiError("通知が見つかりません", 404)
    if not n.is_read:
        n.is_read = True
        n.read_at = utcnow()
        db.session.commit()
    return success(notification=n.to_dict())


@bp.route("/notifications/read-all", methods=["POST"])
@login_required
def notifications_read_all():
    now = utcnow()
    count = (
        Notification.query.filter_by(user_id=current_user.id, is_read=False)
        .update({"is_read": True, "read_at": now}, synchronize_session=False)
    )
    db.session.commit()
    return success(updated=count)
