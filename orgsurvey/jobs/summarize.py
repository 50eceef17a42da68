from flask import current_app

from ..extensions import db
from ..models.survey_result import OrganizationalSurveyResult, OrganizationalSurveySummary
from ..services.aggregation import calculate_category_scores


def rebuild_summary(result):
    """Recompute the summary row of one result (not committed)."""
    scores = calculate_category_scores(result.response or [])
    summary = OrganizationalSurveySummary.query.filter_by(survey_id=result.survey_id, user_id=result.user_id).first()
    if summary is None:
        summary = OrganizationalSurveySummary(survey_id=result.survey_id, user_id=result.user_id)
        db.session.add(summary)
    for key, value in scores.items():
        setattr(summary, key, value)
    summary.response_rate = result.response_rate
    return summary


def rebuild_survey_summaries(survey_id: int):
    results = OrganizationalSurveyResult.query.filter_by(survey_id=survey_id).all()
    for result in results:
        rebuild_summary(result)
    db.session.commit()
    current_app.logger.info('Rebuilt %d summaries for survey %s', len(results), survey_id)
    return len(results)
