from ..extensions import db
from .base import TimestampMixin, iso


class OrganizationalSurveyResult(db.Model, TimestampMixin):
    """従業員1人分の組織サーベイ回答（生データ）。"""
    __tablename__ = "organizational_survey_results"
    id = db.Column(db.Integer, primary_key=True)
    survey_id = db.Column(db.Integer, db.ForeignKey("surveys.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    response = db.Column(db.JSON, nullable=False, default=list)   # [{"questionId": 1, "categoryId": 2, "score": 4.0}]
    free_text = db.Column(db.JSON, nullable=False, default=list)  # [{"questionId": 9, "text": "..."}]
    response_rate = db.Column(db.Float, nullable=False, default=0.0)

    __table_args__ = (
        db.UniqueConstraint('survey_id', 'user_id', name='uq_org_results_survey_user'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "surveyId": self.survey_id,
            "userId": self.user_id,
            "response": list(self.response or []),
            "freeText": list(self.free_text or []),
            "responseRate": self.response_rate,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class OrganizationalSurveySummary(db.Model, TimestampMixin):
    """回答から導出されるカテゴリ別スコア。直接編集しない。"""
    __tablename__ = "organizational_survey_summary"
    id = db.Column(db.Integer, primary_key=True)
    survey_id = db.Column(db.Integer, db.ForeignKey("surveys.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category1_score = db.Column(db.Float)
    category2_score = db.Column(db.Float)
    category3_score = db.Column(db.Float)
    category4_score = db.Column(db.Float)
    category5_score = db.Column(db.Float)
    category6_score = db.Column(db.Float)
    category7_score = db.Column(db.Float)
    category8_score = db.Column(db.Float)
    total_score = db.Column(db.Float)
    response_rate = db.Column(db.Float, nullable=False, default=0.0)

    survey = db.relationship("Survey", back_populates="summaries")
    user = db.relationship("User", back_populates="summaries")

    __table_args__ = (
        db.UniqueConstraint('survey_id', 'user_id', name='uq_org_summary_survey_user'),
    )

    def to_dict(self):
        out = {
            "id": self.id,
            "surveyId": self.survey_id,
            "userId": self.user_id,
            "totalScore": self.total_score,
            "responseRate": self.response_rate,
            "startDate": iso(self.survey.start_date) if self.survey else None,
            "endDate": iso(self.survey.end_date) if self.survey else None,
            "surveyName": self.survey.name if self.survey else None,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        for i in range(1, 9):
            out[f"category{i}Score"] = getattr(self, f"category{i}_score")
        return out
