from ..extensions import db
from .base import TimestampMixin, iso


class GrowthSurveyResponse(db.Model, TimestampMixin):
    __tablename__ = "growth_survey_responses"
    id = db.Column(db.Integer, primary_key=True)
    survey_id = db.Column(db.Integer, db.ForeignKey("surveys.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("growth_survey_questions.id"), nullable=False)
    answer = db.Column(db.Text)         # 選択肢の index、または自由記述本文
    score = db.Column(db.Float)         # 選択肢のスコア（自由記述は None）
    category = db.Column(db.String(50))
    weight = db.Column(db.Float)
    total_score = db.Column(db.Float, nullable=False, default=0.0)  # score * weight、自由記述は 0

    question = db.relationship("GrowthSurveyQuestion")

    __table_args__ = (
        db.UniqueConstraint('survey_id', 'user_id', 'question_id', name='uq_growth_responses_survey_user_question'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "surveyId": self.survey_id,
            "userId": self.user_id,
            "questionId": self.question_id,
            "answer": self.answer,
            "score": self.score,
            "category": self.category,
            "weight": self.weight,
            "totalScore": self.total_score,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
