from wtforms import StringField, DateField, BooleanField
from wtforms.validators import DataRequired, Length, Optional, AnyOf, ValidationError

from ...models.survey import SURVEY_STATUSES
from ...utils.forms import JsonForm


class SurveyForm(JsonForm):
    name = StringField("サーベイ名", validators=[DataRequired(message="サーベイ名は必須です"), Length(max=200)])
    survey_type = StringField("種類", validators=[Optional()])
    start_date = DateField("開始日", validators=[DataRequired(message="開始日は必須です")])
    end_date = DateField("終了日", validators=[DataRequired(message="終了日は必須です")])
    status = StringField("ステータス", validators=[Optional(), AnyOf(SURVEY_STATUSES, message="ステータスが不正です")])
    running = BooleanField("実施")
    display = BooleanField("表示")

    def validate_end_date(self, field):
        if self.start_date.data and field.data and field.data < self.start_date.data:
            raise ValidationError("終了日は開始日以降である必要があります")
