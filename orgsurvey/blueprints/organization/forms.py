from wtforms import StringField, PasswordField, IntegerField, DateField, TextAreaField
from wtforms.validators import DataRequired, Email, Length, Optional, NumberRange, AnyOf

from ...models.user import ROLES
from ...utils.forms import JsonForm


class DepartmentForm(JsonForm):
    name = StringField("部門名", validators=[DataRequired(message="部門名は必須です"), Length(max=120)])
    code = StringField("部門コード", validators=[Optional(), Length(max=50)])
    description = TextAreaField("説明", validators=[Optional()])
    parent_id = IntegerField("親部門", validators=[Optional()])


class JobForm(JsonForm):
    name = StringField("職位名", validators=[DataRequired(message="職位名は必須です"), Length(max=120)])
    code = StringField("職位コード", validators=[Optional(), Length(max=50)])
    description = TextAreaField("説明", validators=[Optional()])


class EmployeeForm(JsonForm):
    email = StringField("メールアドレス", validators=[DataRequired(message="メールアドレスは必須です"),
                                                Email(message="メールアドレスの形式が不正です")])
    name = StringField("氏名", validators=[DataRequired(message="氏名は必須です"), Length(max=120)])
    password = PasswordField("パスワード", validators=[Optional(), Length(min=8, message="パスワードは8文字以上である必要があります")])
    role = StringField("ロール", validators=[Optional(), AnyOf(ROLES, message="ロールが不正です")])
    department_id = IntegerField("部門", validators=[Optional()])
    job_id = IntegerField("職位", validators=[Optional()])
    date_of_birth = DateField("生年月日", validators=[Optional()])
    years_of_service = IntegerField("勤続年数", validators=[Optional(), NumberRange(min=0, message="勤続年数は0以上である必要があります")])
    address = StringField("住所", validators=[Optional(), Length(max=255)])


class PasswordForm(JsonForm):
    password = PasswordField("パスワード", validators=[
        DataRequired(message="パスワードは必須です"),
        Length(min=8, message="パスワードは8文字以上である必要があります"),
    ])
