from wtforms import StringField, PasswordField
from wtforms.validators import DataRequired, Email, Length

from ...utils.forms import JsonForm


class LoginForm(JsonForm):
    email = StringField("Email", validators=[DataRequired(message="メールアドレスとパスワードは必須です"),
                                             Email(message="メールアドレスの形式が不正です")])
    password = PasswordField("Password", validators=[DataRequired(message="メールアドレスとパスワードは必須です")])


class ChangePasswordForm(JsonForm):
    current_password = PasswordField("現在のパスワード", validators=[DataRequired(message="現在のパスワードは必須です")])
    new_password = PasswordField("新しいパスワード", validators=[
        DataRequired(message="新しいパスワードは必須です"),
        Length(min=8, message="パスワードは8文字以上である必要があります"),
    ])
