"""Sign-in and registration forms."""
from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, EqualTo, Length, Optional


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Email is required')])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required')])


class RegisterForm(FlaskForm):
    full_name = StringField('Full name', validators=[Optional(), Length(max=200)])
    email = StringField('Email', validators=[DataRequired(message='Email is required'), Length(max=255)])
    password = PasswordField(
        'Password',
        validators=[
            DataRequired(message='Password is required'),
            Length(min=6, message='Password must be at least 6 characters.')
        ]
    )
    password_confirm = PasswordField(
        'Confirm password',
        validators=[EqualTo('password', message='Passwords do not match.')]
    )
