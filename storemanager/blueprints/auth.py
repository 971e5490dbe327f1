"""
Authentication blueprint.
Handles owner registration, login and logout.
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, session, g, Response
from typing import Union, Optional
from urllib.parse import urljoin, urlparse
import logging

from storemanager.database import get_session
from storemanager.exceptions import BusinessLogicError, UnauthorizedError, ValidationError
from storemanager.forms.auth_forms import LoginForm, RegisterForm
from storemanager.services.auth_service import authenticate, register_user

logger = logging.getLogger(__name__)


auth_bp = Blueprint('auth', __name__)


def _safe_next_url(next_url: Optional[str]) -> Optional[str]:
    """Resolve `next` against this host; anything that lands elsewhere is dropped."""
    if not next_url or '\\' in next_url:
        return None
    target = urlparse(urljoin(request.host_url, next_url))
    if target.scheme not in ('http', 'https') or target.netloc != request.host:
        return None
    return target.geturl()


def _start_session(user) -> None:
    session.clear()
    session['user_id'] = user.id
    session.permanent = True


@auth_bp.route('/')
def index() -> Response:
    """Root route - redirect based on authentication status."""
    if g.user:
        return redirect(url_for('dashboard.index'))
    return redirect(url_for('auth.login'))


@auth_bp.route('/register', methods=['GET', 'POST'])
def register() -> Union[str, Response, tuple]:
    """Registration page - creates the account and signs it in."""
    if g.user:
        return redirect(url_for('dashboard.index'))

    form = RegisterForm()
    if form.validate_on_submit():
        try:
            user = register_user(get_session(), form.email.data, form.password.data, form.full_name.data)
        except ValidationError as e:
            form.form_errors.extend(e.errors)
        except BusinessLogicError as e:
            form.form_errors.append(e.message)
        else:
            _start_session(user)
            flash(f'Welcome {user.display_name}! Your store is ready.', 'success')
            return redirect(url_for('dashboard.index'))

    status = 400 if request.method == 'POST' else 200
    return render_template('auth/register.html', form=form), status


@auth_bp.route('/login', methods=['GET', 'POST'])
def login() -> Union[str, Response, tuple]:
    """Login page - validates email + password."""
    if g.user:
        return redirect(url_for('dashboard.index'))

    form = LoginForm()
    if form.validate_on_submit():
        try:
            user = authenticate(get_session(), form.email.data, form.password.data)
        except UnauthorizedError as e:
            flash(e.message, 'danger')
            return render_template('auth/login.html', form=form), 401

        _start_session(user)
        flash(f'Welcome, {user.display_name}!', 'success')
        next_url = _safe_next_url(request.args.get('next'))
        return redirect(next_url or url_for('dashboard.index'))

    status = 400 if request.method == 'POST' else 200
    return render_template('auth/login.html', form=form), status


@auth_bp.route('/logout', methods=['POST'])
def logout() -> Response:
    """Logout endpoint - clear session and redirect to login."""
    session.clear()
    return redirect(url_for('auth.login', logged_out='1'))
