"""Middleware for authentication and owner context."""
from functools import wraps
from flask import session, g, redirect, url_for, flash, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from storemanager.database import get_session
from storemanager.services.auth_service import get_active_user


def load_user():
    """
    Load the current user into g (Flask's per-request global).

    Sets g.user and g.owner_id when the session carries a valid user id.
    """
    g.user = None
    g.owner_id = None

    user_id = session.get('user_id')
    if not user_id:
        return

    try:
        user = get_active_user(get_session(), user_id)
    except SQLAlchemyError as e:
        get_session().rollback()
        current_app.logger.error(f"Error in load_user: {e}")
        return

    if user:
        g.user = user
        g.owner_id = user.id
    else:
        # Deleted or deactivated account
        session.pop('user_id', None)


def require_login(f):
    """
    Decorator: Require user to be logged in.

    Redirects to login page if not authenticated, with a next parameter to
    return to the original page. JSON requests get a 401 instead.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            if request.is_json or request.accept_mimetypes.best == 'application/json':
                return {'status': 'error', 'message': 'Authentication required'}, 401
            flash('Please sign in to access this page.', 'warning')
            return redirect(url_for('auth.login', next=request.url))
        return f(*args, **kwargs)
    return decorated_function
