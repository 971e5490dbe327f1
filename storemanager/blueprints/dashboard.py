"""
Dashboard blueprint.
Shows key counters, low stock alerts and recent sales for the signed-in owner.
"""

from flask import Blueprint, render_template, g, current_app, flash
from storemanager.database import get_session
from storemanager.middleware import require_login
from storemanager.services.dashboard_service import get_dashboard_data


dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/dashboard')


@dashboard_bp.route('/')
@require_login
def index():
    """
    Dashboard home page.

    Shows for the current owner:
    - Product count
    - Today's sales total and count
    - Sales total over the trailing window
    - Low stock products
    - Latest sales
    """
    data = get_dashboard_data(
        get_session(),
        g.owner_id,
        window_days=current_app.config.get('DASHBOARD_WINDOW_DAYS', 30)
    )

    if data['errors']:
        flash('Some dashboard figures could not be loaded.', 'warning')

    return render_template('dashboard/index.html', **data)
