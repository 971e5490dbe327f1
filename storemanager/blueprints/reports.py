"""Reports blueprint - period-bucketed sales charts and product ranking."""
from flask import Blueprint, render_template, request, flash, g, jsonify, Response
from typing import Union

from storemanager.database import get_session
from storemanager.exceptions import ValidationError
from storemanager.middleware import require_login
from storemanager.services.report_service import get_report_data, PERIODS, DEFAULT_PERIOD

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


@reports_bp.route('/')
@require_login
def index() -> str:
    """Reports page; the charts are drawn from the same data as /reports/data."""
    period = request.args.get('period', DEFAULT_PERIOD)

    try:
        report = get_report_data(get_session(), g.owner_id, period)
    except ValidationError:
        flash('Invalid period. Showing the daily report.', 'info')
        report = get_report_data(get_session(), g.owner_id, DEFAULT_PERIOD)

    return render_template('reports/index.html', report=report, periods=PERIODS)


@reports_bp.route('/data')
@require_login
def data() -> Union[Response, tuple]:
    """Report as JSON (series, top products and stats)."""
    report = get_report_data(get_session(), g.owner_id, request.args.get('period', DEFAULT_PERIOD))
    return jsonify(report)
