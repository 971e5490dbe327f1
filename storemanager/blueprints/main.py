"""Main blueprint with health check endpoints."""
from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from storemanager.database import get_session
from storemanager.services.cache_service import get_cache

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        session = get_session()
        row = session.execute(text("SELECT 1 as health_check")).fetchone()
    except SQLAlchemyError as e:
        get_session().rollback()
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
            'message': 'Failed to connect to database'
        }), 500

    if row and row[0] == 1:
        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'message': 'Database connection successful'
        }), 200

    return jsonify({
        'status': 'unhealthy',
        'database': 'error',
        'message': 'Unexpected query result'
    }), 500


@main_bp.route('/health/cache')
def health_cache():
    """
    Cache health check endpoint.

    Never returns 500: the cache is optional, so a down Redis is reported as
    "degraded" while the app keeps serving from the database.
    """
    try:
        cache = get_cache()
    except RuntimeError as e:
        return jsonify({
            'status': 'degraded',
            'cache': 'error',
            'redis': 'unknown',
            'error': str(e),
            'message': 'Cache health check failed (app continues without cache)'
        }), 200

    if not cache.is_available():
        return jsonify({
            'status': 'degraded',
            'cache': 'unavailable',
            'redis': 'disconnected',
            'message': 'Cache disabled or Redis unavailable (app continues without cache)'
        }), 200

    cache.set(0, "system", "health_check", {"test": "ok"}, ttl=10)
    result = cache.get(0, "system", "health_check")

    if result and result.get('test') == 'ok':
        return jsonify({
            'status': 'ok',
            'cache': 'connected',
            'redis': 'healthy',
            'message': 'Cache is working correctly'
        }), 200

    return jsonify({
        'status': 'degraded',
        'cache': 'error',
        'redis': 'connected_but_failing',
        'message': 'Redis connected but operations failing'
    }), 200
