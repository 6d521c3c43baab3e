from flask import Flask, Response, request, jsonify, g
from flask.json.provider import DefaultJSONProvider
from datetime import datetime
from decimal import Decimal
import logging
import re

import click

import settings
import storage
import movies
import analytics
from auth import (
    hash_password,
    check_password,
    sign_token,
    set_token_cookie,
    clear_token_cookie,
    token_required,
)
from tmdb import TMDBError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


class DecimalJSONProvider(DefaultJSONProvider):
    @staticmethod
    def default(obj):
        if isinstance(obj, Decimal):
            return float(obj)
        return DefaultJSONProvider.default(obj)


app = Flask(__name__)
app.secret_key = settings.SECRET_KEY
app.json = DecimalJSONProvider(app)

# ============================================================================
# HELPER FUNCTIONS - VALIDATION
# ============================================================================
def is_valid_email(email):
    """Validate email format"""
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return re.match(pattern, email) is not None


def read_credentials():
    """Email and password from a JSON object body, or None for any other body."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return None
    email = str(data.get('email') or '').strip().lower()
    password = str(data.get('password') or '')
    return email, password


def issue_token(user):
    return sign_token({'id': user['id'], 'email': user['email'], 'role': settings.CLIENT_ROLE})

# ============================================================================
# CLI
# ============================================================================
@app.cli.command('init-db')
def init_db_command():
    """Create the DynamoDB tables used by the API."""
    created = storage.create_tables()
    if created:
        click.echo(f"Created tables: {', '.join(created)}")
    else:
        click.echo("All tables already exist")

# ============================================================================
# API ROUTES - MOVIES
# ============================================================================
@app.route('/api/category-movies')
def api_category_movies():
    try:
        return jsonify(movies.category_movies())
    except TMDBError as e:
        logger.error("❌ Error loading category movies: %s", e)
        return jsonify({'message': str(e)}), 500


@app.route('/api/category-movies/<category>.csv')
def api_category_movies_csv(category):
    if category not in movies.CATEGORIES:
        return jsonify({'error': f'Unknown category: {category}'}), 404
    try:
        content = movies.category_csv(category)
    except TMDBError as e:
        logger.error("❌ Error exporting %s movies: %s", category, e)
        return jsonify({'message': str(e)}), 500
    return Response(
        content,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={category}.csv'}
    )


@app.route('/api/get-movies')
def api_get_movies():
    query = request.args.get('search', '').strip()
    if not query:
        return jsonify({'error': 'Missing search query'}), 400
    try:
        return jsonify(movies.search_catalog(query))
    except Exception as e:
        logger.exception("❌ Search API error for %r", query)
        return jsonify({'error': str(e)}), 500


@app.route('/api/movie-details/<movie_id>')
def api_movie_details(movie_id):
    logger.info("➡️  Movie details requested for %s", movie_id)
    try:
        return jsonify(movies.movie_details(movie_id))
    except TMDBError as e:
        if e.status == 404:
            return jsonify({'message': 'Movie not found'}), 404
        logger.error("❌ TMDB error for movie %s: %s", movie_id, e)
        return jsonify({'message': str(e)}), 500
    except Exception as e:
        logger.exception("❌ Error loading movie %s", movie_id)
        return jsonify({'message': str(e)}), 500

# ============================================================================
# API ROUTES - AUTHENTICATION
# ============================================================================
@app.route('/api/check-user', methods=['POST'])
def api_check_user():
    credentials = read_credentials()
    if credentials is None:
        return jsonify({'error': 'Invalid request body'}), 400
    email, _ = credentials
    if not email:
        return jsonify({'error': 'Email required'}), 400
    try:
        return jsonify({'exists': storage.user_exists(email)})
    except Exception as e:
        logger.exception("❌ Error checking user %s", email)
        return jsonify({'error': str(e)}), 500


@app.route('/api/create-user', methods=['POST'])
def api_create_user():
    credentials = read_credentials()
    if credentials is None:
        return jsonify({'error': 'Invalid request body'}), 400
    email, password = credentials
    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400
    if not is_valid_email(email):
        return jsonify({'error': 'Invalid email format'}), 400

    try:
        if storage.user_exists(email):
            return jsonify({'error': 'User already exists'}), 409
        user = storage.create_user(email, hash_password(password))
    except storage.UserExistsError:
        return jsonify({'error': 'User already exists'}), 409
    except Exception:
        logger.exception("❌ Signup error for %s", email)
        return jsonify({'error': 'Failed to create user'}), 500

    token = issue_token(user)
    response = jsonify({
        'message': 'User created successfully',
        'user': {'id': user['id'], 'email': user['email']},
        'token': token,
    })
    set_token_cookie(response, token)
    return response, 201


@app.route('/api/authentication', methods=['POST'])
def api_authentication():
    credentials = read_credentials()
    if credentials is None:
        return jsonify({'error': 'Invalid request body'}), 400
    email, password = credentials
    try:
        user = storage.get_user(email) if email else None
    except Exception:
        logger.exception("❌ Error during login for %s", email)
        return jsonify({'error': 'Something went wrong'}), 500

    if not user:
        return jsonify({'error': 'User not found'}), 404
    if not check_password(password, user.get('password_hash')):
        return jsonify({'error': 'Invalid password'}), 401

    logger.info("✅ User logged in: %s", email)
    response = jsonify({'message': 'Login successful'})
    set_token_cookie(response, issue_token(user))
    return response


@app.route('/api/logout', methods=['POST'])
def api_logout():
    response = jsonify({'message': 'Logged out'})
    clear_token_cookie(response)
    return response

# ============================================================================
# API ROUTES - DASHBOARD
# ============================================================================
@app.route('/api/dashboard-stats')
@token_required(settings.CLIENT_ROLE)
def api_dashboard_stats():
    try:
        stats = analytics.dashboard_stats()
    except Exception as e:
        logger.exception("❌ Stats API error for %s", g.user.get('email'))
        return jsonify({'error': str(e)}), 500
    return jsonify(stats)

# ============================================================================
# ERROR HANDLERS
# ============================================================================
@app.errorhandler(404)
def page_not_found(e):
    return jsonify({'error': 'Not found'}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({'error': 'Method not allowed'}), 405


@app.errorhandler(500)
def internal_error(e):
    return jsonify({'error': 'Internal server error'}), 500

# ============================================================================
# UTILITY ROUTES
# ============================================================================
@app.route('/health')
def health_check():
    return jsonify({
        'status': 'healthy',
        'storage': 'aws_dynamodb',
        'timestamp': datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    })

# ============================================================================
# RUN APPLICATION
# ============================================================================
if __name__ == '__main__':
    logger.info("🎬 CineScope - Movie Discovery & Analytics API (AWS)")
    storage.create_tables()
    app.run(
        host='0.0.0.0',
        port=5000,
        debug=True
    )
