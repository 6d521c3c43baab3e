import time

import jwt
import pytest
from flask import Flask, g, jsonify

import auth
import settings


@pytest.fixture
def guarded_client():
    app = Flask(__name__)

    @app.route('/secret')
    @auth.token_required('client')
    def secret():
        return jsonify(g.user)

    return app.test_client()


def test_password_hash_round_trip():
    hashed = auth.hash_password('hunter22')
    assert hashed != 'hunter22'
    assert auth.check_password('hunter22', hashed)
    assert not auth.check_password('wrong', hashed)
    assert not auth.check_password('', hashed)
    assert not auth.check_password('hunter22', None)


def test_sign_and_verify_token():
    token = auth.sign_token({'id': 'u1', 'email': 'ana@example.com', 'role': 'client'})
    payload = auth.verify_token(token)

    assert payload['id'] == 'u1'
    assert payload['email'] == 'ana@example.com'
    assert payload['exp'] - payload['iat'] == settings.JWT_EXPIRES_SECONDS
    assert jwt.get_unverified_header(token)['alg'] == 'HS256'


def test_verify_rejects_bad_tokens():
    assert auth.verify_token(None) is None
    assert auth.verify_token('') is None
    assert auth.verify_token('not.a.token') is None
    assert auth.verify_token('only-one-part') is None


def test_verify_rejects_expired_token():
    token = auth.sign_token({'id': 'u1'}, expires_in=-10)
    assert auth.verify_token(token) is None


def test_verify_rejects_wrong_signature():
    token = jwt.encode({'id': 'u1', 'role': 'client'}, 'another-secret', algorithm='HS256')
    assert auth.verify_token(token) is None


def test_verify_rejects_other_algorithms():
    token = jwt.encode({'id': 'u1', 'role': 'client'}, settings.JWT_SECRET, algorithm='HS512')
    assert auth.verify_token(token) is None


def test_guard_without_cookie(guarded_client):
    resp = guarded_client.get('/secret')
    assert resp.status_code == 401
    assert resp.get_json() == {'error': 'Unauthorized'}


def test_guard_with_invalid_token(guarded_client):
    guarded_client.set_cookie(auth.TOKEN_COOKIE, 'garbage')
    resp = guarded_client.get('/secret')
    assert resp.status_code == 401
    assert resp.get_json() == {'error': 'Invalid token'}


def test_guard_with_wrong_role(guarded_client):
    token = auth.sign_token({'id': 'u1', 'email': 'ana@example.com', 'role': 'guest'})
    guarded_client.set_cookie(auth.TOKEN_COOKIE, token)
    resp = guarded_client.get('/secret')
    assert resp.status_code == 403
    assert resp.get_json() == {'error': 'Forbidden'}


def test_guard_sets_user(guarded_client):
    token = auth.sign_token({'id': 'u1', 'email': 'ana@example.com', 'role': 'client'})
    guarded_client.set_cookie(auth.TOKEN_COOKIE, token)
    resp = guarded_client.get('/secret')
    assert resp.status_code == 200
    assert resp.get_json() == {'id': 'u1', 'email': 'ana@example.com', 'role': 'client'}


def test_token_cookie_flags():
    app = Flask(__name__)
    with app.test_request_context():
        resp = auth.set_token_cookie(jsonify({}), 'abc')
    header = resp.headers['Set-Cookie']
    assert header.startswith('token=abc')
    assert 'HttpOnly' in header
    assert 'Max-Age=%d' % settings.JWT_EXPIRES_SECONDS in header
    assert 'Path=/' in header


def test_long_password_uses_first_72_bytes():
    password = 'p' * 80
    hashed = auth.hash_password(password)

    assert auth.check_password(password, hashed)
    assert auth.check_password('p' * 72, hashed)
    assert not auth.check_password('p' * 71, hashed)


def test_verify_rejects_token_not_yet_valid():
    now = int(time.time())
    token = jwt.encode({'id': 'u1', 'role': 'client', 'nbf': now + 3600, 'exp': now + 7200},
                       settings.JWT_SECRET, algorithm='HS256')
    assert auth.verify_token(token) is None
