import os

# Must be set before settings is imported anywhere.
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["TABLE_PREFIX"] = "Test_"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["TMDB_API_KEY"] = "test-key"

import pytest
from moto import mock_aws

import movies
import storage
from tmdb import TMDBError


@pytest.fixture
def dynamodb():
    with mock_aws():
        storage.reset_dynamodb()
        storage.create_tables()
        yield storage.get_dynamodb()
    storage.reset_dynamodb()


class FakeTMDB:
    """In-memory stand-in for TMDBClient."""

    def __init__(self):
        self.lists = {'trending': [], 'now_playing': [], 'upcoming': []}
        self.search_results = {}
        self.movies = {}
        self.credits_by_id = {}
        self.videos_by_id = {}
        self.imdb_ids = {}
        self.fail_find = False
        self.calls = []

    @staticmethod
    def _key(tmdb_id):
        return int(tmdb_id) if str(tmdb_id).isdigit() else tmdb_id

    def _lookup(self, table, tmdb_id):
        key = self._key(tmdb_id)
        if key not in table:
            raise TMDBError(f"movie {tmdb_id} not found", status=404)
        return table[key]

    def trending(self):
        self.calls.append(('trending',))
        return self.lists['trending']

    def now_playing(self):
        self.calls.append(('now_playing',))
        return self.lists['now_playing']

    def upcoming(self):
        self.calls.append(('upcoming',))
        return self.lists['upcoming']

    def search(self, query):
        self.calls.append(('search', query))
        return self.search_results.get(query, [])

    def details(self, tmdb_id):
        self.calls.append(('details', str(tmdb_id)))
        return self._lookup(self.movies, tmdb_id)

    def credits(self, tmdb_id):
        self.calls.append(('credits', str(tmdb_id)))
        return self.credits_by_id.get(self._key(tmdb_id), {'cast': [], 'crew': []})

    def videos(self, tmdb_id):
        self.calls.append(('videos', str(tmdb_id)))
        return self.videos_by_id.get(self._key(tmdb_id), {'results': []})

    def find_by_imdb_id(self, imdb_id):
        self.calls.append(('find', imdb_id))
        if self.fail_find:
            raise TMDBError("find failed", status=500)
        return self.imdb_ids.get(imdb_id)


def add_inception(fake):
    fake.movies[27205] = {
        'id': 27205,
        'imdb_id': 'tt1375666',
        'title': 'Inception',
        'release_date': '2010-07-15',
        'runtime': 148,
        'vote_average': 8.4,
        'overview': 'A thief who steals corporate secrets.',
        'poster_path': '/inception.jpg',
        'genres': [{'id': 28, 'name': 'Action'}, {'id': 878, 'name': 'Science Fiction'}],
    }
    fake.credits_by_id[27205] = {
        'cast': [
            {'id': i, 'name': f'Actor {i}', 'character': f'Role {i}',
             'profile_path': '/p%d.jpg' % i if i % 2 == 0 else None}
            for i in range(12)
        ],
        'crew': [
            {'id': 525, 'name': 'Christopher Nolan', 'job': 'Director'},
            {'id': 556, 'name': 'Hans Zimmer', 'job': 'Original Music Composer'},
        ],
    }
    fake.videos_by_id[27205] = {'results': [
        {'name': 'Featurette', 'key': 'feat', 'site': 'YouTube', 'type': 'Featurette'},
        {'name': 'Vimeo trailer', 'key': 'vim', 'site': 'Vimeo', 'type': 'Trailer'},
        {'name': 'Official Trailer', 'key': 'YoHD9XEInc0', 'site': 'YouTube', 'type': 'Trailer'},
    ]}
    fake.imdb_ids['tt1375666'] = 27205


@pytest.fixture
def fake_tmdb(monkeypatch):
    fake = FakeTMDB()
    add_inception(fake)
    monkeypatch.setattr(movies, '_client', fake)
    return fake


@pytest.fixture
def client(dynamodb, fake_tmdb):
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as test_client:
        yield test_client
