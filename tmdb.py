"""Small client for The Movie Database (TMDB) v3 REST API."""
import requests

import settings

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="
TRAILER_TYPES = ("Trailer", "Teaser")


class TMDBError(Exception):
    """A TMDB request failed. ``status`` is the HTTP status when one came back."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


# ============================================================================
# HELPERS - RESHAPING
# ============================================================================
def image_url(path):
    if not path:
        return None
    return f"{settings.TMDB_IMAGE_BASE_URL}{path}"


def release_year(release_date):
    """'2024-05-01' -> '2024'. Empty or missing dates give None."""
    if not release_date:
        return None
    return release_date.split("-")[0] or None


def normalize_movie(raw):
    return {
        'id': raw.get('id'),
        'title': raw.get('title'),
        'year': release_year(raw.get('release_date')),
        'rating': raw.get('vote_average'),
        'poster': image_url(raw.get('poster_path')),
        'overview': raw.get('overview') or '',
    }


def normalize_movies(results):
    return [normalize_movie(m) for m in results or []]


def pick_trailer_url(videos):
    """First YouTube trailer or teaser in a /videos payload, as a watch URL."""
    for video in (videos or {}).get('results', []):
        if video.get('site') == 'YouTube' and video.get('type') in TRAILER_TYPES:
            return YOUTUBE_WATCH_URL + video['key']
    return None


# ============================================================================
# CLIENT
# ============================================================================
class TMDBClient:
    def __init__(self, api_key=None, base_url=None, timeout=None, session=None):
        self.api_key = settings.TMDB_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.TMDB_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.TMDB_TIMEOUT
        self.session = session or requests.Session()

    def get(self, path, **params):
        params['api_key'] = self.api_key
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TMDBError(f"TMDB request to {path} failed: {e}") from e

        if resp.status_code != 200:
            message = f"TMDB {path} returned {resp.status_code}"
            try:
                message = resp.json().get('status_message') or message
            except (ValueError, AttributeError):
                pass
            raise TMDBError(message, status=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise TMDBError(f"TMDB {path} returned a non-JSON body", status=resp.status_code) from e

    def trending(self):
        return self.get("/trending/movie/week").get('results', [])

    def now_playing(self):
        return self.get("/movie/now_playing").get('results', [])

    def upcoming(self):
        return self.get("/movie/upcoming").get('results', [])

    def search(self, query):
        return self.get("/search/movie", query=query).get('results', [])

    def details(self, tmdb_id):
        return self.get(f"/movie/{tmdb_id}")

    def credits(self, tmdb_id):
        return self.get(f"/movie/{tmdb_id}/credits")

    def videos(self, tmdb_id):
        return self.get(f"/movie/{tmdb_id}/videos")

    def find_by_imdb_id(self, imdb_id):
        """Return the TMDB id of the movie with this IMDb id, or None."""
        data = self.get(f"/find/{imdb_id}", external_source="imdb_id")
        results = data.get('movie_results') or []
        return results[0]['id'] if results else None
