"""Catalog operations: category lists, cached search and movie details."""
import csv
import io
import logging
from concurrent.futures import ThreadPoolExecutor

import storage
from tmdb import TMDBClient, TMDBError, image_url, normalize_movies, pick_trailer_url, release_year

logger = logging.getLogger(__name__)

CAST_LIMIT = 10

CATEGORIES = ('trending', 'newArrivals', 'upcoming')

CSV_HEADERS = ['ID', 'Title', 'Year', 'Rating', 'Poster URL', 'Overview']

_client = None


def get_tmdb_client():
    global _client
    if _client is None:
        _client = TMDBClient()
    return _client


# ============================================================================
# CATEGORIES
# ============================================================================
def category_movies(client=None):
    """Trending, now playing and upcoming lists fetched in parallel."""
    client = client or get_tmdb_client()
    with ThreadPoolExecutor(max_workers=3) as pool:
        trending = pool.submit(client.trending)
        new_arrivals = pool.submit(client.now_playing)
        upcoming = pool.submit(client.upcoming)
        return {
            'trending': normalize_movies(trending.result()),
            'newArrivals': normalize_movies(new_arrivals.result()),
            'upcoming': normalize_movies(upcoming.result()),
        }


def category_csv(category, client=None):
    """Render one category list as CSV text. Raises KeyError for unknown categories."""
    if category not in CATEGORIES:
        raise KeyError(category)
    movies = category_movies(client)[category]

    out = io.StringIO()
    writer = csv.writer(out, lineterminator='\n')
    writer.writerow(CSV_HEADERS)
    for movie in movies:
        writer.writerow([
            movie['id'],
            movie['title'],
            movie['year'] or 'N/A',
            movie['rating'],
            movie['poster'] or 'N/A',
            movie['overview'],
        ])
    return out.getvalue()


# ============================================================================
# SEARCH
# ============================================================================
def public_id(movie_id):
    """Cache keys are strings; TMDB-style numeric ids go back out as ints."""
    text = str(movie_id)
    return int(text) if text.isdigit() else text


def search_row(movie):
    return {
        'id': public_id(movie.get('movie_id')),
        'imdb_id': movie.get('imdb_id'),
        'title': movie.get('title'),
        'year': movie.get('year'),
        'rating': movie.get('rating'),
        'runtime': movie.get('runtime'),
        'teaser_url': movie.get('teaser_url'),
    }


def _year_int(release_date):
    year = release_year(release_date)
    return int(year) if year and year.isdigit() else None


def _fetch_search_details(client, tmdb_id):
    try:
        details = client.details(tmdb_id)
    except TMDBError as e:
        logger.warning("⚠️  Failed to fetch details for movie %s: %s", tmdb_id, e)
        return None
    return {
        'movie_id': str(details.get('id') or tmdb_id),
        'imdb_id': details.get('imdb_id') or str(tmdb_id),
        'title': details.get('title'),
        'year': _year_int(details.get('release_date')),
        'rating': details.get('vote_average'),
        'runtime': details.get('runtime'),
    }


def search_catalog(query, client=None):
    """Search the cached catalog, filling it from TMDB when nothing matches."""
    storage.log_search(query)

    cached = storage.search_movies(query)
    if cached:
        return [search_row(m) for m in cached]

    client = client or get_tmdb_client()
    results = client.search(query)
    if not results:
        return []

    with ThreadPoolExecutor(max_workers=8) as pool:
        detailed = list(pool.map(lambda m: _fetch_search_details(client, m['id']), results))

    stored = []
    for movie in detailed:
        if movie is None:
            continue
        movie_id = movie.pop('movie_id')
        stored.append(storage.upsert_movie(movie_id, movie))
    logger.info("🔎 Cached %d movies for search %r", len(stored), query)
    return [search_row(m) for m in stored]


# ============================================================================
# DETAILS
# ============================================================================
def _find_cached(movie_id):
    existing = None
    if movie_id.isdigit():
        existing = storage.get_movie(movie_id)
    if existing is None:
        existing = storage.find_movie_by_imdb_id(movie_id)
    return existing


def is_complete(movie):
    return bool(
        movie.get('teaser_url')
        and movie.get('actors')
        and movie.get('directors')
        and movie.get('genres')
    )


def _cached_details(movie):
    teaser_url = movie.get('teaser_url')
    return {
        'movie': {
            'id': public_id(movie['movie_id']),
            'title': movie.get('title'),
            'rating': movie.get('rating'),
            'runtime': movie.get('runtime'),
            'overview': None,
        },
        'videos': [{'url': teaser_url}] if teaser_url else [],
        'cast': [{'name': name, 'profile': None} for name in movie.get('actors') or []],
        'directors': list(movie.get('directors') or []),
        'genres': list(movie.get('genres') or []),
        'source': 'database',
    }


def _resolve_tmdb_id(client, movie_id, existing):
    # Cached rows are keyed by their TMDB id.
    if existing:
        return existing['movie_id']
    if not movie_id.startswith('tt'):
        return movie_id
    try:
        found = client.find_by_imdb_id(movie_id)
    except TMDBError as e:
        logger.warning("⚠️  TMDB lookup by imdb_id %s failed, using id directly: %s", movie_id, e)
        return movie_id
    if not found:
        logger.warning("⚠️  No TMDB movie for imdb_id %s, using id directly", movie_id)
        return movie_id
    return str(found)


def movie_details(movie_id, client=None):
    """Details for a movie id or IMDb id, served from cache when complete."""
    movie_id = str(movie_id).strip()
    existing = _find_cached(movie_id)

    if existing and is_complete(existing):
        return _cached_details(existing)

    client = client or get_tmdb_client()
    tmdb_id = _resolve_tmdb_id(client, movie_id, existing)

    with ThreadPoolExecutor(max_workers=3) as pool:
        details_job = pool.submit(client.details, tmdb_id)
        credits_job = pool.submit(client.credits, tmdb_id)
        videos_job = pool.submit(client.videos, tmdb_id)
        details = details_job.result()
        credits = credits_job.result()
        videos = videos_job.result()

    trailer_url = pick_trailer_url(videos)
    cast = credits.get('cast', [])[:CAST_LIMIT]
    directors = [m['name'] for m in credits.get('crew', []) if m.get('job') == 'Director']
    genres = [g['name'] for g in details.get('genres', [])]

    cache_id = existing['movie_id'] if existing else str(details.get('id') or tmdb_id)
    stored = storage.upsert_movie(cache_id, {
        'imdb_id': details.get('imdb_id') or (existing or {}).get('imdb_id') or movie_id,
        'title': details.get('title'),
        'year': _year_int(details.get('release_date')),
        'runtime': details.get('runtime'),
        'rating': details.get('vote_average'),
        'teaser_url': trailer_url,
        'overview': details.get('overview'),
        'poster': image_url(details.get('poster_path')),
        'genres': genres,
        'directors': directors,
        'actors': [actor['name'] for actor in cast],
    })
    logger.info("🎬 Cached details for %s (%s)", stored.get('title'), cache_id)

    return {
        'movie': {
            'id': public_id(stored['movie_id']),
            'title': details.get('title'),
            'rating': details.get('vote_average'),
            'runtime': details.get('runtime'),
            'overview': details.get('overview'),
        },
        'videos': [{'url': trailer_url}] if trailer_url else [],
        'cast': [
            {'name': actor['name'], 'profile': image_url(actor.get('profile_path'))}
            for actor in cast
        ],
        'directors': directors,
        'genres': genres,
        'source': 'tmdb',
    }
