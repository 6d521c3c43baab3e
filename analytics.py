"""Dashboard aggregates over the cached movie catalog."""
from collections import Counter, defaultdict

import storage

TOP_PEOPLE_LIMIT = 10


def _ranked(counter, label, limit=None):
    rows = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        rows = rows[:limit]
    return [{label: name, 'count': count} for name, count in rows]


def genre_distribution(movies):
    counts = Counter(genre for movie in movies for genre in movie.get('genres') or [])
    return _ranked(counts, 'genre')


def avg_rating_per_genre(movies):
    ratings = defaultdict(list)
    for movie in movies:
        if movie.get('rating') is None:
            continue
        for genre in movie.get('genres') or []:
            ratings[genre].append(movie['rating'])
    return [
        {'genre': genre, 'avg_rating': round(sum(values) / len(values), 2)}
        for genre, values in sorted(ratings.items())
    ]


def avg_runtime_per_year(movies):
    runtimes = defaultdict(list)
    for movie in movies:
        if not movie.get('year') or not movie.get('runtime'):
            continue
        runtimes[movie['year']].append(movie['runtime'])
    return [
        {'year': year, 'avg_runtime': round(sum(values) / len(values), 2)}
        for year, values in sorted(runtimes.items())
    ]


def actor_stats(movies, limit=TOP_PEOPLE_LIMIT):
    counts = Counter(actor for movie in movies for actor in movie.get('actors') or [])
    return _ranked(counts, 'actor', limit)


def director_stats(movies, limit=TOP_PEOPLE_LIMIT):
    counts = Counter(director for movie in movies for director in movie.get('directors') or [])
    return _ranked(counts, 'director', limit)


def dashboard_stats(movies=None):
    if movies is None:
        movies = storage.all_movies()
    return {
        'genreDistribution': genre_distribution(movies),
        'avgRatingsPerGenre': avg_rating_per_genre(movies),
        'avgRuntimePerYear': avg_runtime_per_year(movies),
        'topActors': actor_stats(movies),
        'topDirectors': director_stats(movies),
    }
