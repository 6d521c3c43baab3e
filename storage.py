"""DynamoDB persistence for users, cached movies and search logs."""
import logging
import uuid
from datetime import datetime
from decimal import Decimal

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

import settings

logger = logging.getLogger(__name__)

_dynamodb = None


class UserExistsError(Exception):
    pass


# ============================================================================
# CONNECTION
# ============================================================================
def get_dynamodb():
    """Return the shared DynamoDB resource, creating it on first use."""
    global _dynamodb
    if _dynamodb is None:
        _dynamodb = boto3.resource(
            'dynamodb',
            region_name=settings.AWS_REGION,
            endpoint_url=settings.DYNAMODB_ENDPOINT_URL,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY
        )
    return _dynamodb


def reset_dynamodb():
    global _dynamodb
    _dynamodb = None


def users_table():
    return get_dynamodb().Table(settings.USERS_TABLE)


def movies_table():
    return get_dynamodb().Table(settings.MOVIES_TABLE)


def search_logs_table():
    return get_dynamodb().Table(settings.SEARCH_LOGS_TABLE)


TABLE_KEYS = {
    settings.USERS_TABLE: 'email',
    settings.MOVIES_TABLE: 'movie_id',
    settings.SEARCH_LOGS_TABLE: 'log_id',
}


def create_tables():
    """Create any missing table. Returns the names that were created."""
    dynamodb = get_dynamodb()
    existing = {table.name for table in dynamodb.tables.all()}
    created = []
    for name, key in TABLE_KEYS.items():
        if name in existing:
            continue
        table = dynamodb.create_table(
            TableName=name,
            KeySchema=[{'AttributeName': key, 'KeyType': 'HASH'}],
            AttributeDefinitions=[{'AttributeName': key, 'AttributeType': 'S'}],
            BillingMode='PAY_PER_REQUEST'
        )
        table.wait_until_exists()
        logger.info("📦 Created table %s", name)
        created.append(name)
    return created


# ============================================================================
# HELPERS - TYPE CONVERSION
# ============================================================================
def to_dynamo(value):
    """Convert floats (nested too) into Decimals, which DynamoDB requires."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value):
    """Convert Decimals back into ints or floats."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, set)):
        return [from_dynamo(v) for v in value]
    return value


def _now():
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _scan_all(table, **kwargs):
    response = table.scan(**kwargs)
    items = response.get('Items', [])

    # Handle pagination
    while 'LastEvaluatedKey' in response:
        response = table.scan(ExclusiveStartKey=response['LastEvaluatedKey'], **kwargs)
        items.extend(response.get('Items', []))

    return [from_dynamo(item) for item in items]


# ============================================================================
# USERS
# ============================================================================
def get_user(email):
    response = users_table().get_item(Key={'email': email})
    item = response.get('Item')
    return from_dynamo(item) if item else None


def user_exists(email):
    return get_user(email) is not None


def create_user(email, password_hash):
    """Store a new user. Raises UserExistsError when the email is taken."""
    user = {
        'id': str(uuid.uuid4()),
        'email': email,
        'password_hash': password_hash,
        'created_at': _now(),
    }
    try:
        users_table().put_item(
            Item=user,
            ConditionExpression='attribute_not_exists(email)'
        )
    except ClientError as e:
        if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
            raise UserExistsError(email) from e
        raise
    logger.info("✅ New user registered: %s", email)
    return user


# ============================================================================
# MOVIES
# ============================================================================
def get_movie(movie_id):
    response = movies_table().get_item(Key={'movie_id': str(movie_id)})
    item = response.get('Item')
    return from_dynamo(item) if item else None


def find_movie_by_imdb_id(imdb_id):
    if not imdb_id:
        return None
    items = _scan_all(movies_table(), FilterExpression=Attr('imdb_id').eq(imdb_id))
    return items[0] if items else None


def search_movies(query):
    """Case-insensitive title substring match over the cached catalog."""
    needle = (query or '').strip().lower()
    if not needle:
        return []
    items = _scan_all(movies_table(), FilterExpression=Attr('title_lower').contains(needle))
    items.sort(key=lambda m: m.get('title') or '')
    return items


def all_movies():
    return _scan_all(movies_table())


def upsert_movie(movie_id, fields):
    """Write the given attributes onto a movie, creating it when missing.

    Attributes not named in ``fields`` keep their stored value. Concurrent
    writers are not coordinated: the last write wins.
    """
    fields = dict(fields)
    fields.pop('movie_id', None)
    if 'title' in fields:
        fields['title_lower'] = (fields['title'] or '').lower()
    fields['updated_at'] = _now()

    names = {}
    values = {}
    assignments = []
    for i, (attr, value) in enumerate(sorted(fields.items())):
        names['#f%d' % i] = attr
        values[':v%d' % i] = to_dynamo(value)
        assignments.append('#f%d = :v%d' % (i, i))

    response = movies_table().update_item(
        Key={'movie_id': str(movie_id)},
        UpdateExpression='SET ' + ', '.join(assignments),
        ExpressionAttributeNames=names,
        ExpressionAttributeValues=values,
        ReturnValues='ALL_NEW'
    )
    return from_dynamo(response['Attributes'])


# ============================================================================
# SEARCH LOGS
# ============================================================================
def log_search(query):
    search_logs_table().put_item(
        Item={
            'log_id': str(uuid.uuid4()),
            'query': query,
            'created_at': _now(),
        }
    )
