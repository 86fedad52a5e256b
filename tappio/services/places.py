"""Google Places text search and place details.

The API key is read through the secret store (``GOOGLE_PLACES_API_KEY``)
with the app setting of the same name as a fallback. Queries shorter than
``PLACES_MIN_QUERY_LENGTH`` never reach the network.
"""
import logging
from dataclasses import dataclass, asdict
import requests
from flask import current_app
from .secret_store import get_secret

logger = logging.getLogger(__name__)

API_KEY_SECRET = 'GOOGLE_PLACES_API_KEY'
SEARCH_FIELD_MASK = 'places.id,places.displayName'
DETAILS_FIELD_MASK = 'id,displayName'


class PlacesError(ValueError):
    pass


@dataclass(frozen=True)
class Place:
    id: str
    name: str

    def to_dict(self) -> dict:
        return asdict(self)


def _api_key() -> str:
    key = get_secret(API_KEY_SECRET) or current_app.config.get('GOOGLE_PLACES_API_KEY')
    if not key:
        raise PlacesError('Places search is not configured')
    return key


def _headers(field_mask: str) -> dict:
    return {
        'Content-Type': 'application/json',
        'X-Goog-Api-Key': _api_key(),
        'X-Goog-FieldMask': field_mask,
    }


def _json(resp, message: str) -> dict:
    try:
        body = resp.json()
    except ValueError as e:
        logger.error(f"Places API returned a non-JSON body: {resp.text[:200]}")
        raise PlacesError(message) from e
    if not isinstance(body, dict):
        raise PlacesError(message)
    return body


def _place(raw: dict) -> Place:
    return Place(id=raw.get('id', ''), name=(raw.get('displayName') or {}).get('text', ''))


def search_places(term: str) -> list[Place]:
    term = (term or '').strip()
    if len(term) < current_app.config.get('PLACES_MIN_QUERY_LENGTH', 3):
        return []

    url = f"{current_app.config['PLACES_API_URL']}/places:searchText"
    try:
        resp = requests.post(url, headers=_headers(SEARCH_FIELD_MASK), json={'textQuery': term},
                             timeout=current_app.config.get('PLACES_TIMEOUT', 10))
    except requests.RequestException as e:
        logger.error(f"Places search request failed: {e}")
        raise PlacesError('Error searching places') from e
    if not resp.ok:
        logger.error(f"Places search failed {resp.status_code}: {resp.text[:200]}")
        raise PlacesError('Error searching places')
    return [_place(p) for p in _json(resp, 'Error searching places').get('places') or []]


def get_place(place_id: str) -> Place:
    url = f"{current_app.config['PLACES_API_URL']}/places/{place_id}"
    try:
        resp = requests.get(url, headers=_headers(DETAILS_FIELD_MASK),
                            timeout=current_app.config.get('PLACES_TIMEOUT', 10))
    except requests.RequestException as e:
        logger.error(f"Place details request failed: {e}")
        raise PlacesError('Error loading place details') from e
    if not resp.ok:
        logger.error(f"Place details failed {resp.status_code}: {resp.text[:200]}")
        raise PlacesError('Error loading place details')
    return _place(_json(resp, 'Error loading place details'))
