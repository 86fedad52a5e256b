from flask import Blueprint, request, jsonify
from .services.auth import current_user
from .services.secret_store import get_secret
from .services.places import search_places, get_place, PlacesError

bp = Blueprint('api', __name__)


def _require_user():
    if current_user() is None:
        return jsonify({'error': 'unauthorized'}), 401
    return None


@bp.post('/functions/get-secret')
def get_secret_fn():
    denied = _require_user()
    if denied:
        return denied
    name = (request.get_json(silent=True) or {}).get('name')
    if not name:
        return jsonify({'error': 'Secret name is required'}), 400
    value = get_secret(name)
    if value is None:
        return jsonify({'error': 'Secret not found'}), 404
    return jsonify({'value': value})


@bp.get('/api/places/search')
def places_search():
    denied = _require_user()
    if denied:
        return denied
    try:
        places = search_places(request.args.get('q', ''))
    except PlacesError as e:
        return jsonify({'error': str(e)}), 502
    return jsonify({'places': [p.to_dict() for p in places]})


@bp.get('/api/places/<place_id>')
def place_details(place_id: str):
    denied = _require_user()
    if denied:
        return denied
    try:
        place = get_place(place_id)
    except PlacesError as e:
        return jsonify({'error': str(e)}), 502
    return jsonify(place.to_dict())
