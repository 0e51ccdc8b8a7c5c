from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db
from smart_wiki.errors import WikiError
from smart_wiki.fields import apply_fields, check_rename, LOCATION_TEXT_FIELDS
from smart_wiki.kinds import EntityKind
from smart_wiki.models import Location

locations_bp = Blueprint('locations', __name__, url_prefix='/api/locations')


@locations_bp.route('/<int:location_id>', methods=['GET'])
def get_location(location_id):
    location = db.session.get(Location, location_id)
    if not location:
        return jsonify({'error': 'Location not found.'}), 404
    data = location.to_dict()
    # Who comes from here and who is based here
    data['originCharacters'] = [{'id': c.id, 'name': c.name} for c in location.origin_characters]
    data['hqOrganizations'] = [{'id': o.id, 'name': o.name} for o in location.hq_organizations]
    return jsonify(data)


@locations_bp.route('/<int:location_id>', methods=['PATCH'])
def update_location(location_id):
    location = db.session.get(Location, location_id)
    if not location:
        return jsonify({'error': 'Location not found.'}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    try:
        check_rename(db.session, EntityKind.LOCATION, location, data)
        apply_fields(location, data, LOCATION_TEXT_FIELDS)
        db.session.commit()
    except WikiError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to update location %s', location_id)
        return jsonify({'error': 'Failed to update location.'}), 500

    return jsonify(location.to_dict())
