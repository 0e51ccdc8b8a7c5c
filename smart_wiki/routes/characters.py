from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db
from smart_wiki.errors import WikiError
from smart_wiki.fields import (apply_fields, check_rename, resolve_ref,
                               CHARACTER_TEXT_FIELDS, CHARACTER_INT_FIELDS)
from smart_wiki.kinds import EntityKind
from smart_wiki.models import Character, Location

characters_bp = Blueprint('characters', __name__, url_prefix='/api/characters')


@characters_bp.route('/<int:character_id>', methods=['GET'])
def get_character(character_id):
    character = db.session.get(Character, character_id)
    if not character:
        return jsonify({'error': 'Character not found.'}), 404
    data = character.to_dict()
    data['sessions'] = [{'id': s.id, 'sessionNumber': s.session_number, 'title': s.title}
                        for s in sorted(character.sessions, key=lambda s: s.session_number)]
    return jsonify(data)


@characters_bp.route('/<int:character_id>', methods=['PATCH'])
def update_character(character_id):
    character = db.session.get(Character, character_id)
    if not character:
        return jsonify({'error': 'Character not found.'}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    try:
        check_rename(db.session, EntityKind.CHARACTER, character, data)
        apply_fields(character, data, CHARACTER_TEXT_FIELDS, CHARACTER_INT_FIELDS)
        if 'originId' in data:
            character.origin = resolve_ref(db.session, Location, data['originId'],
                                           character.campaign_id, 'originId')
        db.session.commit()
    except WikiError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to update character %s', character_id)
        return jsonify({'error': 'Failed to update character.'}), 500

    return jsonify(character.to_dict())
