from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db
from smart_wiki.errors import WikiError
from smart_wiki.fields import apply_fields, check_rename, LORE_TEXT_FIELDS
from smart_wiki.kinds import EntityKind
from smart_wiki.models import Lore

lore_bp = Blueprint('lore', __name__, url_prefix='/api/lore')


@lore_bp.route('/<int:lore_id>', methods=['GET'])
def get_lore(lore_id):
    entry = db.session.get(Lore, lore_id)
    if not entry:
        return jsonify({'error': 'Lore entry not found.'}), 404
    return jsonify(entry.to_dict())


@lore_bp.route('/<int:lore_id>', methods=['PATCH'])
def update_lore(lore_id):
    entry = db.session.get(Lore, lore_id)
    if not entry:
        return jsonify({'error': 'Lore entry not found.'}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    try:
        check_rename(db.session, EntityKind.LORE, entry, data)
        apply_fields(entry, data, LORE_TEXT_FIELDS)
        db.session.commit()
    except WikiError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to update lore entry %s', lore_id)
        return jsonify({'error': 'Failed to update lore entry.'}), 500

    return jsonify(entry.to_dict())
