from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db
from smart_wiki.errors import WikiError
from smart_wiki.fields import apply_fields, check_rename, ITEM_TEXT_FIELDS
from smart_wiki.kinds import EntityKind
from smart_wiki.models import Item

items_bp = Blueprint('items', __name__, url_prefix='/api/items')


@items_bp.route('/<int:item_id>', methods=['GET'])
def get_item(item_id):
    item = db.session.get(Item, item_id)
    if not item:
        return jsonify({'error': 'Item not found.'}), 404
    return jsonify(item.to_dict())


@items_bp.route('/<int:item_id>', methods=['PATCH'])
def update_item(item_id):
    item = db.session.get(Item, item_id)
    if not item:
        return jsonify({'error': 'Item not found.'}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    try:
        check_rename(db.session, EntityKind.ITEM, item, data)
        apply_fields(item, data, ITEM_TEXT_FIELDS)
        db.session.commit()
    except WikiError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to update item %s', item_id)
        return jsonify({'error': 'Failed to update item.'}), 500

    return jsonify(item.to_dict())
