"""
smart_wiki/routes/campaigns.py — campaign listing and maintenance endpoints

  GET  /api/campaigns                        — all campaigns
  GET  /api/campaigns/<id>                   — one campaign with its sessions
  GET  /api/campaigns/<id>/entities?type=    — sorted names of one kind
  GET  /api/campaigns/<id>/lists             — id/name pairs for pickers
  GET  /api/campaigns/<id>/<kind-plural>     — full rows of one kind
  POST /api/campaigns/<id>/merge             — fold one entity into another
  POST /api/campaigns/<id>/replace           — campaign-wide find/replace
"""

from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db
from smart_wiki.errors import WikiError
from smart_wiki.kinds import EntityKind, KIND_CONFIG
from smart_wiki.maintenance import merge_entities, replace_text
from smart_wiki.models import Campaign, Character, Location

campaigns_bp = Blueprint('campaigns', __name__, url_prefix='/api/campaigns')


def _get_campaign(campaign_id):
    return db.session.get(Campaign, campaign_id)


@campaigns_bp.route('', methods=['GET'])
def list_campaigns():
    campaigns = Campaign.query.order_by(Campaign.name).all()
    return jsonify([c.to_dict() for c in campaigns])


@campaigns_bp.route('/<int:campaign_id>', methods=['GET'])
def get_campaign(campaign_id):
    campaign = _get_campaign(campaign_id)
    if not campaign:
        return jsonify({'error': 'Campaign not found.'}), 404
    data = campaign.to_dict()
    data['sessions'] = [s.to_dict(include_links=False) for s in campaign.sessions]
    return jsonify(data)


@campaigns_bp.route('/<int:campaign_id>/entities', methods=['GET'])
def entity_names(campaign_id):
    """Names (or lore titles) of one kind, for the merge pickers."""
    if not _get_campaign(campaign_id):
        return jsonify({'error': 'Campaign not found.'}), 404
    try:
        kind = EntityKind.parse(request.args.get('type', ''))
    except WikiError as e:
        return jsonify({'error': str(e)}), e.status_code

    rows = (db.session.query(kind.name_column)
            .filter(kind.model.campaign_id == campaign_id)
            .order_by(kind.name_column)
            .all())
    return jsonify([row[0] for row in rows])


@campaigns_bp.route('/<int:campaign_id>/lists', methods=['GET'])
def pick_lists(campaign_id):
    if not _get_campaign(campaign_id):
        return jsonify({'error': 'Campaign not found.'}), 404
    characters = Character.query.filter_by(campaign_id=campaign_id).order_by(Character.name).all()
    locations = Location.query.filter_by(campaign_id=campaign_id).order_by(Location.name).all()
    return jsonify({
        'characters': [{'id': c.id, 'name': c.name} for c in characters],
        'locations': [{'id': l.id, 'name': l.name} for l in locations],
    })


@campaigns_bp.route('/<int:campaign_id>/<kind_name>', methods=['GET'])
def list_kind(campaign_id, kind_name):
    if not _get_campaign(campaign_id):
        return jsonify({'error': 'Campaign not found.'}), 404
    try:
        kind = EntityKind.parse(kind_name)
    except WikiError as e:
        return jsonify({'error': str(e)}), e.status_code

    rows = (kind.model.query
            .filter_by(campaign_id=campaign_id)
            .order_by(kind.name_column)
            .all())
    return jsonify({KIND_CONFIG[kind]['plural']: [r.to_dict() for r in rows]})


@campaigns_bp.route('/<int:campaign_id>/merge', methods=['POST'])
def merge(campaign_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    try:
        result = merge_entities(db.session, campaign_id, data.get('type'),
                                data.get('sourceName'), data.get('targetName'))
    except WikiError as e:
        return jsonify({'error': str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Merge failed in campaign %s', campaign_id)
        return jsonify({'error': 'An unexpected error occurred during the merge.'}), 500

    result['message'] = f'Successfully merged "{result["source"]}" into "{result["target"]}".'
    return jsonify(result)


@campaigns_bp.route('/<int:campaign_id>/replace', methods=['POST'])
def replace(campaign_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    find = data.get('find')
    replacement = data.get('replace')
    if not isinstance(find, str) or not isinstance(replacement, str):
        return jsonify({'error': 'Both "find" and "replace" fields are required.'}), 400

    try:
        count = replace_text(db.session, campaign_id, find, replacement)
    except WikiError as e:
        return jsonify({'error': str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Find/replace failed in campaign %s', campaign_id)
        return jsonify({'error': 'An unexpected error occurred during the replacement.'}), 500

    return jsonify({
        'message': f'Replaced "{find}" with "{replacement}" in {count} records.',
        'count': count,
    })
