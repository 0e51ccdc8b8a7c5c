"""
smart_wiki/routes/organizations.py — organization detail and edit

PATCH understands three relation keys besides the text fields:
  leaderId        — a character id, or null to clear the leader
  headquartersId  — a location id, or null to clear the headquarters
  memberIds       — list of character ids; replaces the whole member set
All referenced rows must belong to the organization's campaign.
"""

from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db
from smart_wiki.errors import ValidationError, WikiError
from smart_wiki.fields import apply_fields, check_rename, resolve_ref, ORGANIZATION_TEXT_FIELDS
from smart_wiki.kinds import EntityKind
from smart_wiki.models import Organization, Character, Location

organizations_bp = Blueprint('organizations', __name__, url_prefix='/api/organizations')


@organizations_bp.route('/<int:org_id>', methods=['GET'])
def get_organization(org_id):
    org = db.session.get(Organization, org_id)
    if not org:
        return jsonify({'error': 'Organization not found.'}), 404
    return jsonify(org.to_dict())


@organizations_bp.route('/<int:org_id>', methods=['PATCH'])
def update_organization(org_id):
    org = db.session.get(Organization, org_id)
    if not org:
        return jsonify({'error': 'Organization not found.'}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    try:
        check_rename(db.session, EntityKind.ORGANIZATION, org, data)
        apply_fields(org, data, ORGANIZATION_TEXT_FIELDS)
        if 'leaderId' in data:
            org.leader = resolve_ref(db.session, Character, data['leaderId'],
                                     org.campaign_id, 'leaderId')
        if 'headquartersId' in data:
            org.headquarters = resolve_ref(db.session, Location, data['headquartersId'],
                                           org.campaign_id, 'headquartersId')
        if 'memberIds' in data:
            member_ids = data['memberIds'] or []
            if not isinstance(member_ids, list):
                raise ValidationError('memberIds must be a list.')
            members = []
            for member_id in member_ids:
                member = resolve_ref(db.session, Character, member_id, org.campaign_id, 'memberIds')
                if member is not None and member not in members:
                    members.append(member)
            org.members = members
        db.session.commit()
    except WikiError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to update organization %s', org_id)
        return jsonify({'error': 'Failed to update organization.'}), 500

    return jsonify(org.to_dict())
