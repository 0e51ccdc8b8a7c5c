"""Bulk maintenance: merging duplicate entities and campaign-wide find/replace.

Both operations take the SQLAlchemy session explicitly and run as a single
transaction: they commit on success and roll back on any exception.
"""

import json

from flask import current_app
from sqlalchemy import or_

from smart_wiki.errors import NotFoundError, ValidationError
from smart_wiki.fields import clean_text
from smart_wiki.kinds import EntityKind, KIND_CONFIG
from smart_wiki.models import Campaign, Character, Organization, SessionSummary

# Free-text columns rewritten by find/replace, per model
_DESCRIPTION_FIELDS = ('description',)
_SESSION_TEXT_FIELDS = ('recap', 'outline', 'notes')


def _get_campaign(session, campaign_id):
    campaign = session.get(Campaign, campaign_id)
    if campaign is None:
        raise NotFoundError(f'Campaign {campaign_id} not found.')
    return campaign


def _find_by_name(session, kind, campaign_id, name):
    return (session.query(kind.model)
            .filter(kind.name_column == name, kind.model.campaign_id == campaign_id)
            .first())


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

def merge_entities(session, campaign_id, kind, source_name, target_name):
    """Fold the entity named source_name into target_name, then delete it.

    Sessions that featured the source gain the target. Kind-specific links
    (organization membership and leadership, character origins, organization
    headquarters) are moved to the target. Nothing ever removes a link the
    target already had.

    Returns a small summary dict for the API response.
    """
    kind = EntityKind.parse(kind)
    source_name = clean_text(source_name)
    target_name = clean_text(target_name)
    if not source_name or not target_name:
        raise ValidationError('Both source and target names are required.')
    if source_name == target_name:
        raise ValidationError('Cannot merge an entity into itself.')

    _get_campaign(session, campaign_id)

    source = _find_by_name(session, kind, campaign_id, source_name)
    if source is None:
        raise NotFoundError(f'Source "{source_name}" not found.')
    target = _find_by_name(session, kind, campaign_id, target_name)
    if target is None:
        raise NotFoundError(f'Target "{target_name}" not found.')
    if source.id == target.id:
        raise ValidationError('Cannot merge an entity into itself.')

    try:
        sessions_updated = _merge_session_links(session, kind, campaign_id, source, target)

        if kind is EntityKind.CHARACTER:
            _merge_character_links(session, source, target)
        elif kind is EntityKind.LOCATION:
            _merge_location_links(session, source, target)
        elif kind is EntityKind.ORGANIZATION:
            _merge_organization_links(session, source, target)

        # Bulk updates above bypass the in-memory backrefs on source; reload
        # them so the delete only unlinks what is still attached in the DB.
        session.flush()
        session.expire(source)
        session.delete(source)
        session.commit()
    except Exception:
        session.rollback()
        raise

    current_app.logger.info('Merged %s "%s" into "%s" (campaign %s, %d sessions)',
                            kind.value, source_name, target_name, campaign_id, sessions_updated)
    return {
        'type': kind.value,
        'source': source_name,
        'target': target_name,
        'targetId': target.id,
        'sessionsUpdated': sessions_updated,
    }


def _merge_session_links(session, kind, campaign_id, source, target):
    relation_name = kind.session_relation
    if relation_name is None:
        return 0

    relation = getattr(SessionSummary, relation_name)
    sessions = (session.query(SessionSummary)
                .filter(SessionSummary.campaign_id == campaign_id,
                        relation.any(id=source.id))
                .all())
    for sess in sessions:
        linked = getattr(sess, relation_name)
        if target not in linked:
            linked.append(target)
    return len(sessions)


def _merge_character_links(session, source, target):
    orgs = (session.query(Organization)
            .filter(Organization.members.any(id=source.id))
            .all())
    for org in orgs:
        if target not in org.members:
            org.members.append(target)

    session.query(Organization).filter(Organization.leader_id == source.id)\
        .update({Organization.leader_id: target.id}, synchronize_session='fetch')


def _merge_location_links(session, source, target):
    session.query(Character).filter(Character.origin_id == source.id)\
        .update({Character.origin_id: target.id}, synchronize_session='fetch')
    session.query(Organization).filter(Organization.headquarters_id == source.id)\
        .update({Organization.headquarters_id: target.id}, synchronize_session='fetch')


def _merge_organization_links(session, source, target):
    members = (session.query(Character)
               .filter(Character.organizations.any(id=source.id))
               .all())
    for char in members:
        if target not in char.organizations:
            char.organizations.append(target)


# ---------------------------------------------------------------------------
# Find / replace
# ---------------------------------------------------------------------------

def replace_text(session, campaign_id, find, replace):
    """Replace `find` with `replace` across one campaign. Returns the update count.

    Names and titles change only when they equal `find` exactly. Descriptions,
    session recap/outline/notes and the notable quotes JSON get a
    case-sensitive substring replacement of every occurrence.
    """
    if not find or not replace:
        raise ValidationError('Both "find" and "replace" fields are required.')
    if find == replace:
        raise ValidationError('"find" and "replace" are identical.')

    _get_campaign(session, campaign_id)

    total = 0
    try:
        for kind in EntityKind:
            total += _replace_exact_names(session, kind, campaign_id, find, replace)
        for kind in EntityKind:
            total += _replace_in_fields(session, kind.model, campaign_id,
                                        _DESCRIPTION_FIELDS, find, replace)
        total += _replace_in_fields(session, SessionSummary, campaign_id,
                                    _SESSION_TEXT_FIELDS, find, replace)
        total += _replace_in_quotes(session, campaign_id, find, replace)
        session.commit()
    except Exception:
        session.rollback()
        raise

    current_app.logger.info('Replaced "%s" with "%s" in campaign %s: %d updates',
                            find, replace, campaign_id, total)
    return total


def _replace_exact_names(session, kind, campaign_id, find, replace):
    model = kind.model
    matches = (session.query(model)
               .filter(model.campaign_id == campaign_id, kind.name_column == find)
               .all())
    if not matches:
        return 0

    # (name, campaign_id) is unique, so renaming onto a taken name would fail
    if _find_by_name(session, kind, campaign_id, replace) is not None:
        raise ValidationError(
            f'{kind.value} "{replace}" already exists. Merge "{find}" into it instead.'
        )

    name_field = KIND_CONFIG[kind]['name_field']
    for entity in matches:
        setattr(entity, name_field, replace)
    session.flush()
    return len(matches)


def _replace_in_fields(session, model, campaign_id, field_names, find, replace):
    """Substring-replace in each text column; one count per changed row."""
    columns = [getattr(model, name) for name in field_names]
    # LIKE narrows the candidates (case-insensitive on some backends),
    # the Python check below keeps the replacement case-sensitive.
    candidates = (session.query(model)
                  .filter(model.campaign_id == campaign_id,
                          or_(*[col.contains(find, autoescape=True) for col in columns]))
                  .all())

    changed_rows = 0
    for row in candidates:
        changed = False
        for name in field_names:
            value = getattr(row, name)
            if value and find in value:
                setattr(row, name, value.replace(find, replace))
                changed = True
        if changed:
            changed_rows += 1
    session.flush()
    return changed_rows


def _replace_in_quotes(session, campaign_id, find, replace):
    """Replace inside the serialized notable_quotes JSON; one count per session."""
    sessions = session.query(SessionSummary).filter_by(campaign_id=campaign_id).all()

    updated = 0
    for sess in sessions:
        if not sess.notable_quotes:
            continue
        serialized = json.dumps(sess.notable_quotes, ensure_ascii=False)
        if find not in serialized:
            continue
        try:
            new_quotes = json.loads(serialized.replace(find, replace))
        except json.JSONDecodeError as e:
            current_app.logger.warning(
                'Find/replace left notable quotes of session %s unchanged: %s', sess.id, e)
            continue
        sess.notable_quotes = new_quotes
        updated += 1
    session.flush()
    return updated
