"""
smart_wiki/extraction.py — transcript → wiki pipeline

generate_session() reads a full session transcript, asks the model for six
JSON sections and saves everything in one transaction: the campaign (created
on first use), upserted characters/locations/organizations/items/lore, and a
new numbered SessionSummary linked to what was found.

enhance_session() folds curated notes into an existing session: the model
rewrites the storybook recap, and the notes/quotes are parsed locally.

Both make exactly one model call and never retry.
"""

import json
import re

from flask import current_app

from smart_wiki.ai_provider import ai_chat, get_feature_provider, AIProviderError
from smart_wiki.errors import NotFoundError, ValidationError
from smart_wiki.fields import (clean_text, to_int, CHARACTER_TEXT_FIELDS, CHARACTER_INT_FIELDS,
                               LOCATION_TEXT_FIELDS, ORGANIZATION_TEXT_FIELDS,
                               ITEM_TEXT_FIELDS, LORE_TEXT_FIELDS)
from smart_wiki.kinds import EntityKind, KIND_CONFIG
from smart_wiki.models import Campaign, SessionSummary, next_session_number
from smart_wiki.notes_parser import parse_notes, parse_quotes


class ExtractionParseError(Exception):
    """The model answered, but not with a JSON object we could read."""
    pass


PARSE_ERROR_MESSAGE = ('The AI response could not be parsed as JSON. '
                       'Check the server logs for the raw response.')

# Which JSON keys each section of the model output may carry, per kind.
# The name key is handled separately.
SECTION_FIELDS = {
    EntityKind.CHARACTER: ('characters', CHARACTER_TEXT_FIELDS, CHARACTER_INT_FIELDS),
    EntityKind.LOCATION: ('locations', LOCATION_TEXT_FIELDS, {}),
    EntityKind.ORGANIZATION: ('organizations', ORGANIZATION_TEXT_FIELDS, {}),
    EntityKind.ITEM: ('items', ITEM_TEXT_FIELDS, {}),
    EntityKind.LORE: ('lore', LORE_TEXT_FIELDS, {}),
}

EXTRACTION_SYSTEM_PROMPT = """You are a meticulous tabletop RPG campaign archivist.
Read the game session transcript you are given and extract every relevant entity.

Return ONLY a single valid JSON object. No explanation, no markdown, no code fences.

The object has exactly six top-level keys:
  "characters": array of objects with
      "name" (string), "description" (string: what they did or what was learned),
      "type" ("PC" or "NPC"), and when stated: "species", "class", "status",
      "level", "hp", "ac" (integers)
  "locations": array of objects with "name", "description", and optionally "type"
  "organizations": array of objects with "name", "description", and optionally "type"
  "items": array of objects with "name", "description", and optionally "type", "rarity"
  "lore": array of objects with "title" (e.g. "The Spellplague") and "description"
  "sessionSummary": a single object (not an array) with
      "title": a creative title for the session,
      "recap": a detailed narrative summary of the session's events,
      "notableQuotes": an array of memorable quotes as strings

Rules:
- If a category has no entities, return an empty array [] for it.
- Use null for any optional field the transcript does not state.
- Do not invent information. Only use details from the transcript.
"""

ENHANCE_SYSTEM_PROMPT = """You are a fantasy novel editor working on a tabletop RPG campaign storybook.

You will receive the "Original Draft" of one session chapter and the "Editor's Notes"
(an accurate recap) for the same session. Rewrite the Original Draft to improve it:
1. Source of truth: the Editor's Notes have the CORRECT spellings of names and the correct
   facts. Fix any discrepancies in the draft.
2. Add detail: weave in details, dialogue or events from the notes that the draft is missing.
3. Keep the style: novelistic, past tense, show-don't-tell. Never a bulleted list.

Return ONLY the enhanced story text.
"""


def extract_json(raw):
    """Extract a JSON object from a model response.

    Models sometimes add a preamble or wrap the JSON in code fences even when
    told not to, so this tries progressively looser extraction:
    direct parse, fenced block, then the span from the first '{' to the last '}'.

    Raises ExtractionParseError if no JSON object can be found.
    """
    raw = (raw or '').strip()

    try:
        result = json.loads(raw)
        if isinstance(result, dict):
            return result
    except json.JSONDecodeError:
        pass

    fence_match = re.search(r'```(?:json)?\s*\n([\s\S]*?)\n?```', raw)
    if fence_match:
        try:
            result = json.loads(fence_match.group(1).strip())
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    start = raw.find('{')
    end = raw.rfind('}')
    if start != -1 and end > start:
        try:
            result = json.loads(raw[start:end + 1])
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    raise ExtractionParseError(PARSE_ERROR_MESSAGE)


def _as_entries(value):
    """A model 'array' section as a list of dicts, tolerating a lone object."""
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]


def _entry_values(entry, text_fields, int_fields, name_key):
    values = {}
    for key, attr in text_fields.items():
        if key != name_key:
            values[attr] = clean_text(entry.get(key))
    for key, attr in int_fields.items():
        values[attr] = to_int(entry.get(key))
    if 'type' in values and values['type'] and values['type'].upper() in ('PC', 'NPC'):
        values['type'] = values['type'].upper()
    return values


def upsert_entity(session, kind, campaign_id, name, values):
    """Insert-or-update one entity by (name, campaign_id).

    On update, None values are skipped so a sparse mention never erases what
    an earlier session recorded.
    """
    model = kind.model
    name_field = KIND_CONFIG[kind]['name_field']
    entity = (session.query(model)
              .filter(kind.name_column == name, model.campaign_id == campaign_id)
              .first())
    if entity is None:
        entity = model(campaign_id=campaign_id, **{name_field: name})
        for attr, value in values.items():
            setattr(entity, attr, value)
        session.add(entity)
    else:
        for attr, value in values.items():
            if value is not None:
                setattr(entity, attr, value)
    # Flush so a repeated name later in the same batch finds this row
    session.flush()
    return entity


def _normalize_quotes(raw_quotes):
    quotes = []
    if not isinstance(raw_quotes, list):
        return quotes
    for q in raw_quotes:
        if isinstance(q, str):
            text = clean_text(q)
            if text:
                quotes.append({'quote': text, 'speaker': None, 'context': None})
        elif isinstance(q, dict):
            text = clean_text(q.get('quote') or q.get('text'))
            if text:
                quotes.append({
                    'quote': text,
                    'speaker': clean_text(q.get('speaker')),
                    'context': clean_text(q.get('context')),
                })
    return quotes


def _link(collection, entity):
    if entity not in collection:
        collection.append(entity)


def validate_transcript(transcript, campaign_name):
    """Return the stripped (transcript, campaign_name) or raise ValidationError."""
    transcript = transcript.strip() if isinstance(transcript, str) else ''
    campaign_name = campaign_name.strip() if isinstance(campaign_name, str) else ''
    if not transcript:
        raise ValidationError('Transcript is required.')
    if not campaign_name:
        raise ValidationError('Campaign name is required.')
    limit = current_app.config.get('MAX_TRANSCRIPT_CHARS', 400000)
    if len(transcript) > limit:
        raise ValidationError(f'Transcript is too long (max ~{limit} characters).')
    return transcript, campaign_name


def generate_session(session, transcript, campaign_name):
    """Run the full transcript → wiki pipeline. Returns a result dict."""
    transcript, campaign_name = validate_transcript(transcript, campaign_name)

    messages = [{'role': 'user', 'content': f'Here is the transcript:\n---\n{transcript}\n---'}]
    raw = ai_chat(EXTRACTION_SYSTEM_PROMPT, messages, max_tokens=8192, json_mode=True,
                  provider=get_feature_provider('generate'))
    if not raw or not raw.strip():
        raise AIProviderError('The AI returned an empty response.')
    current_app.logger.debug('AI raw extraction response:\n%s', raw)

    try:
        data = extract_json(raw)
    except ExtractionParseError:
        current_app.logger.error('Could not parse AI extraction response:\n%s', raw)
        raise

    try:
        campaign = session.query(Campaign).filter_by(name=campaign_name).first()
        if campaign is None:
            campaign = Campaign(name=campaign_name)
            session.add(campaign)
            session.flush()

        found = {}
        for kind, (section, text_fields, int_fields) in SECTION_FIELDS.items():
            name_key = KIND_CONFIG[kind]['name_field']
            entities = []
            for entry in _as_entries(data.get(section)):
                name = clean_text(entry.get(name_key) or entry.get('name'))
                if not name:
                    continue
                values = _entry_values(entry, text_fields, int_fields, name_key)
                entity = upsert_entity(session, kind, campaign.id, name, values)
                if entity not in entities:
                    entities.append(entity)
            found[kind] = entities

        summary = data.get('sessionSummary')
        if not isinstance(summary, dict):
            summary = {}

        sess = SessionSummary(
            campaign_id=campaign.id,
            session_number=next_session_number(session, campaign.id),
            title=clean_text(summary.get('title')),
            recap=clean_text(summary.get('recap')),
            notable_quotes=_normalize_quotes(summary.get('notableQuotes')),
        )
        for kind, entities in found.items():
            relation_name = kind.session_relation
            if relation_name is None:
                continue
            for entity in entities:
                _link(getattr(sess, relation_name), entity)
        session.add(sess)
        session.commit()
    except Exception:
        session.rollback()
        raise

    counts = {KIND_CONFIG[kind]['plural']: len(entities) for kind, entities in found.items()}
    current_app.logger.info('Saved session %s of campaign "%s": %s',
                            sess.session_number, campaign.name, counts)
    return {
        'message': 'AI processing complete!',
        'campaignId': campaign.id,
        'sessionId': sess.id,
        'sessionNumber': sess.session_number,
        'counts': counts,
    }


ENHANCE_TEXT_KEYS = ('recap', 'outline', 'quotes', 'notes', 'currentStorybook')


def validate_enhance_payload(payload):
    """Curated notes arrive as plain text; null means "not sent"."""
    for key in ENHANCE_TEXT_KEYS:
        value = payload.get(key)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f'"{key}" must be a string.')


def enhance_session(session, session_id, payload):
    """Merge curated recap/outline/quotes/notes into an existing session."""
    validate_enhance_payload(payload)
    sess = session.get(SessionSummary, session_id)
    if sess is None:
        raise NotFoundError('Session not found.')

    curated_recap = clean_text(payload.get('recap'))
    outline = payload.get('outline')
    notes = payload.get('notes')
    storybook = clean_text(payload.get('currentStorybook')) or clean_text(sess.recap)

    enhanced_recap = storybook
    if curated_recap and storybook:
        user_content = (f'Original Draft:\n---\n{storybook}\n---\n\n'
                        f"Editor's Notes:\n---\n{curated_recap}\n---")
        raw = ai_chat(ENHANCE_SYSTEM_PROMPT, [{'role': 'user', 'content': user_content}],
                      max_tokens=8192, provider=get_feature_provider('enhance'))
        if raw and raw.strip():
            enhanced_recap = raw.strip()
        else:
            current_app.logger.warning('Enhance for session %s returned no text; keeping the storybook.',
                                       session_id)
    elif curated_recap:
        enhanced_recap = curated_recap

    wiki_updates = parse_notes(notes or '')
    quotes = parse_quotes(payload.get('quotes') or '')

    sections = (
        (EntityKind.CHARACTER, wiki_updates['characters']),
        (EntityKind.ITEM, wiki_updates['items']),
        (EntityKind.LOCATION, wiki_updates['locations']),
        (EntityKind.ORGANIZATION, wiki_updates['organizations']),
    )
    try:
        sess.recap = enhanced_recap
        if outline is not None:
            sess.outline = clean_text(outline)
        if notes is not None:
            sess.notes = clean_text(notes)
        if quotes or payload.get('quotes') is not None:
            sess.notable_quotes = quotes

        for kind, entries in sections:
            for entry in entries:
                values = {'description': clean_text(entry['description'])}
                if 'type' in entry:
                    values['type'] = entry['type']
                entity = upsert_entity(session, kind, sess.campaign_id, entry['name'], values)
                if kind.session_relation is not None:
                    _link(getattr(sess, kind.session_relation), entity)
        session.commit()
    except Exception:
        session.rollback()
        raise

    current_app.logger.info('Enhanced session %s with %d quotes and %d wiki updates',
                            session_id, len(quotes), sum(len(e) for _, e in sections))
    return {
        'success': True,
        'enhancedRecap': sess.recap,
        'outline': sess.outline,
        'notes': sess.notes,
        'quotes': sess.notable_quotes or [],
    }
