"""Input coercion shared by the PATCH handlers and the AI upserts.

Model output and browser forms both send numbers as strings, blanks, or
nonsense like "about 12". Numeric columns only ever receive an int or None.
"""

from smart_wiki.errors import ValidationError
from smart_wiki.kinds import KIND_CONFIG
from smart_wiki.models import ABILITY_SCORES

# JSON key -> model attribute, per entity kind
CHARACTER_TEXT_FIELDS = {
    'name': 'name',
    'type': 'type',
    'description': 'description',
    'species': 'species',
    'class': 'char_class',
    'status': 'status',
}
CHARACTER_INT_FIELDS = {'level': 'level', 'hp': 'hp', 'ac': 'ac'}
CHARACTER_INT_FIELDS.update({stat: stat for stat in ABILITY_SCORES})

LOCATION_TEXT_FIELDS = {
    'name': 'name',
    'type': 'type',
    'description': 'description',
    'foundingYear': 'founding_year',
}

ORGANIZATION_TEXT_FIELDS = {
    'name': 'name',
    'type': 'type',
    'description': 'description',
    'status': 'status',
    'founding': 'founding',
}

ITEM_TEXT_FIELDS = {
    'name': 'name',
    'type': 'type',
    'rarity': 'rarity',
    'description': 'description',
}

LORE_TEXT_FIELDS = {
    'title': 'title',
    'type': 'type',
    'tag': 'tag',
    'description': 'description',
}

SESSION_TEXT_FIELDS = {
    'title': 'title',
    'chapterTitle': 'chapter_title',
    'recap': 'recap',
    'outline': 'outline',
    'notes': 'notes',
}

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def to_int(value):
    """Coerce a loosely-typed number to int, or None if it isn't one.

    >>> to_int('14'), to_int(15.0), to_int('12 HP'), to_int(True), to_int('')
    (14, 15, None, None, None)
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if value.is_integer() else None
    elif isinstance(value, str):
        number = _parse_int(value.strip())
    else:
        return None
    # INTEGER columns are signed 64-bit
    if number is None or not INT_MIN <= number <= INT_MAX:
        return None
    return number


def _parse_int(text):
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def clean_text(value):
    """Strip strings; blank strings become None. Non-strings are stringified."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def apply_fields(entity, data, text_fields, int_fields=None, skip_missing=True):
    """Copy values from a JSON dict onto a model.

    With skip_missing=True (PATCH semantics and AI updates) a key that is
    absent from data is left alone. Returns the list of attributes written.
    """
    written = []
    for key, attr in text_fields.items():
        if key not in data and skip_missing:
            continue
        setattr(entity, attr, clean_text(data.get(key)))
        written.append(attr)
    for key, attr in (int_fields or {}).items():
        if key not in data and skip_missing:
            continue
        setattr(entity, attr, to_int(data.get(key)))
        written.append(attr)
    return written


def check_rename(session, kind, entity, data):
    """Reject a PATCH that blanks the name or renames onto a taken name.

    `kind` is an EntityKind; its name field ('name' or 'title') is the key
    looked up in data.
    """
    name_field = KIND_CONFIG[kind]['name_field']
    if name_field not in data:
        return
    new_name = clean_text(data.get(name_field))
    if not new_name:
        raise ValidationError(f'{kind.value} {name_field} is required.')
    if new_name == getattr(entity, name_field):
        return
    clash = (session.query(kind.model)
             .filter(kind.name_column == new_name,
                     kind.model.campaign_id == entity.campaign_id,
                     kind.model.id != entity.id)
             .first())
    if clash is not None:
        raise ValidationError(f'{kind.value} "{new_name}" already exists in this campaign.')


def resolve_ref(session, model, value, campaign_id, field):
    """Turn an id from a request body into a row of the same campaign.

    None (JSON null) means "disconnect" and returns None.
    """
    if value is None:
        return None
    ref_id = to_int(value)
    entity = session.get(model, ref_id) if ref_id is not None else None
    if entity is None or entity.campaign_id != campaign_id:
        raise ValidationError(f'{field}: no such {model.__name__.lower()} in this campaign.')
    return entity
