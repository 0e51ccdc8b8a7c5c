"""Parsers for curated session notes pasted in by the GM.

The notes come from a note-taking service and follow two loose formats:

Quotes, one or more per line:
    "I never liked that horse." (Meek, after the stable burned down)

Notes, grouped under upper-case section headers with bulleted entries:
    NPCS:
    - Thalia Brightwater: Harbourmaster, owes the party a favour
    ITEMS:
    - Rusted Key: Opens something under the lighthouse
"""

import re

QUOTE_RE = re.compile(r'"([^"]+)"\s*\(([^)]+)\)')

SECTION_RE = re.compile(r'^(NPCS|PLAYER CHARACTERS|ITEMS|LOCATIONS|FACTIONS|QUESTS):$', re.IGNORECASE)

# Possessive suffix on a speaker name: "Meek's" -> "Meek"
_POSSESSIVE_RE = re.compile(r"['’]s?$")


def parse_quotes(raw_text):
    """Return a list of {'quote', 'speaker', 'context'} dicts.

    The speaker is guessed from the first word of the parenthesised context
    when it is capitalised; otherwise it is 'Unknown'.
    """
    quotes = []
    for match in QUOTE_RE.finditer(raw_text or ''):
        quote_text = match.group(1).strip()
        context = match.group(2).strip()

        speaker = 'Unknown'
        first_word = context.split(' ')[0].rstrip(',.;:!?') if context else ''
        if first_word[:1].isupper():
            speaker = _POSSESSIVE_RE.sub('', first_word) or 'Unknown'

        quotes.append({'quote': quote_text, 'speaker': speaker, 'context': context})
    return quotes


def parse_notes(raw_text):
    """Split sectioned notes into wiki updates.

    Returns a dict with 'characters', 'items', 'locations' and
    'organizations' lists. Characters carry type 'NPC' or 'PC'. Quests have no
    wiki page and are dropped, as are bullets without a "Name: description"
    separator and bullets before the first header.
    """
    data = {
        'characters': [],
        'items': [],
        'locations': [],
        'organizations': [],
    }

    category = None
    for line in (raw_text or '').split('\n'):
        stripped = line.strip()
        if not stripped:
            continue

        header = SECTION_RE.match(stripped)
        if header:
            category = header.group(1).upper()
            continue

        if not stripped.startswith('-') or category is None:
            continue

        content = stripped[1:].strip()
        name, sep, description = content.partition(':')
        name = name.strip()
        if not sep or not name:
            continue
        entry = {'name': name, 'description': description.strip()}

        if category == 'NPCS':
            data['characters'].append(dict(entry, type='NPC'))
        elif category == 'PLAYER CHARACTERS':
            data['characters'].append(dict(entry, type='PC'))
        elif category == 'ITEMS':
            data['items'].append(entry)
        elif category == 'LOCATIONS':
            data['locations'].append(entry)
        elif category == 'FACTIONS':
            data['organizations'].append(entry)

    return data
