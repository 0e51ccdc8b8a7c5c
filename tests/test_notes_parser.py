from smart_wiki.notes_parser import parse_notes, parse_quotes


def test_parse_quotes_speaker_heuristics():
    text = ('"Run!" (Meek\'s last words before the bridge fell)\n'
            '"Who goes there?" (a guard at the gate) "Nobody." (Thalia, lying)')
    quotes = parse_quotes(text)
    assert [q['speaker'] for q in quotes] == ['Meek', 'Unknown', 'Thalia']
    assert quotes[1] == {'quote': 'Who goes there?', 'speaker': 'Unknown',
                         'context': 'a guard at the gate'}


def test_parse_quotes_ignores_lines_without_context():
    assert parse_quotes('"Just a quote with no context"') == []
    assert parse_quotes('') == []


def test_parse_notes_sections():
    text = """
- Stray bullet before any header: ignored
NPCS:
- Thalia Brightwater: Harbourmaster: owes a favour
- No separator here
Player Characters:
- Meek: Rogue
FACTIONS:
- Dockers Guild: Runs the harbour
LOCATIONS:
- Saltmere: Harbor town
QUESTS:
- Find the smuggler: open
"""
    data = parse_notes(text)
    assert data['characters'] == [
        {'name': 'Thalia Brightwater', 'description': 'Harbourmaster: owes a favour', 'type': 'NPC'},
        {'name': 'Meek', 'description': 'Rogue', 'type': 'PC'},
    ]
    assert data['organizations'] == [{'name': 'Dockers Guild', 'description': 'Runs the harbour'}]
    assert data['locations'] == [{'name': 'Saltmere', 'description': 'Harbor town'}]
    assert data['items'] == []
