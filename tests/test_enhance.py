import pytest

from smart_wiki import db
from smart_wiki.errors import ValidationError
from smart_wiki.extraction import enhance_session
from smart_wiki.models import Character, Item, SessionSummary

NOTES = """NPCS:
- Thalia Brightwater: Harbourmaster, owes the party a favour
PLAYER CHARACTERS:
- Meek: Lost an eye
ITEMS:
- Rusted Key: Opens something under the lighthouse
QUESTS:
- Find the smuggler: nobody has a page for this
"""


def test_enhance_rewrites_storybook_and_applies_notes(app, seed, fake_ai):
    fake_ai.response = 'The improved chapter.'
    result = enhance_session(db.session, seed['first_session_id'], {
        'recap': 'Bob met the party. Meek lost an eye.',
        'outline': '1. Docks',
        'quotes': '"Mind the gap." (Meek, at the docks)',
        'notes': NOTES,
    })

    assert result['enhancedRecap'] == 'The improved chapter.'
    assert result['quotes'] == [{'quote': 'Mind the gap.', 'speaker': 'Meek',
                                 'context': 'Meek, at the docks'}]
    # The storybook draft and the curated notes both went to the model
    user_message = fake_ai.calls[0]['messages'][0]['content']
    assert 'The party met Bob at the docks.' in user_message
    assert 'Meek lost an eye.' in user_message

    sess = db.session.get(SessionSummary, seed['first_session_id'])
    assert sess.outline == '1. Docks'
    assert sorted(c.name for c in sess.characters_present) == ['Bob', 'Meek', 'Thalia Brightwater']
    assert [i.name for i in sess.items_found] == ['Rusted Key']

    thalia = Character.query.filter_by(name='Thalia Brightwater').one()
    assert thalia.type == 'NPC'
    meek = db.session.get(Character, seed['meek_id'])
    assert meek.description == 'Lost an eye'
    key = db.session.get(Item, seed['key_id'])
    assert key.description == 'Opens something under the lighthouse'


def test_enhance_without_storybook_uses_curated_recap(app, seed, fake_ai):
    sess = db.session.get(SessionSummary, seed['second_session_id'])
    sess.recap = None
    db.session.commit()

    result = enhance_session(db.session, seed['second_session_id'], {'recap': 'Curated recap.'})

    assert result['enhancedRecap'] == 'Curated recap.'
    assert fake_ai.calls == []


def test_enhance_keeps_storybook_when_model_returns_nothing(app, seed, fake_ai):
    fake_ai.response = ''
    result = enhance_session(db.session, seed['first_session_id'], {'recap': 'Curated.'})
    assert result['enhancedRecap'] == 'The party met Bob at the docks.'


def test_enhance_endpoint(client, seed, fake_ai):
    fake_ai.response = 'Better.'
    resp = client.post(f"/api/sessions/{seed['first_session_id']}/enhance",
                       json={'recap': 'Curated.'})
    assert resp.status_code == 200
    assert resp.get_json()['success'] is True

    resp = client.post('/api/sessions/999/enhance', json={'recap': 'Curated.'})
    assert resp.status_code == 404


@pytest.mark.parametrize('payload', [
    {'notes': ['NPCS:', '- Thalia: Harbourmaster']},
    {'quotes': ['"Hi" (Bob)']},
    {'recap': 42},
    {'outline': {'1': 'Docks'}},
    {'currentStorybook': ['draft']},
])
def test_enhance_rejects_non_text_fields(app, seed, fake_ai, payload):
    with pytest.raises(ValidationError, match='must be a string'):
        enhance_session(db.session, seed['first_session_id'], payload)
    assert fake_ai.calls == []


def test_enhance_endpoint_rejects_non_text_fields(app, client, seed, fake_ai):
    url = f"/api/sessions/{seed['first_session_id']}/enhance"
    resp = client.post(url, json={'quotes': ['"Hi" (Bob)'], 'notes': ['x']})
    assert resp.status_code == 400

    # Bad input is reported even when AI is switched off
    app.config['AI_PROVIDER'] = 'none'
    assert client.post(url, json={'notes': 7}).status_code == 400
    assert client.post(url, json={'notes': 'NPCS:'}).status_code == 403
