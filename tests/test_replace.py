import pytest

from smart_wiki import db
from smart_wiki.errors import NotFoundError, ValidationError
from smart_wiki.maintenance import replace_text
from smart_wiki.models import Campaign, Character, Item, Location, SessionSummary


def test_replace_renames_exact_names_and_rewrites_text(seed):
    count = replace_text(db.session, seed['campaign_id'], 'Bob', 'Bobby')

    bob = db.session.get(Character, seed['bob_id'])
    assert bob.name == 'Bobby'
    assert bob.description == 'Dockmaster. Bobby owes the party.'
    assert db.session.get(Location, seed['harbor_id']).description == \
        'A harbor town where Bobby runs the docks.'
    assert db.session.get(Item, seed['key_id']).description == 'Bobby found it.'

    first = db.session.get(SessionSummary, seed['first_session_id'])
    assert first.recap == 'The party met Bobby at the docks.'
    assert first.notable_quotes[0]['quote'] == 'Bobby knows.'

    # name, 3 descriptions, 1 recap, 1 quotes blob
    assert count == 6


def test_replace_is_case_sensitive(seed):
    bob = db.session.get(Character, seed['bob_id'])
    bob.description = 'bob, not Bob'
    db.session.commit()

    replace_text(db.session, seed['campaign_id'], 'Bob', 'Rob')

    assert db.session.get(Character, seed['bob_id']).description == 'bob, not Rob'


def test_replace_only_renames_on_exact_match(seed):
    replace_text(db.session, seed['campaign_id'], 'Old', 'Ancient')
    assert db.session.get(Location, seed['lighthouse_id']).name == 'Old Lighthouse'


def test_replace_leaves_other_campaigns_alone(seed):
    replace_text(db.session, seed['campaign_id'], 'Bob', 'Bobby')
    stranger = db.session.get(Character, seed['stranger_id'])
    assert stranger.name == 'Bob'
    assert stranger.description == 'A different Bob.'


def test_replace_refuses_to_rename_onto_existing_name(seed):
    with pytest.raises(ValidationError, match='already exists'):
        replace_text(db.session, seed['campaign_id'], 'Bob', 'Robert')
    # Nothing was written
    assert db.session.get(Character, seed['bob_id']).description == 'Dockmaster. Bob owes the party.'


def test_replace_skips_quotes_that_would_become_invalid_json(seed):
    first = db.session.get(SessionSummary, seed['first_session_id'])
    first.notable_quotes = [{'quote': 'Hello there', 'speaker': 'Meek', 'context': None}]
    db.session.commit()

    count = replace_text(db.session, seed['campaign_id'], 'Hello', 'Hel"lo')

    assert count == 0
    first = db.session.get(SessionSummary, seed['first_session_id'])
    assert first.notable_quotes[0]['quote'] == 'Hello there'


def test_replace_counts_zero_when_nothing_matches(seed):
    assert replace_text(db.session, seed['campaign_id'], 'Zebra', 'Horse') == 0


def test_replace_validation(seed):
    with pytest.raises(ValidationError):
        replace_text(db.session, seed['campaign_id'], '', 'x')
    with pytest.raises(ValidationError):
        replace_text(db.session, seed['campaign_id'], 'Bob', 'Bob')
    with pytest.raises(NotFoundError):
        replace_text(db.session, 999, 'Bob', 'Bobby')


def test_replace_endpoint(client, seed):
    resp = client.post(f"/api/campaigns/{seed['campaign_id']}/replace",
                       json={'find': 'Saltmere', 'replace': 'Saltmarsh'})
    assert resp.status_code == 200
    body = resp.get_json()
    # location name + Robert's description
    assert body['count'] == 2
    assert 'Saltmarsh' in body['message']


def test_replace_endpoint_requires_both_fields(client, seed):
    url = f"/api/campaigns/{seed['campaign_id']}/replace"
    assert client.post(url, json={'find': 'Bob'}).status_code == 400
    assert client.post(url, json={'find': '', 'replace': 'x'}).status_code == 400
    assert client.post(url, data='not json').status_code == 400
