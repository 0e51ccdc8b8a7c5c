from smart_wiki import db
from smart_wiki.models import AppSetting, Character, Organization


def test_list_and_get_campaigns(client, seed):
    resp = client.get('/api/campaigns')
    assert [c['name'] for c in resp.get_json()] == ['Other Table', 'Shattered Coast']

    resp = client.get(f"/api/campaigns/{seed['campaign_id']}")
    body = resp.get_json()
    assert [s['sessionNumber'] for s in body['sessions']] == [1, 2]

    assert client.get('/api/campaigns/999').status_code == 404


def test_entity_names_sorted_per_kind(client, seed):
    url = f"/api/campaigns/{seed['campaign_id']}/entities"
    assert client.get(url, query_string={'type': 'Character'}).get_json() == ['Bob', 'Meek', 'Robert']
    assert client.get(url, query_string={'type': 'Lore'}).get_json() == ['The Spellplague']
    assert client.get(url, query_string={'type': 'Quest'}).status_code == 400


def test_pick_lists(client, seed):
    body = client.get(f"/api/campaigns/{seed['campaign_id']}/lists").get_json()
    assert [c['name'] for c in body['characters']] == ['Bob', 'Meek', 'Robert']
    assert [l['name'] for l in body['locations']] == ['Old Lighthouse', 'Saltmere']


def test_list_kind_rows(client, seed):
    body = client.get(f"/api/campaigns/{seed['campaign_id']}/organizations").get_json()
    guild = body['organizations'][0]
    assert guild['leader'] == {'id': seed['bob_id'], 'name': 'Bob'}
    assert guild['headquarters']['name'] == 'Saltmere'
    assert client.get(f"/api/campaigns/{seed['campaign_id']}/dragons").status_code == 400


def test_patch_character_is_partial(client, seed):
    resp = client.patch(f"/api/characters/{seed['robert_id']}",
                        json={'status': 'missing', 'hp': '22', 'originId': seed['lighthouse_id']})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['status'] == 'missing'
    assert body['hp'] == 22
    assert body['level'] == 3
    assert body['originId'] == seed['lighthouse_id']
    assert body['description'] == 'A dockmaster of Saltmere.'


def test_patch_character_rejects_bad_names_and_refs(client, seed):
    url = f"/api/characters/{seed['robert_id']}"
    assert client.patch(url, json={'name': '  '}).status_code == 400
    assert client.patch(url, json={'name': 'Bob'}).status_code == 400
    # Location from another campaign does not exist there
    assert client.patch(url, json={'originId': 999}).status_code == 400
    assert client.patch('/api/characters/999', json={'name': 'X'}).status_code == 404
    assert db.session.get(Character, seed['robert_id']).name == 'Robert'


def test_patch_character_rename(client, seed):
    resp = client.patch(f"/api/characters/{seed['robert_id']}", json={'name': 'Rob'})
    assert resp.get_json()['name'] == 'Rob'


def test_patch_organization_relations(client, seed):
    url = f"/api/organizations/{seed['guild_id']}"
    resp = client.patch(url, json={'leaderId': None, 'headquartersId': seed['lighthouse_id'],
                                   'memberIds': [seed['robert_id']]})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['leaderId'] is None
    assert body['headquarters']['name'] == 'Old Lighthouse'
    assert [m['name'] for m in body['members']] == ['Robert']

    resp = client.patch(url, json={'memberIds': [seed['stranger_id']]})
    assert resp.status_code == 400
    guild = db.session.get(Organization, seed['guild_id'])
    assert [m.name for m in guild.members] == ['Robert']


def test_patch_other_kinds(client, seed):
    resp = client.patch(f"/api/locations/{seed['harbor_id']}", json={'foundingYear': '1204 DR'})
    assert resp.get_json()['foundingYear'] == '1204 DR'

    resp = client.patch(f"/api/items/{seed['key_id']}", json={'rarity': 'rare'})
    assert resp.get_json()['rarity'] == 'rare'

    resp = client.patch(f"/api/lore/{seed['lore_id']}", json={'title': '', 'tag': 'magic'})
    assert resp.status_code == 400

    resp = client.patch(f"/api/lore/{seed['lore_id']}", json={'tag': 'magic'})
    assert resp.get_json()['tag'] == 'magic'


def test_get_location_lists_origins_and_headquarters(client, seed):
    body = client.get(f"/api/locations/{seed['harbor_id']}").get_json()
    assert [c['name'] for c in body['originCharacters']] == ['Bob']
    assert [o['name'] for o in body['hqOrganizations']] == ['Dockers Guild']


def test_get_and_patch_session(client, seed):
    url = f"/api/sessions/{seed['second_session_id']}"
    body = client.get(url).get_json()
    assert [c['name'] for c in body['charactersPresent']] == ['Robert']

    resp = client.patch(url, json={'chapterTitle': 'Chapter Two', 'notes': ''})
    body = resp.get_json()
    assert body['chapterTitle'] == 'Chapter Two'
    assert body['notes'] is None
    assert body['recap'] == 'Robert handed over the key.'


def test_unknown_api_route_returns_json(client):
    resp = client.get('/api/nothing-here')
    assert resp.status_code == 404
    assert resp.get_json() == {'error': 'Not found.'}


def test_settings_masks_keys_and_saves_overrides(client, app):
    resp = client.post('/api/settings', json={'ai_provider': 'anthropic',
                                              'anthropic_api_key': 'sk-ant-1234567890'})
    assert resp.status_code == 200
    assert AppSetting.get('ai_provider') == 'anthropic'

    body = client.get('/api/settings').get_json()
    assert body['provider'] == 'anthropic'
    assert body['anthropic_api_key'] == '****7890'
    assert body['ai_enabled'] is True

    assert client.post('/api/settings', json={'ai_provider': 'openai'}).status_code == 400


def test_pages_render(client, seed):
    assert b'Shattered Coast' in client.get('/').data
    resp = client.get(f"/campaign/{seed['campaign_id']}")
    assert b'The party met Bob at the docks.' in resp.data
    resp = client.get(f"/campaign/{seed['campaign_id']}/lore")
    assert b'The Spellplague' in resp.data
    resp = client.get(f"/campaign/{seed['campaign_id']}/session/{seed['first_session_id']}")
    assert b'Bob knows.' in resp.data

    assert client.get('/campaign/999').status_code == 404
    assert client.get(f"/campaign/{seed['other_id']}/session/{seed['first_session_id']}").status_code == 404
