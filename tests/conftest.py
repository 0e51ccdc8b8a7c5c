import pytest

from config import Config
from smart_wiki import create_app, db
from smart_wiki.models import (Campaign, Character, Location, Organization, Item, Lore,
                               SessionSummary)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    RATELIMIT_ENABLED = False
    AI_PROVIDER = 'gemini'
    GEMINI_API_KEY = 'test-key'
    MAX_TRANSCRIPT_CHARS = 2000


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def fake_ai(monkeypatch):
    """Replace the model call with canned responses; records every prompt."""
    calls = []

    class FakeAI:
        response = ''

        def __call__(self, system_prompt, messages, **kwargs):
            calls.append({'system': system_prompt, 'messages': messages, **kwargs})
            if isinstance(self.response, Exception):
                raise self.response
            return self.response

    fake = FakeAI()
    fake.calls = calls
    monkeypatch.setattr('smart_wiki.extraction.ai_chat', fake)
    return fake


@pytest.fixture()
def seed(app):
    """Two campaigns. The first has a duplicate character pair, an organization
    led by the duplicate and two sessions."""
    campaign = Campaign(name='Shattered Coast')
    other = Campaign(name='Other Table')
    db.session.add_all([campaign, other])
    db.session.flush()

    harbor = Location(campaign_id=campaign.id, name='Saltmere', type='city',
                      description='A harbor town where Bob runs the docks.')
    lighthouse = Location(campaign_id=campaign.id, name='Old Lighthouse')
    bob = Character(campaign_id=campaign.id, name='Bob', type='NPC',
                    description='Dockmaster. Bob owes the party.', origin=harbor)
    robert = Character(campaign_id=campaign.id, name='Robert', type='NPC',
                       description='A dockmaster of Saltmere.', level=3)
    meek = Character(campaign_id=campaign.id, name='Meek', type='PC')
    guild = Organization(campaign_id=campaign.id, name='Dockers Guild', leader=bob,
                         headquarters=harbor, members=[bob, meek])
    key = Item(campaign_id=campaign.id, name='Rusted Key', description='Bob found it.')
    plague = Lore(campaign_id=campaign.id, title='The Spellplague', description='Magic failed.')

    stranger = Character(campaign_id=other.id, name='Bob', description='A different Bob.')
    db.session.add_all([harbor, lighthouse, bob, robert, meek, guild, key, plague, stranger])
    db.session.flush()

    first = SessionSummary(campaign_id=campaign.id, session_number=1, title='Arrival',
                           recap='The party met Bob at the docks.',
                           notable_quotes=[{'quote': 'Bob knows.', 'speaker': 'Meek', 'context': None}],
                           characters_present=[bob, meek], locations_visited=[harbor])
    second = SessionSummary(campaign_id=campaign.id, session_number=2, title='The Key',
                            recap='Robert handed over the key.',
                            characters_present=[robert], items_found=[key])
    db.session.add_all([first, second])
    db.session.commit()

    return {
        'campaign_id': campaign.id,
        'other_id': other.id,
        'bob_id': bob.id,
        'robert_id': robert.id,
        'meek_id': meek.id,
        'harbor_id': harbor.id,
        'lighthouse_id': lighthouse.id,
        'guild_id': guild.id,
        'key_id': key.id,
        'lore_id': plague.id,
        'stranger_id': stranger.id,
        'first_session_id': first.id,
        'second_session_id': second.id,
    }
