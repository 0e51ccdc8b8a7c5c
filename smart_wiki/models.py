from smart_wiki import db
from datetime import datetime

# Association table: Organization ↔ Character (many-to-many membership).
# Leadership is a separate single FK on Organization.
organization_members = db.Table('organization_members',
    db.Column('organization_id', db.Integer, db.ForeignKey('organizations.id'), primary_key=True),
    db.Column('character_id', db.Integer, db.ForeignKey('characters.id'), primary_key=True)
)

# Association tables for SessionSummary (entities "present" in a session)
session_character_link = db.Table('session_character_link',
    db.Column('session_id', db.Integer, db.ForeignKey('session_summaries.id'), primary_key=True),
    db.Column('character_id', db.Integer, db.ForeignKey('characters.id'), primary_key=True)
)

session_location_link = db.Table('session_location_link',
    db.Column('session_id', db.Integer, db.ForeignKey('session_summaries.id'), primary_key=True),
    db.Column('location_id', db.Integer, db.ForeignKey('locations.id'), primary_key=True)
)

session_item_link = db.Table('session_item_link',
    db.Column('session_id', db.Integer, db.ForeignKey('session_summaries.id'), primary_key=True),
    db.Column('item_id', db.Integer, db.ForeignKey('items.id'), primary_key=True)
)

session_lore_link = db.Table('session_lore_link',
    db.Column('session_id', db.Integer, db.ForeignKey('session_summaries.id'), primary_key=True),
    db.Column('lore_id', db.Integer, db.ForeignKey('lore.id'), primary_key=True)
)

# D&D ability scores, stored as nullable integers on Character
ABILITY_SCORES = ('strength', 'dexterity', 'constitution', 'intelligence', 'wisdom', 'charisma')


def _ref(entity):
    """Small {id, name} dict for a related row, or None."""
    if entity is None:
        return None
    return {'id': entity.id, 'name': entity.name}


class Campaign(db.Model):
    __tablename__ = 'campaigns'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Campaign {self.name}>'


class Character(db.Model):
    __tablename__ = 'characters'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(20))               # NPC / PC
    description = db.Column(db.Text)
    species = db.Column(db.String(100))
    char_class = db.Column('class', db.String(100))
    level = db.Column(db.Integer)
    hp = db.Column(db.Integer)
    ac = db.Column(db.Integer)
    status = db.Column(db.String(50))             # alive / dead / missing / unknown (free text)

    strength = db.Column(db.Integer)
    dexterity = db.Column(db.Integer)
    constitution = db.Column(db.Integer)
    intelligence = db.Column(db.Integer)
    wisdom = db.Column(db.Integer)
    charisma = db.Column(db.Integer)

    # Where the character comes from
    origin_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)

    campaign = db.relationship('Campaign', backref='characters')
    origin = db.relationship('Location', backref='origin_characters', foreign_keys=[origin_id])

    __table_args__ = (db.UniqueConstraint('name', 'campaign_id', name='uq_character_name_campaign'),)

    def to_dict(self):
        data = {
            'id': self.id,
            'campaignId': self.campaign_id,
            'name': self.name,
            'type': self.type,
            'description': self.description,
            'species': self.species,
            'class': self.char_class,
            'level': self.level,
            'hp': self.hp,
            'ac': self.ac,
            'status': self.status,
            'originId': self.origin_id,
            'organizations': [_ref(o) for o in self.organizations],
        }
        for stat in ABILITY_SCORES:
            data[stat] = getattr(self, stat)
        return data

    def __repr__(self):
        return f'<Character {self.name}>'


class Location(db.Model):
    __tablename__ = 'locations'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(100))              # city / dungeon / tavern / etc (free text)
    description = db.Column(db.Text)
    founding_year = db.Column(db.String(100))     # in-world calendar, free text

    campaign = db.relationship('Campaign', backref='locations')

    __table_args__ = (db.UniqueConstraint('name', 'campaign_id', name='uq_location_name_campaign'),)

    def to_dict(self):
        return {
            'id': self.id,
            'campaignId': self.campaign_id,
            'name': self.name,
            'type': self.type,
            'description': self.description,
            'foundingYear': self.founding_year,
        }

    def __repr__(self):
        return f'<Location {self.name}>'


class Organization(db.Model):
    """A faction, guild, cult or any other named group within a campaign."""
    __tablename__ = 'organizations'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(100))
    description = db.Column(db.Text)
    status = db.Column(db.String(50))
    founding = db.Column(db.String(200))

    leader_id = db.Column(db.Integer, db.ForeignKey('characters.id'), nullable=True)
    headquarters_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)

    campaign = db.relationship('Campaign', backref='organizations')
    leader = db.relationship('Character', backref='led_organizations', foreign_keys=[leader_id])
    headquarters = db.relationship('Location', backref='hq_organizations',
                                   foreign_keys=[headquarters_id])
    members = db.relationship('Character', secondary=organization_members,
                              backref='organizations')

    __table_args__ = (db.UniqueConstraint('name', 'campaign_id', name='uq_organization_name_campaign'),)

    def to_dict(self):
        return {
            'id': self.id,
            'campaignId': self.campaign_id,
            'name': self.name,
            'type': self.type,
            'description': self.description,
            'status': self.status,
            'founding': self.founding,
            'leaderId': self.leader_id,
            'headquartersId': self.headquarters_id,
            'leader': _ref(self.leader),
            'headquarters': _ref(self.headquarters),
            'members': [_ref(m) for m in self.members],
        }

    def __repr__(self):
        return f'<Organization {self.name}>'


class Item(db.Model):
    __tablename__ = 'items'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(100))      # weapon / armor / consumable / misc (free text)
    rarity = db.Column(db.String(50))     # common / uncommon / rare / very rare / legendary / unique
    description = db.Column(db.Text)

    campaign = db.relationship('Campaign', backref='items')

    __table_args__ = (db.UniqueConstraint('name', 'campaign_id', name='uq_item_name_campaign'),)

    def to_dict(self):
        return {
            'id': self.id,
            'campaignId': self.campaign_id,
            'name': self.name,
            'type': self.type,
            'rarity': self.rarity,
            'description': self.description,
        }

    def __repr__(self):
        return f'<Item {self.name}>'


class Lore(db.Model):
    """A piece of world knowledge learned during play. Keyed by title, not name."""
    __tablename__ = 'lore'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(100))      # history / religion / magic / etc (free text)
    tag = db.Column(db.String(100))
    description = db.Column(db.Text)

    campaign = db.relationship('Campaign', backref='lore_entries')

    __table_args__ = (db.UniqueConstraint('title', 'campaign_id', name='uq_lore_title_campaign'),)

    @property
    def name(self):
        return self.title

    def to_dict(self):
        return {
            'id': self.id,
            'campaignId': self.campaign_id,
            'title': self.title,
            'type': self.type,
            'tag': self.tag,
            'description': self.description,
        }

    def __repr__(self):
        return f'<Lore {self.title}>'


class SessionSummary(db.Model):
    """One played session: the storybook recap, outline, notes and who/what showed up."""
    __tablename__ = 'session_summaries'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False)
    session_number = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(200))
    chapter_title = db.Column(db.String(200))
    recap = db.Column(db.Text)             # narrative storybook text (Markdown)
    outline = db.Column(db.Text)
    notes = db.Column(db.Text)
    notable_quotes = db.Column(db.JSON)    # [{"quote": ..., "speaker": ..., "context": ...}]
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    campaign = db.relationship('Campaign', backref=db.backref(
        'sessions', order_by='SessionSummary.session_number'))
    characters_present = db.relationship('Character', secondary=session_character_link,
                                         backref='sessions')
    locations_visited = db.relationship('Location', secondary=session_location_link,
                                        backref='sessions')
    items_found = db.relationship('Item', secondary=session_item_link, backref='sessions')
    lore_entries = db.relationship('Lore', secondary=session_lore_link, backref='sessions')

    __table_args__ = (db.UniqueConstraint('session_number', 'campaign_id',
                                          name='uq_session_number_campaign'),)

    def to_dict(self, include_links=True):
        data = {
            'id': self.id,
            'campaignId': self.campaign_id,
            'sessionNumber': self.session_number,
            'title': self.title,
            'chapterTitle': self.chapter_title,
            'recap': self.recap,
            'outline': self.outline,
            'notes': self.notes,
            'notableQuotes': self.notable_quotes or [],
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if include_links:
            data['charactersPresent'] = [_ref(c) for c in self.characters_present]
            data['locationsVisited'] = [_ref(l) for l in self.locations_visited]
            data['itemsFound'] = [_ref(i) for i in self.items_found]
            data['loreEntries'] = [_ref(l) for l in self.lore_entries]
        return data

    def __repr__(self):
        return f'<SessionSummary {self.session_number}: {self.title}>'


def next_session_number(session, campaign_id):
    """Return max(session_number) + 1 for the campaign (1 for the first session)."""
    max_num = session.query(db.func.max(SessionSummary.session_number)).filter(
        SessionSummary.campaign_id == campaign_id
    ).scalar() or 0
    return max_num + 1


class AppSetting(db.Model):
    """Key-value store for application settings (AI provider, keys, models).

    Settings are stored in the database so they can be changed from the
    browser without editing .env files or restarting the app.
    """
    __tablename__ = 'app_settings'

    key = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.Text, nullable=True)

    @staticmethod
    def get(key, default=None):
        """Get a setting value by key, returning default if not found."""
        row = db.session.get(AppSetting, key)
        if row is None:
            return default
        return row.value

    @staticmethod
    def set(key, value):
        """Set a setting value, creating or updating the row. Caller commits."""
        row = db.session.get(AppSetting, key)
        if row:
            row.value = value
        else:
            row = AppSetting(key=key, value=value)
            db.session.add(row)

    @staticmethod
    def get_all_dict():
        """Return all settings as a plain dict."""
        return {s.key: s.value for s in AppSetting.query.all()}

    def __repr__(self):
        return f'<AppSetting {self.key}>'
