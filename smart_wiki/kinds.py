"""The closed set of mergeable/listable entity kinds.

Every place that needs to treat "some entity kind" generically goes through
KIND_CONFIG rather than looking up model classes by name.
"""

import enum

from smart_wiki.errors import ValidationError
from smart_wiki.models import Character, Location, Organization, Item, Lore


class EntityKind(enum.Enum):
    CHARACTER = 'Character'
    LOCATION = 'Location'
    ORGANIZATION = 'Organization'
    ITEM = 'Item'
    LORE = 'Lore'

    @classmethod
    def parse(cls, value):
        """Accept 'Character', 'character', 'characters'; raise ValidationError otherwise."""
        if isinstance(value, cls):
            return value
        key = value.strip().lower() if isinstance(value, str) else ''
        for kind in cls:
            if key in (kind.value.lower(), KIND_CONFIG[kind]['plural']):
                return kind
        raise ValidationError(f'Invalid type: {value}')

    @property
    def model(self):
        return KIND_CONFIG[self]['model']

    @property
    def name_column(self):
        return getattr(self.model, KIND_CONFIG[self]['name_field'])

    @property
    def session_relation(self):
        """Attribute name of the SessionSummary relation for this kind, or None."""
        return KIND_CONFIG[self]['session_relation']


# model: the ORM class
# name_field: the unique-per-campaign name column
# session_relation: SessionSummary many-to-many attribute (None = not tracked per session)
# plural: URL segment used by the list endpoints and pages
KIND_CONFIG = {
    EntityKind.CHARACTER: {
        'model': Character,
        'name_field': 'name',
        'session_relation': 'characters_present',
        'plural': 'characters',
        'label': 'Characters',
    },
    EntityKind.LOCATION: {
        'model': Location,
        'name_field': 'name',
        'session_relation': 'locations_visited',
        'plural': 'locations',
        'label': 'Locations',
    },
    EntityKind.ORGANIZATION: {
        'model': Organization,
        'name_field': 'name',
        'session_relation': None,
        'plural': 'organizations',
        'label': 'Organizations',
    },
    EntityKind.ITEM: {
        'model': Item,
        'name_field': 'name',
        'session_relation': 'items_found',
        'plural': 'items',
        'label': 'Items',
    },
    EntityKind.LORE: {
        'model': Lore,
        'name_field': 'title',
        'session_relation': 'lore_entries',
        'plural': 'lore',
        'label': 'Lore',
    },
}
