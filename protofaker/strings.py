"""
Contextual string synthesis.

String values are picked from the field name alone. The lower-cased name is
tested against each category in order and the first match wins, so
"email_id" is an email and not a UUID. Names that match nothing get a
whimsical display name.
"""

from dataclasses import dataclass
from typing import Tuple

from .fake_source import FakeDataSource


@dataclass(frozen=True)
class StringCategory:
    """A string category and the name fragments that select it."""
    method: str
    contains: Tuple[str, ...] = ()
    exact: Tuple[str, ...] = ()

    def matches(self, lower_name: str) -> bool:
        if lower_name in self.exact:
            return True
        return any(fragment in lower_name for fragment in self.contains)


# Order matters.
STRING_CATEGORIES = (
    StringCategory('email', contains=('email', 'mail')),
    StringCategory('first_name', contains=('firstname', 'first_name')),
    StringCategory('last_name', contains=('lastname', 'last_name')),
    StringCategory('full_name',
                   contains=('fullname', 'full_name', 'username', 'displayname', 'display_name'),
                   exact=('name',)),
    StringCategory('phone_number', contains=('phone', 'mobile', 'tel', 'number')),
    StringCategory('street_address', contains=('address', 'street')),
    StringCategory('city', contains=('city',)),
    StringCategory('state', contains=('state', 'province')),
    StringCategory('country', contains=('country',)),
    StringCategory('postal_code', contains=('zip', 'postal')),
    StringCategory('url', contains=('url', 'website')),
    StringCategory('domain_name', contains=('domain',)),
    StringCategory('company', contains=('company', 'organization')),
    StringCategory('job_title', contains=('job', 'position', 'title', 'role')),
    StringCategory('uuid', contains=('id', 'uuid')),
    StringCategory('sentence', contains=('description', 'comment', 'note', 'message')),
    StringCategory('color_name', contains=('color', 'colour')),
)

DEFAULT_CATEGORY = 'funny_name'


def categorize(field_name: str) -> str:
    """Return the FakeDataSource method name used for a string field."""
    lower_name = field_name.lower()
    for category in STRING_CATEGORIES:
        if category.matches(lower_name):
            return category.method
    return DEFAULT_CATEGORY


def synthesize(field_name: str, source: FakeDataSource) -> str:
    """Generate a string value that fits the field name."""
    value = getattr(source, categorize(field_name))()
    if not value:
        # Never hand back an empty string
        value = source.funny_name()
    return value
