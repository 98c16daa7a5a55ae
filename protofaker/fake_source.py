"""
Fake data source backed by Faker.

Every random draw the generator makes goes through one FakeDataSource, so
seeding it makes generation reproducible. Nested generators share their
parent's source.
"""

import logging
import math
import random
from typing import Callable, Optional

from faker import Faker
from faker.providers import DynamicProvider

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = 'en_US'

# Public domain lines used for bytes fields.
HAMLET_QUOTES = [
    "To be, or not to be: that is the question.",
    "Brevity is the soul of wit.",
    "There is nothing either good or bad, but thinking makes it so.",
    "Something is rotten in the state of Denmark.",
    "The lady doth protest too much, methinks.",
    "Though this be madness, yet there is method in't.",
    "Neither a borrower nor a lender be.",
    "This above all: to thine own self be true.",
    "One may smile, and smile, and be a villain.",
    "The rest is silence.",
    "Frailty, thy name is woman!",
    "What a piece of work is a man!",
    "Give every man thy ear, but few thy voice.",
    "The play's the thing wherein I'll catch the conscience of the king.",
    "I must be cruel only to be kind.",
    "There are more things in heaven and earth, Horatio, than are dreamt of in your philosophy.",
]

FUNNY_NAMES = [
    "Anita Break",
    "Barb Dwyer",
    "Ella Vator",
    "Justin Time",
    "Paige Turner",
    "Robin Banks",
    "Sal Monella",
    "Stan Dupp",
    "Sue Flay",
    "Terry Aki",
    "Will Power",
    "Chris P. Bacon",
    "Al Beback",
    "Ima Pigg",
    "Lou Pole",
    "Hugh Mungus",
]


class FakeDataSource:
    """Realistic scalars, category strings and byte payloads."""

    def __init__(self, locale: Optional[str] = None, seed: Optional[int] = None):
        """
        Initialize the data source.

        Args:
            locale: Faker locale, defaults to en_US
            seed: Seed for reproducible output
        """
        self.faker = Faker(locale or DEFAULT_LOCALE)
        # Providers draw from self.faker so seeding reaches them
        self.faker.add_provider(DynamicProvider(
            provider_name='hamlet_quote', elements=HAMLET_QUOTES, generator=self.faker))
        self.faker.add_provider(DynamicProvider(
            provider_name='funny_name', elements=FUNNY_NAMES, generator=self.faker))
        self._fallback: Optional[Faker] = None
        if seed is not None:
            self.seed(seed)

    def seed(self, seed: int) -> None:
        """Reseed this source without touching other Faker instances."""
        self.faker.seed_instance(seed)

    @property
    def random(self) -> random.Random:
        """The random.Random instance behind all draws."""
        return self.faker.random

    def _provider(self, name: str) -> Callable[[], str]:
        """
        Look up a Faker provider method for the configured locale.

        Locales without the provider (e.g. "state" outside the US) use the
        en_US provider, drawing from the same random instance.
        """
        try:
            return getattr(self.faker, name)
        except AttributeError:
            pass

        if self._fallback is None:
            logger.debug("Locale %s has no %s provider, using %s",
                         self.faker.locales[0], name, DEFAULT_LOCALE)
            self._fallback = Faker(DEFAULT_LOCALE)
        self._fallback.random = self.random
        return getattr(self._fallback, name)

    # ----- Scalars -----
    def random_double(self, low: float, high: float, decimals: int = 2) -> float:
        """Return a value in [low, high) rounded to the given number of decimals."""
        scale = 10 ** decimals
        value = round(self.random.uniform(low, high), decimals)
        # Rounding or uniform() itself may reach high
        return value if value < high else (math.ceil(high * scale) - 1) / scale

    def random_int(self, low: int, high: int) -> int:
        """Return an integer in [low, high), high exclusive."""
        return self.random.randrange(low, high)

    def random_index(self, low: int, high: int) -> int:
        """Return an integer in [low, high], high inclusive."""
        return self.random.randint(low, high)

    def random_bool(self) -> bool:
        return self.faker.pybool()

    # ----- Category strings -----
    def email(self) -> str:
        return self._provider('email')()

    def first_name(self) -> str:
        return self._provider('first_name')()

    def last_name(self) -> str:
        return self._provider('last_name')()

    def full_name(self) -> str:
        return self._provider('name')()

    def phone_number(self) -> str:
        return self._provider('phone_number')()

    def street_address(self) -> str:
        return self._provider('street_address')()

    def city(self) -> str:
        return self._provider('city')()

    def state(self) -> str:
        return self._provider('state')()

    def country(self) -> str:
        return self._provider('country')()

    def postal_code(self) -> str:
        return self._provider('postcode')()

    def url(self) -> str:
        return self._provider('url')()

    def domain_name(self) -> str:
        return self._provider('domain_name')()

    def company(self) -> str:
        return self._provider('company')()

    def job_title(self) -> str:
        return self._provider('job')()

    def uuid(self) -> str:
        return self.faker.uuid4()

    def sentence(self) -> str:
        return self._provider('sentence')()

    def color_name(self) -> str:
        return self._provider('color_name')()

    def funny_name(self) -> str:
        return self.faker.funny_name()

    # ----- Payloads -----
    def quote_bytes(self) -> bytes:
        """A literary quotation as UTF-8 bytes."""
        return self.faker.hamlet_quote().encode('utf-8')
