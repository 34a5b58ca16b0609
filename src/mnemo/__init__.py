"""mnemo: spaced-repetition scheduling engine for vocabulary cards."""

from mnemo.consts import VERSION

__version__ = VERSION
