"""Explicit configuration for task creation and window queries."""

from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

_KEYS = {
    "DEFAULT_PRIORITY": "default_priority",
    "DEFAULT_RECURRENCE": "default_recurrence",
    "DEFAULT_CATEGORY": "default_category",
    "CATEGORIES": "categories",
    "WEEK_STARTS_ON": "week_starts_on",
    "MAX_SERIES_LENGTH": "max_series_length",
}


@dataclass(frozen=True)
class TrackerConfig:
    default_priority: str = "medium"
    default_recurrence: str = "none"
    default_category: str = "general"
    categories: tuple = ("general", "work", "personal", "shopping")
    # Weekday number using the recurrence_days convention (Sunday=0).
    week_starts_on: int = 0
    max_series_length: int = 366

    def __post_init__(self):
        if self.default_category not in self.categories:
            raise ImproperlyConfigured(
                f"TODOS default category {self.default_category!r} "
                f"is not one of {list(self.categories)}"
            )
        if not 0 <= self.week_starts_on <= 6:
            raise ImproperlyConfigured("TODOS WEEK_STARTS_ON must be between 0 and 6")
        if self.max_series_length < 1:
            raise ImproperlyConfigured("TODOS MAX_SERIES_LENGTH must be positive")

    @classmethod
    def from_settings(cls):
        """Build a config from the ``TODOS`` settings dict."""
        options = getattr(settings, "TODOS", {}) or {}
        unknown = set(options) - set(_KEYS)
        if unknown:
            raise ImproperlyConfigured(
                f"Unknown TODOS setting(s): {', '.join(sorted(unknown))}"
            )
        kwargs = {_KEYS[key]: value for key, value in options.items()}
        if "categories" in kwargs:
            kwargs["categories"] = tuple(kwargs["categories"])
        return cls(**kwargs)


def get_config(config=None):
    return config if config is not None else TrackerConfig.from_settings()
