import pytest

from database.seeds import DEFAULT_CATEGORIES, SEED_VERSION_KEY, seed_database
from exceptions import ValidationError


def test_put_get_delete_setting(settings) -> None:
    assert settings.get_setting("missing", default="fallback") == "fallback"

    settings.put_setting("budget.alerts", {"enabled": True, "ratio": 0.8})
    settings.put_setting("budget.alerts", {"enabled": False})

    assert settings.get_setting("budget.alerts") == {"enabled": False}
    assert [s.key for s in settings.list_settings()] == ["budget.alerts"]

    settings.delete_setting("budget.alerts")
    settings.delete_setting("budget.alerts")
    assert settings.list_settings() == []


def test_setting_key_must_be_non_empty(settings) -> None:
    with pytest.raises(ValidationError):
        settings.put_setting("  ", 1)


def test_seed_is_idempotent(store, categories, settings) -> None:
    assert seed_database(store) is True
    assert seed_database(store) is False

    assert len(categories.list_categories()) == len(DEFAULT_CATEGORIES)
    assert settings.get_setting(SEED_VERSION_KEY) == 1
    assert settings.get_setting("currency") == "EUR"
    assert settings.get_setting("onboarding.completed") is False


def test_seed_keeps_existing_categories(store, categories) -> None:
    categories.create_category({"name": "Mine"})
    assert seed_database(store) is True
    assert [c.name for c in categories.list_categories()] == ["Mine"]
