"""Unit tests for AlertPreferenceService."""

import pytest

from models import SchedulerAlertPreference
from services.alert_preference_service import AlertPreferenceService


class TestAlertPreferenceService:
    """Tests for per-provider failure thresholds."""

    def test_get_thresholds_only_overrides(self, db):
        db.add(SchedulerAlertPreference(provider_id="google", failure_threshold=2))
        db.add(SchedulerAlertPreference(provider_id="facebook", failure_threshold=None))
        db.flush()

        thresholds = AlertPreferenceService.get_thresholds(db, ["google", "facebook", "tiktok"])

        assert thresholds == {"google": 2}

    def test_get_thresholds_empty_input(self, db):
        assert AlertPreferenceService.get_thresholds(db, []) == {}

    def test_list_preferences_covers_known_providers(self, db):
        AlertPreferenceService.set_threshold(db, "linkedin", 1)

        preferences = {p.provider_id: p for p in AlertPreferenceService.list_preferences(db)}

        assert set(preferences) == {"google", "facebook", "linkedin", "tiktok"}
        assert preferences["linkedin"].failure_threshold == 1
        assert preferences["linkedin"].effective_threshold == 1
        assert preferences["google"].failure_threshold is None
        assert preferences["google"].effective_threshold == 3

    def test_set_threshold_updates_existing_row(self, db):
        AlertPreferenceService.set_threshold(db, "google", 2)
        AlertPreferenceService.set_threshold(db, "google", 5)

        assert db.query(SchedulerAlertPreference).count() == 1
        assert AlertPreferenceService.get_thresholds(db, ["google"]) == {"google": 5}

    def test_set_threshold_none_clears(self, db):
        AlertPreferenceService.set_threshold(db, "google", 2)
        AlertPreferenceService.set_threshold(db, "google", None)

        assert AlertPreferenceService.get_thresholds(db, ["google"]) == {}

    def test_unknown_provider_rejected(self, db):
        with pytest.raises(ValueError, match="Unknown provider"):
            AlertPreferenceService.set_threshold(db, "myspace", 2)

    def test_threshold_below_one_rejected(self, db):
        with pytest.raises(ValueError, match="at least 1"):
            AlertPreferenceService.set_threshold(db, "google", 0)
