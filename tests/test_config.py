"""Tests for configuration loading and validation."""

import json

import pytest

from consult_scheduler.config import (
    DEFAULT_SERVICE_TYPES,
    AppConfig,
    AvailabilityConfig,
    BookingConfig,
    BusinessHoursConfig,
    _load_service_types,
    _safe_float,
    _safe_int,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_open_after_close(self):
        config = AppConfig(business_hours=BusinessHoursConfig(open_time="17:00", close_time="08:00"))
        with pytest.raises(ValueError, match="BUSINESS_OPEN_TIME"):
            _validate_config(config)

    def test_malformed_clock_time(self):
        config = AppConfig(business_hours=BusinessHoursConfig(open_time="8am"))
        with pytest.raises(ValueError, match="HH:MM"):
            _validate_config(config)

    def test_weekday_out_of_range(self):
        config = AppConfig(business_hours=BusinessHoursConfig(weekdays="0,7"))
        with pytest.raises(ValueError, match="BUSINESS_WEEKDAYS"):
            _validate_config(config)

    def test_weekdays_not_integers(self):
        config = AppConfig(business_hours=BusinessHoursConfig(weekdays="mon,tue"))
        with pytest.raises(ValueError, match="BUSINESS_WEEKDAYS"):
            _validate_config(config)

    def test_lookahead_must_be_positive(self):
        config = AppConfig(availability=AvailabilityConfig(lookahead_days=0))
        with pytest.raises(ValueError, match="AVAILABILITY_LOOKAHEAD_DAYS"):
            _validate_config(config)

    def test_negative_lead_time(self):
        config = AppConfig(availability=AvailabilityConfig(min_lead_minutes=-5))
        with pytest.raises(ValueError, match="MIN_LEAD_MINUTES"):
            _validate_config(config)

    def test_notification_attempts_must_be_positive(self):
        config = AppConfig(booking=BookingConfig(notification_max_attempts=0))
        with pytest.raises(ValueError, match="NOTIFICATION_MAX_ATTEMPTS"):
            _validate_config(config)

    def test_negative_retry_delay(self):
        config = AppConfig(booking=BookingConfig(notification_retry_delay_sec=-1.0))
        with pytest.raises(ValueError, match="NOTIFICATION_RETRY_DELAY"):
            _validate_config(config)

    def test_queue_size_must_be_positive(self):
        config = AppConfig(booking=BookingConfig(notification_queue_size=0))
        with pytest.raises(ValueError, match="NOTIFICATION_QUEUE_SIZE"):
            _validate_config(config)

    def test_empty_service_types(self):
        with pytest.raises(ValueError, match="service type"):
            _validate_config(AppConfig(service_types=()))

    def test_duplicate_service_ids(self):
        config = AppConfig(service_types=DEFAULT_SERVICE_TYPES + DEFAULT_SERVICE_TYPES[:1])
        with pytest.raises(ValueError, match="Duplicate"):
            _validate_config(config)


class TestBusinessHoursConfig:
    def test_weekday_set(self):
        assert BusinessHoursConfig(weekdays="0, 2,4").weekday_set == frozenset({0, 2, 4})

    def test_defaults_are_weekdays(self):
        assert BusinessHoursConfig(weekdays="0,1,2,3,4").weekday_set == frozenset(range(5))


class TestEnvParsing:
    def test_safe_int_reads_env(self, monkeypatch):
        monkeypatch.setenv("MIN_LEAD_MINUTES", "15")
        assert _safe_int("MIN_LEAD_MINUTES", "60") == 15

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("MIN_LEAD_MINUTES", "soon")
        with pytest.raises(ValueError, match="MIN_LEAD_MINUTES"):
            _safe_int("MIN_LEAD_MINUTES", "60")

    def test_safe_float_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_RETRY_DELAY", "fast")
        with pytest.raises(ValueError, match="NOTIFICATION_RETRY_DELAY"):
            _safe_float("NOTIFICATION_RETRY_DELAY", "2.0")

    def test_default_service_types(self, monkeypatch):
        monkeypatch.delenv("SERVICE_TYPES_JSON", raising=False)
        assert _load_service_types() == DEFAULT_SERVICE_TYPES

    def test_service_types_from_json(self, monkeypatch):
        monkeypatch.setenv("SERVICE_TYPES_JSON", json.dumps([
            {"external_service_id": 7, "job_type_id": 555, "label": "Water Heater Consult",
             "duration_ms": 2700000, "skills": ["Virtual Service"]},
        ]))
        service_types = _load_service_types()
        assert len(service_types) == 1
        assert service_types[0].external_service_id == "7"
        assert service_types[0].duration.total_seconds() == 45 * 60

    def test_invalid_service_types_json(self, monkeypatch):
        monkeypatch.setenv("SERVICE_TYPES_JSON", '[{"label": "missing fields"}]')
        with pytest.raises(ValueError, match="SERVICE_TYPES_JSON"):
            _load_service_types()


class TestDefaultCatalog:
    def test_quote_uses_its_own_job_type(self):
        by_id = {s.external_service_id: s for s in DEFAULT_SERVICE_TYPES}
        assert by_id["1"].job_type_id == by_id["2"].job_type_id
        assert by_id["3"].job_type_id != by_id["1"].job_type_id

    def test_all_default_services_are_thirty_minutes(self):
        assert {s.duration_ms for s in DEFAULT_SERVICE_TYPES} == {30 * 60 * 1000}
