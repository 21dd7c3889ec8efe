"""
Tests for pipeline settings construction and signatures.
"""

import dataclasses

import pytest

from profile_views.settings import (
    PipelineSettings,
    compute_settings_signature,
    settings_from_dict,
)


class TestDefaults:

    def test_defaults(self):
        settings = PipelineSettings()
        assert settings.jank_threshold_ms == 50
        assert settings.max_description_characters == 500
        assert settings.allows_markers_with_no_schema('marker-table')
        assert not settings.allows_markers_with_no_schema('timeline-overview')

    def test_unknown_location_does_not_allow(self):
        assert not PipelineSettings().allows_markers_with_no_schema('sidebar')

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            PipelineSettings().jank_threshold_ms = 10


class TestSettingsFromDict:

    def test_empty_gives_defaults(self):
        assert settings_from_dict(None) == PipelineSettings()
        assert settings_from_dict({}) == PipelineSettings()

    def test_values_are_coerced_to_field_types(self):
        settings = settings_from_dict({'jank_threshold_ms': 80, 'max_description_characters': 100.0})
        assert settings.jank_threshold_ms == 80.0
        assert isinstance(settings.jank_threshold_ms, float)
        assert settings.max_description_characters == 100
        assert isinstance(settings.max_description_characters, int)

    def test_unknown_and_invalid_values_are_ignored(self):
        settings = settings_from_dict({
            'unknown': 1,
            'jank_threshold_ms': float('nan'),
            'max_description_characters': True,
            'heaviest_path_max_depth': 'deep',
        })
        assert settings == PipelineSettings()

    def test_schema_policy_is_merged_with_defaults(self):
        settings = settings_from_dict({'allow_markers_with_no_schema': {'timeline-overview': 1}})
        assert settings.allows_markers_with_no_schema('timeline-overview')
        assert settings.allows_markers_with_no_schema('marker-chart')


class TestSignature:

    def test_deterministic(self):
        signature = compute_settings_signature(PipelineSettings())
        assert signature == compute_settings_signature(PipelineSettings())
        assert len(signature) == 16
        int(signature, 16)

    def test_changes_with_values(self):
        assert compute_settings_signature(PipelineSettings()) != compute_settings_signature(
            PipelineSettings(jank_threshold_ms=51))

    def test_policy_changes_signature(self):
        policy = dict(PipelineSettings().allow_markers_with_no_schema, **{'marker-table': False})
        assert compute_settings_signature(PipelineSettings()) != compute_settings_signature(
            PipelineSettings(allow_markers_with_no_schema=policy))
