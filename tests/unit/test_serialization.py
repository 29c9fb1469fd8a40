"""
Unit tests for serialization.py module.

Tests profile persistence and result-bundle export.
"""

import json
import warnings

import numpy as np
import pytest

from heirloom.exceptions import ProfileValidationError
from heirloom.integrator import ComprehensiveProjection
from heirloom.lifecycle import LifecycleProjector
from heirloom.rng import LCGSource
from heirloom.types import BandDict, BundleDict, ProjectionPointDict
from heirloom.serialization import (
    SCHEMA_VERSION,
    bundle_to_dict,
    load_profile_json,
    profile_from_dict,
    profile_to_dict,
    save_bundle,
    save_profile_json,
    series_to_records,
    to_jsonable,
)


class TestToJsonable:
    """Tests for the generic converter."""

    def test_numpy_values(self):
        data = to_jsonable({"a": np.arange(3), "b": np.float64(1.5), "c": np.int64(2)})
        assert data == {"a": [0, 1, 2], "b": 1.5, "c": 2}
        assert isinstance(data["c"], int)

    def test_non_finite_to_none(self):
        assert to_jsonable([float("nan"), float("inf"), 1.0]) == [None, None, 1.0]

    def test_tuples_and_mappings(self):
        assert to_jsonable((1, {2: (3,)})) == [1, {"2": [3]}]


class TestProfileSerialization:
    """Tests for profile round-trips."""

    def test_profile_to_dict(self, example_profile):
        data = profile_to_dict(example_profile)

        assert data["schema_version"] == SCHEMA_VERSION
        assert data["core_identity"]["age"] == 35
        assert data["children"][0]["name"] == "Asha"

    def test_round_trip(self, family_profile):
        assert profile_from_dict(profile_to_dict(family_profile)) == family_profile

    def test_file_round_trip(self, family_profile, tmp_path):
        path = tmp_path / "profiles" / "household.json"
        save_profile_json(family_profile, path)

        assert path.exists()
        assert load_profile_json(path) == family_profile

    def test_schema_mismatch_warns(self, profile_data):
        profile_data["schema_version"] = "9.9.9"
        with pytest.warns(UserWarning, match="schema version 9.9.9"):
            profile = profile_from_dict(profile_data)
        assert profile.age == 35

    def test_missing_schema_version_is_silent(self, profile_data):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            profile_from_dict(profile_data)

    def test_invalid_profile(self, profile_data):
        profile_data["financial_foundation"]["current_net_worth"] = -10
        with pytest.raises(ProfileValidationError):
            profile_from_dict(profile_data)


class TestBundleSerialization:
    """Tests for result export."""

    def test_series_records(self, example_profile):
        series = LifecycleProjector().project(example_profile, 10, LCGSource(1))
        records = series_to_records(series)

        assert len(records) == len(series)
        assert records[0]["wealth"] == example_profile.net_worth
        assert isinstance(records[0]["events"], list)

    def test_bundle_to_dict_is_json(self, example_profile, small_config, tmp_path):
        bundle = ComprehensiveProjection(small_config).run(example_profile)
        data = bundle_to_dict(bundle)

        text = json.dumps(data)  # must not raise
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["seed"] == small_config.seed
        assert data["current_wealth"] == example_profile.net_worth
        assert len(data["wealth_band"]["p50"]) == small_config.horizon_years + 1
        assert len(data["scenarios"]["adjusted"]) == 3
        assert "scenarios" not in data["outlooks"]["inflation"]
        assert "NaN" not in text
        assert data["recommendations"]["immediate"][0]["priority"] == "critical"
        assert data["protected"]["estimated_extension"] == 9
        assert len(data["protected"]["series"]) == len(bundle.protected.series)
        assert data["tail_risk"]["assessment"] in ("LOW", "MEDIUM", "HIGH", "EXTREME")

        assert BundleDict.__required_keys__ <= set(data)
        assert set(BandDict.__required_keys__) == set(data["wealth_band"])
        assert set(ProjectionPointDict.__required_keys__) == set(data["series"][0])

        path = tmp_path / "out" / "bundle.json"
        save_bundle(bundle, path)
        with open(path) as f:
            assert json.load(f)["extinction_year"] == bundle.extinction_year
