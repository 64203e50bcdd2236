"""
Tests for raw RERA export validation, transformation and import.
Run: pytest backend/test_property_import.py -v
"""

import json

import pytest

import backend.config as config_module
from backend.db import get_db, init_db, normalize_configurations, property_row_to_dict
from backend.property_import import (
    import_properties,
    transform_raw_property,
    validate_raw_property,
)


def raw_altus(**overrides):
    record = {
        "RERA_Number": "P02400008439",
        "ProjectName": "HALLMARK ALTUS",
        "BuilderName": "HALLMARK INFRA HEIGHTS LLP",
        "Area": "Kondapur",
        "Possession_date": "01-06-2029",
        "Price_per_sft": 8999,
        "configurations": [
            {"type": "3 BHK", "sizeRange": 2265, "sizeUnit": "Sq ft", "facing": "East", "BaseProjectPrice": 20382735},
            {"type": "3 BHK", "sizeRange": 1760, "sizeUnit": "Sq ft", "facing": "West", "BaseProjectPrice": 15838240},
            {"type": "4 BHK", "sizeRange": 4685, "sizeUnit": "Sq ft", "facing": "North", "BaseProjectPrice": 42160315},
        ],
    }
    record.update(overrides)
    return record


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "DATABASE_PATH", str(tmp_path / "import.db"))
    init_db()
    conn = get_db()
    yield conn
    conn.close()


class TestValidate:
    def test_valid_record(self):
        assert validate_raw_property(raw_altus()) == (True, [])

    def test_required_fields(self):
        is_valid, errors = validate_raw_property({"configurations": []})
        assert not is_valid
        assert "ProjectName is required" in errors
        assert "Area is required" in errors

    def test_configurations_must_be_list(self):
        is_valid, errors = validate_raw_property(raw_altus(configurations="3 BHK"))
        assert not is_valid
        assert errors == ["configurations must be an array"]

    def test_configuration_fields(self):
        raw = raw_altus(configurations=[{"type": "", "sizeRange": "2265", "BaseProjectPrice": 0}])
        is_valid, errors = validate_raw_property(raw)
        assert not is_valid
        assert errors == [
            "Configuration 1: type is required",
            "Configuration 1: sizeRange must be a number",
            "Configuration 1: BaseProjectPrice must be a number",
        ]

    def test_numeric_configuration_type_rejected(self):
        raw = raw_altus(configurations=[{"type": 3, "sizeRange": 1200, "BaseProjectPrice": 9000000}])
        is_valid, errors = validate_raw_property(raw)
        assert not is_valid
        assert errors == ["Configuration 1: type must be a string"]


class TestTransform:
    def test_derived_fields(self):
        record = transform_raw_property(raw_altus())
        assert record["project_name"] == "HALLMARK ALTUS"
        assert record["developer_name"] == "HALLMARK INFRA HEIGHTS LLP"
        assert record["location"] == "Kondapur"
        assert record["configurations"] == "3 BHK, 4 BHK"
        assert record["min_size_sqft"] == 1760
        assert record["max_size_sqft"] == 4685
        assert record["price"] == 15838240
        assert record["minimum_budget"] == 15838240
        assert record["maximum_budget"] == 42160315
        assert record["bedrooms"] == 4
        assert record["bathrooms"] == 2
        assert record["property_type"] == "Residential"
        assert record["price_per_sqft"] == 8999
        assert record["data"]["RERA_Number"] == "P02400008439"

    def test_combined_bhk_counts_highest(self):
        raw = raw_altus(configurations=[{"type": "4&5 BHK", "sizeRange": 4259, "BaseProjectPrice": 53237500}])
        record = transform_raw_property(raw)
        assert record["bedrooms"] == 5
        assert record["bathrooms"] == 2

    @pytest.mark.parametrize(
        "config_type,expected",
        [("Commercial Office", "Commercial"), ("Office Space", "Commercial"), ("Open Plot", "Plot"), ("Land Parcel", "Plot")],
    )
    def test_property_type(self, config_type, expected):
        raw = raw_altus(configurations=[{"type": config_type, "sizeRange": 100, "BaseProjectPrice": 100}])
        assert transform_raw_property(raw)["property_type"] == expected

    def test_defaults_for_missing_fields(self):
        record = transform_raw_property({})
        assert record["project_name"] == "Unknown Project"
        assert record["location"] == "Unknown Location"
        assert record["price"] == 0
        assert record["bedrooms"] is None
        assert record["bathrooms"] is None
        assert record["configurations"] == ""

    def test_non_string_types_are_coerced(self):
        raw = raw_altus(
            configurations=[
                {"type": 3, "sizeRange": 1200, "BaseProjectPrice": 9_000_000},
                {"type": "3", "sizeRange": 1300, "BaseProjectPrice": 9_500_000},
                {"type": {"bhk": 2}, "sizeRange": 900, "BaseProjectPrice": 6_000_000},
            ]
        )
        record = transform_raw_property(raw)
        assert record["configurations"] == "3"
        assert record["property_type"] == "Residential"
        assert record["bedrooms"] is None
        assert record["minimum_budget"] == 6_000_000


class TestNormalizeConfigurations:
    def test_list_kept(self):
        assert normalize_configurations([{"type": "3 BHK"}]) == [{"type": "3 BHK"}]

    def test_json_string_parsed(self):
        assert normalize_configurations(json.dumps([{"type": "2 BHK"}])) == [{"type": "2 BHK"}]

    def test_plain_string_becomes_single_detail(self):
        assert normalize_configurations("3 BHK") == [
            {"type": "3 BHK", "sizeRange": 0, "sizeUnit": "Sq ft", "facing": "N/A", "BaseProjectPrice": 0}
        ]

    def test_double_encoded_string_parsed(self):
        value = json.dumps(json.dumps([{"type": "2 BHK"}]))
        assert normalize_configurations(value) == [{"type": "2 BHK"}]

    def test_non_dict_entries_dropped(self):
        assert normalize_configurations([{"type": "3 BHK"}, "4 BHK", None]) == [{"type": "3 BHK"}]

    @pytest.mark.parametrize("value", [None, 5, {"type": "3 BHK"}, json.dumps({"type": "3 BHK"})])
    def test_other_values_become_empty(self, value):
        assert normalize_configurations(value) == []


class TestImport:
    def test_imports_valid_and_counts_invalid(self, db):
        summary = import_properties(db, [raw_altus(), {"ProjectName": "", "Area": ""}])
        assert summary["imported"] == 1
        assert summary["invalid"] == 1
        assert summary["skipped"] == 0
        assert summary["errors"][0]["is_valid"] is False

        row = db.execute("SELECT * FROM properties").fetchone()
        record = property_row_to_dict(row)
        assert record["project_name"] == "HALLMARK ALTUS"
        assert record["property_id"] == "P02400008439"
        assert len(record["configuration_details"]) == 3
        assert record["data"]["Area"] == "Kondapur"

    def test_existing_rera_skipped(self, db):
        import_properties(db, [raw_altus()])
        summary = import_properties(db, [raw_altus(ProjectName="HALLMARK ALTUS II")])
        assert summary == {"imported": 0, "skipped": 1, "invalid": 0, "errors": []}
        assert db.execute("SELECT COUNT(*) FROM properties").fetchone()[0] == 1
