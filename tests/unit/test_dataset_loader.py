"""
Unit tests for dataset ingestion: record parsing, sentinel handling and
load reports.
"""

import json

import pytest

from miraat.adapters import load_buildings, load_hospitals, load_index
from miraat.adapters.dataset_loader import parse_building, parse_hospital
from miraat.config import Settings
from miraat.engine.geo_index import GeoIndex
from miraat.exceptions import DataIntegrityError, DatasetLoadError
from tests.conftest import EPICENTER, FIXTURES_DIR

BUILDINGS_PATH = str(FIXTURES_DIR / "buildings.geojson")
HOSPITALS_PATH = str(FIXTURES_DIR / "hospitals.json")


def point_feature(properties: dict, coordinates=(35.5186, 33.9010)) -> dict:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": list(coordinates)},
        "properties": properties,
    }


# =============================================================================
# Buildings
# =============================================================================


def test_load_buildings_skips_malformed_features():
    buildings, report = load_buildings(BUILDINGS_PATH)

    assert [b.id for b in buildings] == [101, 102, 103, 107, 104, 105, 106]
    assert report.total_records == 9
    assert report.loaded_records == 7
    assert report.skipped_records == 2
    assert len(report.issues) == 2


def test_sentinel_values_become_missing():
    buildings, _ = load_buildings(BUILDINGS_PATH)
    by_id = {b.id: b for b in buildings}

    assert by_id[102].apartment_count is None
    assert by_id[102].floor_count == 12
    assert by_id[101].height_m == 15.0
    assert by_id[103].height_m is None


def test_polygon_footprint_reduced_to_centroid():
    buildings, _ = load_buildings(BUILDINGS_PATH)
    polygon = next(b for b in buildings if b.id == 107)

    assert polygon.location.lon == pytest.approx(35.5186)
    assert GeoIndex.distance_m(EPICENTER, polygon.location) == pytest.approx(200.0, abs=0.5)
    assert polygon.use_category == "Mixed-use"


def test_parse_building_defaults_missing_labels():
    building = parse_building(point_feature({"BULBuildingID": "42"}))

    assert building.id == 42
    assert building.condition_category == "Not Available"
    assert building.use_category == "Not Available"
    assert building.sector is None


@pytest.mark.parametrize(
    "feature",
    [
        point_feature({"NoofFloor": 3}),
        point_feature({"BULBuildingID": -999}),
        {"type": "Feature", "geometry": None, "properties": {"BULBuildingID": 1}},
        {"type": "Feature", "geometry": {"type": "Blob"}, "properties": {"BULBuildingID": 1}},
        {"type": "Feature", "geometry": {"type": "Point", "coordinates": []}, "properties": {"BULBuildingID": 1}},
        point_feature({"BULBuildingID": 1}, coordinates=(200.0, 33.9)),
        "not a feature",
    ],
)
def test_parse_building_rejects_unusable_features(feature):
    with pytest.raises(DataIntegrityError):
        parse_building(feature)


def test_duplicate_building_ids_keep_first(tmp_path):
    path = tmp_path / "buildings.geojson"
    path.write_text(
        json.dumps(
            {
                "type": "FeatureCollection",
                "features": [
                    point_feature({"BULBuildingID": 1, "Sector_Name": "First"}),
                    point_feature({"BULBuildingID": 1, "Sector_Name": "Second"}),
                ],
            }
        )
    )
    buildings, report = load_buildings(str(path))

    assert [b.sector for b in buildings] == ["First"]
    assert report.skipped_records == 1


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_numeric_fields_become_missing(value):
    building = parse_building(
        point_feature(
            {
                "BULBuildingID": 7,
                "NoofFloor": value,
                "NoofApartments": value,
                "YearCompleted": value,
                "Building_Hight_m": value,
            }
        )
    )

    assert building.floor_count is None
    assert building.apartment_count is None
    assert building.year_completed is None
    assert building.height_m is None


def test_infinite_building_id_is_rejected():
    with pytest.raises(DataIntegrityError):
        parse_building(point_feature({"BULBuildingID": float("inf")}))


def test_infinite_values_do_not_abort_load(tmp_path):
    path = tmp_path / "buildings.geojson"
    # json.dumps writes Infinity, which json.load accepts back
    path.write_text(
        json.dumps(
            {
                "type": "FeatureCollection",
                "features": [
                    point_feature({"BULBuildingID": 1, "NoofFloor": float("inf")}),
                    point_feature({"BULBuildingID": float("inf")}),
                    point_feature({"BULBuildingID": 2, "NoofFloor": 4}),
                ],
            }
        )
    )
    buildings, report = load_buildings(str(path))

    assert [b.id for b in buildings] == [1, 2]
    assert buildings[0].floor_count is None
    assert report.loaded_records == 2
    assert report.skipped_records == 1


def test_missing_buildings_file(tmp_path):
    with pytest.raises(DatasetLoadError):
        load_buildings(str(tmp_path / "absent.geojson"))


def test_buildings_file_with_wrong_shape(tmp_path):
    path = tmp_path / "buildings.geojson"
    path.write_text(json.dumps([1, 2, 3]))
    with pytest.raises(DatasetLoadError):
        load_buildings(str(path))


def test_buildings_file_without_usable_records(tmp_path):
    path = tmp_path / "buildings.geojson"
    path.write_text(json.dumps({"type": "FeatureCollection", "features": [point_feature({})]}))
    with pytest.raises(DatasetLoadError):
        load_buildings(str(path))


def test_invalid_json(tmp_path):
    path = tmp_path / "buildings.geojson"
    path.write_text("{not json")
    with pytest.raises(DatasetLoadError):
        load_buildings(str(path))


# =============================================================================
# Hospitals
# =============================================================================


def test_load_hospitals_parses_string_coordinates():
    hospitals, report = load_hospitals(HOSPITALS_PATH)

    assert [h.id for h in hospitals] == [201, 202, 203]
    assert report.skipped_records == 1
    port = hospitals[0]
    assert port.total_beds == 40
    assert port.name_arabic == "مستشفى المرفأ"
    assert port.address == "Port District, Beirut"
    assert GeoIndex.distance_m(EPICENTER, port.location) == pytest.approx(80.0, abs=0.5)


def test_parse_hospital_requires_name():
    with pytest.raises(DataIntegrityError):
        parse_hospital({"BULBuildingID": 1, "latitude": "33.9", "longitude": "35.5"})


def test_empty_hospital_list(tmp_path):
    path = tmp_path / "hospitals.json"
    path.write_text("[]")
    with pytest.raises(DatasetLoadError):
        load_hospitals(str(path))


def test_hospitals_file_with_wrong_shape(tmp_path):
    path = tmp_path / "hospitals.json"
    path.write_text(json.dumps({"hospitals": []}))
    with pytest.raises(DatasetLoadError):
        load_hospitals(str(path))


# =============================================================================
# Index
# =============================================================================


def test_load_index_from_settings():
    settings = Settings(buildings_path=BUILDINGS_PATH, hospitals_path=HOSPITALS_PATH)
    index = load_index(settings)

    assert len(index.buildings) == 7
    assert len(index.hospitals) == 3
    assert index.hospital(202).type == "Public Hospital"
