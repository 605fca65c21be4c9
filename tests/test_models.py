import pytest
import sys
from pathlib import Path

# Añadir el directorio raíz al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from randomplace.models import GeoEntity, ReferencePosition, SelectionResult, resolve_type
from randomplace.models import CityResponse
from randomplace.exceptions import CoordinateError


def test_node_uses_own_coordinates():
    e = GeoEntity.from_overpass_element(
        {"type": "node", "id": 7, "lat": 41.38, "lon": 2.17, "tags": {"name": "Plaça"}}
    )
    assert e.kind == "point"
    assert e.osm_id == 7
    assert e.coordinate == (41.38, 2.17)
    assert e.name == "Plaça"


def test_relation_uses_center():
    e = GeoEntity.from_overpass_element(
        {"type": "relation", "center": {"lat": 1.5, "lon": 2.5}, "lat": 9.0, "tags": {"name": "Park"}}
    )
    assert e.kind == "area-with-center"
    assert e.coordinate == (1.5, 2.5)


def test_missing_coordinates_and_tags():
    e = GeoEntity.from_overpass_element({"type": "relation", "id": 3})
    assert e.coordinate is None
    assert e.tags == {}
    assert e.name == "Unnamed"
    assert e.display_type is None

    node = GeoEntity.from_overpass_element({"type": "node", "lat": 1.0, "tags": None})
    assert node.coordinate is None


def test_entity_is_immutable():
    e = GeoEntity(kind="point", latitude=1.0, longitude=2.0)
    with pytest.raises(ValidationError):
        e.name = "Other"


def test_type_priority_order():
    """amenity va antes que tourism en la lista de prioridad."""
    assert resolve_type({"amenity": "cafe", "tourism": "museum"}) == "cafe"
    assert resolve_type({"building": "yes", "type": "multipolygon"}) == "multipolygon"
    assert resolve_type({"disused:amenity": "bank", "building": "yes"}) == "bank"
    assert resolve_type({"name": "x"}) is None
    # Valores vacíos se consideran ausentes
    assert resolve_type({"shop": "", "leisure": "park"}) == "park"


def test_display_type_replaces_underscores():
    e = GeoEntity(kind="point", tags={"amenity": "place_of_worship"})
    assert e.display_type == "place of worship"


def test_reference_position_validation():
    p = ReferencePosition(latitude=48.85, longitude=2.35)
    assert p.latitude == 48.85

    with pytest.raises(CoordinateError, match="Latitude out of range"):
        ReferencePosition(latitude=91, longitude=0)

    with pytest.raises(CoordinateError, match="Longitude out of range"):
        ReferencePosition(latitude=0, longitude=-181)


def test_selection_result_formatting():
    entity = GeoEntity(kind="point", latitude=48.85, longitude=2.35, name="Eiffel Tower",
                       tags={"name": "Eiffel Tower", "tourism": "attraction"})
    r = SelectionResult(
        entity=entity, name="Eiffel Tower", latitude=48.85, longitude=2.35,
        type="attraction", distance_km=1.234, map_url="https://yandex.ru/maps/?pt=2.35,48.85&z=12&l=map",
    )
    assert r.lines() == [
        "Name: Eiffel Tower",
        "Coordinates: 48.850000, 2.350000",
        "Type: attraction",
        "Distance to: 1.23 km",
    ]
    assert r.to_text().endswith("Open in Yandex Maps: https://yandex.ru/maps/?pt=2.35,48.85&z=12&l=map")
    assert '<a href="https://yandex.ru/maps/?pt=2.35,48.85&amp;z=12&amp;l=map" target="_blank">' in r.to_html()
    assert str(r) == r.to_text()


def test_selection_result_without_coordinates():
    entity = GeoEntity(kind="area-with-center", name="<b>Somewhere</b>")
    r = SelectionResult(entity=entity, name=entity.name)
    assert r.coordinates_text == "Not available"
    assert "Type:" not in r.to_text()
    assert "Distance to" not in r.to_text()
    assert "<a " not in r.to_html()
    assert "&lt;b&gt;Somewhere&lt;/b&gt;" in r.to_html()


def test_city_response_from_elements():
    resp = CityResponse.from_elements("Paris", [
        {"type": "node", "lat": 1, "lon": 2, "tags": {"name": "A"}},
        {"type": "way", "center": {"lat": 3, "lon": 4}},
    ])
    assert resp.count == 2
    assert [e.name for e in resp] == ["A", "Unnamed"]
    assert resp.from_cache is False
