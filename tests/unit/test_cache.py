import pytest

from randomplace import LocationPicker
from randomplace.exceptions import FetchHTTPError
from randomplace.models import GeoEntity
from randomplace.utils.cache import CityCache


@pytest.mark.parametrize("city", [" Paris ", "paris", "PARIS", "\tParis\n"])
def test_normalize_key_ignores_case_and_whitespace(city):
    assert CityCache.normalize_key(city) == "paris"


def test_first_stored_list_wins():
    cache = CityCache()
    first = [GeoEntity(kind="point", name="A")]
    stored = cache.set("Paris", first)
    again = cache.set(" paris ", [GeoEntity(kind="point", name="B")])

    assert stored == first
    assert again == first
    assert len(cache) == 1
    assert "PARIS" in cache
    assert list(cache.keys()) == ["paris"]


def test_empty_list_is_cached():
    cache = CityCache()
    cache.set("Nowhere", [])
    assert cache.get("nowhere") == []
    assert cache.get("elsewhere") is None


def test_clear_returns_count():
    cache = CityCache()
    cache.set("a", [])
    cache.set("b", [])
    assert cache.clear() == 2
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_cache_hits_and_misses(picker, overpass_mock, paris_elements):
    """Verifica que una segunda búsqueda de la misma ciudad no llama a la red."""
    overpass_mock.add_elements(paris_elements)

    res1 = await picker.find_entities("Paris")
    assert len(res1) == 4
    assert overpass_mock.call_count == 1

    # Misma ciudad normalizada: HIT
    res2 = await picker.find_entities("  pArIs ")
    assert res2 == res1
    assert overpass_mock.call_count == 1

    response = await picker.find_entities_response("paris")
    assert response.from_cache is True

    # use_cache=False ignora la caché
    await picker.find_entities("Paris", use_cache=False)
    assert overpass_mock.call_count == 2


@pytest.mark.asyncio
async def test_shared_cache_between_pickers(http_client, overpass_mock, paris_elements):
    """La caché inyectada se comparte entre instancias."""
    overpass_mock.add_elements(paris_elements)
    cache = CityCache()

    first = LocationPicker(http_client=http_client, cache=cache)
    second = LocationPicker(http_client=http_client, cache=cache)

    await first.find_entities("Paris")
    await second.find_entities("paris")
    assert overpass_mock.call_count == 1
    assert second.clear_cache() == 1


@pytest.mark.asyncio
async def test_cache_not_written_on_failure(picker, overpass_mock, paris_elements):
    overpass_mock.add_response(500).add_elements(paris_elements)

    with pytest.raises(FetchHTTPError):
        await picker.find_entities("Paris")
    assert "paris" not in picker.cache

    await picker.find_entities("Paris")
    assert "paris" in picker.cache
    assert overpass_mock.call_count == 2
