import pytest

from randomplace import LocationPicker, OverpassClient
from randomplace.models import ReferencePosition


@pytest.mark.integration
@pytest.mark.asyncio
async def test_real_fetch_city():
    """Verify real connectivity with a small city."""
    async with OverpassClient() as client:
        data = await client.fetch_city("Vaduz")
        assert len(data["elements"]) > 0
        assert all("name" in e.get("tags", {}) for e in data["elements"])


@pytest.mark.integration
@pytest.mark.asyncio
async def test_real_random_location():
    """Verify a full selection round against the public interpreter."""
    async with LocationPicker() as picker:
        result = await picker.pick_random_location("Vaduz")
        assert result.name
        assert "Name: " in result.to_text()

        # Segunda llamada servida desde la caché
        response = await picker.find_entities_response("vaduz")
        assert response.from_cache


@pytest.mark.integration
@pytest.mark.asyncio
async def test_real_radius_filter():
    """Every place returned lies inside the requested radius."""
    here = ReferencePosition(latitude=47.1410, longitude=9.5215)
    async with LocationPicker() as picker:
        result = await picker.pick_random_location("Vaduz", 2, here)
        assert result.distance_km is not None
        assert result.distance_km <= 2
