from unittest.mock import AsyncMock

import pytest

from randomplace.exceptions import PositionUnavailableError
from randomplace.models import ReferencePosition
from randomplace.position import GeolocationRefresh, PositionProvider, StaticPositionProvider

HERE = ReferencePosition(latitude=48.8584, longitude=2.2945)


def test_static_provider_satisfies_protocol():
    assert isinstance(StaticPositionProvider(HERE), PositionProvider)


@pytest.mark.asyncio
async def test_static_provider_without_position():
    provider = StaticPositionProvider()
    with pytest.raises(PositionUnavailableError):
        await provider.current_position()


@pytest.mark.asyncio
async def test_positive_radius_requests_position():
    provider = StaticPositionProvider(HERE)
    refresh = GeolocationRefresh(provider)

    assert await refresh.update(2) == HERE
    assert refresh.position == HERE
    assert provider.requests == 1


@pytest.mark.asyncio
async def test_same_radius_does_not_request_again():
    provider = StaticPositionProvider(HERE)
    refresh = GeolocationRefresh(provider)

    await refresh.update(2)
    await refresh.update(2)
    assert provider.requests == 1

    # Cambio de radio positivo: nueva petición
    await refresh.update(3)
    assert provider.requests == 2


@pytest.mark.asyncio
async def test_non_positive_radius_clears_without_request():
    provider = StaticPositionProvider(HERE)
    refresh = GeolocationRefresh(provider)

    await refresh.update(2)
    assert await refresh.update(0) is None
    assert refresh.position is None
    assert await refresh.update(-1) is None
    assert provider.requests == 1

    # Transición de <= 0 a > 0
    await refresh.update(1)
    assert provider.requests == 2
    assert refresh.position == HERE


@pytest.mark.asyncio
async def test_provider_failure_is_silent():
    provider = StaticPositionProvider()
    refresh = GeolocationRefresh(provider)

    assert await refresh.update(5) is None
    assert refresh.radius == 5

    # La posición llega más tarde: se reintenta con el mismo radio
    provider.position = HERE
    assert await refresh.update(5) == HERE


@pytest.mark.asyncio
async def test_failure_keeps_previous_position():
    provider = AsyncMock()
    provider.current_position.side_effect = [HERE, RuntimeError("denied")]
    refresh = GeolocationRefresh(provider)

    await refresh.update(1)
    assert await refresh.update(4) == HERE
    provider.current_position.assert_called_with(high_accuracy=True)


@pytest.mark.asyncio
async def test_no_provider():
    refresh = GeolocationRefresh()
    assert await refresh.update(3) is None
