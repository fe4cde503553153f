"""Encoded polyline decoding (Google polyline algorithm).

OSRM returns this format when ``geometries=polyline`` (its default), with
five decimal digits of precision.
"""

from ..errors import ProviderMalformedResponse
from ..models.geo import Coordinate


def _read_value(encoded: str, index: int) -> tuple[int, int]:
    """Read one zig-zag varint starting at ``index``.

    Returns:
        Tuple of (signed delta, next index)
    """
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise ProviderMalformedResponse("Truncated encoded polyline")
        byte = ord(encoded[index]) - 63
        index += 1
        if byte < 0 or byte > 63:
            raise ProviderMalformedResponse(
                f"Invalid polyline character {encoded[index - 1]!r}"
            )
        result |= (byte & 0x1F) << shift
        shift += 5
        if byte < 0x20:
            break
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode(encoded: str, precision: int = 5) -> list[Coordinate]:
    """Decode an encoded polyline into coordinates.

    Args:
        encoded: Encoded polyline string
        precision: Decimal digits encoded (5 for OSRM/Google, 6 for polyline6)

    Returns:
        List of coordinates in (lat, lon) order

    Raises:
        ProviderMalformedResponse: If the string is not a valid polyline
    """
    factor = 10 ** precision
    coords: list[Coordinate] = []
    index = 0
    lat = 0
    lon = 0

    while index < len(encoded):
        d_lat, index = _read_value(encoded, index)
        d_lon, index = _read_value(encoded, index)
        lat += d_lat
        lon += d_lon
        try:
            coords.append(Coordinate(lat=lat / factor, lon=lon / factor))
        except ValueError as exc:
            raise ProviderMalformedResponse(f"Polyline point out of range: {exc}") from exc

    return coords
