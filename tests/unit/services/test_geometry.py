"""Unit tests for bounding box parsing."""

import json

import pytest

from ogm2sqlite.errors import GeometryError
from ogm2sqlite.services.geometry import extract_bounds, parse_bounding_box


class TestParseBoundingBox:
    """Tests for the accepted bounding box encodings."""

    def test_parses_envelope(self) -> None:
        box = parse_bounding_box("ENVELOPE(-87.94, -87.52, 42.02, 41.64)")

        assert (box.west, box.south, box.east, box.north) == (-87.94, 41.64, -87.52, 42.02)

    def test_parses_envelope_case_and_spacing(self) -> None:
        box = parse_bounding_box("  envelope ( -1,1 ,2,  -2 ) ")

        assert (box.west, box.south, box.east, box.north) == (-1.0, -2.0, 1.0, 2.0)

    def test_parses_number_sequence(self) -> None:
        box = parse_bounding_box([-10, -5, 10, 5])

        assert (box.west, box.south, box.east, box.north) == (-10.0, -5.0, 10.0, 5.0)

    def test_parses_numeric_strings(self) -> None:
        box = parse_bounding_box(["-10", "-5", "10", "5"])

        assert box.north == 5.0

    def test_parses_comma_separated_string(self) -> None:
        box = parse_bounding_box("-10,-5,10,5")

        assert (box.west, box.south, box.east, box.north) == (-10.0, -5.0, 10.0, 5.0)

    @pytest.mark.parametrize(
        "value",
        [
            None,
            [1, 2, 3],
            [1, 2, 3, 4, 5],
            "ENVELOPE(1, 2, 3)",
            ["west", 0, 1, 1],
            [0, None, 1, 1],
            [True, 0, 1, 1],
            [0, float("nan"), 1, 1],
            [0, 0, float("inf"), 1],
            "not a box",
            12.5,
            {"west": 0},
            [0, 10, 1, 5],
            "ENVELOPE(177, -178, -12, -21)",
            [170, -20, -170, -10],
        ],
    )
    def test_rejects_malformed_values(self, value) -> None:
        with pytest.raises(GeometryError):
            parse_bounding_box(value)


class TestExtractBounds:
    """Tests for the polygon ring built from a bounding box."""

    def test_ring_is_closed_with_expected_corners(self) -> None:
        bound = extract_bounds("doc-1", [-10, -5, 10, 5])

        assert bound.record_id == "doc-1"
        assert bound.ring[0] == bound.ring[-1]
        assert bound.ring[:4] == [(-10.0, -5.0), (10.0, -5.0), (10.0, 5.0), (-10.0, 5.0)]

    def test_geopoly_literal(self) -> None:
        bound = extract_bounds("doc-1", "ENVELOPE(0, 2, 1, 0)")

        assert json.loads(bound.to_geopoly()) == [[0, 0], [2, 0], [2, 1], [0, 1], [0, 0]]

    def test_antimeridian_box_yields_no_bound(self) -> None:
        with pytest.raises(GeometryError, match="antimeridian"):
            extract_bounds("fiji", "ENVELOPE(177, -178, -12, -21)")

    def test_point_box_is_accepted(self) -> None:
        bound = extract_bounds("doc-1", [5, 5, 5, 5])

        assert set(bound.ring) == {(5.0, 5.0)}
