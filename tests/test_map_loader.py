"""
Tests for terrain map loading.
"""

import pytest

from py_realms.core.errors import InvalidGridError
from py_realms.core.map_loader import load_terrain_csv, parse_terrain_text


class TestParseTerrainText:
    """Test parsing delimited terrain text."""

    def test_basic_parse(self):
        grid = parse_terrain_text("T,M,T\nM,M,T\n")
        assert grid.shape == (2, 3)
        assert grid.land.tolist() == [[True, False, True], [False, False, True]]

    def test_trailing_blank_lines_ignored(self):
        grid = parse_terrain_text("T,T\nT,M\n\n   \n")
        assert grid.shape == (2, 2)

    def test_custom_delimiter_and_spaces(self):
        grid = parse_terrain_text("T; M\nm ;t", delimiter=";")
        assert grid.land.tolist() == [[True, False], [False, True]]

    def test_empty_text(self):
        with pytest.raises(InvalidGridError):
            parse_terrain_text("")
        with pytest.raises(InvalidGridError):
            parse_terrain_text("\n\n")

    def test_interior_blank_line(self):
        with pytest.raises(InvalidGridError):
            parse_terrain_text("T,T\n\nT,T")

    def test_ragged_rows(self):
        with pytest.raises(InvalidGridError):
            parse_terrain_text("T,T,T\nT,T")

    def test_unknown_code(self):
        with pytest.raises(InvalidGridError):
            parse_terrain_text("T,X")


class TestLoadTerrainCsv:
    """Test loading terrain from a file."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "map.csv"
        path.write_text("T,T,M\nT,M,M\n", encoding="utf-8")
        grid = load_terrain_csv(path)
        assert grid.land_count == 3
        assert grid.shape == (2, 3)

    def test_load_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(InvalidGridError):
            load_terrain_csv(str(path))
