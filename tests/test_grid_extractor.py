"""Tests for grid extraction."""

import types
from unittest.mock import patch

import numpy as np
import pytest
from PIL import Image

from tilebot.core.data_models import HSLColor
from tilebot.core.errors import SourceUnavailable
from tilebot.perception.color import ColorNormalizer
from tilebot.perception.grid_extractor import GridExtractor, square_crop_box, cell_centers
from tilebot.perception.surface import BoardSurface, StaticImageSurface, ImageFileSurface

RED = HSLColor(0, 100, 50)
GREEN = HSLColor(120, 100, 50)


class _RawSurface(BoardSurface):
    """Surface returning whatever object it was given."""

    def __init__(self, image):
        self.image = image

    def capture(self):
        return self.image

    def geometry(self):
        raise NotImplementedError


class TestGeometryHelpers:
    """Test crop and sampling helpers."""

    def test_square_crop_tall(self):
        assert square_crop_box(400, 500) == (0, 50, 400, 450)

    def test_square_crop_wide(self):
        assert square_crop_box(500, 400) == (50, 0, 450, 400)

    def test_square_crop_square(self):
        assert square_crop_box(300, 300) == (0, 0, 300, 300)

    def test_cell_centers(self):
        assert cell_centers(400, 10) == [20 + 40 * i for i in range(10)]

    def test_cell_centers_stay_inside_small_regions(self):
        centers = cell_centers(3, 10)
        assert len(centers) == 10
        assert all(0 <= c < 3 for c in centers)


class TestGridExtractor:
    """Test GridExtractor on synthetic boards."""

    def _extractor(self, image, empty_reference, **kwargs):
        kwargs.setdefault('scale', 1.0)
        return GridExtractor(StaticImageSurface(image), ColorNormalizer(empty_reference), **kwargs)

    def test_non_square_surface_is_cropped(self, paint_board, checker_rows, empty_reference):
        """10x10 grid on a 400x500 surface samples a centered 400x400 square."""
        image = paint_board(checker_rows, cell_px=40, pad=(0, 50, 0, 50))
        assert image.size == (400, 500)

        extractor = self._extractor(image, empty_reference)
        grid = extractor.extract()

        assert extractor.last_preview.size == (400, 400)
        assert (grid.width, grid.height) == (10, 10)
        for y in range(10):
            assert grid.cell(0, y) is None
            for x in range(1, 10):
                assert grid.cell(x, y) == (RED if (x + y) % 2 == 0 else GREEN)

    def test_wide_surface_is_cropped(self, paint_board, checker_rows, empty_reference):
        image = paint_board(checker_rows, cell_px=20, pad=(30, 0, 30, 0))
        grid = self._extractor(image, empty_reference).extract()
        assert grid.cell(0, 0) is None
        assert grid.cell(1, 1) == RED
        assert grid.cell(2, 1) == GREEN

    def test_downsampled_extraction(self, paint_board, checker_rows, empty_reference):
        """Flat cells keep their color through the 1/4 downsample."""
        image = paint_board(checker_rows, cell_px=160, pad=(0, 200, 0, 200))
        grid = self._extractor(image, empty_reference, scale=0.25).extract()

        reference = self._extractor(
            paint_board(checker_rows, cell_px=40), empty_reference
        ).extract()
        assert grid == reference

    def test_palette_is_distinct_and_excludes_empty(self, paint_board, checker_rows, empty_reference):
        grid = self._extractor(paint_board(checker_rows), empty_reference).extract()
        assert len(grid.palette) == len(set(grid.palette)) == 2
        assert None not in grid.palette
        assert set(grid.palette) == {RED, GREEN}
        assert grid.empty_count() == 10

    def test_grid_size_independent_of_surface_size(self, empty_reference):
        for size in [(1, 1), (7, 3), (13, 200), (640, 480)]:
            image = Image.new('RGB', size, (0, 0, 255))
            grid = self._extractor(image, empty_reference, width=10, height=8).extract()
            assert (grid.width, grid.height) == (10, 8)
            assert grid.palette == (HSLColor(240, 100, 50),)

    def test_tiny_surface_with_downsample(self, empty_reference):
        image = Image.new('RGB', (2, 3), (0, 0, 255))
        grid = self._extractor(image, empty_reference, scale=0.25).extract()
        assert (grid.width, grid.height) == (10, 10)

    def test_missing_surface(self, empty_reference):
        extractor = GridExtractor(StaticImageSurface(None), ColorNormalizer(empty_reference))
        with pytest.raises(SourceUnavailable):
            extractor.extract()

    def test_zero_extent_surface(self, empty_reference):
        for width, height in [(0, 10), (10, 0)]:
            surface = _RawSurface(types.SimpleNamespace(width=width, height=height))
            extractor = GridExtractor(surface, ColorNormalizer(empty_reference))
            with pytest.raises(SourceUnavailable):
                extractor.extract()

    def test_preview_does_not_affect_extraction(self, paint_board, checker_rows, empty_reference):
        previews = []

        def sink(image):
            previews.append(image)
            image.paste((0, 0, 0), (0, 0, image.width, image.height))

        image = paint_board(checker_rows)
        with_sink = self._extractor(image, empty_reference, preview_sink=sink).extract()
        without_sink = self._extractor(image, empty_reference).extract()

        assert len(previews) == 1
        assert with_sink == without_sink

    def test_failing_preview_sink_is_ignored(self, paint_board, checker_rows, empty_reference):
        def sink(image):
            raise RuntimeError("preview window closed")

        grid = self._extractor(paint_board(checker_rows), empty_reference, preview_sink=sink).extract()
        assert grid.width == 10

    def test_deterministic(self, paint_board, checker_rows, empty_reference):
        extractor = self._extractor(paint_board(checker_rows), empty_reference)
        first = extractor.extract()
        second = extractor.extract()
        assert first == second
        assert np.array_equal(first.indices, second.indices)
        assert extractor.extractions == 2

    def test_invalid_parameters(self, empty_reference):
        surface = StaticImageSurface(Image.new('RGB', (10, 10)))
        with pytest.raises(ValueError):
            GridExtractor(surface, ColorNormalizer(empty_reference), width=0)
        with pytest.raises(ValueError):
            GridExtractor(surface, ColorNormalizer(empty_reference), scale=0)


class TestImageFileSurface:
    """Test reading boards from image files."""

    def test_capture_and_geometry(self, tmp_path, paint_board, checker_rows):
        path = tmp_path / "board.png"
        paint_board(checker_rows, cell_px=10).save(path)

        surface = ImageFileSurface(path, origin=(5, 7))
        assert surface.capture().size == (100, 100)
        geometry = surface.geometry()
        assert (geometry.left, geometry.top, geometry.width, geometry.height) == (5, 7, 100, 100)

    def test_missing_file(self, tmp_path):
        surface = ImageFileSurface(tmp_path / "missing.png")
        with pytest.raises(SourceUnavailable):
            surface.capture()
        assert surface.geometry().width == 0

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "board.png"
        path.write_text("not an image")
        with pytest.raises(SourceUnavailable):
            ImageFileSurface(path).capture()

    def test_geometry_uses_size_of_last_capture(self, tmp_path):
        path = tmp_path / "board.png"
        Image.new('RGB', (120, 80), (255, 0, 0)).save(path)
        surface = ImageFileSurface(path)
        surface.capture()

        with patch('tilebot.perception.surface.Image.open') as opener:
            assert surface.geometry().width == 120
            assert surface.geometry().height == 80
            opener.assert_not_called()

    def test_geometry_resets_after_failed_capture(self, tmp_path):
        path = tmp_path / "board.png"
        Image.new('RGB', (60, 60), (255, 0, 0)).save(path)
        surface = ImageFileSurface(path)
        surface.capture()

        path.unlink()
        with pytest.raises(SourceUnavailable):
            surface.capture()
        assert surface.geometry().width == 0
