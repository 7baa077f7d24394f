"""Tests for color normalization."""

import pytest

from tilebot.core.data_models import HSLColor
from tilebot.perception.color import rgb_to_hsl, normalize_color, ColorNormalizer


class TestRgbToHsl:
    """Test the RGB to HSL conversion."""

    @pytest.mark.parametrize("rgb,expected", [
        ((255, 0, 0), HSLColor(0, 100, 50)),
        ((0, 255, 0), HSLColor(120, 100, 50)),
        ((0, 0, 255), HSLColor(240, 100, 50)),
        ((255, 255, 0), HSLColor(60, 100, 50)),
        ((0, 255, 255), HSLColor(180, 100, 50)),
        ((255, 0, 255), HSLColor(300, 100, 50)),
        ((255, 255, 255), HSLColor(0, 0, 100)),
        ((0, 0, 0), HSLColor(0, 0, 0)),
    ])
    def test_primary_and_secondary_colors(self, rgb, expected):
        assert rgb_to_hsl(*rgb) == expected

    def test_default_empty_cell_color(self):
        """The board background converts to the configured empty reference."""
        assert rgb_to_hsl(247, 239, 228) == HSLColor(35, 54, 93)

    def test_achromatic_inputs(self):
        """Gray levels always have zero hue and saturation."""
        for level in range(0, 256, 5):
            color = rgb_to_hsl(level, level, level)
            assert color.h == 0
            assert color.s == 0

    def test_lightness_above_half_uses_other_saturation_branch(self):
        light = rgb_to_hsl(255, 200, 200)
        dark = rgb_to_hsl(100, 0, 0)
        assert light.l > 50
        assert light.s == 100
        assert dark.s == 100
        assert dark.l == 20

    def test_hue_near_full_turn_stays_distinct_from_red(self):
        # red-dominant with blue slightly above green rounds up to 360
        color = rgb_to_hsl(255, 0, 1)
        assert color == HSLColor(360, 100, 50)
        assert color != rgb_to_hsl(255, 0, 0)
        assert str(color) == "hsl(360, 100%, 50%)"

    def test_deterministic(self):
        samples = [(12, 200, 77), (255, 128, 0), (3, 3, 4)]
        for rgb in samples:
            assert rgb_to_hsl(*rgb) == rgb_to_hsl(*rgb)

    def test_out_of_range_channel(self):
        with pytest.raises(ValueError):
            rgb_to_hsl(256, 0, 0)
        with pytest.raises(ValueError):
            rgb_to_hsl(0, -1, 0)


class TestNormalizeColor:
    """Test empty classification."""

    def test_reference_is_empty(self):
        reference = HSLColor(35, 54, 93)
        assert normalize_color((247, 239, 228), reference) is None

    def test_other_colors_are_distinct(self):
        reference = HSLColor(35, 54, 93)
        assert normalize_color((255, 0, 0), reference) == HSLColor(0, 100, 50)
        # one channel off is already a different color
        assert normalize_color((248, 239, 228), reference) == HSLColor(33, 59, 93)

    def test_accepts_rgba_samples(self):
        reference = HSLColor(0, 0, 0)
        assert normalize_color((0, 0, 255, 255), reference) == HSLColor(240, 100, 50)

    def test_normalizer_binds_reference(self):
        normalizer = ColorNormalizer(HSLColor(0, 0, 100))
        assert normalizer((255, 255, 255)) is None
        assert normalizer.is_empty((255, 255, 255))
        assert not normalizer.is_empty((0, 0, 0))

    def test_color_key_round_trip(self):
        color = rgb_to_hsl(10, 120, 240)
        assert HSLColor.from_string(str(color)) == color
        assert str(HSLColor(35, 54, 93)) == "hsl(35, 54%, 93%)"
