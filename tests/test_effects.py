"""
Tests for the filter pipeline and rarity presets.
"""

import pytest
from PIL import Image

from card_studio.card_utils.card import RARITIES
from card_studio.card_utils.effects import (
    EffectError,
    apply_filters,
    rarity_preset,
    validate_filters,
)


class TestValidateFilters:

    def test_accepts_known_filters(self):
        assert validate_filters([{"type": "blur", "value": "2"}]) == [{"type": "blur", "value": 2.0}]

    def test_unknown_filter(self):
        with pytest.raises(EffectError, match="Unknown filter"):
            validate_filters([{"type": "glow", "value": 10}])

    def test_out_of_range(self):
        with pytest.raises(EffectError, match="between 0 and 50"):
            validate_filters([{"type": "blur", "value": 51}])

    def test_non_numeric(self):
        with pytest.raises(EffectError):
            validate_filters([{"type": "sepia", "value": "lots"}])


class TestApplyFilters:

    def test_no_filters_returns_equal_image(self, red_image):
        result = apply_filters(red_image, [])
        assert result.getpixel((0, 0)) == (255, 0, 0)
        assert result is not red_image

    def test_brightness_zero_is_black(self, red_image):
        result = apply_filters(red_image, [{"type": "brightness", "value": 0}])
        assert result.getpixel((5, 5)) == (0, 0, 0)

    def test_full_grayscale(self, red_image):
        r, g, b = apply_filters(red_image, [{"type": "grayscale", "value": 100}]).getpixel((5, 5))
        assert r == g == b

    def test_sepia_warms_gray(self):
        gray = Image.new("RGB", (10, 10), (128, 128, 128))
        r, g, b = apply_filters(gray, [{"type": "sepia", "value": 100}]).getpixel((5, 5))
        assert r > b

    def test_hue_rotate_moves_red_towards_green(self, red_image):
        r, g, b = apply_filters(red_image, [{"type": "hue-rotate", "value": 120}]).getpixel((5, 5))
        assert g > r

    def test_blur_keeps_size(self, red_image):
        assert apply_filters(red_image, [{"type": "blur", "value": 3}]).size == red_image.size

    def test_alpha_preserved(self):
        image = Image.new("RGBA", (10, 10), (255, 0, 0, 40))
        result = apply_filters(image, [{"type": "contrast", "value": 150}])
        assert result.mode == "RGBA"
        assert result.getpixel((1, 1))[3] == 40

    def test_filters_applied_in_order(self, red_image):
        # grayscale then saturation leaves nothing to saturate
        r, g, b = apply_filters(red_image, [
            {"type": "grayscale", "value": 100},
            {"type": "saturation", "value": 300},
        ]).getpixel((5, 5))
        assert r == g == b


class TestPresets:

    def test_every_rarity_has_a_preset(self):
        for rarity in RARITIES:
            assert rarity_preset(rarity)

    def test_legendary_is_gold(self):
        assert rarity_preset("legendary")["gold"] == 70

    def test_returns_copy(self):
        rarity_preset("rare")["chrome"] = 0
        assert rarity_preset("rare")["chrome"] == 25

    def test_unknown(self):
        with pytest.raises(EffectError):
            rarity_preset("mythic")
