"""Tests for the numeric tone/color operations."""

import numpy as np
import pytest

from filmcam import adjustments as adj


def _flat(value, size=8):
    return np.full((size, size, 3), value, dtype=np.float32)


class TestColorControls:

    def test_neutral_parameters_keep_values(self, gradient):
        out = adj.apply_color_controls(gradient, 1.0, 1.0, 0.0)

        assert out is not gradient
        assert np.array_equal(out, gradient)

    def test_contrast_is_applied_before_brightness(self):
        out = adj.apply_color_controls(_flat(0.6), contrast=2.0, brightness=0.1)

        # (0.6 - 0.5) * 2 + 0.5 + 0.1, not ((0.6 + 0.1) - 0.5) * 2 + 0.5
        np.testing.assert_allclose(out, 0.8, atol=1e-6)

    def test_zero_saturation_gives_grey(self, gradient):
        out = adj.apply_color_controls(gradient, saturation=0.0)

        np.testing.assert_allclose(out[..., 0], out[..., 1], atol=1e-6)
        np.testing.assert_allclose(out[..., 1], out[..., 2], atol=1e-6)

    def test_contrast_spreads_tones(self, gradient):
        out = adj.apply_color_controls(gradient, contrast=1.15)

        assert out.std() > gradient.std()

    def test_output_is_clipped(self):
        out = adj.apply_color_controls(_flat(0.95), brightness=0.2)

        assert out.max() <= 1.0

    def test_rejects_non_rgb(self):
        with pytest.raises(adj.DegradedFilterError):
            adj.apply_color_controls(np.zeros((4, 4), dtype=np.float32))


class TestTemperature:

    def test_target_neutral_is_identity(self):
        np.testing.assert_allclose(adj.temperature_gains(adj.TARGET_NEUTRAL_K), 1.0, atol=1e-5)

    def test_higher_neutral_warms(self):
        r, g, b = adj.temperature_gains(7500.0)

        assert r > 1.0 > b

    def test_lower_neutral_cools(self):
        r, g, b = adj.temperature_gains(5500.0)

        assert b > r

    def test_positive_tint_adds_green(self):
        plain = adj.temperature_gains(5500.0, 0.0)
        tinted = adj.temperature_gains(5500.0, 150.0)

        assert tinted[1] / tinted[0] > plain[1] / plain[0]

    def test_grey_luminance_is_preserved(self):
        gains = adj.temperature_gains(7500.0)

        assert float(np.dot(adj.LUMA_WEIGHTS, gains)) == pytest.approx(1.0, abs=1e-5)


class TestDetail:

    def test_sharpen_increases_edge_contrast(self):
        img = _flat(0.3, size=16)
        img[:, 8:] = 0.7

        out = adj.sharpen_luminance(img, sharpness=0.6)

        assert out[:, 7].mean() < 0.3
        assert out[:, 8].mean() > 0.7

    def test_sharpen_leaves_flat_areas(self):
        out = adj.sharpen_luminance(_flat(0.5, size=16), sharpness=0.6)

        np.testing.assert_allclose(out, 0.5, atol=1e-4)

    def test_sharpen_rejects_tiny_images(self):
        with pytest.raises(adj.DegradedFilterError):
            adj.sharpen_luminance(_flat(0.5, size=1), sharpness=0.6)

    def test_highlight_recovery_darkens_highlights_only(self):
        img = _flat(0.2)
        img[:4] = 0.95

        out = adj.apply_highlight_shadow(img, highlight_amount=0.8)

        assert out[:4].mean() < 0.95
        np.testing.assert_allclose(out[4:], 0.2, atol=1e-6)

    def test_shadow_lift_brightens_shadows_only(self):
        img = _flat(0.9)
        img[:4] = 0.1

        out = adj.apply_highlight_shadow(img, shadow_amount=0.6)

        assert out[:4].mean() > 0.1
        np.testing.assert_allclose(out[4:], 0.9, atol=1e-6)


class TestFilmicPasses:

    def test_process_cools_blacks_and_mutes_blue_highlights(self):
        dark = adj.apply_process_effect(_flat(0.0))
        bright = adj.apply_process_effect(_flat(1.0))

        assert dark[..., 2].mean() > dark[..., 0].mean()
        assert bright[..., 2].mean() < bright[..., 0].mean()

    def test_chrome_adds_contrast(self, gradient):
        out = adj.apply_chrome_effect(gradient)

        assert out.std() > gradient.std()
