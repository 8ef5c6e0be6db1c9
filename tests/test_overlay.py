"""Tests for light leak and date stamp compositing."""

import datetime

import cv2
import numpy as np
import pytest

from filmcam import overlay
from filmcam.overlay import (
    DateStamp,
    LightLeak,
    apply_light_leak,
    composite,
    default_light_leak,
    load_light_leak,
)


@pytest.fixture
def leak() -> np.ndarray:
    return default_light_leak(128, 128)


@pytest.fixture
def wide_grey() -> np.ndarray:
    return np.full((200, 400, 3), 0.5, dtype=np.float32)


class TestLightLeak:

    def test_zero_intensity_matches_no_leak(self, gradient, leak):
        with_leak = composite(gradient, light_leak=LightLeak(leak, 0.0))
        without = composite(gradient)

        assert np.array_equal(with_leak, without)

    def test_strength_grows_with_intensity(self, gradient, leak):
        means = [
            composite(gradient, light_leak=LightLeak(leak, i)).mean()
            for i in (0.0, 0.25, 0.5, 0.75, 1.0)
        ]

        assert means == sorted(means)
        assert means[-1] > means[0]

    def test_screen_never_darkens(self, gradient, leak):
        out = apply_light_leak(gradient, leak, 1.0)

        assert np.all(out >= gradient - 1e-6)

    def test_full_opaque_white_texture_gives_white(self, gradient):
        white = np.full((10, 10, 3), 255, dtype=np.uint8)

        out = apply_light_leak(gradient, white, 1.0)

        np.testing.assert_allclose(out, 1.0, atol=1e-6)

    @pytest.mark.parametrize("shape", [(50, 200, 4), (300, 40, 3), (64, 64)])
    def test_texture_is_fitted_to_image(self, gradient, shape):
        texture = np.full(shape, 128, dtype=np.uint8)

        out = apply_light_leak(gradient, texture, 0.5)

        assert out.shape == gradient.shape

    def test_missing_texture_passes_through(self, gradient):
        assert composite(gradient, light_leak=LightLeak(None, 1.0)) is gradient

    def test_input_is_not_modified(self, gradient, leak):
        before = gradient.copy()

        apply_light_leak(gradient, leak, 1.0)

        assert np.array_equal(gradient, before)

    def test_default_texture_glows_from_top_left(self, leak):
        assert leak.shape == (128, 128, 4)
        assert leak.dtype == np.uint8
        assert leak[0, 0, 3] > leak[-1, -1, 3]
        assert np.array_equal(leak, default_light_leak(128, 128))

    def test_load_light_leak_reads_rgba(self, tmp_path):
        rgba = np.zeros((8, 8, 4), dtype=np.uint8)
        rgba[..., 0] = 255  # red
        rgba[..., 3] = 200
        path = tmp_path / "leak.png"
        cv2.imwrite(str(path), cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA))

        tex = load_light_leak(path)

        assert tex.shape == (8, 8, 4)
        assert tex[0, 0, 0] == 255
        assert tex[0, 0, 2] == 0
        assert tex[0, 0, 3] == 200

    def test_load_light_leak_missing_file(self, tmp_path):
        assert load_light_leak(tmp_path / "nope.png") is None


class TestDateStamp:

    def test_text_format(self):
        stamp = DateStamp(when=datetime.datetime(2024, 5, 7, 9, 5, 59))

        assert stamp.content == "2024-05-07 09:05"

    def test_explicit_text_wins(self):
        assert DateStamp(text="hello").content == "hello"

    def test_stamp_lands_in_lower_right(self, wide_grey):
        out = composite(wide_grey, date_stamp=DateStamp(when=datetime.datetime(2024, 5, 17, 9, 30)))

        h, w = wide_grey.shape[:2]
        lower_right = out[h // 2:, w // 2:]
        assert np.abs(lower_right - 0.5).max() > 0.3
        assert np.array_equal(out[:h // 2], wide_grey[:h // 2])

    def test_stamp_has_light_fill_and_dark_outline(self, wide_grey):
        out = composite(wide_grey, date_stamp=DateStamp(text="2024-05-17 09:30"))

        region = out[100:, 200:]
        assert region.max() > 0.9
        assert region.min() < 0.1

    def test_stamp_respects_inset(self, wide_grey):
        out = composite(wide_grey, date_stamp=DateStamp(text="8888", inset=30))

        assert np.array_equal(out[-30:], wide_grey[-30:])
        assert np.array_equal(out[:, -30:], wide_grey[:, -30:])

    def test_stamp_drawn_over_light_leak(self, wide_grey):
        leak = LightLeak(np.full((4, 4, 3), 255, dtype=np.uint8), 1.0)
        stamp = DateStamp(text="2024-05-17 09:30")

        leaked = composite(wide_grey, light_leak=leak)
        both = composite(wide_grey, light_leak=leak, date_stamp=stamp)

        # Leak alone whites out the frame; the stamp outline must still show
        assert leaked.min() == pytest.approx(1.0)
        assert both[100:, 200:].min() < 0.1

    def test_missing_font_passes_through(self, wide_grey, monkeypatch):
        monkeypatch.setattr(overlay, "load_font", lambda name, size: None)

        assert composite(wide_grey, date_stamp=DateStamp(text="x")) is wide_grey
