import time

import pytest

from confportal.shared.certificate_fonts import (
    DECORATIVE,
    FALLBACK,
    FontLoadError,
    font_file_probe,
    pillow_measure,
    resolve_font,
    select_font,
    wait_for_font,
)


def test_decorative_and_fallback_sizes():
    assert (DECORATIVE.preferred_font_size, DECORATIVE.min_font_size) == (400, 80)
    assert (FALLBACK.preferred_font_size, FALLBACK.min_font_size) == (120, 40)


def test_wait_for_font_ready():
    assert wait_for_font(lambda: True, timeout=1) is True


def test_wait_for_font_not_ready():
    assert wait_for_font(lambda: False, timeout=1) is False


def test_wait_for_font_probe_error_counts_as_missing():
    def probe():
        raise OSError("broken font")

    assert wait_for_font(probe, timeout=1) is False


def test_wait_for_font_times_out():
    def slow_probe():
        time.sleep(0.5)
        return True

    started = time.monotonic()
    assert wait_for_font(slow_probe, timeout=0.05) is False
    assert time.monotonic() - started < 0.4


def test_font_file_probe(tmp_path, font_path):
    assert font_file_probe(font_path)() is True
    assert font_file_probe(str(tmp_path / "missing.ttf"))() is False
    bogus = tmp_path / "bogus.ttf"
    bogus.write_bytes(b"not a font")
    with pytest.raises(OSError):
        font_file_probe(str(bogus))()


def test_fallback_is_labelled_generically():
    assert FALLBACK.family == "Serif"


def test_select_font():
    assert select_font(True) is DECORATIVE
    assert select_font(False) is FALLBACK


def test_resolve_font_prefers_decorative_when_loadable(font_path):
    choice = resolve_font(font_path, font_path, timeout=1)
    assert choice.family == DECORATIVE.family
    assert choice.path == font_path
    assert choice.preferred_font_size == 400


def test_resolve_font_falls_back_when_decorative_missing(tmp_path, font_path):
    choice = resolve_font(str(tmp_path / "Italianno.ttf"), font_path, timeout=1)
    assert choice.family == FALLBACK.family
    assert choice.path == font_path
    assert (choice.preferred_font_size, choice.min_font_size) == (120, 40)


def test_pillow_measure_scales_with_size(font_path):
    measure = pillow_measure(font_path)
    small = measure("Jane Doe", "Italianno", 40)
    large = measure("Jane Doe", "Italianno", 80)
    assert 0 < small < large
    assert measure("Jane Doe", "Italianno", 40) == small


def test_pillow_measure_missing_font(tmp_path):
    measure = pillow_measure(str(tmp_path / "missing.ttf"))
    with pytest.raises(FontLoadError):
        measure("Jane Doe", "Italianno", 40)
