from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, replace
from typing import Callable

import reportlab
from PIL import ImageFont

from .text_fit import MeasureWidth

logger = logging.getLogger("confportal.fonts")

DEFAULT_FONT_TIMEOUT = 2.0

_ASSET_FONT_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "assets", "fonts")
DEFAULT_DECORATIVE_FONT_PATH = os.path.join(_ASSET_FONT_DIR, "Italianno-Regular.ttf")
_FALLBACK_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSerif.ttf",
    "/usr/share/fonts/dejavu/DejaVuSerif.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSerif-Regular.ttf",
    os.path.join(os.path.dirname(reportlab.__file__), "fonts", "Vera.ttf"),
)


def _first_existing(paths) -> str:
    for path in paths:
        if os.path.isfile(path):
            return path
    return paths[-1]


DEFAULT_FALLBACK_FONT_PATH = _first_existing(_FALLBACK_FONT_CANDIDATES)


class FontLoadError(RuntimeError):
    pass


@dataclass(frozen=True)
class FontChoice:
    family: str
    path: str
    preferred_font_size: float
    min_font_size: float


DECORATIVE = FontChoice(
    family="Italianno",
    path=DEFAULT_DECORATIVE_FONT_PATH,
    preferred_font_size=400,
    min_font_size=80,
)

FALLBACK = FontChoice(
    family="Serif",
    path=DEFAULT_FALLBACK_FONT_PATH,
    preferred_font_size=120,
    min_font_size=40,
)


def font_file_probe(path: str) -> Callable[[], bool]:
    def probe() -> bool:
        if not path or not os.path.isfile(path):
            return False
        ImageFont.truetype(path, 12)
        return True

    return probe


def wait_for_font(probe: Callable[[], bool], timeout: float = DEFAULT_FONT_TIMEOUT) -> bool:
    """Race ``probe`` against ``timeout`` seconds.

    Returns False when the probe reports the font missing, raises, or is
    still running when the timeout expires.
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(probe)
    try:
        return bool(future.result(timeout=timeout))
    except FutureTimeout:
        logger.warning("[FONT] readiness probe timed out after %.1fs", timeout)
        return False
    except Exception:
        logger.warning("[FONT] readiness probe failed", exc_info=True)
        return False
    finally:
        executor.shutdown(wait=False)


def select_font(
    decorative_ready: bool,
    decorative: FontChoice = DECORATIVE,
    fallback: FontChoice = FALLBACK,
) -> FontChoice:
    if decorative_ready:
        return decorative
    logger.warning(
        "[FONT] %s not ready, using fallback %s (%s) at %spx",
        decorative.family,
        fallback.family,
        os.path.basename(fallback.path),
        fallback.preferred_font_size,
    )
    return fallback


def resolve_font(
    decorative_path: str | None = None,
    fallback_path: str | None = None,
    timeout: float = DEFAULT_FONT_TIMEOUT,
) -> FontChoice:
    decorative = replace(DECORATIVE, path=decorative_path or DECORATIVE.path)
    fallback = replace(FALLBACK, path=fallback_path or FALLBACK.path)
    ready = wait_for_font(font_file_probe(decorative.path), timeout)
    return select_font(ready, decorative, fallback)


def pillow_measure(font_path: str) -> MeasureWidth:
    """Return a ``measure_width`` capability backed by a TrueType file.

    The family argument is accepted for interface compatibility; the file
    already determines the face.
    """
    cache: dict[int, ImageFont.FreeTypeFont] = {}

    def load(size: float) -> ImageFont.FreeTypeFont:
        key = max(1, int(size))
        font = cache.get(key)
        if font is None:
            try:
                font = ImageFont.truetype(font_path, key)
            except OSError as exc:
                raise FontLoadError(f"Unable to load font {font_path}") from exc
            cache[key] = font
        return font

    def measure(text: str, family: str, size: float) -> float:
        return float(load(size).getlength(text))

    return measure
