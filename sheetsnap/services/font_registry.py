"""
Font lookup for the renderer.

FontRegistry indexes the font files found in the configured directories and
the usual system locations once, at construction, and hands out sized
Pillow faces from an LRU cache. It holds no other mutable state, so one
registry is shared by every render thread.
"""

import logging
import re
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path

from PIL import ImageFont

logger = logging.getLogger(__name__)

SEARCH_DIRECTORIES: list[Path] = [
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
    Path.home() / ".fonts",
    Path.home() / ".local/share/fonts",
    # Windows fonts
    Path("C:/Windows/Fonts"),
    # macOS fonts
    Path("/System/Library/Fonts"),
    Path("/Library/Fonts"),
]

FONT_EXTENSIONS = (".ttf", ".otf", ".ttc", ".otc")

# Preferred default faces, best first. CJK-capable fonts come first so
# Chinese, Japanese and Korean text does not render as boxes.
CJK_HINTS = ("notosanscjk", "sourcehansans", "cjk", "yahei", "pingfang", "simsun", "wqy")
FALLBACK_FAMILIES = ("dejavusans", "liberationsans", "arial")

_SEPARATORS_RE = re.compile(r"[\s_\-]+")
_VARIANT_SUFFIX_RE = re.compile(r"(regular|bold|italic|oblique|book|roman)+$")

FontFace = ImageFont.FreeTypeFont | ImageFont.ImageFont


def normalize_name(name: str) -> str:
    """Lower-case a font or family name and drop spaces, dashes and underscores."""
    return _SEPARATORS_RE.sub("", name.lower())


def is_bold(stem: str) -> bool:
    return "bold" in stem


def is_italic(stem: str) -> bool:
    return "italic" in stem or "oblique" in stem


class FontRegistry:
    """
    Catalogue of font files with a cached face loader.

    Attributes:
        index: Font files keyed by normalized file stem; the first file found
            for a stem wins, so extra directories take priority.
        default_path: Font used when a family is unknown, or None when no
            font file was found at all (Pillow's bundled font is used then).

    Example:
        fonts = FontRegistry([Path("/opt/fonts")])
        face = fonts.face(22, bold=True, family="Calibri")
    """

    def __init__(self, extra_dirs: Iterable[Path] = (), search_system: bool = True) -> None:
        directories = list(extra_dirs)
        if search_system:
            directories.extend(SEARCH_DIRECTORIES)

        self.index = self._scan(directories)
        self.default_path = self._pick_default()
        self.face = lru_cache(maxsize=512)(self._load_face)

        logger.info(
            "Font registry ready: %d font files, default %s",
            len(self.index),
            self.default_path or "Pillow built-in",
        )

    @staticmethod
    def _scan(directories: Iterable[Path]) -> dict[str, Path]:
        index: dict[str, Path] = {}
        for root in directories:
            if not root.is_dir():
                continue
            try:
                for candidate in sorted(root.rglob("*")):
                    if candidate.suffix.lower() in FONT_EXTENSIONS and candidate.is_file():
                        index.setdefault(normalize_name(candidate.stem), candidate)
            except OSError as e:
                logger.debug("Cannot scan font directory %s: %s", root, e)
        return index

    def _pick_default(self) -> Path | None:
        regular = {stem: path for stem, path in self.index.items() if not is_bold(stem) and not is_italic(stem)}

        for hint in CJK_HINTS:
            matches = sorted(stem for stem in regular if hint in stem)
            if matches:
                return regular[min(matches, key=len)]

        for family in FALLBACK_FAMILIES:
            path = self._find(family, bold=False, italic=False)
            if path is not None:
                return path

        if self.index:
            return self.index[sorted(self.index)[0]]
        return None

    def _find(self, family: str, bold: bool, italic: bool) -> Path | None:
        """Best file of a family for the requested variant, or None."""
        key = normalize_name(family)
        if not key:
            return None

        candidates = [stem for stem in self.index if stem.startswith(key)]
        matching = [stem for stem in candidates if is_bold(stem) == bold and is_italic(stem) == italic]
        if not matching and (bold or italic):
            matching = [stem for stem in candidates if not is_bold(stem) and not is_italic(stem)]
        if not matching:
            return None
        return self.index[min(sorted(matching), key=len)]

    def find(self, family: str | None = None, bold: bool = False, italic: bool = False) -> Path | None:
        """
        Font file used for a family and variant.

        Unknown families resolve to the matching variant of the default face.
        """
        if family:
            path = self._find(family, bold, italic)
            if path is not None:
                return path

        if self.default_path is None:
            return None
        if bold or italic:
            base = _VARIANT_SUFFIX_RE.sub("", normalize_name(self.default_path.stem))
            return self._find(base, bold, italic) or self.default_path
        return self.default_path

    def _load_face(
        self,
        size_px: int,
        bold: bool = False,
        italic: bool = False,
        family: str | None = None,
    ) -> FontFace:
        size_px = max(int(size_px), 1)
        path = self.find(family, bold, italic)

        if path is not None:
            try:
                return ImageFont.truetype(str(path), size_px)
            except OSError as e:
                logger.warning("Cannot load font %s: %s; using the built-in font", path, e)

        return ImageFont.load_default(size=size_px)

    def __len__(self) -> int:
        return len(self.index)
