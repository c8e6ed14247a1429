"""
Internationalization Manager
Language pack loading, translation lookup, pluralization, RTL detection,
plugin language strings and locale-aware date/number formatting
"""

import json
import logging
import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from lms.config import settings
from lms.utils.cache import TTLCache

logger = logging.getLogger(__name__)

LOCALE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")

RTL_LANGUAGES = {"ar", "he", "fa", "ur", "ku", "dv", "yi"}

PLURAL_FORMS = ["zero", "one", "two", "few", "many", "other"]

# Strings exported to the front-end when no explicit key list is requested
DEFAULT_JS_KEYS = [
    "common.yes", "common.no", "common.cancel", "common.save",
    "common.delete", "common.edit", "common.loading", "common.error",
    "common.success", "common.warning", "common.info",
    "form.required", "form.invalid", "form.submit",
    "navigation.dashboard", "navigation.courses", "navigation.users",
]

# Moodle language file -> our category
MOODLE_LANG_FILES = {
    "moodle.php": "common",
    "admin.php": "admin",
    "course.php": "course",
    "user.php": "user",
    "quiz.php": "quiz",
    "block.php": "block",
}

MOODLE_STRING_PATTERN = re.compile(
    r"""\$string\[\s*(['"])(?P<key>.+?)\1\s*\]\s*=\s*(?P<quote>['"])(?P<value>.*?)(?<!\\)(?P=quote)\s*;""",
    re.DOTALL,
)

DATE_FORMATS = {
    "de": {
        "short": "{day2}.{month2}.{year}",
        "medium": "{day2}. {month_abbr} {year}",
        "long": "{day2}. {month_name} {year}",
        "full": "{weekday}, {day2}. {month_name} {year}",
    },
    "fr": {
        "short": "{day2}/{month2}/{year}",
        "medium": "{day} {month_abbr} {year}",
        "long": "{day} {month_name} {year}",
        "full": "{weekday} {day} {month_name} {year}",
    },
    "default": {
        "short": "{month}/{day}/{year}",
        "medium": "{month_abbr} {day}, {year}",
        "long": "{month_name} {day}, {year}",
        "full": "{weekday}, {month_name} {day}, {year}",
    },
}

NUMBER_SEPARATORS = {
    "de": {"decimal_separator": ",", "thousands_separator": "."},
    "fr": {"decimal_separator": ",", "thousands_separator": " "},
    "default": {"decimal_separator": ".", "thousands_separator": ","},
}


def _plural_default(n: int) -> int:
    return 1 if n == 1 else 5


def _plural_arabic(n: int) -> int:
    if n == 0:
        return 0
    if n == 1:
        return 1
    if n == 2:
        return 2
    if 3 <= n % 100 <= 10:
        return 3
    if n % 100 >= 11:
        return 4
    return 5


def _plural_east_slavic(n: int) -> int:
    if n % 10 == 1 and n % 100 != 11:
        return 1
    if 2 <= n % 10 <= 4 and (n % 100 < 10 or n % 100 >= 20):
        return 3
    return 5


def _plural_polish(n: int) -> int:
    if n == 1:
        return 1
    if 2 <= n % 10 <= 4 and (n % 100 < 10 or n % 100 >= 20):
        return 3
    return 5


PLURAL_RULES: Dict[str, Callable[[int], int]] = {
    "ar": _plural_arabic,
    "ru": _plural_east_slavic,
    "uk": _plural_east_slavic,
    "pl": _plural_polish,
}


class I18nManager:
    """
    Manages multi-language support in the style of Moodle's language system.

    Translations live in ``<lang_path>/<locale>/<category>.json`` and are
    addressed as ``<category>.<key>``. Plugin strings live in
    ``<plugins_path>/<type>/<name>/lang/<locale>.json``.
    """

    def __init__(
        self,
        lang_path: Optional[Path] = None,
        plugins_path: Optional[Path] = None,
        default_locale: Optional[str] = None,
        cache_ttl: Optional[int] = None,
    ):
        self.lang_path = Path(lang_path or settings.LANG_PATH)
        self.plugins_path = Path(plugins_path or settings.PLUGINS_PATH)
        self.default_locale = default_locale or settings.DEFAULT_LOCALE
        self.current_locale = self.default_locale
        self.cache = TTLCache(cache_ttl if cache_ttl is not None else settings.I18N_CACHE_TTL)
        self.translations: Dict[str, Dict[str, str]] = {}
        self.plugin_translations: Dict[str, Dict[str, Dict[str, str]]] = {}

    # ============ Locale selection ============

    def set_locale(self, locale: str) -> None:
        """Set the current locale; invalid identifiers are ignored"""
        if not self.is_valid_locale(locale):
            logger.warning(f"Ignoring invalid locale {locale!r}")
            return

        self.current_locale = locale
        self._ensure_loaded(locale)

    def get_locale(self) -> str:
        return self.current_locale

    @staticmethod
    def is_valid_locale(locale: Optional[str]) -> bool:
        return bool(locale) and LOCALE_PATTERN.match(locale) is not None

    def has_language_pack(self, locale: str) -> bool:
        return self.is_valid_locale(locale) and (self.lang_path / locale).is_dir()

    def get_available_locales(self) -> Dict[str, Dict[str, Any]]:
        """Get available locales with their language pack info"""
        locales: Dict[str, Dict[str, Any]] = {}

        if not self.lang_path.is_dir():
            return locales

        for directory in sorted(self.lang_path.iterdir()):
            if directory.is_dir() and self.is_valid_locale(directory.name):
                locales[directory.name] = self.get_language_info(directory.name)

        return locales

    def match_locale(self, candidates: Iterable[Optional[str]]) -> str:
        """
        Pick the first candidate with an installed language pack.

        Candidates may be locale identifiers in any case (``pt-br``) or raw
        ``Accept-Language`` headers. A regional locale without its own pack
        matches its language pack (``de-AT`` -> ``de``).
        """
        for candidate in candidates:
            for locale in self._expand_candidate(candidate):
                if self.has_language_pack(locale):
                    return locale
                language = locale.split("-")[0]
                if self.has_language_pack(language):
                    return language
        return self.default_locale

    # ============ Translation ============

    def translate(
        self,
        key: str,
        parameters: Optional[Dict[str, Any]] = None,
        locale: Optional[str] = None,
    ) -> str:
        """Translate a key, falling back to the default locale and then the key itself"""
        locale = locale or self.current_locale
        translation = self._get_translation(key, locale)

        if parameters:
            translation = self.replace_parameters(translation, parameters)

        return translation

    def translate_plural(
        self,
        key: str,
        count: int,
        parameters: Optional[Dict[str, Any]] = None,
        locale: Optional[str] = None,
    ) -> str:
        """Translate using the plural form for ``count`` (``<key>_one``, ``<key>_other``...)"""
        locale = locale or self.current_locale
        parameters = dict(parameters or {})
        parameters["count"] = count

        return self.translate(self.get_plural_key(key, count, locale), parameters, locale)

    def get_plural_key(self, key: str, count: int, locale: str) -> str:
        form = self.get_plural_rule(locale)(abs(count))
        return f"{key}_{PLURAL_FORMS[form]}"

    @staticmethod
    def get_plural_rule(locale: str) -> Callable[[int], int]:
        return PLURAL_RULES.get(locale[:2], _plural_default)

    @staticmethod
    def replace_parameters(translation: str, parameters: Dict[str, Any]) -> str:
        """Replace ``:name`` and ``{name}`` placeholders"""
        # Longest names first so ``:count`` never eats the start of ``:counter``
        for name in sorted(parameters, key=len, reverse=True):
            value = str(parameters[name])
            translation = translation.replace(f":{name}", value)
            translation = translation.replace(f"{{{name}}}", value)
        return translation

    # ============ Direction ============

    def is_rtl(self, locale: Optional[str] = None) -> bool:
        locale = locale or self.current_locale
        return locale.split("-")[0].lower() in RTL_LANGUAGES

    def get_direction_class(self, locale: Optional[str] = None) -> str:
        return "rtl" if self.is_rtl(locale) else "ltr"

    # ============ Plugin strings ============

    def load_plugin_language(self, plugin_type: str, plugin_name: str, locale: Optional[str] = None) -> Dict[str, str]:
        """Load plugin strings, falling back to English and then to an empty set"""
        locale = locale or self.current_locale
        cache_key = f"plugin_lang_{plugin_type}_{plugin_name}_{locale}"

        def load() -> Dict[str, str]:
            lang_dir = self.plugins_path / plugin_type / plugin_name / "lang"
            for candidate in (locale, "en"):
                lang_file = lang_dir / f"{candidate}.json"
                if lang_file.is_file():
                    return self._read_strings(lang_file)
            return {}

        strings = self.cache.remember(cache_key, load)
        self.plugin_translations.setdefault(locale, {})[f"{plugin_type}_{plugin_name}"] = strings
        return strings

    def translate_plugin(
        self,
        plugin_type: str,
        plugin_name: str,
        key: str,
        parameters: Optional[Dict[str, Any]] = None,
        locale: Optional[str] = None,
    ) -> str:
        locale = locale or self.current_locale
        plugin_key = f"{plugin_type}_{plugin_name}"

        strings = self.plugin_translations.get(locale, {}).get(plugin_key)
        if strings is None:
            strings = self.load_plugin_language(plugin_type, plugin_name, locale)

        translation = strings.get(key, key)

        if parameters:
            translation = self.replace_parameters(translation, parameters)

        return translation

    # ============ Formatting ============

    def format_date(self, value: Union[date, datetime], fmt: str = "medium", locale: Optional[str] = None) -> str:
        """Format a date using the locale's short/medium/long/full pattern"""
        locale = locale or self.current_locale
        formats = DATE_FORMATS.get(locale[:2], DATE_FORMATS["default"])
        pattern = formats.get(fmt, formats["medium"])

        month_name = self.translate(f"dates.month_{value.month}", locale=locale)
        formatted = pattern.format(
            day=value.day,
            day2=f"{value.day:02d}",
            month=value.month,
            month2=f"{value.month:02d}",
            year=value.year,
            month_name=month_name,
            month_abbr=self.translate(f"dates.month_abbr_{value.month}", locale=locale),
            weekday=self.translate(f"dates.weekday_{value.isoweekday()}", locale=locale),
        )

        if self.is_rtl(locale):
            # Keep dates left-to-right inside right-to-left text
            formatted = "\u202d" + formatted + "\u202c"

        return formatted

    def format_number(self, number: Union[int, float, Decimal], decimals: int = 2, locale: Optional[str] = None) -> str:
        """Format a number with half-up rounding and the locale's separators"""
        locale = locale or self.current_locale
        separators = NUMBER_SEPARATORS.get(locale[:2], NUMBER_SEPARATORS["default"])

        quantum = Decimal(1).scaleb(-decimals)
        rounded = Decimal(str(number)).quantize(quantum, rounding=ROUND_HALF_UP)
        formatted = f"{rounded:,.{decimals}f}"

        return (
            formatted.replace(",", "\x00")
            .replace(".", separators["decimal_separator"])
            .replace("\x00", separators["thousands_separator"])
        )

    # ============ Language pack info and export ============

    def get_language_info(self, locale: str) -> Dict[str, Any]:
        info_file = self.lang_path / locale / "info.json"

        if info_file.is_file():
            with info_file.open(encoding="utf-8") as handle:
                return json.load(handle)

        return {
            "name": locale,
            "nativename": locale,
            "direction": self.get_direction_class(locale),
            "completion": 100,
        }

    def export_for_javascript(self, keys: Optional[List[str]] = None, locale: Optional[str] = None) -> Dict[str, Any]:
        """Export strings for the front-end in a single payload"""
        locale = locale or self.current_locale
        keys = keys or DEFAULT_JS_KEYS

        return {
            "locale": locale,
            "direction": self.get_direction_class(locale),
            "translations": {key: self.translate(key, locale=locale) for key in keys},
        }

    def import_moodle_language_pack(self, moodle_lang_path: Union[str, Path], locale: str) -> bool:
        """Convert a Moodle language directory into JSON language pack files"""
        if not self.is_valid_locale(locale):
            raise ValueError(f"Invalid locale: {locale}")

        source_dir = Path(moodle_lang_path)
        output_dir = self.lang_path / locale
        output_dir.mkdir(parents=True, exist_ok=True)

        imported = 0
        for moodle_file, category in MOODLE_LANG_FILES.items():
            source = source_dir / moodle_file
            if not source.is_file():
                continue

            strings = self.convert_moodle_strings(
                self.parse_moodle_strings(source.read_text(encoding="utf-8"))
            )
            with (output_dir / f"{category}.json").open("w", encoding="utf-8") as handle:
                json.dump(strings, handle, ensure_ascii=False, indent=2, sort_keys=True)
            imported += len(strings)

        self._write_language_info(locale, output_dir)
        self.cache.forget(f"lang_pack_{locale}")
        self.translations.pop(locale, None)

        logger.info(f"Imported {imported} Moodle strings into language pack {locale}")
        return True

    @staticmethod
    def parse_moodle_strings(source: str) -> Dict[str, str]:
        strings = {}
        for match in MOODLE_STRING_PATTERN.finditer(source):
            quote = match.group("quote")
            strings[match.group("key")] = match.group("value").replace("\\" + quote, quote)
        return strings

    @staticmethod
    def convert_moodle_strings(moodle_strings: Dict[str, str]) -> Dict[str, str]:
        """Convert Moodle ``{$a}`` / ``{$a->name}`` placeholders to ``:a`` / ``:name``"""
        converted = {}
        for key, value in moodle_strings.items():
            value = re.sub(r"\{\$a->([A-Za-z0-9_]+)\}", r":\1", value)
            value = re.sub(r"\{\$([A-Za-z0-9_]+)\}", r":\1", value)
            converted[key] = value
        return converted

    def clear_cache(self) -> None:
        self.cache.clear()
        self.translations.clear()
        self.plugin_translations.clear()

    # ============ Internals ============

    def _ensure_loaded(self, locale: str) -> Dict[str, str]:
        if locale not in self.translations:
            self.translations[locale] = self.cache.remember(
                f"lang_pack_{locale}", lambda: self._load_language_pack(locale)
            )
        return self.translations[locale]

    def _load_language_pack(self, locale: str) -> Dict[str, str]:
        translations: Dict[str, str] = {}
        pack_dir = self.lang_path / locale

        if not self.is_valid_locale(locale) or not pack_dir.is_dir():
            return translations

        for lang_file in sorted(pack_dir.glob("*.json")):
            if lang_file.stem == "info":
                continue
            for key, value in self._read_strings(lang_file).items():
                translations[f"{lang_file.stem}.{key}"] = value

        logger.debug(f"Loaded {len(translations)} strings for locale {locale}")
        return translations

    def _get_translation(self, key: str, locale: str) -> str:
        translations = self._ensure_loaded(locale)
        if key in translations:
            return translations[key]

        if locale != self.default_locale:
            defaults = self._ensure_loaded(self.default_locale)
            if key in defaults:
                return defaults[key]

        return key

    @staticmethod
    def _read_strings(path: Path) -> Dict[str, str]:
        with path.open(encoding="utf-8") as handle:
            data = json.load(handle)
        return dict(I18nManager._flatten(data))

    @staticmethod
    def _flatten(data: Dict[str, Any], prefix: str = ""):
        for key, value in data.items():
            full_key = f"{prefix}{key}"
            if isinstance(value, dict):
                yield from I18nManager._flatten(value, f"{full_key}.")
            else:
                yield full_key, str(value)

    @staticmethod
    def _expand_candidate(candidate: Optional[str]) -> List[str]:
        if not candidate:
            return []

        weighted = []
        for position, part in enumerate(candidate.split(",")):
            tag, _, params = part.strip().partition(";")
            quality = 1.0
            if params.strip().startswith("q="):
                try:
                    quality = float(params.strip()[2:])
                except ValueError:
                    quality = 0.0
            if tag and tag != "*" and quality > 0:
                weighted.append((-quality, position, I18nManager._normalize_tag(tag)))

        return [tag for _, _, tag in sorted(weighted)]

    @staticmethod
    def _normalize_tag(tag: str) -> str:
        language, _, region = tag.replace("_", "-").partition("-")
        if region:
            return f"{language.lower()}-{region.upper()}"
        return language.lower()

    def _write_language_info(self, locale: str, output_dir: Path) -> None:
        info = {
            "name": locale,
            "nativename": locale,
            "direction": self.get_direction_class(locale),
            "completion": 100,
            "parent": "en" if locale != "en" else None,
        }
        with (output_dir / "info.json").open("w", encoding="utf-8") as handle:
            json.dump(info, handle, ensure_ascii=False, indent=2)


# Singleton instance
i18n_manager = I18nManager()
