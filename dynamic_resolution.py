"""
set-dynamic-resolution

Turns macOS "Dynamic resolution" (SkyLight dynamic geometry) on or off for every
display that supports it, the same toggle System Settings > Displays exposes.

Usage:
    set-dynamic-resolution            # enable on all displays that support it
    set-dynamic-resolution --off      # disable
    set-dynamic-resolution --query    # print current state and exit 0
"""

import json
import os
import sys
import logging
from logging.handlers import RotatingFileHandler

import display_list
import skylight
from skylight import LibraryLoadError, SymbolNotFoundError

if getattr(sys, 'frozen', False):
    # Running as compiled binary
    BASE_DIR = os.path.dirname(sys.executable)
else:
    # Running as script
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))

CONFIG_FILE = os.path.join(BASE_DIR, "config.json")
LOG_FILE = os.path.join(BASE_DIR, "dynamic_resolution.log")

EXIT_OK = 0
EXIT_FAILURE = 1

MODE_ENABLE = "enable"
MODE_DISABLE = "disable"
MODE_QUERY = "query"

FLAG_OFF = "--off"
FLAG_QUERY = "--query"
FLAG_DEBUG = "--debug"

DEFAULT_CONFIG = {
    "library_path": skylight.SKYLIGHT_PATH,
    "log_to_file": False,
    "debug": False
}

logger = logging.getLogger('DynamicResolution')


# ===== LOGGING SETUP =====
def setup_logging(debug=False, log_to_file=False, log_file=LOG_FILE):
    """Console logging on stderr, plus an optional rotating log file."""
    logger.setLevel(logging.DEBUG)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
    logger.addHandler(console_handler)

    if log_to_file:
        # max 1MB, keep 3 backups
        file_handler = RotatingFileHandler(
            log_file, maxBytes=1024*1024, backupCount=3, encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    return logger


# ===== CONFIG VALIDATION =====
class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


def validate_config(config):
    """
    Validate configuration values and repair invalid entries.
    Returns a tuple of (validated_config, list_of_warnings).
    """
    if not isinstance(config, dict):
        raise ConfigValidationError(f"Config should be an object, got {type(config).__name__}.")

    warnings = []
    validated = {}

    library_path = config.get("library_path", DEFAULT_CONFIG["library_path"])
    if not isinstance(library_path, str) or not library_path.strip():
        warnings.append(f"library_path was invalid ({library_path!r}), using default.")
        library_path = DEFAULT_CONFIG["library_path"]
    elif not os.path.isabs(library_path.strip()):
        warnings.append(f"library_path must be absolute, got {library_path!r}. Using default.")
        library_path = DEFAULT_CONFIG["library_path"]
    validated["library_path"] = library_path.strip()

    for key in ("log_to_file", "debug"):
        value = config.get(key, DEFAULT_CONFIG[key])
        if not isinstance(value, bool):
            warnings.append(f"{key} should be true or false, got {value!r}. Using {DEFAULT_CONFIG[key]}.")
            value = DEFAULT_CONFIG[key]
        validated[key] = value

    for key in config:
        if key not in DEFAULT_CONFIG:
            warnings.append(f"Unknown config key ignored: {key}")

    return validated, warnings


def load_config(config_file=CONFIG_FILE):
    """Load and validate configuration from file. Never writes the file back."""
    if not os.path.exists(config_file):
        return DEFAULT_CONFIG.copy()

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            raw_config = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Malformed JSON in config file: {e}")
        logger.info("Using default configuration due to parse error.")
        return DEFAULT_CONFIG.copy()
    except OSError as e:
        logger.error(f"Error reading config file: {e}")
        return DEFAULT_CONFIG.copy()

    try:
        validated_config, warnings = validate_config(raw_config)
    except ConfigValidationError as e:
        logger.error(f"{e} Using defaults.")
        return DEFAULT_CONFIG.copy()

    for warning in warnings:
        logger.warning(f"Config validation: {warning}")

    return validated_config


# ===== ARGUMENTS =====
def parse_mode(args):
    """
    Scan arguments once for --off and --query. Unknown arguments are ignored.
    --query wins when both are given.
    """
    enable = True
    query = False
    for arg in args:
        if arg == FLAG_OFF:
            enable = False
        if arg == FLAG_QUERY:
            query = True

    if query:
        return MODE_QUERY
    return MODE_ENABLE if enable else MODE_DISABLE


def ignored_args(args):
    return [a for a in args if a not in (FLAG_OFF, FLAG_QUERY, FLAG_DEBUG)]


def _yes_no(flag):
    return "YES" if flag else "NO"


# ===== PER-DISPLAY ACTION =====
def apply_mode(mode, capability, display_ids, out=None):
    """
    Query or toggle dynamic geometry on each display, in enumeration order.
    Returns the number of displays the mutator was called on.
    """
    if out is None:
        out = sys.stdout
    target = mode == MODE_ENABLE
    acted = 0

    for display_id in display_ids:
        supported = capability.supports(display_id)
        current = capability.is_enabled(display_id)

        if mode == MODE_QUERY:
            print(f"display {display_id}: supportsDynamicGeometry={_yes_no(supported)}  "
                  f"isEnabled={_yes_no(current)}", file=out)
            continue

        if not supported:
            logger.debug(f"Display {display_id}: dynamic geometry not supported, skipped.")
            continue

        capability.set_enabled(display_id, target)
        print(f"display {display_id}: dynamic geometry -> {'ON' if target else 'OFF'}", file=out)
        acted += 1

    return acted


def run(mode, library_path=skylight.SKYLIGHT_PATH, out=None):
    """Bind SkyLight, enumerate displays, apply the mode. Returns the exit code."""
    try:
        capability = skylight.load_skylight(library_path)
    except (LibraryLoadError, SymbolNotFoundError) as e:
        logger.error(str(e))
        return EXIT_FAILURE

    display_ids = display_list.online_display_ids()
    logger.debug(f"Mode: {mode}, displays: {len(display_ids)}")

    acted = apply_mode(mode, capability, display_ids, out=out)

    if mode != MODE_QUERY and acted == 0:
        logger.warning("No displays found that support dynamic geometry")
        return EXIT_FAILURE

    return EXIT_OK


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv

    # Console logging first so config problems are reported
    setup_logging(debug=FLAG_DEBUG in args)
    config = load_config()
    setup_logging(
        debug=config["debug"] or FLAG_DEBUG in args,
        log_to_file=config["log_to_file"]
    )

    extra = ignored_args(args)
    if extra:
        logger.debug(f"Ignoring unrecognized arguments: {extra}")

    return run(parse_mode(args), config["library_path"])


if __name__ == "__main__":
    sys.exit(main())
