import ctypes
import logging
import os
import platform

logger = logging.getLogger('DynamicResolution')

# --- SkyLight (private framework) definitions for Dynamic Resolution ---

SKYLIGHT_PATH = "/System/Library/PrivateFrameworks/SkyLight.framework/SkyLight"

SYM_SUPPORTS = "SLSDisplaySupportsDynamicGeometry"
SYM_IS_ENABLED = "SLSDisplayIsDynamicGeometryEnabled"
SYM_SET_ENABLED = "SLSDisplaySetDynamicGeometryEnabled"

# CGDirectDisplayID is a uint32_t
CGDirectDisplayID = ctypes.c_uint32

RTLD_NOW = getattr(os, 'RTLD_NOW', 0x2)


class LibraryLoadError(Exception):
    """Raised when the SkyLight framework cannot be opened."""
    pass


class SymbolNotFoundError(Exception):
    """Raised when a required SkyLight entry point is missing (host version mismatch)."""
    pass


class SkyLightCapability:
    """
    Thin wrapper over the three dynamic geometry entry points.
    The is-enabled query is optional; without it every display reads as disabled.
    """
    def __init__(self, supports_fn, set_enabled_fn, is_enabled_fn=None):
        self._supports = supports_fn
        self._set_enabled = set_enabled_fn
        self._is_enabled = is_enabled_fn

    @property
    def has_state_query(self):
        return self._is_enabled is not None

    def supports(self, display_id):
        return bool(self._supports(display_id))

    def is_enabled(self, display_id):
        if self._is_enabled is None:
            return False
        return bool(self._is_enabled(display_id))

    def set_enabled(self, display_id, enabled):
        self._set_enabled(display_id, bool(enabled))


def _resolve(lib, name, argtypes, restype):
    """Look up a symbol by name, returning None when the library does not export it."""
    try:
        fn = getattr(lib, name)
    except AttributeError:
        logger.debug(f"Symbol not exported: {name}")
        return None
    fn.argtypes = argtypes
    fn.restype = restype
    return fn


def _host_version():
    release = platform.mac_ver()[0]
    return f"macOS {release}" if release else platform.platform()


def load_skylight(path=SKYLIGHT_PATH):
    """
    Open the SkyLight framework and bind the dynamic geometry functions.
    Raises LibraryLoadError if the framework cannot be loaded and
    SymbolNotFoundError if the supports or set entry points are absent.
    """
    try:
        lib = ctypes.CDLL(path, mode=RTLD_NOW | ctypes.RTLD_LOCAL)
    except OSError as e:
        raise LibraryLoadError(f"Could not load SkyLight framework: {e}") from e

    logger.debug(f"Loaded {path}")

    supports = _resolve(lib, SYM_SUPPORTS, [CGDirectDisplayID], ctypes.c_bool)
    is_enabled = _resolve(lib, SYM_IS_ENABLED, [CGDirectDisplayID], ctypes.c_bool)
    set_enabled = _resolve(lib, SYM_SET_ENABLED, [CGDirectDisplayID, ctypes.c_bool], None)

    missing = [name for name, fn in ((SYM_SUPPORTS, supports), (SYM_SET_ENABLED, set_enabled)) if fn is None]
    if missing:
        raise SymbolNotFoundError(
            f"SkyLight symbols not found: {', '.join(missing)} "
            f"({_host_version()} version mismatch?)"
        )

    capability = SkyLightCapability(supports, set_enabled, is_enabled)
    if not capability.has_state_query:
        logger.debug(f"{SYM_IS_ENABLED} unavailable, current state will read as NO.")

    return capability
