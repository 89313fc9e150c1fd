# gplaplace/config.py
import os
import logging

# Read version from VERSION file
_version_file = os.path.join(os.path.dirname(__file__), "..", "VERSION")
try:
    with open(os.path.abspath(_version_file), "r") as f:
        __version__ = f.read().strip()
except FileNotFoundError:
    __version__ = "0.0.0"

_SUPPORTED_BACKENDS = ("numpy",)


class _GPLaplaceConfig:
    def __init__(self):
        self.version = __version__
        self.backend = None
        self.dtype = float
        self.dtype_resolved = None
        self.caches = {}
        # Newton mode-finder defaults
        self.newton_max_iter = 20
        self.newton_tolerance = 1e-6
        self.line_search_tolerance = 1e-6
        self.line_search_max = 10.0
        # logger lives in config
        self.logger = logging.getLogger("gplaplace")
        if not self.logger.handlers:
            h = logging.StreamHandler()
            h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
            self.logger.addHandler(h)
        self.logger.setLevel(logging.INFO)

    def __str__(self):
        return (
            f"GPLaplaceConfig("
            f"version={self.version}, "
            f"backend={self.backend}, "
            f"dtype={self.dtype}, "
            f"newton_max_iter={self.newton_max_iter}, "
            f"newton_tolerance={self.newton_tolerance}, "
            f"line_search_tolerance={self.line_search_tolerance}, "
            f"line_search_max={self.line_search_max}, "
            f"caches={list(self.caches.keys())})"
        )

    def __repr__(self):
        return (
            f"<GPLaplaceConfig "
            f"version={self.version!r}, "
            f"backend={self.backend!r}, "
            f"dtype={self.dtype!r}, "
            f"newton_max_iter={self.newton_max_iter!r}, "
            f"newton_tolerance={self.newton_tolerance!r}, "
            f"caches={list(self.caches.keys())}>"
        )

    def update(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)
        return self

    def clear_caches(self, name=None):
        if name is None:
            self.caches.clear()
        else:
            self.caches.pop(name, None)


_config = _GPLaplaceConfig()


def get_config():
    return _config


def _detect_backend():
    env = os.environ.get("GPLAPLACE_BACKEND")
    if env is None:
        return "numpy"
    if env not in _SUPPORTED_BACKENDS:
        raise ValueError(
            f"GPLAPLACE_BACKEND={env!r} is not supported; use one of {_SUPPORTED_BACKENDS}"
        )
    return env


def init_backend():
    """Idempotent. Detect and store backend, set env for downstream imports."""
    if _config.backend is None:
        backend = _detect_backend()
        _config.backend = backend
        os.environ["GPLAPLACE_BACKEND"] = backend
    return _config.backend


def set_backend(backend: str):
    """Force a backend before importing gplaplace.num."""
    if backend not in _SUPPORTED_BACKENDS:
        raise ValueError(f"backend must be one of {_SUPPORTED_BACKENDS}")
    _config.backend = backend
    os.environ["GPLAPLACE_BACKEND"] = backend


def get_backend():
    """Return current backend; triggers detection if not set."""
    return _config.backend or init_backend()


def set_dtype(dtype):
    _config.dtype = dtype


def set_newton_defaults(**kwargs):
    """Change the defaults read by newly created Newton minimizers.

    Accepted keys: max_iter, tolerance, opt_tolerance, opt_max.
    """
    keymap = {
        "max_iter": "newton_max_iter",
        "tolerance": "newton_tolerance",
        "opt_tolerance": "line_search_tolerance",
        "opt_max": "line_search_max",
    }
    for k, v in kwargs.items():
        if k not in keymap:
            raise ValueError(f"Unknown Newton option: {k}")
        setattr(_config, keymap[k], v)


def clear_caches(name=None):
    _config.clear_caches(name)


def get_logger():
    return _config.logger


def set_log_level(level):
    _config.logger.setLevel(level)
