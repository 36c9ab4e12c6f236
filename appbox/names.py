"""
appbox names: containers that know the application's name.

NameContainer wraps any Container and derives per-application values from
the environment:

- config_dir_path / cache_dir_path / data_dir_path:
  $<PREFIX>CONFIG_DIR (CACHE_DIR, DATA_DIR) when set, otherwise the base
  directory (see containers.config_dir_path and friends) joined with the
  application name; "" when the base directory cannot be determined.
- port: $<PREFIX>PORT, then $PORT; 0 when neither is set.

<PREFIX> is the application name upper-cased with every run of
non-alphanumeric characters replaced by "_", plus a trailing "_"
("my-app" -> "MY_APP_").

Each value, or the error computing it, is computed on first access and kept
for the lifetime of the instance.
"""
import os.path
import re

from . import containers
from .containers import Container
from .utils import Lazy, mirror

_APP_NAME = re.compile(r"[A-Za-z0-9_-]+")


def validate_app_name(app_name, /):
    if not isinstance(app_name, str):
        raise TypeError("application name must be a string")
    if not app_name:
        raise ValueError("empty application name")
    if not _APP_NAME.fullmatch(app_name):
        raise ValueError(f"invalid application name: {app_name}")


def env_prefix(app_name, /):
    """Return the environment variable prefix of app_name."""
    return re.sub(r"[^A-Za-z0-9]+", "_", app_name).upper() + "_"


class NameContainer(Container):
    """A Container bound to an application name."""

    app_name = mirror("app_name")

    def __init__(self, base, app_name, /):
        if not isinstance(base, Container):
            raise TypeError("NameContainer() first argument must be a container")
        validate_app_name(app_name)
        self._base = base
        self._app_name = app_name
        self._config_dir_path = Lazy(lambda: self._dir_path("CONFIG_DIR", containers.config_dir_path))
        self._cache_dir_path = Lazy(lambda: self._dir_path("CACHE_DIR", containers.cache_dir_path))
        self._data_dir_path = Lazy(lambda: self._dir_path("DATA_DIR", containers.data_dir_path))
        self._port = Lazy(self._read_port)

    def __repr__(self):
        return f"name-container(app_name={self._app_name!r})"

    def env(self, key, /):
        return self._base.env(key)

    def each_env(self):
        return self._base.each_env()

    @property
    def stdin(self):
        return self._base.stdin

    @property
    def stdout(self):
        return self._base.stdout

    @property
    def stderr(self):
        return self._base.stderr

    @property
    def num_args(self):
        return self._base.num_args

    def arg(self, index, /):
        return self._base.arg(index)

    def _dir_path(self, suffix, base_dir_path, /):
        if path := self._base.env(env_prefix(self._app_name) + suffix):
            return path
        try:
            return os.path.join(base_dir_path(self._base), self._app_name)
        except ValueError:
            return ""

    def _read_port(self):
        text = self._base.env(env_prefix(self._app_name) + "PORT") or self._base.env("PORT")
        if not text:
            return 0
        if not re.fullmatch(r"[0-9]+", text) or (port := int(text)) > 0xFFFF:
            raise ValueError(f"could not parse port {text!r} to a 16-bit unsigned integer")
        return port

    @property
    def config_dir_path(self):
        return self._config_dir_path.get()

    @property
    def cache_dir_path(self):
        return self._cache_dir_path.get()

    @property
    def data_dir_path(self):
        return self._data_dir_path.get()

    @property
    def port(self):
        """
        The listening port.

        Raises
        - ValueError: the configured value is not an integer in [0, 65535].
          The same error is raised on every access.
        """
        return self._port.get()


def name_container(base, app_name, /):
    return NameContainer(base, app_name)


__all__ = (
    "NameContainer",
    "name_container",
    "validate_app_name",
    "env_prefix",
)
