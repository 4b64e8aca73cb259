import logging
import os
from pathlib import Path

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib  # pyright: ignore[reportMissingImports]


# Settings key constants
SETTING_LOGGING_PATH = 'logging.path'
SETTING_LOGGING_LEVEL = 'logging.level'
SETTING_CHECK_SAMPLES = 'check.samples'
SETTING_CHECK_SEED = 'check.seed'
SETTING_CHECK_EXHAUSTIVE_LIMIT = 'check.exhaustive_limit'
SETTING_OUTPUT_UPPERCASE = 'output.uppercase'

SETTINGS_ENVIRONMENT_VARIABLE = 'BVARINT_SETTINGS'
DEFAULT_SETTINGS_FILE = 'bvarint.toml'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class BvarintSettings:
    """Settings for the bvarint command-line tool.

    Provides a read-only key-value interface over a TOML file. The codec
    itself takes no configuration; these settings only steer logging and
    the defaults of the ``bvarint`` subcommands.

    Example:
        settings = BvarintSettings(Path('bvarint.toml'))
        samples = settings.get(SETTING_CHECK_SAMPLES, 10000)
        log_path = settings.get('logging.path')
    """

    def __init__(self, settings_file: Path | None = None):
        """Load settings from a TOML file.

        If settings_file is None or does not exist, an empty settings dictionary is
        used, and all get() calls will return their defaults.

        Args:
            settings_file: Path to the TOML settings file
        """
        self._settings_file = settings_file
        self._settings = {}

        if settings_file is not None and settings_file.exists():
            with open(settings_file, 'rb') as f:
                self._settings = tomllib.load(f)

    @property
    def settings_file(self) -> Path | None:
        return self._settings_file

    @classmethod
    def locate(cls, explicit_path: str | os.PathLike | None = None) -> "BvarintSettings":
        """Find and load the settings file.

        Uses explicit_path if given, then the BVARINT_SETTINGS environment variable,
        then bvarint.toml in the current working directory.
        """
        if explicit_path is not None:
            return cls(Path(explicit_path))

        environment_path = os.environ.get(SETTINGS_ENVIRONMENT_VARIABLE)
        if environment_path:
            return cls(Path(environment_path))

        return cls(Path.cwd() / DEFAULT_SETTINGS_FILE)

    def get(self, key: str, default=None):
        """Get a setting value by key with optional default.

        Supports both simple keys and dot notation for nested keys (e.g.,
        'check.samples' accesses settings['check']['samples']). Returns the default
        value if the key path does not exist or if any intermediate value is not a
        dictionary.

        Examples:
            >>> settings.get(SETTING_CHECK_SEED, 0)
            1234
            >>> settings.get('nonexistent.key', 'fallback')
            'fallback'
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value


def configure_logging(settings: BvarintSettings, log_file: str | None = None, log_level: str | None = None) -> bool:
    """Configure root logging from command-line options, falling back to settings.

    The log file is taken from log_file or the logging.path setting. Without either,
    logging is left unconfigured. The level defaults to INFO.

    Returns:
        True if logging was configured, False otherwise
    """
    log_path = log_file or settings.get(SETTING_LOGGING_PATH)
    if not log_path:
        return False

    level_name = log_level or settings.get(SETTING_LOGGING_LEVEL) or 'INFO'
    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level: {level_name}")

    # Reset logging configuration
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        filename=str(log_path),
        level=level,
        format=LOG_FORMAT
    )
    return True
