"""Constants used in the project."""

from enum import Enum


class MetadataFiles(Enum):
    """Static metadata files read from a candidate source directory.

    Args:
        Enum (string): Relative, case-sensitive file names.
    """

    PKG_INFO = "PKG-INFO"
    PYPROJECT_TOML = "pyproject.toml"
    SETUP_CFG = "setup.cfg"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PKG_INFO_FILE = MetadataFiles.PKG_INFO.value
    PYPROJECT_TOML_FILE = MetadataFiles.PYPROJECT_TOML.value
    SETUP_CFG_FILE = MetadataFiles.SETUP_CFG.value

    WHEEL_EXTENSION = ".whl"
    # Longest suffixes first so ".tar.gz" wins over ".gz"
    SDIST_EXTENSIONS = (".tar.gz", ".tar.bz2", ".tar.xz", ".tgz", ".zip")

    # Ceiling on per-requirement resolutions in flight at once
    MAX_CONCURRENCY = 50

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL = "INFO"

    ENV_LOG_LEVEL = "REQNAME_LOG_LEVEL"
    ENV_MAX_CONCURRENCY = "REQNAME_MAX_CONCURRENCY"
    ENV_CONFIG = "REQNAME_CONFIG"

    CONFIG_LOCATIONS = [
        "reqname.yml",
        "reqname.yaml",
        "~/.config/reqname/reqname.yml",
    ]
