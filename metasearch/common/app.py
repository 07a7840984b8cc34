"""App constants."""

from pathlib import Path
from tempfile import TemporaryDirectory

from platformdirs import user_data_dir

APP_NAME = "metasearch"
APP_AUTHOR = "metasearch"


class AppDirs:
    """App directories."""

    def __init__(self) -> None:
        """Initialize app directories."""
        self._temp_dir: TemporaryDirectory | None = None
        self._set_root(Path(user_data_dir(appname=APP_NAME, appauthor=APP_AUTHOR)))

    def _set_root(self, root: Path) -> None:
        self.app_data_dir = root
        self.app_config_path = self.app_data_dir / "config.json"

    def use_temp_app_data_dir(self) -> None:
        """Set app data to a temporary directory."""
        self._temp_dir = TemporaryDirectory()
        self._set_root(Path(self._temp_dir.name))


app_dirs = AppDirs()
