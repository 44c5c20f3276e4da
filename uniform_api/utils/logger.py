import logging
import logging.handlers
import os
from datetime import datetime


class DynamicDailyFileHandler(logging.handlers.WatchedFileHandler):
    """
    File handler that switches to a new file when the day changes:
    <base>/<YYYY>/<MM>/log-<YYYY-MM-DD>.log
    """
    def __init__(self, base_log_dir, encoding='utf-8'):
        self.base_log_dir = base_log_dir
        self.current_date = datetime.now().strftime("%Y-%m-%d")
        super().__init__(self._get_current_log_path(), encoding=encoding)

    def _get_current_log_path(self):
        now = datetime.now()
        logs_folder = os.path.join(self.base_log_dir, now.strftime("%Y"), now.strftime("%m"))
        os.makedirs(logs_folder, exist_ok=True)
        return os.path.join(logs_folder, f"log-{now.strftime('%Y-%m-%d')}.log")

    def emit(self, record):
        try:
            today = datetime.now().strftime("%Y-%m-%d")
            if self.current_date != today:
                if self.stream and not self.stream.closed:
                    self.stream.close()
                self.current_date = today
                self.baseFilename = self._get_current_log_path()
                self.stream = self._open()
            super().emit(record)
        except Exception:
            self.handleError(record)


def get_base_log_dir():
    base_log_dir = os.environ.get("APP_LOG_DIR")
    if base_log_dir is None:
        base_log_dir = os.path.abspath(
            os.path.join(os.path.dirname(__file__), '../../storage/logs')
        )
    return base_log_dir


BASE_LOG_DIR = get_base_log_dir()

Log = logging.getLogger("uniform_api")
Log.setLevel(os.environ.get("LOG_LEVEL", "DEBUG").upper())

if not Log.handlers:
    formatter = logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s', datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    Log.addHandler(console_handler)

    # LOG_TO_FILE=false keeps CI and test runs off the filesystem
    if os.environ.get("LOG_TO_FILE", "true").strip().lower() in ("1", "true", "yes"):
        file_handler = DynamicDailyFileHandler(BASE_LOG_DIR, encoding="utf-8")
        file_handler.setFormatter(formatter)
        Log.addHandler(file_handler)

__all__ = ["Log"]
