# ==============================================================================
# CONFIGURATION - Environment variables and logging
# ==============================================================================
# Every setting comes from the environment so the same code runs on a
# cashier's laptop and behind gunicorn:
#
#   export FASTBILLS_DATA_DIR=/srv/fastbills/data
#   export FASTBILLS_SECRET_KEY="a_long_random_secret"
#   export FASTBILLS_PRODUCTION=1
# ==============================================================================

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Fixed sales tax rate applied to every bill subtotal.
TAX_RATE = 0.10

# Format tag stamped on exported backups.
BACKUP_VERSION = '1.0.0'

LOG_FORMAT = '[%(levelname)s] %(name)s: %(message)s'

_DEFAULT_SECRET = 'fastbills_dev_secret_key_change_in_production'


def _env_flag(name: str, default: str = '0') -> bool:
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    """
    Runtime settings for the application.

    Attributes:
        data_dir: Directory holding one JSON file per persisted key
        backup_dir: Directory where exported backups are written
        secret_key: Flask secret key
        production: Production mode flag
        log_level: Root log level name
        async_writes: Write-behind persistence (False = synchronous writes)
        max_backups: Number of backup files kept by rotation
        credentials: Credential verifier ('plaintext' or 'hashed')
    """
    data_dir: str
    backup_dir: str
    secret_key: str = _DEFAULT_SECRET
    production: bool = False
    log_level: str = 'INFO'
    async_writes: bool = True
    max_backups: int = 7
    credentials: str = 'plaintext'

    @classmethod
    def from_env(cls, base_path: Optional[str] = None) -> 'Settings':
        """
        Builds the settings from FASTBILLS_* environment variables.

        Args:
            base_path: Directory used for the default data dir (cwd if None)
        """
        base_path = base_path or os.getcwd()
        data_dir = os.environ.get('FASTBILLS_DATA_DIR') or os.path.join(base_path, 'data')
        backup_dir = os.environ.get('FASTBILLS_BACKUP_DIR') or os.path.join(data_dir, 'backups')
        production = _env_flag('FASTBILLS_PRODUCTION')
        secret_key = os.environ.get('FASTBILLS_SECRET_KEY')

        if production and not secret_key:
            logger.warning("Production mode without FASTBILLS_SECRET_KEY, using the development key")

        try:
            max_backups = int(os.environ.get('FASTBILLS_MAX_BACKUPS', '7'))
        except ValueError:
            max_backups = 7

        return cls(
            data_dir=data_dir,
            backup_dir=backup_dir,
            secret_key=secret_key or _DEFAULT_SECRET,
            production=production,
            log_level=os.environ.get('FASTBILLS_LOG_LEVEL', 'INFO'),
            async_writes=_env_flag('FASTBILLS_ASYNC_WRITES', '1'),
            max_backups=max(1, max_backups),
            credentials=os.environ.get('FASTBILLS_CREDENTIALS', 'plaintext').strip().lower(),
        )


def configure_logging(level_name: str = 'INFO') -> None:
    """Configures the root logger once; later calls only adjust the level."""
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)
