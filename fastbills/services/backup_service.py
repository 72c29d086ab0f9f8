# ==============================================================================
# BACKUP SERVICE
# ==============================================================================
# Exports products, bills and users to one JSON document and restores
# products and bills from it. Users are never restored: a backup file must
# not be able to replace the credentials of the till.
#
# FILE FORMAT: fastbills_backup_YYYY-MM-DD.json
#   {"products": [...], "bills": [...], "users": [...],
#    "timestamp": <epoch ms>, "version": "1.0.0"}
#
# Written backups are rotated: only the newest max_backups files are kept.
# ==============================================================================

import json
import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, List

from fastbills.config import BACKUP_VERSION
from fastbills.errors import InvalidBackupFormat
from fastbills.models import Bill, Product, UserRole
from fastbills.repositories import KEY_BILLS, KEY_PRODUCTS
from fastbills.services.persistence_service import PersistenceService
from fastbills.services.session_service import SessionService
from fastbills.state import StoreState

logger = logging.getLogger(__name__)

_PREFIX = 'fastbills_backup_'
_SUFFIX = '.json'


class BackupService:
    """
    Backup export and restore.

    Responsibilities:
    - Build the backup document from the current state
    - Write dated backup files and rotate old ones
    - Validate and restore a backup (manager only)
    """

    def __init__(
        self,
        state: StoreState,
        session: SessionService,
        persistence: PersistenceService,
        backup_dir: str,
        max_backups: int = 7
    ):
        """
        Args:
            state: Shared application state
            session: Session service
            persistence: Persistence service
            backup_dir: Folder for backup files (created on first write)
            max_backups: Files kept by rotation
        """
        self.state = state
        self.session = session
        self.persistence = persistence
        self.backup_dir = backup_dir
        self.max_backups = max_backups

    # =========================================================================
    # EXPORT
    # =========================================================================

    def export_backup(self) -> Dict[str, Any]:
        """Backup document for the current state."""
        return {
            'products': [p.to_dict() for p in self.state.products],
            'bills': [b.to_dict() for b in self.state.bills],
            'users': [u.to_dict() for u in self.state.users],
            'timestamp': int(time.time() * 1000),
            'version': BACKUP_VERSION,
        }

    def _today_path(self) -> str:
        today = datetime.now().strftime('%Y-%m-%d')
        return os.path.join(self.backup_dir, f'{_PREFIX}{today}{_SUFFIX}')

    def list_backups(self) -> List[str]:
        """
        Backup file names, newest first.

        Files whose name does not carry a valid date are ignored.
        """
        if not os.path.isdir(self.backup_dir):
            return []

        backups = []
        for name in os.listdir(self.backup_dir):
            if not (name.startswith(_PREFIX) and name.endswith(_SUFFIX)):
                continue
            try:
                datetime.strptime(name[len(_PREFIX):-len(_SUFFIX)], '%Y-%m-%d')
            except ValueError:
                continue
            backups.append(name)

        backups.sort(reverse=True)
        return backups

    def write_backup(self) -> str:
        """
        Writes today's backup file (replacing one written earlier today) and
        rotates old files.

        Returns:
            Path of the written file
        """
        os.makedirs(self.backup_dir, exist_ok=True)
        path = self._today_path()
        tmp_path = path + '.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(self.export_backup(), f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)

        logger.info("Backup written: %s", os.path.basename(path))
        self.rotate_backups()
        return path

    def rotate_backups(self) -> int:
        """
        Deletes backups beyond max_backups.

        Returns:
            Number of files deleted
        """
        deleted = 0
        for name in self.list_backups()[self.max_backups:]:
            try:
                os.remove(os.path.join(self.backup_dir, name))
                deleted += 1
                logger.info("Old backup removed: %s", name)
            except OSError as e:
                logger.warning("Could not remove backup %s: %s", name, e)
        return deleted

    # =========================================================================
    # RESTORE
    # =========================================================================

    def restore_backup(self, document: Dict[str, Any]) -> Dict[str, int]:
        """
        Replaces products and bills with those of a backup document.

        Users in the document are ignored.

        Returns:
            Dict with the restored products and bills counts

        Raises:
            PermissionDenied: Not a manager session
            InvalidBackupFormat: Missing products, bills or version, or
                                 unreadable records
        """
        manager = self.session.require_role(UserRole.MANAGER)

        if not self._has_required_fields(document):
            logger.warning("Backup restore rejected: missing products, bills or version")
            raise InvalidBackupFormat()

        try:
            products = [Product.from_dict(p) for p in document['products']]
            bills = [Bill.from_dict(b) for b in document['bills']]
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Backup restore rejected: %s", e)
            raise InvalidBackupFormat()

        self.state.products = products
        self.state.bills = bills
        self.persistence.persist(KEY_PRODUCTS, KEY_BILLS)

        logger.info(
            "Backup restored by %s: %d products, %d bills",
            manager.name, len(products), len(bills),
        )
        return {'products': len(products), 'bills': len(bills)}

    def restore_backup_file(self, path: str) -> Dict[str, int]:
        """
        Restores from a backup file.

        Raises:
            InvalidBackupFormat: File is not valid JSON
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except ValueError:
            raise InvalidBackupFormat()
        return self.restore_backup(document)

    @staticmethod
    def _has_required_fields(document: Any) -> bool:
        return (
            isinstance(document, dict)
            and isinstance(document.get('products'), list)
            and isinstance(document.get('bills'), list)
            and bool(document.get('version'))
        )
