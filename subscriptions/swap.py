"""
Atomic swap of a staged document into place, with backup and rollback.

The active document only ever changes through os.rename, so a reader opening
it sees either the complete old document or the complete new one.
"""
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .constants import BACKUP_SUFFIX, BACKUP_TIME_FORMAT

logger = logging.getLogger(__name__)


def backup_path(active: Path, now: Optional[datetime] = None) -> Path:
    stamp = (now or datetime.now()).strftime(BACKUP_TIME_FORMAT)
    return active.with_name(f"{active.name}-{stamp}{BACKUP_SUFFIX}")


def promote(staging: Path, active: Path, now: Optional[datetime] = None, label: str = "") -> bool:
    """
    Replace `active` with `staging`, keeping the previous document as a backup.

    Args:
        staging: The validated download
        active: The document consumers read
        now: Timestamp for the backup name (defaults to local now)
        label: Prefix for log lines, usually the subscription name

    Returns:
        True when `staging` is now the active document. On False the active
        document is the previous one, unless the rollback itself failed.
    """
    staging, active = Path(staging), Path(active)
    tag = f"[{label or active.stem}]"
    backup = backup_path(active, now)
    has_backup = False

    if active.exists():
        logger.info("%s Backing up %s => %s", tag, active.name, backup.name)
        try:
            os.rename(active, backup)
        except OSError as e:
            logger.error("%s Backup failed: %s", tag, e)
            return False
        has_backup = True

    logger.info("%s Writing %s", tag, active.name)
    try:
        os.rename(staging, active)
    except OSError as e:
        logger.error("%s Write failed: %s", tag, e)
        if has_backup:
            rollback(backup, active, tag)
        return False

    return True


def rollback(backup: Path, active: Path, tag: str) -> bool:
    logger.info("%s Rolling back to %s", tag, backup.name)
    try:
        os.rename(backup, active)
    except OSError as e:
        logger.error("%s Rollback failed, no active document left: %s", tag, e)
        return False
    return True


def list_backups(active: Path) -> List[Path]:
    """Backups of `active`, oldest first"""
    active = Path(active)
    if not active.parent.exists():
        return []
    prefix = f"{active.name}-"
    # the timestamp format sorts chronologically as text
    return sorted(
        p for p in active.parent.iterdir() if p.name.startswith(prefix) and p.name.endswith(BACKUP_SUFFIX)
    )


def prune_backups(active: Path, keep: int) -> List[Path]:
    """Remove all but the `keep` newest backups of `active`, returns what was removed"""
    backups = list_backups(active)
    stale = backups[:-keep] if keep > 0 else backups
    removed = []
    for path in stale:
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        removed.append(path)
        logger.debug("Removed old backup %s", path.name)
    return removed
