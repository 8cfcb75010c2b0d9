"""
Subscription manager.

Wires fetcher, validator gate, swap engine and scheduler together and owns the
service lifetime: bootstrap the current subscription, hand it to the engine,
then keep every subscription fresh until a shutdown signal arrives.
"""

import logging
import signal
import threading
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from lib.data import Settings, last_updated, load_config
from lib.models import Config, Subscription

from .engine import ClashEngine
from .errors import ApplyError, BootstrapError, ConfigError, DocumentRejected, FetchCancelled, FetchError
from .fetcher import Fetcher
from .retry import RetryPolicy
from .scheduler import Scheduler
from .swap import list_backups, promote, prune_backups

logger = logging.getLogger(__name__)


def build_fetcher(config: Config) -> Fetcher:
    options = config.fetch
    policy = RetryPolicy(max_attempts=options.max_attempts, max_backoff=options.max_backoff)
    return Fetcher(policy=policy, timeout=options.timeout, connect_timeout=options.connect_timeout)


def discard(staging: Path, name: str) -> None:
    """Remove the staging file of a failed cycle"""
    try:
        staging.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("[%s] Could not remove %s: %s", name, staging.name, e)


class SubscriptionManager:
    """Keeps the configured subscriptions mirrored under subscribe/."""

    def __init__(
        self,
        settings: Settings,
        config: Config,
        fetcher: Optional[Fetcher] = None,
        engine: Optional[ClashEngine] = None,
        cancel: Optional[threading.Event] = None,
        clock: Optional[Callable] = None,
        spawn: Optional[Callable[..., Optional[threading.Thread]]] = None,
    ):
        self.settings = settings
        self.config = config
        self.cancel = cancel or threading.Event()
        self.fetcher = fetcher or build_fetcher(config)
        self.engine = engine or ClashEngine(settings, config.controller)
        self.current = config.current_subscription()

        scheduler_args: Dict[str, Any] = {"cancel": self.cancel, "clock": clock}
        if spawn is not None:
            scheduler_args["spawn"] = spawn
        self.scheduler = Scheduler(
            config.subscribe, self.update, last_updated=partial(last_updated, settings), **scheduler_args
        )

    @classmethod
    def from_home(cls, home_dir: Optional[str] = None, **kwargs: Any) -> "SubscriptionManager":
        settings = Settings.from_home(home_dir)
        return cls(settings, load_config(settings), **kwargs)

    def is_current(self, subscription: Subscription) -> bool:
        return self.current is not None and self.current.matches(subscription.name)

    def find(self, name: Optional[str] = None) -> Subscription:
        """A subscription by name, the current one when no name is given

        Raises:
            ConfigError: When there is no such subscription
        """
        subscription = self.config.find(name) if name else self.current
        if subscription is None:
            raise ConfigError(f"Subscription not found: {name}" if name else "No subscriptions configured")
        return subscription

    def update(self, subscription: Subscription, apply: bool = True) -> bool:
        """One fetch, check and promote cycle. Failures are logged, never raised.

        With `apply` the engine is pointed at the new document when it belongs
        to the current subscription.
        """
        name = subscription.name
        if not subscription.url:
            logger.info("[%s] No url, skipping", name)
            return False
        if not name:
            logger.error("Cannot update %s: subscription has no name", subscription.url)
            return False

        staging = self.settings.staging_path(name)
        active = self.settings.active_path(name)

        logger.info("[%s] Downloading %s", name, subscription.url)
        try:
            self.fetcher.fetch(
                subscription.method,
                subscription.url,
                subscription.headers,
                subscription.body,
                staging,
                self.cancel,
                label=name,
            )
        except FetchCancelled:
            logger.info("[%s] Download cancelled", name)
            discard(staging, name)
            return False
        except FetchError as e:
            logger.error("[%s] Download failed: %s", name, e)
            discard(staging, name)
            return False

        logger.info("[%s] Checking %s", name, staging.name)
        try:
            self.engine.validate(staging)
        except DocumentRejected as e:
            logger.error("[%s] Check failed: %s", name, e)
            discard(staging, name)
            return False

        if not promote(staging, active, label=name):
            return False

        if self.config.keep_backups:
            removed = prune_backups(active, self.config.keep_backups)
            if removed:
                logger.info("[%s] Removed %d old backup(s)", name, len(removed))

        logger.info("[%s] Update complete", name)

        if apply and self.is_current(subscription):
            try:
                self.engine.apply(active)
            except ApplyError as e:
                logger.error("[%s] Apply failed: %s", name, e)
        return True

    def update_by_name(self, name: Optional[str] = None) -> bool:
        """On-demand update, independent of the schedule"""
        return self.update(self.find(name))

    def bootstrap(self) -> Path:
        """Make sure the current subscription has an active document, fetching it if needed

        Raises:
            BootstrapError: When there is nothing to serve
        """
        if self.current is None:
            raise BootstrapError("No subscriptions configured")
        name = self.current.name
        if not name:
            raise BootstrapError("Current subscription has no name")

        active = self.settings.active_path(name)
        if active.exists():
            return active

        logger.info("[%s] No active document yet, updating before start", name)
        if not self.update(self.current, apply=False):
            raise BootstrapError(f"[{name}] Initial update failed")
        return active

    def status(self) -> List[Dict[str, Any]]:
        """One row per subscription for display"""
        rows = []
        for slot in self.scheduler.slots:
            name = slot.name
            rows.append(
                {
                    "name": name,
                    "current": self.is_current(slot.subscription),
                    "url": slot.subscription.url,
                    "cron": slot.subscription.cron,
                    "state": slot.state.value,
                    "last_updated": slot.last_updated_at,
                    "next_due": slot.next_due_at,
                    "backups": len(list_backups(self.settings.active_path(name))) if name else 0,
                }
            )
        return rows

    def _setup_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, lambda s, f: self.shutdown())
        signal.signal(signal.SIGTERM, lambda s, f: self.shutdown())

    def shutdown(self) -> None:
        logger.info("Shutting down...")
        self.scheduler.stop()

    def run(self) -> None:
        """Bootstrap, apply and schedule until shutdown

        Raises:
            BootstrapError: When the current subscription cannot be made available
            ApplyError: When the engine does not accept the startup document
        """
        self._setup_signal_handlers()

        active = self.bootstrap()
        self.engine.apply(active)

        self.scheduler.start()
        while not self.cancel.is_set():
            self.cancel.wait(1)

        self.scheduler.stop()
        self.scheduler.join()
        logger.info("Stopped")
