from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lib.utils import derive_name


class Subscription(BaseModel):
    """Subscription model"""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    """The display name, also the file name under subscribe/. Derived from the url when omitted."""
    url: str = ""
    """Where the document is fetched from"""
    method: str = "GET"
    """The HTTP method to use when fetching"""
    headers: List[str] = []
    """Extra request headers as `key=value` (the value may be omitted)"""
    body: str = ""
    """The request body, only sent for non-GET methods"""
    cron: str = ""
    """Standard 5-field cron expression. When empty the subscription is never auto-updated."""

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Optional[str]) -> str:
        return (value or "GET").upper()

    @field_validator("headers", mode="before")
    @classmethod
    def none_headers(cls, value: Optional[List[str]]) -> List[str]:
        return value or []

    @model_validator(mode="after")
    def fill_name(self) -> "Subscription":
        if not self.name and self.url:
            self.name = derive_name(self.url)
        return self

    @property
    def schedulable(self) -> bool:
        return bool(self.url and self.cron)

    def matches(self, name: str) -> bool:
        return self.name.lower() == (name or "").lower()


class Controller(BaseModel):
    """Engine controller model"""

    url: str
    """Base url of the engine's external controller, e.g. http://127.0.0.1:9090"""
    secret: str = ""
    """Bearer secret for the controller"""


class FetchOptions(BaseModel):
    """Fetch tuning model"""

    timeout: float = 10.0
    """Per-attempt read timeout in seconds"""
    connect_timeout: float = 5.0
    """Connect (and TLS handshake) timeout in seconds"""
    max_attempts: int = Field(default=10, ge=1)
    """Attempts before giving up"""
    max_backoff: float = 15.0
    """Upper bound for the wait between attempts in seconds"""


class Config(BaseModel):
    """config.yaml model"""

    model_config = ConfigDict(extra="ignore")

    current: str = ""
    """The name of the subscription handed to the engine"""
    subscribe: List[Subscription] = []
    """The configured subscriptions"""
    keep_backups: Optional[int] = Field(default=None, ge=1)
    """How many backups to keep per subscription. Unset keeps all of them."""
    controller: Optional[Controller] = None
    """The engine controller to notify after the current document changed"""
    fetch: FetchOptions = FetchOptions()
    """Fetcher settings"""

    @field_validator("subscribe", mode="before")
    @classmethod
    def none_subscribe(cls, value: Optional[list]) -> list:
        return value or []

    @model_validator(mode="after")
    def check_unique_names(self) -> "Config":
        seen = set()
        for subscription in self.subscribe:
            key = subscription.name.lower()
            if not key:
                continue
            if key in seen:
                raise ValueError(f"Duplicate subscription name: {subscription.name}")
            seen.add(key)
        return self

    def find(self, name: str) -> Optional[Subscription]:
        """Find a subscription by name, case-insensitively"""
        for subscription in self.subscribe:
            if subscription.matches(name):
                return subscription
        return None

    def current_subscription(self) -> Optional[Subscription]:
        """The selected subscription, falling back to the first one when `current` matches nothing"""
        return self.find(self.current) or (self.subscribe[0] if self.subscribe else None)
