"""Side-channel settings."""

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

from .channel import Channel
from .client import Client

ENV_SIDE_CHANNEL_FD = "SIDECHANNEL_FD"
ENV_BACK_CHANNEL_FD = "BACKCHANNEL_FD"
ENV_TIMEOUT = "SIDECHANNEL_TIMEOUT"
ENV_WALK_TIMEOUT = "SIDECHANNEL_WALK_TIMEOUT"


class Settings(BaseModel):
    """Descriptors and timeouts agreed between a backend and its filters."""

    side_channel_fd: int = Field(4, ge=0, description="Descriptor of the framed side channel")
    back_channel_fd: int = Field(3, ge=0, description="Descriptor of the unframed back channel")
    timeout: float = Field(1.0, description="Default request timeout in seconds, negative waits forever")
    walk_timeout: float = Field(1.0, description="Timeout for each query of a walk")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, keeping defaults for unset ones."""
        environ = os.environ if environ is None else environ
        names = {
            "side_channel_fd": ENV_SIDE_CHANNEL_FD,
            "back_channel_fd": ENV_BACK_CHANNEL_FD,
            "timeout": ENV_TIMEOUT,
            "walk_timeout": ENV_WALK_TIMEOUT,
        }
        values = {field: environ[name] for field, name in names.items() if environ.get(name)}
        return cls.model_validate(values)

    def side_channel(self) -> Channel:
        """Return a handle for the configured side channel."""
        return Channel(self.side_channel_fd)

    def back_channel(self) -> Channel:
        """Return a handle for the configured back channel."""
        return Channel(self.back_channel_fd)

    def client(self) -> Client:
        """Return a :class:`Client` on the configured side channel."""
        return Client(self.side_channel(), timeout=self.timeout, walk_timeout=self.walk_timeout)
