"""
Protocol definition for delivery backends.

Defines the interface the discovery pipeline uses to post messages.
"""

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from opportunity_bot.state import Destination


@dataclass
class DeliveryReport:
    """
    Outcome of posting one message to every active destination.

    Attributes
    ----------
    delivered : list[Destination]
        Destinations the message reached.
    failed : list[tuple[Destination, str]]
        Destinations that rejected the message, with the error text.
    """

    delivered: list[Destination] = field(default_factory=list)
    failed: list[tuple[Destination, str]] = field(default_factory=list)

    @property
    def any_delivered(self) -> bool:
        return bool(self.delivered)


@runtime_checkable
class Publisher(Protocol):
    """
    Protocol defining the interface for delivery backends.

    The @runtime_checkable decorator allows using isinstance() checks
    against this protocol for structural typing validation.
    """

    async def publish(self, message: str) -> DeliveryReport:
        """
        Send a formatted message to every active destination.

        Parameters
        ----------
        message : str
            The fully formatted message.

        Returns
        -------
        DeliveryReport
            Which destinations succeeded and which failed.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the backend."""
        ...
