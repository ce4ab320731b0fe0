from typing import Optional, Protocol


class OTPProvider(Protocol):
    """Email delivery channel. Generates, sends and checks the code; the code never reaches the core."""

    def send(self, email: str) -> str:
        ...

    def verify(self, email: str, code: str) -> bool:
        ...

    def cancel(self, email: str, delivery_ref: Optional[str]) -> None:
        """Make a previously sent code unusable at the channel."""
        ...
