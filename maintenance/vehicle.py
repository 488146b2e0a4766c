"""Vehicle class for fleet vehicles."""

from typing import Optional


class Vehicle:
    """A vehicle owned by an account."""

    def __init__(
        self,
        id: str,
        account_id: str,
        make: Optional[str] = None,
        model: Optional[str] = None,
        year: Optional[int] = None,
        nickname: Optional[str] = None,
        current_odometer: Optional[float] = None,
    ):
        self.id = id
        self.account_id = account_id
        self.make = make
        self.model = model
        self.year = year
        self.nickname = nickname
        # None means unknown mileage; distance checks are skipped
        self.current_odometer = current_odometer

    @property
    def label(self) -> str:
        """Human-readable vehicle name, preferring the nickname."""
        if self.nickname:
            return self.nickname
        parts = [str(p) for p in (self.year, self.make, self.model) if p]
        return " ".join(parts) if parts else self.id
