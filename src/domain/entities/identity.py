"""Identity value object."""

from dataclasses import dataclass


def normalize_email(email: str) -> str:
    """Canonical form of an email address, used for every identity key."""
    return email.strip().lower()


@dataclass(frozen=True)
class Identity:
    """A verified user reference supplied by the authentication provider."""

    email: str
    display_name: str | None = None
    email_verified: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "email", normalize_email(self.email))

    @property
    def name(self) -> str:
        """Display name, falling back to the local part of the email."""
        return self.display_name or self.email.split("@")[0]
