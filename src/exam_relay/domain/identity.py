"""Domain models for authenticated callers."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CallerIdentity:
    """Verified caller returned by the identity provider."""

    subject: str
    claims: dict[str, object] = field(default_factory=dict, compare=False)
