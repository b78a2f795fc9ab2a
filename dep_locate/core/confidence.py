"""Confidence tiers attached to resolved manifest locations."""

from enum import IntEnum


class Confidence(IntEnum):
    """How exactly a flagged component matched a declared dependency.

    Members are ordered: ``LOW < MEDIUM < HIGH < HIGHEST``.
    """
    
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    HIGHEST = 4
    
    @classmethod
    def from_name(cls, name: str) -> "Confidence":
        """Look up a tier by its case-insensitive name.
        
        Args:
            name: Tier name such as ``"high"``
            
        Returns:
            Matching confidence tier
            
        Raises:
            ValueError: If the name is not a known tier
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            valid = ", ".join(member.name.lower() for member in cls)
            raise ValueError(f"Unknown confidence '{name}' (expected one of: {valid})") from None
    
    def __str__(self) -> str:
        return self.name
