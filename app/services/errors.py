"""Skill-graph engine error taxonomy."""


class SkillGraphError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class DataIntegrityError(SkillGraphError):
    """Catalog is corrupt: prerequisite cycle or an edge pointing at an unknown skill."""


class InvalidStateError(SkillGraphError):
    """Out-of-range value read from storage or supplied by a caller."""


class NotFoundError(SkillGraphError):
    """User or skill id does not exist."""


class ExternalServiceError(SkillGraphError):
    """A neighbouring collaborator (e.g. text generation) failed."""
