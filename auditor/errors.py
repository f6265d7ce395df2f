class AuditError(Exception):
    """Base exception for the audit pipeline."""
    pass


class InvalidURLError(AuditError, ValueError):
    """Raised when the submitted URL is not an absolute http(s) URL. The pipeline never starts."""
    pass


class CheckError(AuditError):
    """Raised inside a check when a collaborator response cannot be used."""
    pass


class PersistenceError(AuditError):
    """Raised when emitted persistence commands fail to apply."""
    pass
