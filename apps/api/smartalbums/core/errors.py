from typing import Optional

from smartalbums.core.enums import Feature, Permission


class SmartAlbumError(Exception):
    """Base class for every error raised by the smart album engine."""


class NotFound(SmartAlbumError):
    def __init__(self, kind: str, ident: str):
        super().__init__(f"{kind} {ident} not found")
        self.kind = kind
        self.ident = ident


class FeatureDisabled(SmartAlbumError):
    def __init__(self, feature: Feature):
        super().__init__(f"feature {feature} is disabled")
        self.feature = feature


class InfrastructureUnavailable(SmartAlbumError):
    """A collaborator (job queue, database, search backend, encoder) could not be reached.

    Raised so the job system can apply its own retry policy.
    """

    def __init__(self, component: str, detail: Optional[str] = None):
        message = f"{component} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.component = component


class SearchSpecValidationError(SmartAlbumError, ValueError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors) or "invalid search specification")
        self.errors = errors


class AccessDenied(SmartAlbumError):
    def __init__(self, user_id: str, permission: Permission, resource_id: str):
        super().__init__(f"user {user_id} lacks {permission} on {resource_id}")
        self.permission = permission
