from smartalbums.core.enums import Permission
from smartalbums.core.errors import AccessDenied, NotFound
from smartalbums.repositories.interfaces import AlbumStore


class OwnerAccessControl:
    """Album owners hold every album permission; nobody else holds any."""

    def __init__(self, albums: AlbumStore):
        self.albums = albums

    async def require_permission(self, user_id: str, permission: Permission, resource_id: str) -> None:
        album = await self.albums.get_by_id(resource_id)
        if album is None:
            raise NotFound("album", resource_id)
        if album.owner_id != user_id:
            raise AccessDenied(user_id, permission, resource_id)
