"""
Google Drive file store: folders act as source and archive locations
"""

import logging
from typing import List

from core.exceptions import RemoteCallFailure
from ingestion.stores.base import FileHandle
from ingestion.stores.google_api import DRIVE_API_URL, GoogleAPIClient

logger = logging.getLogger(__name__)


class GoogleDriveFileStore:
    """
    File store backed by the Drive v3 API.

    Locations are folder ids. Listing follows nextPageToken until the
    folder is exhausted and returns files in the order Drive reports them.
    """

    page_size = 100

    def __init__(self, client: GoogleAPIClient):
        self.client = client

    async def list_files(self, location: str) -> List[FileHandle]:
        handles: List[FileHandle] = []
        params = {
            "q": f"'{location}' in parents and trashed = false",
            "fields": "nextPageToken, files(id, name, mimeType)",
            "pageSize": self.page_size,
        }

        try:
            while True:
                data = await self.client.get_json(f"{DRIVE_API_URL}/files", params=params)
                for item in data.get("files", []):
                    handles.append(
                        FileHandle(
                            id=item["id"],
                            name=item.get("name", ""),
                            content_type=item.get("mimeType"),
                        )
                    )

                page_token = data.get("nextPageToken")
                if not page_token:
                    break
                params = {**params, "pageToken": page_token}
        except RemoteCallFailure as e:
            e.context.update({"operation": "list", "location": location})
            raise

        logger.debug(f"Listed {len(handles)} files in Drive folder {location}")
        return handles

    async def read_content(self, handle: FileHandle) -> bytes:
        try:
            response = await self.client.request(
                "GET",
                f"{DRIVE_API_URL}/files/{handle.id}",
                params={"alt": "media"},
            )
        except RemoteCallFailure as e:
            e.context.update({"operation": "read", "file_name": handle.name, "file_id": handle.id})
            raise
        return response.content

    async def move(self, handle: FileHandle, source: str, destination: str) -> None:
        try:
            await self.client.request(
                "PATCH",
                f"{DRIVE_API_URL}/files/{handle.id}",
                params={
                    "addParents": destination,
                    "removeParents": source,
                    "fields": "id, parents",
                },
            )
        except RemoteCallFailure as e:
            e.context.update({
                "operation": "move",
                "file_name": handle.name,
                "location": source,
                "destination": destination,
            })
            raise
        logger.debug(f"Moved {handle.name} from Drive folder {source} to {destination}")
