"""
ThunderBBS File Areas

File metadata only: areas, listings, descriptions and a simulated
download counter. No file bytes are stored or transferred.
"""

import sqlite3
import logging
from typing import Optional, TYPE_CHECKING

from ..db.connection import GENERAL_FILE_AREA
from ..db.models import FileArea, FileListing
from ..utils.formatting import parse_id, utc_timestamp

if TYPE_CHECKING:
    from .bbs import ThunderBBS
    from .sessions import Session

logger = logging.getLogger(__name__)

DUPLICATE_FILENAME = "Filename already exists in this area."


class FileRepository:
    """Repository for file areas and file listings."""

    def __init__(self, db):
        self.db = db

    # === Areas ===

    def get_all_areas(self) -> list[FileArea]:
        """Get all file areas ordered by id."""
        rows = self.db.fetchall("SELECT * FROM file_areas ORDER BY id")
        return [self._row_to_area(row) for row in rows]

    def find_area(self, ref: str) -> Optional[FileArea]:
        """Resolve an area by numeric id or exact name."""
        area_id = parse_id(ref)
        if area_id is not None:
            row = self.db.fetchone("SELECT * FROM file_areas WHERE id = ?", (area_id,))
        else:
            row = self.db.fetchone("SELECT * FROM file_areas WHERE name = ?", (ref,))
        return self._row_to_area(row) if row else None

    # === Listings ===

    def create_listing(
        self,
        area_id: int,
        filename: str,
        description: str,
        uploader_user_id: int
    ) -> FileListing:
        """Create a listing. Raises sqlite3.IntegrityError on a duplicate filename."""
        upload_date = utc_timestamp()

        cursor = self.db.execute("""
            INSERT INTO file_listings (
                area_id, filename, description, uploader_user_id, upload_date
            ) VALUES (?, ?, ?, ?, ?)
        """, (area_id, filename, description, uploader_user_id, upload_date))

        return FileListing(
            id=cursor.lastrowid,
            area_id=area_id,
            filename=filename,
            description=description,
            uploader_user_id=uploader_user_id,
            upload_date=upload_date
        )

    def filename_exists(self, area_id: int, filename: str) -> bool:
        row = self.db.fetchone(
            "SELECT 1 FROM file_listings WHERE area_id = ? AND filename = ?",
            (area_id, filename)
        )
        return row is not None

    def get_listing(self, listing_id: int) -> Optional[FileListing]:
        """Get listing by ID."""
        row = self.db.fetchone("SELECT * FROM file_listings WHERE id = ?", (listing_id,))
        return self._row_to_listing(row) if row else None

    def get_area_listings(self, area_id: int) -> list[FileListing]:
        """Listings in an area ordered by filename, with uploader names."""
        rows = self.db.fetchall("""
            SELECT fl.*, u.username AS uploader_username
            FROM file_listings fl
            JOIN users u ON fl.uploader_user_id = u.id
            WHERE fl.area_id = ?
            ORDER BY fl.filename
        """, (area_id,))
        return [self._row_to_listing(row) for row in rows]

    def update_description(self, listing_id: int, description: str) -> bool:
        cursor = self.db.execute(
            "UPDATE file_listings SET description = ? WHERE id = ?",
            (description, listing_id)
        )
        return cursor.rowcount > 0

    def increment_downloads(self, listing_id: int) -> bool:
        cursor = self.db.execute(
            "UPDATE file_listings SET download_count = download_count + 1 WHERE id = ?",
            (listing_id,)
        )
        return cursor.rowcount > 0

    def _row_to_area(self, row) -> FileArea:
        """Convert database row to FileArea object."""
        return FileArea(
            id=row["id"],
            name=row["name"],
            description=row["description"]
        )

    def _row_to_listing(self, row) -> FileListing:
        """Convert database row to FileListing object."""
        return FileListing(
            id=row["id"],
            area_id=row["area_id"],
            filename=row["filename"],
            description=row["description"],
            uploader_user_id=row["uploader_user_id"],
            upload_date=row["upload_date"],
            download_count=row["download_count"],
            uploader_username=row["uploader_username"] if "uploader_username" in row.keys() else None
        )


class FileService:
    """File area service for ThunderBBS."""

    def __init__(self, bbs: "ThunderBBS"):
        self.bbs = bbs
        self.files = FileRepository(bbs.db)

    def list_areas(self) -> list[FileArea]:
        return self.files.get_all_areas()

    def find_area(self, ref: Optional[str]) -> tuple[Optional[FileArea], str]:
        """
        Resolve an area reference; no reference means the default area.

        Returns:
            (FileArea, "") on success
            (None, error_message) on failure
        """
        if not ref:
            area = self.files.find_area(GENERAL_FILE_AREA)
            if not area:
                return None, f"Default '{GENERAL_FILE_AREA}' area not found. Please specify an area."
            return area, ""

        area = self.files.find_area(ref)
        if not area:
            return None, "File area not found."
        return area, ""

    def list_files(self, area_id: int) -> list[FileListing]:
        return self.files.get_area_listings(area_id)

    def add_listing(
        self,
        area_ref: str,
        filename: str,
        description: str,
        uploader_user_id: int
    ) -> tuple[Optional[FileListing], str]:
        """Register file metadata in an area; filenames are unique per area."""
        area, error = self.find_area(area_ref)
        if error:
            return None, error

        try:
            with self.bbs.db.transaction():
                if self.files.filename_exists(area.id, filename):
                    return None, DUPLICATE_FILENAME
                listing = self.files.create_listing(area.id, filename, description, uploader_user_id)
        except sqlite3.IntegrityError as e:
            if "UNIQUE" not in str(e):
                raise
            return None, DUPLICATE_FILENAME

        logger.info(f"File listing {listing.id} added: {area.name}/{filename}")
        return listing, ""

    def set_description(
        self,
        session: "Session",
        listing_id: int,
        description: str
    ) -> tuple[bool, str]:
        """Change a listing's description. Uploader or sysop only."""
        listing = self.files.get_listing(listing_id)
        if not listing:
            return False, "File not found."

        if listing.uploader_user_id != session.user_id and not session.is_sysop:
            return False, "Access denied. You can only edit descriptions for files you uploaded."

        self.files.update_description(listing_id, description)
        return True, ""

    def record_download(self, listing_id: int) -> tuple[Optional[FileListing], str]:
        """Simulate a download by bumping the listing's counter."""
        listing = self.files.get_listing(listing_id)
        if not listing or not self.files.increment_downloads(listing_id):
            return None, "File not found."

        listing.download_count += 1
        return listing, ""
