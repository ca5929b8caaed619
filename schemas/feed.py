"""
Pydantic schema for per-feed configuration
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ingestion.stores.base import TableRef


class FeedConfig(BaseModel):
    """
    One configured source-location-to-destination-table mapping.

    Immutable once loaded. The upper-case keys used by older feed files
    (``SHEET_NAME``, ``SOURCE_FOLDER_ID``...) are accepted as aliases.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    target_table: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("target_table", "SHEET_NAME"),
    )
    source_location: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("source_location", "SOURCE_FOLDER_ID"),
    )
    archive_location: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("archive_location", "PROCESSED_FOLDER_ID"),
    )
    watermark_column: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("watermark_column", "DATE_COLUMN_HEADER"),
    )
    metadata_rows: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("metadata_rows", "METADATA_ROWS_TO_SKIP"),
    )
    store_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("store_id", "SPREADSHEET_ID"),
    )

    @model_validator(mode="before")
    @classmethod
    def default_name(cls, data: Any) -> Any:
        """A feed without an explicit name is named after its target table"""
        if isinstance(data, dict) and not data.get("name"):
            data = dict(data)
            data["name"] = data.get("target_table") or data.get("SHEET_NAME")
        return data

    @field_validator("source_location", "archive_location")
    @classmethod
    def strip_location(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Location cannot be empty after stripping")
        return v

    @model_validator(mode="after")
    def check_locations(self) -> "FeedConfig":
        if self.source_location == self.archive_location:
            raise ValueError("source_location and archive_location must differ")
        return self

    @property
    def table_ref(self) -> TableRef:
        return TableRef(name=self.target_table, store_id=self.store_id)
