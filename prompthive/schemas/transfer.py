"""Request and response bodies for import, export and scraping."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ImportResult(BaseModel):
    success: bool = True
    count: int
    skipped: int = 0


class StructureImport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    defined_collections: List[Dict[str, Any]] = Field(default_factory=list, alias="definedCollections")


class StructureImportResult(BaseModel):
    success: bool = True
    id_map: Dict[str, UUID]


class BatchImport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompts: List[Dict[str, Any]] = Field(default_factory=list)
    collection_id_map: Optional[Dict[str, UUID]] = Field(None, alias="collectionIdMap")


class LocalFolderImport(BaseModel):
    path: str = Field(..., min_length=1)
    target_collection_id: Optional[UUID] = None


class ExportMetaRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    collection_ids: List[UUID] = Field(default_factory=list, alias="collectionIds")
    recursive: bool = False


class ExportBatchRequest(BaseModel):
    ids: List[UUID] = Field(default_factory=list)


class ZeroExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    collection_ids: List[UUID] = Field(default_factory=list, alias="collectionIds")


class ScrapeRequest(BaseModel):
    url: Optional[str] = None


class ScrapedPrompt(BaseModel):
    title: str
    content: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    resource: str
