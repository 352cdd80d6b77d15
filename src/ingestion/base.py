"""
Base classes for Ingestion
"""
from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from core.entities import Item, ItemType


class ItemRecord(BaseModel):
    """
    Wire format of one upstream item. Permissive: live data omits most fields.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    type: ItemType
    time: int
    score: int = Field(default=0, ge=0)
    title: str = ""
    text: str = ""
    url: str = ""
    by: str = ""
    kids: List[int] = []
    parts: List[int] = []
    parent: int = 0
    poll: int = 0
    descendants: int = 0
    deleted: bool = False
    dead: bool = False

    def to_item(self, display_url: str) -> Item:
        return Item(
            id=self.id,
            type=self.type,
            created_at=self.time,
            score=self.score,
            title=self.title,
            text=self.text,
            url=self.url,
            by=self.by,
            child_ids=tuple(self.kids),
            parts=tuple(self.parts),
            parent=self.parent,
            poll=self.poll,
            descendants=self.descendants,
            deleted=self.deleted,
            dead=self.dead,
            display_url=display_url,
        )


class IdSource(ABC):
    """
    Produces the ordered candidate ids for one pipeline run.
    """

    @abstractmethod
    async def fetch_top_ids(self) -> List[int]:
        """
        Raises NetworkError / DecodeError; failures are fatal to the run.
        """
        raise NotImplementedError


class ItemSource(ABC):
    """
    Resolves a single id into an Item.
    """

    @abstractmethod
    async def fetch_item(self, item_id: int) -> Item:
        """
        Raises DecodeError or ExhaustedError; never loops forever.
        """
        raise NotImplementedError
