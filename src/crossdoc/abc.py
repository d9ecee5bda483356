"""Abstract store adapter.

`DocumentStoreAdapter` is the single contract both backends implement. The
`EntityModel` facade validates requests and injects auto fields; adapters
compile, issue exactly one native call per operation (two for the
read-then-write paths noted on each adapter) and translate native errors
into `BackendFailure` / `NotFound`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Mapping, Optional

from .exceptions import BackendContractViolation
from .logger import Logger
from .querydsl.compilers.base import BaseWhere
from .querydsl.cursor import BaseCursorCodec
from .settings import settings as api_settings
from .types import Entity

WritePolicy = Literal["checked", "unchecked"]

MISSING: Any = object()


@dataclass
class Page:
    """Raw page as returned by the store.

    Attributes:
        items: Raw result set, `MISSING` when the response carried none
        token: Native continuation state, None when there are no more pages
    """

    items: Any = MISSING
    token: Any = None


class DocumentStoreAdapter(ABC):
    """Base class for store adapters.

    Attributes:
        backend: Short backend name used in logs and error details
        where_compiler: Compiler for where/select/order_by maps
        cursor_codec: Codec between native continuation state and cursor strings
        write_policy: "checked" makes update/delete fail with NotFound for
            absent ids; "unchecked" lets the store decide (upsert / no-op)
    """

    backend: str = "abstract"
    where_compiler: BaseWhere
    cursor_codec: BaseCursorCodec

    def __init__(self, write_policy: Optional[WritePolicy] = None) -> None:
        self.write_policy: WritePolicy = write_policy or api_settings.WRITE_POLICY
        self.logger = Logger(self.__class__.__name__)

    @property
    def checked(self) -> bool:
        return self.write_policy == "checked"

    @property
    @abstractmethod
    def name(self) -> str:
        """Table or container name."""
        raise NotImplementedError

    @abstractmethod
    def find_many(
        self,
        where: Optional[Mapping[str, Any]],
        take: int,
        token: Any = None,
        select: Optional[Mapping[str, Any]] = None,
        order_by: Optional[Mapping[str, Any]] = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Page:
        """Fetch one page of matching items."""
        raise NotImplementedError

    @abstractmethod
    def find_one(
        self,
        doc_id: str,
        select: Optional[Mapping[str, Any]] = None,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Fetch one item by id. Returns the raw record, a raw collection, or None."""
        raise NotImplementedError

    @abstractmethod
    def create(self, item: Entity, request_options: Optional[Dict[str, Any]] = None) -> Any:
        """Insert an item and return the persisted record."""
        raise NotImplementedError

    @abstractmethod
    def update(
        self,
        doc_id: str,
        data: Entity,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Apply `data` to the item and return the persisted record."""
        raise NotImplementedError

    @abstractmethod
    def delete(
        self,
        doc_id: str,
        sort_key: Any = None,
        request_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Delete the item."""
        raise NotImplementedError

    def refine_page(
        self,
        items: List[Entity],
        where: Optional[Mapping[str, Any]],
        select: Optional[Mapping[str, Any]],
        order_by: Optional[Mapping[str, Any]],
    ) -> List[Entity]:
        """Client-side pass over a normalized page. Stores that filter, sort and
        project natively return it as is."""
        return items

    def normalize_item(self, raw: Any) -> Entity:
        """Convert one raw record into an entity dict.

        Raises:
            BackendContractViolation: If the record is not a mapping
        """
        if not isinstance(raw, Mapping):
            raise BackendContractViolation(
                "Store returned a record that is not an object",
                backend=self.backend,
                received=type(raw).__name__,
            )
        return dict(raw)
