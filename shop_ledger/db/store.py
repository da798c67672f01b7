"""
Document store interface consumed by the ledger services.

The services only ever talk to a ``DocumentStore``:
- get / query to read records
- transactional_update for a single atomic read-check-write
- batch_write for an all-or-nothing multi-record commit
- delete for a single record

Records travel as plain dicts keyed by field name, with the record id
under ``_id``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from bson import ObjectId


CUSTOMERS = "customers"
TRANSACTIONS = "transactions"
PARTIES = "parties"
PARTY_TRANSACTIONS = "party_transactions"
USERS = "users"


@dataclass(frozen=True)
class DocRef:
    """Address of one record: collection name plus id."""
    collection: str
    id: str


Document = Dict[str, Any]
Mutator = Callable[[Optional[Document]], Optional[Document]]
Update = Tuple[DocRef, Document]


class DocumentStore(ABC):
    """Async document store collaborator."""

    def new_id(self) -> str:
        """Allocate an id for a record that is about to be created."""
        return str(ObjectId())

    def ref(self, collection: str, doc_id: Optional[str] = None) -> DocRef:
        return DocRef(collection, doc_id or self.new_id())

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def query(self, collection: str, filters: Optional[Document] = None) -> List[Document]:
        """Return records whose fields equal every value in ``filters``."""

    @abstractmethod
    async def transactional_update(self, ref: DocRef, mutator: Mutator) -> Optional[Document]:
        """
        Read ``ref`` and write the fields ``mutator`` returns, atomically.

        The mutator receives the current record (or None when absent). A
        returned dict is merged into the record, creating it if needed;
        returning None skips the write. Anything the mutator raises aborts
        the update and propagates.

        Returns the fields written, or None.
        """

    @abstractmethod
    async def batch_write(self, updates: Sequence[Update], deletes: Iterable[DocRef] = ()) -> None:
        """
        Commit every update and delete, or none of them.

        Updates merge fields into existing records only; a missing record
        is skipped rather than created.
        """

    @abstractmethod
    async def delete(self, ref: DocRef) -> None:
        ...
