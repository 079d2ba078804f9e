from socialgraph.clients.document_store import DocumentStore, EdgeAction, EdgeOp, build_store
from socialgraph.clients.memory_store import MemoryDocumentStore

__all__ = ["DocumentStore", "EdgeAction", "EdgeOp", "MemoryDocumentStore", "build_store"]
