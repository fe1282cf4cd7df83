"""
Hash-linked, proof-of-work sealed chains for the department/class/student tree.
"""

from .chain import Chain, append_block, create_genesis, tip
from .entities import Anchor, Entity, EntityKind, Forest
from .hashchain import inspect_chain, validate_all, validate_anchor, validate_chain
from .registry import LedgerRegistry, append_to, create_child_chain, create_root_chain
from .sealer import Block, seal
from .store import JsonStore, MemoryStore

__all__ = [
    "Anchor",
    "Block",
    "Chain",
    "Entity",
    "EntityKind",
    "Forest",
    "JsonStore",
    "LedgerRegistry",
    "MemoryStore",
    "append_block",
    "append_to",
    "create_child_chain",
    "create_genesis",
    "create_root_chain",
    "inspect_chain",
    "seal",
    "tip",
    "validate_all",
    "validate_anchor",
    "validate_chain",
]
