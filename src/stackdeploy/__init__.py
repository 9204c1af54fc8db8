from .dag import build_dag, reverse_order, sequence_stacks, topo_order
from .hosts import applies
from .loader import load_stacks, parse_manifest
from .model import StackDescriptor, StackManifest, StackResult
from .secrets import Entry, Group, KeePassDB, resolve_value

__all__ = [
    "build_dag", "topo_order", "reverse_order", "sequence_stacks",
    "applies", "load_stacks", "parse_manifest",
    "StackDescriptor", "StackManifest", "StackResult",
    "Entry", "Group", "KeePassDB", "resolve_value",
]
