# secrets.py
from __future__ import annotations

import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from pykeepass import PyKeePass
from pykeepass.exceptions import CredentialsError, HeaderChecksumError, PayloadChecksumError

from .ui.console import get_console


# ----------------------------------------------------------------------
# Credential tree (read-only, already decrypted)
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Entry:
    title: Optional[str]
    fields: Mapping[str, str] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class Group:
    name: Optional[str]
    children: Tuple[Node, ...] = ()


Node = Union[Group, Entry]


_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def _matches(a: Optional[str], b: str) -> bool:
    # ASCII-only case folding; None (untitled) never matches
    return a is not None and a.translate(_ASCII_LOWER) == b.translate(_ASCII_LOWER)


def _resolve(node: Node, path: Sequence[str]) -> Optional[str]:
    if not path:
        return None

    if isinstance(node, Group):
        if not _matches(node.name, path[0]):
            return None
        for child in node.children:
            value = _resolve(child, path[1:])
            if value is not None:
                return value
        return None

    # Entry: exactly the title and a field name must remain
    if len(path) != 2 or not _matches(node.title, path[0]):
        return None
    # Iterate so the field name comparison is case insensitive
    for key, value in node.fields.items():
        if _matches(key, path[1]):
            return value
    return None


def resolve_value(root: Group, path: str) -> Optional[str]:
    """
    Given a path like "Database/group/group/entryname/fieldname"
    return the string value of the field, or None if it does not resolve.
    The path elements are case insensitive.
    """
    return _resolve(root, path.split("/"))


# ----------------------------------------------------------------------
# KeePass database
# ----------------------------------------------------------------------

class SecretStoreError(Exception):
    """Raised when the KeePass database cannot be opened."""
    pass


def _entry_fields(entry) -> Dict[str, str]:
    fields = {
        "Title": entry.title,
        "UserName": entry.username,
        "Password": entry.password,
        "URL": entry.url,
        "Notes": entry.notes,
    }
    fields.update(entry.custom_properties or {})
    return {k: v for k, v in fields.items() if v is not None}


def _convert_group(group) -> Group:
    children = [Entry(title=e.title, fields=_entry_fields(e)) for e in group.entries]
    children.extend(_convert_group(g) for g in group.subgroups)
    return Group(name=group.name, children=tuple(children))


class KeePassDB:
    """A decrypted KeePass database, exposed as a read-only credential tree."""

    def __init__(self, root: Group):
        self.root = root

    @classmethod
    def open_with_password(cls, path: str | Path, password: str) -> KeePassDB:
        """
        Open and decrypt a .kdbx file.

        Raises:
            SecretStoreError: if the file is missing, corrupt, or the password is wrong
        """
        console = get_console()
        console.print_debug("Opening database")
        try:
            kp = PyKeePass(str(path), password=password)
        except FileNotFoundError as e:
            raise SecretStoreError(f"failed to open kdbx file {path}") from e
        except CredentialsError as e:
            raise SecretStoreError(f"invalid credentials for kdbx file {path}") from e
        except (HeaderChecksumError, PayloadChecksumError, OSError) as e:
            raise SecretStoreError(f"failed to open kdbx file {path}: {e}") from e
        console.print_debug("Database opened")
        return cls(_convert_group(kp.root_group))

    def resolve_value(self, path: str) -> Optional[str]:
        return resolve_value(self.root, path)
