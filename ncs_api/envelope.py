from typing import Any, Dict, List, Optional, Sequence

from . import ncs_client
from .schemas import EnumEntry


def ok(data: Any, **context: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        body["count"] = len(data)
    body.update(context)
    return body


def fail(error: str, **context: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error}
    body.update(context)
    return body


def _enum(kind: str):
    # The provider may not ship every enumeration; treat a missing one as empty.
    return getattr(ncs_client, kind, None)


def enum_names(kind: str) -> List[str]:
    enum = _enum(kind)
    return list(enum.__members__) if enum is not None else []


def enum_entries(kind: str) -> Optional[List[EnumEntry]]:
    enum = _enum(kind)
    if enum is None:
        return None
    return [EnumEntry(name=name, value=int(member)) for name, member in enum.__members__.items()]


def lookup(kind: str, name: Optional[str]):
    """Return the enum member called ``name``, or None when unknown."""
    enum = _enum(kind)
    if enum is None or not name:
        return None
    return enum.__members__.get(name)
