"""Connection registry: which display name each connection joined as.

Both lookup directions are kept in step. A name joined again from another
connection moves to that connection (last writer wins); the old connection
keeps its own sid -> name entry until it disconnects.
"""
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._names_by_sid: Dict[str, str] = {}
        self._sids_by_name: Dict[str, str] = {}

    def register(self, sid: str, name: str) -> None:
        """Bind sid to name, replacing earlier bindings of either."""
        previous = self._names_by_sid.get(sid)
        if previous is not None and previous != name and self._sids_by_name.get(previous) == sid:
            del self._sids_by_name[previous]

        displaced = self._sids_by_name.get(name)
        if displaced is not None and displaced != sid:
            logger.info(f"Name '{name}' moved from connection {displaced} to {sid}")

        self._names_by_sid[sid] = name
        self._sids_by_name[name] = sid

    def unregister(self, sid: str) -> Optional[str]:
        """Forget sid. Returns the name it was registered under, if any."""
        name = self._names_by_sid.pop(sid, None)
        # A reused name may already point at a newer connection
        if name is not None and self._sids_by_name.get(name) == sid:
            del self._sids_by_name[name]
        return name

    def resolve_name(self, sid: str) -> Optional[str]:
        return self._names_by_sid.get(sid)

    def resolve_connection(self, name: str) -> Optional[str]:
        return self._sids_by_name.get(name)

    def names(self) -> List[str]:
        """Presence list: every currently registered display name."""
        return list(self._sids_by_name)

    def connections(self) -> List[str]:
        """The sid currently owning each registered name."""
        return list(self._sids_by_name.values())

    def __contains__(self, sid: object) -> bool:
        return sid in self._names_by_sid

    def __len__(self) -> int:
        return len(self._sids_by_name)
