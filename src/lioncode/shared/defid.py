"""
DefId System

Every declaration (function, parameter, variable, loop variable, built-in)
gets a DefId when the analyzer first sees it. Identifiers and calls carry
the DefId of the declaration they resolve to, so later stages can tell two
same-named declarations apart without re-running name resolution.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class DefType(Enum):
    FUNCTION = "function"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    LOOP_VARIABLE = "loop_variable"
    BUILTIN = "builtin"


@dataclass(frozen=True)
class DefId:
    """
    Definition identifier.

    - krate: 0 for the program being compiled, BUILTIN_CRATE for the prelude
    - index: sequential index within the crate
    """
    krate: int
    index: int

    def __str__(self) -> str:
        return f"{self.krate}:{self.index}"


LOCAL_CRATE = 0
BUILTIN_CRATE = 1


class Resolver:
    """
    DefId allocator for one analysis run.

    Indices in each crate are strictly increasing, so no two declarations
    share a DefId. A fresh Resolver is created per ``analyze`` call.
    """

    def __init__(self):
        self._next_index: Dict[int, int] = {LOCAL_CRATE: 0, BUILTIN_CRATE: 0}
        self._def_registry: Dict[DefId, Tuple[DefType, str]] = {}

    def allocate(self, name: str, def_type: DefType) -> DefId:
        """Allocate a DefId for a declaration named ``name``."""
        krate = BUILTIN_CRATE if def_type == DefType.BUILTIN else LOCAL_CRATE
        index = self._next_index[krate]
        self._next_index[krate] = index + 1
        defid = DefId(krate=krate, index=index)
        self._def_registry[defid] = (def_type, name)
        logger.debug("allocated %s for %s '%s'", defid, def_type.value, name)
        return defid

    def query(self, defid: DefId) -> Optional[Tuple[DefType, str]]:
        """Kind and name of the declaration behind ``defid``."""
        return self._def_registry.get(defid)

    def __len__(self) -> int:
        return len(self._def_registry)


def is_builtin(defid: Any) -> bool:
    return isinstance(defid, DefId) and defid.krate == BUILTIN_CRATE
