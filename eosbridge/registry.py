from __future__ import annotations
from typing import Iterable, Iterator, List, Tuple

# "next cue" and "top of show"; always registered.
BUILTIN_SCRIPTS: Tuple[str, ...] = ("SCENE", "TOP")


class ScriptRegistry:
    """
    Script names that the console may trigger verbatim, e.g. "TOP\\r\\n"
    becomes ScriptStart&Value=TOP. Populated at startup, read-only afterwards.
    Duplicates are harmless; there is no removal.
    """
    def __init__(self, names: Iterable[str] = ()):
        self._names: List[str] = []
        for name in names:
            self.register(name)

    @classmethod
    def with_builtins(cls, extra: Iterable[str] = ()) -> "ScriptRegistry":
        reg = cls(BUILTIN_SCRIPTS)
        for name in extra:
            reg.register(name)
        return reg

    def register(self, name: str) -> None:
        self._names.append(name)

    def contains(self, name: str) -> bool:
        return name in self._names

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"ScriptRegistry({self._names!r})"
