"""
Explicit class resolution scope over an ordered classpath.
"""

import pathlib
import zipfile
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class ClassLocation:
    """Where a class was found: the classpath entry and the resource inside it."""

    entry: pathlib.Path
    resource: str

    def read_bytes(self) -> bytes:
        if self.entry.is_dir():
            return self.entry.joinpath(*self.resource.split("/")).read_bytes()
        with zipfile.ZipFile(self.entry) as jar:
            return jar.read(self.resource)


def class_resource(class_name: str) -> str:
    """``felis.MainKt`` -> ``felis/MainKt.class``"""
    return class_name.replace(".", "/") + ".class"


class ResolutionScope:
    """
    Maps a class name to exactly one classpath entry.

    Entries are searched in the order given, so the first entry that
    contains a class wins. Names not found here are delegated to ``parent``.
    There is no implicit search path.
    """

    def __init__(self, entries: Sequence[pathlib.Path], parent: Optional["ResolutionScope"] = None):
        self.entries = list(entries)
        self.parent = parent

    @staticmethod
    def _contains(entry: pathlib.Path, resource: str) -> bool:
        if entry.is_dir():
            return entry.joinpath(*resource.split("/")).is_file()
        if not entry.is_file() or not zipfile.is_zipfile(entry):
            return False
        with zipfile.ZipFile(entry) as jar:
            try:
                jar.getinfo(resource)
            except KeyError:
                return False
            return True

    def resolve(self, class_name: str) -> Optional[ClassLocation]:
        resource = class_resource(class_name)
        for entry in self.entries:
            if self._contains(entry, resource):
                return ClassLocation(entry, resource)
        if self.parent is not None:
            return self.parent.resolve(class_name)
        return None

    def classpath_string(self, separator: str) -> str:
        return separator.join(str(entry) for entry in self.entries)
