"""
Minimal JVM class file reader.

Only the parts needed to check an entry point are decoded: the constant
pool, the class name and the method table.
"""

import struct
from dataclasses import dataclass
from typing import Dict, List, Optional

CLASS_MAGIC = 0xCAFEBABE

ACC_PUBLIC = 0x0001
ACC_STATIC = 0x0008

# Constant pool tag -> payload size in bytes; Utf8 (1) is variable sized
_CONSTANT_SIZES = {
    3: 4,  # Integer
    4: 4,  # Float
    5: 8,  # Long
    6: 8,  # Double
    7: 2,  # Class
    8: 2,  # String
    9: 4,  # Fieldref
    10: 4,  # Methodref
    11: 4,  # InterfaceMethodref
    12: 4,  # NameAndType
    15: 3,  # MethodHandle
    16: 2,  # MethodType
    17: 4,  # Dynamic
    18: 4,  # InvokeDynamic
    19: 2,  # Module
    20: 2,  # Package
}
_TAG_UTF8 = 1
_TAG_CLASS = 7


class ClassFormatError(ValueError):
    pass


@dataclass(frozen=True)
class MethodInfo:
    name: str
    descriptor: str
    access_flags: int

    @property
    def is_public(self) -> bool:
        return bool(self.access_flags & ACC_PUBLIC)

    @property
    def is_static(self) -> bool:
        return bool(self.access_flags & ACC_STATIC)


@dataclass(frozen=True)
class ClassFile:
    name: str
    methods: List[MethodInfo]

    def find_method(self, name: str, descriptor: str) -> Optional[MethodInfo]:
        for method in self.methods:
            if method.name == name and method.descriptor == descriptor:
                return method
        return None


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise ClassFormatError("truncated class file")
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def u1(self) -> int:
        return self.take(1)[0]

    def u2(self) -> int:
        return struct.unpack(">H", self.take(2))[0]

    def u4(self) -> int:
        return struct.unpack(">I", self.take(4))[0]


def _skip_attributes(reader: _Reader) -> None:
    for _ in range(reader.u2()):
        reader.u2()
        reader.take(reader.u4())


def parse_class_file(data: bytes) -> ClassFile:
    """
    Decode the class name and methods of a class file.

    Raises:
        ClassFormatError: If ``data`` is not a well formed class file
    """
    reader = _Reader(data)
    if reader.u4() != CLASS_MAGIC:
        raise ClassFormatError("bad magic number")
    reader.u2()  # minor
    reader.u2()  # major

    utf8: Dict[int, str] = {}
    classes: Dict[int, int] = {}
    count = reader.u2()
    index = 1
    while index < count:
        tag = reader.u1()
        if tag == _TAG_UTF8:
            utf8[index] = reader.take(reader.u2()).decode("utf-8", errors="replace")
        elif tag == _TAG_CLASS:
            classes[index] = reader.u2()
        elif tag in _CONSTANT_SIZES:
            reader.take(_CONSTANT_SIZES[tag])
        else:
            raise ClassFormatError(f"unknown constant pool tag {tag}")
        # Long and Double occupy two slots
        index += 2 if tag in (5, 6) else 1

    reader.u2()  # access flags
    this_class = reader.u2()
    reader.u2()  # super class
    reader.take(2 * reader.u2())  # interfaces

    for _ in range(reader.u2()):  # fields
        reader.take(6)
        _skip_attributes(reader)

    methods = []
    for _ in range(reader.u2()):
        access_flags = reader.u2()
        name = utf8.get(reader.u2(), "")
        descriptor = utf8.get(reader.u2(), "")
        _skip_attributes(reader)
        methods.append(MethodInfo(name, descriptor, access_flags))

    class_name = utf8.get(classes.get(this_class, -1), "").replace("/", ".")
    return ClassFile(class_name, methods)
