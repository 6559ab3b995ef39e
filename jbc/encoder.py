"""class 文件编码器实现.

该模块提供用于高效缓冲管理的 `DataWriter` 和
将 `ClassFile` 写回字节的 `ClassEncoder`. 写出顺序与宽度
与解码完全对称, 因此 `encode(decode(data)) == data`.
"""

import struct
from collections.abc import Callable, Sequence
from typing import TypeVar

from . import mutf8
from .classfile import AttributeInfo, ClassFile, MemberInfo
from .const import MAGIC, U8_MAX, U16_MAX, U32_MAX
from .constant_pool import (
    WIDE_ENTRIES,
    ConstantClass,
    ConstantDouble,
    ConstantDynamic,
    ConstantFieldref,
    ConstantFloat,
    ConstantInteger,
    ConstantInterfaceMethodref,
    ConstantInvokeDynamic,
    ConstantLong,
    ConstantMethodHandle,
    ConstantMethodref,
    ConstantMethodType,
    ConstantModule,
    ConstantNameAndType,
    ConstantPackage,
    ConstantString,
    ConstantUtf8,
    PoolSlot,
    ReservedSlot,
)
from .exceptions import ClassEncodeError
from .log import logger

# 预编译的结构体打包器
_PACK_H = struct.Struct(">H").pack
_PACK_I = struct.Struct(">I").pack
_PACK_i = struct.Struct(">i").pack
_PACK_Q = struct.Struct(">Q").pack
_PACK_q = struct.Struct(">q").pack

T = TypeVar("T")


class DataWriter:
    """class 文件二进制数据的高效写入器."""

    __slots__ = ("_buffer",)

    _buffer: bytearray

    def __init__(self) -> None:
        self._buffer = bytearray()

    def get_bytes(self) -> bytes:
        """返回累积的字节."""
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def _pack(self, packer: Callable[[int], bytes], value: int, what: str) -> None:
        try:
            self._buffer.extend(packer(value))
        except (struct.error, OverflowError) as e:
            raise ClassEncodeError(f"Cannot write {value!r} as {what}: {e}") from e

    def write_u8(self, value: int) -> None:
        if not 0 <= value <= U8_MAX:
            raise ClassEncodeError(f"Value out of u8 range: {value}")
        self._buffer.append(value)

    def write_u16(self, value: int) -> None:
        self._pack(_PACK_H, value, "u16")

    def write_u32(self, value: int) -> None:
        self._pack(_PACK_I, value, "u32")

    def write_i32(self, value: int) -> None:
        self._pack(_PACK_i, value, "i32")

    def write_u64(self, value: int) -> None:
        self._pack(_PACK_Q, value, "u64")

    def write_i64(self, value: int) -> None:
        self._pack(_PACK_q, value, "i64")

    def write_bytes(self, data: bytes | bytearray | memoryview) -> None:
        """直接追加原始字节."""
        self._buffer.extend(data)

    def write_table(self, items: Sequence[T], write_item: Callable[[T], None]) -> None:
        """写入 u16 计数加对应数量记录的表."""
        if len(items) > U16_MAX:
            raise ClassEncodeError(f"Table too long for u16 count: {len(items)}")
        self.write_u16(len(items))
        for item in items:
            write_item(item)


class ClassEncoder:
    """将 `ClassFile` 序列化为 class 文件字节."""

    __slots__ = ("_writer",)

    def __init__(self, writer: DataWriter | None = None):
        self._writer = writer if writer is not None else DataWriter()

    def encode(self, class_file: ClassFile) -> bytes:
        """编码完整的 class 文件."""
        logger.debug(
            "[ClassEncoder] 开始编码: %d 个常量池槽位", len(class_file.constant_pool)
        )
        writer = self._writer
        writer.write_u32(MAGIC)
        writer.write_u16(class_file.minor_version)
        writer.write_u16(class_file.major_version)
        self.write_constant_pool(class_file.constant_pool)
        writer.write_u16(int(class_file.access_flags))
        writer.write_u16(class_file.this_class)
        writer.write_u16(class_file.super_class)
        writer.write_table(class_file.interfaces, writer.write_u16)
        writer.write_table(class_file.fields, self._write_member)
        writer.write_table(class_file.methods, self._write_member)
        self.write_attributes(class_file.attributes)
        return writer.get_bytes()

    def write_constant_pool(self, pool: Sequence[PoolSlot]) -> None:
        """写入常量池计数 (N+1) 与全部条目, 保留槽位只计数不输出字节."""
        writer = self._writer
        if len(pool) + 1 > U16_MAX:
            raise ClassEncodeError(f"Constant pool too large: {len(pool)} slots")
        writer.write_u16(len(pool) + 1)

        previous: PoolSlot | None = None
        for index, entry in enumerate(pool, start=1):
            wide_before = isinstance(previous, WIDE_ENTRIES)
            if isinstance(entry, ReservedSlot):
                if not wide_before:
                    raise ClassEncodeError(
                        f"Reserved slot #{index} does not follow a Long/Double"
                    )
            elif wide_before:
                raise ClassEncodeError(
                    f"Slot #{index} after a Long/Double must be reserved"
                )
            else:
                self._write_constant(entry)
            previous = entry

        if isinstance(previous, WIDE_ENTRIES):
            raise ClassEncodeError(
                f"{type(previous).__name__} #{len(pool)} has no reserved slot"
            )

    def _write_constant(self, entry: PoolSlot) -> None:
        writer = self._writer
        tag = entry.tag
        if tag is None:
            raise ClassEncodeError(f"Cannot write {type(entry).__name__}")
        writer.write_u8(tag)

        if isinstance(entry, ConstantUtf8):
            data = mutf8.encode(entry.value)
            if len(data) > U16_MAX:
                raise ClassEncodeError(f"Utf8 constant too long: {len(data)} bytes")
            writer.write_u16(len(data))
            writer.write_bytes(data)
        elif isinstance(entry, ConstantInteger):
            writer.write_i32(entry.value)
        elif isinstance(entry, ConstantFloat):
            writer.write_u32(entry.bits)
        elif isinstance(entry, ConstantLong):
            writer.write_i64(entry.value)
        elif isinstance(entry, ConstantDouble):
            writer.write_u64(entry.bits)
        elif isinstance(entry, ConstantClass | ConstantModule | ConstantPackage):
            writer.write_u16(entry.name_index)
        elif isinstance(entry, ConstantString):
            writer.write_u16(entry.string_index)
        elif isinstance(
            entry, ConstantFieldref | ConstantMethodref | ConstantInterfaceMethodref
        ):
            writer.write_u16(entry.class_index)
            writer.write_u16(entry.name_and_type_index)
        elif isinstance(entry, ConstantNameAndType):
            writer.write_u16(entry.name_index)
            writer.write_u16(entry.descriptor_index)
        elif isinstance(entry, ConstantMethodHandle):
            writer.write_u8(entry.reference_kind)
            writer.write_u16(entry.reference_index)
        elif isinstance(entry, ConstantMethodType):
            writer.write_u16(entry.descriptor_index)
        elif isinstance(entry, ConstantDynamic | ConstantInvokeDynamic):
            writer.write_u16(entry.bootstrap_method_attr_index)
            writer.write_u16(entry.name_and_type_index)
        else:
            raise ClassEncodeError(f"Unknown constant pool entry: {entry!r}")

    def _write_member(self, member: MemberInfo) -> None:
        writer = self._writer
        writer.write_u16(int(member.access_flags))
        writer.write_u16(member.name_index)
        writer.write_u16(member.descriptor_index)
        self.write_attributes(member.attributes)

    def write_attributes(self, attributes: Sequence[AttributeInfo]) -> None:
        """写入属性表 (u16 计数 + attribute_info)."""
        self._writer.write_table(attributes, self._write_attribute)

    def _write_attribute(self, attribute: AttributeInfo) -> None:
        writer = self._writer
        if len(attribute.info) > U32_MAX:
            raise ClassEncodeError(
                f"Attribute payload too long: {len(attribute.info)} bytes"
            )
        writer.write_u16(attribute.attribute_name_index)
        writer.write_u32(len(attribute.info))
        writer.write_bytes(attribute.info)
