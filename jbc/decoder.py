"""class 文件解码器实现.

该模块提供用于零复制读取的 `DataReader` (字节游标) 和
用于结构解码的 `ClassDecoder`.
"""

import struct
from collections.abc import Callable
from typing import TypeVar, cast

from . import mutf8
from .classfile import AttributeInfo, ClassFile, FieldInfo, MethodInfo
from .const import MAGIC, ConstantTag
from .constant_pool import (
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
    ConstantPool,
    ConstantPoolEntry,
    ConstantString,
    ConstantUtf8,
    PoolSlot,
    ReservedSlot,
)
from .exceptions import (
    BadMagicError,
    ClassDecodeError,
    InvalidUtf8Error,
    TrailingDataError,
    TruncatedError,
    UnknownConstantTagError,
)
from .flags import ClassAccessFlags, FieldAccessFlags, MethodAccessFlags
from .log import get_hexdump, logger
from .options import JbcOption

# 预编译的结构体解包器, class 文件始终为大端序
_STRUCT_H = struct.Struct(">H")
_STRUCT_I = struct.Struct(">I")
_STRUCT_i = struct.Struct(">i")
_STRUCT_Q = struct.Struct(">Q")
_STRUCT_q = struct.Struct(">q")
_STRUCT_f = struct.Struct(">f")
_STRUCT_d = struct.Struct(">d")

T = TypeVar("T")

# 全局共享的保留槽位
_RESERVED = ReservedSlot()


class DataReader:
    """class 文件二进制数据的零复制读取器.

    包装 memoryview 以提供按位置前进的大端读取, 任何越界读取都抛出
    `TruncatedError`. 一个读取器只服务于一次解码, 不可跨线程共享.
    """

    __slots__ = ("_pos", "_view", "length")

    _view: memoryview
    _pos: int
    length: int

    def __init__(self, data: bytes | bytearray | memoryview):
        """初始化DataReader.

        Args:
            data: 要读取的二进制数据.
        """
        self._view = memoryview(data)
        self._pos = 0
        self.length = len(self._view)

    @property
    def pos(self) -> int:
        """当前读取位置."""
        return self._pos

    @property
    def buffer(self) -> memoryview:
        """底层只读缓冲区."""
        return self._view

    @property
    def remaining(self) -> int:
        """剩余可读字节数."""
        return self.length - self._pos

    @property
    def eof(self) -> bool:
        """检查是否到达流末尾."""
        return self._pos >= self.length

    def _require(self, size: int, what: str) -> int:
        start = self._pos
        if start + size > self.length:
            raise TruncatedError(
                f"Not enough data to read {what}: need {size} bytes, "
                f"{self.length - start} available",
                start,
                needed=size,
                available=self.length - start,
            )
        self._pos = start + size
        return start

    def _unpack(self, packer: struct.Struct, what: str) -> int:
        start = self._require(packer.size, what)
        return cast(int, packer.unpack_from(self._view, start)[0])

    def read_bytes(self, length: int, zero_copy: bool = False) -> bytes | memoryview:
        """读取字节序列.

        Args:
            length: 要读取的字节数.
            zero_copy: 如果为True, 则返回 memoryview 切片.

        Raises:
            TruncatedError: 如果没有足够的数据可用.
        """
        if length < 0:
            raise ClassDecodeError(f"Cannot read negative bytes: {length}", self._pos)
        start = self._require(length, "bytes")
        view = self._view[start : self._pos]
        return view if zero_copy else view.tobytes()

    def read_u8(self) -> int:
        """读取无符号8位整数."""
        start = self._require(1, "u8")
        return self._view[start]

    def read_u16(self) -> int:
        return self._unpack(_STRUCT_H, "u16")

    def read_u32(self) -> int:
        return self._unpack(_STRUCT_I, "u32")

    def read_i32(self) -> int:
        return self._unpack(_STRUCT_i, "i32")

    def read_u64(self) -> int:
        return self._unpack(_STRUCT_Q, "u64")

    def read_i64(self) -> int:
        return self._unpack(_STRUCT_q, "i64")

    def read_f32(self) -> float:
        """读取 IEEE-754 单精度浮点数."""
        start = self._require(4, "f32")
        return cast(float, _STRUCT_f.unpack_from(self._view, start)[0])

    def read_f64(self) -> float:
        """读取 IEEE-754 双精度浮点数."""
        start = self._require(8, "f64")
        return cast(float, _STRUCT_d.unpack_from(self._view, start)[0])

    def read_table(self, read_item: Callable[[], T]) -> tuple[T, ...]:
        """读取 u16 计数加对应数量记录的表."""
        count = self.read_u16()
        return tuple(read_item() for _ in range(count))


class ClassDecoder:
    """class 文件结构解码器.

    单次线性扫描: 魔数 -> 版本 -> 常量池 -> 访问标志 -> 类/父类/接口
    -> 字段表 -> 方法表 -> 属性表. 解码过程中不解析常量池索引.
    """

    __slots__ = ("_option", "_reader")

    _reader: DataReader
    _option: int

    def __init__(self, reader: DataReader, option: int = JbcOption.NONE):
        self._reader = reader
        self._option = int(option)

    def decode(self, suppress_log: bool = False) -> ClassFile:
        """解码完整的 class 文件.

        Raises:
            ClassDecodeError: 任何结构错误, 不返回部分结果.
        """
        reader = self._reader
        if not suppress_log:
            logger.debug("[ClassDecoder] 开始解码 %d 字节", reader.length)

        try:
            class_file = self._read_class_file()
        except ClassDecodeError as e:
            if not suppress_log:
                logger.error("[ClassDecoder] 解码错误: %s", e)
                if e.offset is not None:
                    logger.debug("%s", get_hexdump(reader.buffer, e.offset))
            raise

        if not suppress_log:
            logger.debug(
                "[ClassDecoder] 成功解码: %d 个常量池槽位, %d 个字段, %d 个方法",
                len(class_file.constant_pool),
                len(class_file.fields),
                len(class_file.methods),
            )
        return class_file

    def _read_class_file(self) -> ClassFile:
        reader = self._reader
        magic = reader.read_u32()
        if magic != MAGIC:
            raise BadMagicError(magic, 0)
        minor_version = reader.read_u16()
        major_version = reader.read_u16()
        constant_pool = self.read_constant_pool()
        access_flags = ClassAccessFlags(reader.read_u16())
        this_class = reader.read_u16()
        super_class = reader.read_u16()
        interfaces = reader.read_table(reader.read_u16)
        fields = reader.read_table(self._read_field)
        methods = reader.read_table(self._read_method)
        attributes = self.read_attributes()

        if not reader.eof and not self._option & JbcOption.ALLOW_TRAILING_DATA:
            raise TrailingDataError(
                f"{reader.remaining} bytes of trailing data after class attributes",
                reader.pos,
            )

        return ClassFile(
            minor_version=minor_version,
            major_version=major_version,
            constant_pool=constant_pool,
            access_flags=access_flags,
            this_class=this_class,
            super_class=super_class,
            interfaces=interfaces,
            fields=fields,
            methods=methods,
            attributes=attributes,
        )

    def read_constant_pool(self) -> ConstantPool:
        """读取常量池计数与全部条目.

        计数字段为 N+1, 结果恰好包含 N 个逻辑槽位. Long/Double 之后
        插入一个 `ReservedSlot`, 保证后续 1 起始索引与文件布局一致.
        """
        reader = self._reader
        count_offset = reader.pos
        count = reader.read_u16()
        if count == 0:
            raise ClassDecodeError(
                "constant_pool_count must be at least 1", count_offset
            )
        slots = count - 1

        pool: list[PoolSlot] = []
        while len(pool) < slots:
            index = len(pool) + 1
            entry = self._read_constant(index)
            pool.append(entry)
            if isinstance(entry, ConstantLong | ConstantDouble):
                if len(pool) >= slots:
                    raise ClassDecodeError(
                        f"{type(entry).__name__} in slot #{index} overflows "
                        f"constant_pool_count {count}",
                        count_offset,
                    )
                pool.append(_RESERVED)
        return tuple(pool)

    def _read_constant(self, index: int) -> ConstantPoolEntry:
        reader = self._reader
        offset = reader.pos
        tag = reader.read_u8()

        if tag == ConstantTag.UTF8:
            length = reader.read_u16()
            data_offset = reader.pos
            data = reader.read_bytes(length)
            try:
                return ConstantUtf8(value=mutf8.decode(data))
            except UnicodeDecodeError as e:
                raise InvalidUtf8Error(
                    f"Invalid UTF-8 in constant pool slot #{index}: {e.reason}",
                    data_offset + e.start,
                    bytes(data),
                ) from e
        if tag == ConstantTag.INTEGER:
            return ConstantInteger(value=reader.read_i32())
        if tag == ConstantTag.FLOAT:
            return ConstantFloat(bits=reader.read_u32())
        if tag == ConstantTag.LONG:
            return ConstantLong(value=reader.read_i64())
        if tag == ConstantTag.DOUBLE:
            return ConstantDouble(bits=reader.read_u64())
        if tag == ConstantTag.CLASS:
            return ConstantClass(name_index=reader.read_u16())
        if tag == ConstantTag.STRING:
            return ConstantString(string_index=reader.read_u16())
        if tag == ConstantTag.FIELDREF:
            return ConstantFieldref(
                class_index=reader.read_u16(), name_and_type_index=reader.read_u16()
            )
        if tag == ConstantTag.METHODREF:
            return ConstantMethodref(
                class_index=reader.read_u16(), name_and_type_index=reader.read_u16()
            )
        if tag == ConstantTag.INTERFACE_METHODREF:
            return ConstantInterfaceMethodref(
                class_index=reader.read_u16(), name_and_type_index=reader.read_u16()
            )
        if tag == ConstantTag.NAME_AND_TYPE:
            return ConstantNameAndType(
                name_index=reader.read_u16(), descriptor_index=reader.read_u16()
            )
        if tag == ConstantTag.METHOD_HANDLE:
            return ConstantMethodHandle(
                reference_kind=reader.read_u8(), reference_index=reader.read_u16()
            )
        if tag == ConstantTag.METHOD_TYPE:
            return ConstantMethodType(descriptor_index=reader.read_u16())
        if tag == ConstantTag.DYNAMIC:
            return ConstantDynamic(
                bootstrap_method_attr_index=reader.read_u16(),
                name_and_type_index=reader.read_u16(),
            )
        if tag == ConstantTag.INVOKE_DYNAMIC:
            return ConstantInvokeDynamic(
                bootstrap_method_attr_index=reader.read_u16(),
                name_and_type_index=reader.read_u16(),
            )
        if tag == ConstantTag.MODULE:
            return ConstantModule(name_index=reader.read_u16())
        if tag == ConstantTag.PACKAGE:
            return ConstantPackage(name_index=reader.read_u16())

        raise UnknownConstantTagError(tag, offset, index)

    def _read_member_header(self) -> tuple[int, int, int]:
        reader = self._reader
        return reader.read_u16(), reader.read_u16(), reader.read_u16()

    def _read_field(self) -> FieldInfo:
        access_flags, name_index, descriptor_index = self._read_member_header()
        return FieldInfo(
            access_flags=FieldAccessFlags(access_flags),
            name_index=name_index,
            descriptor_index=descriptor_index,
            attributes=self.read_attributes(),
        )

    def _read_method(self) -> MethodInfo:
        access_flags, name_index, descriptor_index = self._read_member_header()
        return MethodInfo(
            access_flags=MethodAccessFlags(access_flags),
            name_index=name_index,
            descriptor_index=descriptor_index,
            attributes=self.read_attributes(),
        )

    def read_attributes(self) -> tuple[AttributeInfo, ...]:
        """读取属性表 (u16 计数 + attribute_info)."""
        return self._reader.read_table(self._read_attribute)

    def _read_attribute(self) -> AttributeInfo:
        reader = self._reader
        name_index = reader.read_u16()
        length = reader.read_u32()
        info = reader.read_bytes(length)
        return AttributeInfo(attribute_name_index=name_index, info=cast(bytes, info))
