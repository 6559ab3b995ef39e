"""常量池条目与索引解析.

常量池是一个从 1 开始编号的表, 索引 0 永远无效. 在 Python 中它被保存为
普通的 tuple, `pool[i - 1]` 对应 class 文件中的 #i. 调用方应使用
`resolve()` 系列函数访问条目, 而不是手写 `index - 1`.

`Long` 与 `Double` 占用两个槽位, 其后的槽位由 `ReservedSlot` 占据,
不能被独立引用.
"""

import struct
from collections.abc import Iterator, Sequence
from typing import Any, ClassVar, TypeVar, Union, cast

from pydantic import BaseModel, ConfigDict, computed_field, model_validator

from .const import ConstantTag
from .exceptions import ConstantPoolIndexError
from .types import I32, I64, U8, U16, U32, U64

E = TypeVar("E", bound=BaseModel)

_FLOAT = struct.Struct(">f")
_DOUBLE = struct.Struct(">d")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")


class _Entry(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: ClassVar[ConstantTag | None]


class ConstantUtf8(_Entry):
    """CONSTANT_Utf8: 字符串字面量, 也用于类名、成员名与描述符."""

    tag: ClassVar[ConstantTag] = ConstantTag.UTF8
    value: str


class ConstantInteger(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.INTEGER
    value: I32


def _bits_from_value(
    data: Any, value_struct: struct.Struct, bits_struct: struct.Struct
) -> Any:
    """允许用 `value=` 构造浮点常量, 转换为对应的 IEEE-754 位模式."""
    if isinstance(data, dict) and "value" in data and "bits" not in data:
        data = dict(data)
        value = data.pop("value")
        try:
            data["bits"] = bits_struct.unpack(value_struct.pack(value))[0]
        except (struct.error, OverflowError) as e:
            raise ValueError(f"Cannot represent {value!r}: {e}") from e
    return data


class ConstantFloat(_Entry):
    """CONSTANT_Float.

    保存原始的 32 位 IEEE-754 位模式, 非规范的 NaN 可以原样写回.
    `value` 由位模式计算得到, 构造时也可以直接传入 `value=`.
    """

    tag: ClassVar[ConstantTag] = ConstantTag.FLOAT
    bits: U32

    @model_validator(mode="before")
    @classmethod
    def from_value(cls, data: Any) -> Any:
        return _bits_from_value(data, _FLOAT, _U32)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value(self) -> float:
        return cast(float, _FLOAT.unpack(_U32.pack(self.bits))[0])


class ConstantLong(_Entry):
    """CONSTANT_Long: 占用两个槽位."""

    tag: ClassVar[ConstantTag] = ConstantTag.LONG
    value: I64


class ConstantDouble(_Entry):
    """CONSTANT_Double: 占用两个槽位, 与 `ConstantFloat` 一样保存位模式."""

    tag: ClassVar[ConstantTag] = ConstantTag.DOUBLE
    bits: U64

    @model_validator(mode="before")
    @classmethod
    def from_value(cls, data: Any) -> Any:
        return _bits_from_value(data, _DOUBLE, _U64)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value(self) -> float:
        return cast(float, _DOUBLE.unpack(_U64.pack(self.bits))[0])


class ConstantClass(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.CLASS
    name_index: U16


class ConstantString(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.STRING
    string_index: U16


class ConstantFieldref(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.FIELDREF
    class_index: U16
    name_and_type_index: U16


class ConstantMethodref(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.METHODREF
    class_index: U16
    name_and_type_index: U16


class ConstantInterfaceMethodref(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.INTERFACE_METHODREF
    class_index: U16
    name_and_type_index: U16


class ConstantNameAndType(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.NAME_AND_TYPE
    name_index: U16
    descriptor_index: U16


class ConstantMethodHandle(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.METHOD_HANDLE
    reference_kind: U8
    reference_index: U16


class ConstantMethodType(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.METHOD_TYPE
    descriptor_index: U16


class ConstantDynamic(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.DYNAMIC
    bootstrap_method_attr_index: U16
    name_and_type_index: U16


class ConstantInvokeDynamic(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.INVOKE_DYNAMIC
    bootstrap_method_attr_index: U16
    name_and_type_index: U16


class ConstantModule(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.MODULE
    name_index: U16


class ConstantPackage(_Entry):
    tag: ClassVar[ConstantTag] = ConstantTag.PACKAGE
    name_index: U16


class ReservedSlot(_Entry):
    """Long/Double 之后的保留槽位 (phantom slot), 不对应任何字节."""

    tag: ClassVar[None] = None


ConstantPoolEntry = Union[
    ConstantUtf8,
    ConstantInteger,
    ConstantFloat,
    ConstantLong,
    ConstantDouble,
    ConstantClass,
    ConstantString,
    ConstantFieldref,
    ConstantMethodref,
    ConstantInterfaceMethodref,
    ConstantNameAndType,
    ConstantMethodHandle,
    ConstantMethodType,
    ConstantDynamic,
    ConstantInvokeDynamic,
    ConstantModule,
    ConstantPackage,
]

PoolSlot = Union[ConstantPoolEntry, ReservedSlot]

ConstantPool = tuple[PoolSlot, ...]

WIDE_ENTRIES = (ConstantLong, ConstantDouble)

_MEMBER_REFS = (ConstantFieldref, ConstantMethodref, ConstantInterfaceMethodref)

# reference_kind -> 可接受的被引用条目类型
_METHOD_HANDLE_TARGETS: dict[int, tuple[type[BaseModel], ...]] = {
    1: (ConstantFieldref,),  # REF_getField
    2: (ConstantFieldref,),  # REF_getStatic
    3: (ConstantFieldref,),  # REF_putField
    4: (ConstantFieldref,),  # REF_putStatic
    5: (ConstantMethodref,),  # REF_invokeVirtual
    6: (ConstantMethodref, ConstantInterfaceMethodref),  # REF_invokeStatic
    7: (ConstantMethodref, ConstantInterfaceMethodref),  # REF_invokeSpecial
    8: (ConstantMethodref,),  # REF_newInvokeSpecial
    9: (ConstantInterfaceMethodref,),  # REF_invokeInterface
}

Reference = tuple[str, int, tuple[type[BaseModel], ...]]


def iter_references(entry: PoolSlot) -> Iterator[Reference]:
    """列出条目中所有指向常量池的索引.

    Yields:
        (字段名, 索引, 可接受的条目类型) 三元组.
    """
    if isinstance(entry, ConstantClass | ConstantModule | ConstantPackage):
        yield "name_index", entry.name_index, (ConstantUtf8,)
    elif isinstance(entry, ConstantString):
        yield "string_index", entry.string_index, (ConstantUtf8,)
    elif isinstance(entry, _MEMBER_REFS):
        yield "class_index", entry.class_index, (ConstantClass,)
        yield "name_and_type_index", entry.name_and_type_index, (ConstantNameAndType,)
    elif isinstance(entry, ConstantNameAndType):
        yield "name_index", entry.name_index, (ConstantUtf8,)
        yield "descriptor_index", entry.descriptor_index, (ConstantUtf8,)
    elif isinstance(entry, ConstantMethodHandle):
        targets = _METHOD_HANDLE_TARGETS.get(entry.reference_kind, _MEMBER_REFS)
        yield "reference_index", entry.reference_index, targets
    elif isinstance(entry, ConstantMethodType):
        yield "descriptor_index", entry.descriptor_index, (ConstantUtf8,)
    elif isinstance(entry, ConstantDynamic | ConstantInvokeDynamic):
        # bootstrap_method_attr_index 指向 BootstrapMethods 属性, 不属于常量池
        yield "name_and_type_index", entry.name_and_type_index, (ConstantNameAndType,)


def _type_names(types: tuple[type[BaseModel], ...]) -> tuple[str, ...]:
    return tuple(t.__name__ for t in types)


def resolve(pool: Sequence[PoolSlot], index: int, *expected: type[E]) -> E:
    """按 1 起始的索引查找常量池条目.

    Args:
        pool: 常量池.
        index: class 文件中的索引 (#1 为第一个条目).
        expected: 可接受的条目类型, 为空时不检查类型.

    Raises:
        ConstantPoolIndexError: 索引越界, 指向保留槽位或条目类型不符.
    """
    if not 1 <= index <= len(pool):
        raise ConstantPoolIndexError(
            f"Constant pool index {index} out of range 1..{len(pool)}",
            index,
            _type_names(expected),
        )
    entry = pool[index - 1]
    if isinstance(entry, ReservedSlot):
        raise ConstantPoolIndexError(
            f"Constant pool index {index} is the reserved slot of a Long/Double",
            index,
            _type_names(expected),
            entry,
        )
    if expected and not isinstance(entry, expected):
        raise ConstantPoolIndexError(
            f"Constant pool index {index} is {type(entry).__name__}, "
            f"expected {' or '.join(_type_names(expected))}",
            index,
            _type_names(expected),
            entry,
        )
    return cast(E, entry)


def resolve_utf8(pool: Sequence[PoolSlot], index: int) -> str:
    """解析指向 Utf8 条目的索引, 返回字符串."""
    return resolve(pool, index, ConstantUtf8).value


def resolve_class_name(pool: Sequence[PoolSlot], class_index: int) -> str:
    """解析指向 Class 条目的索引, 返回内部形式的类名 (如 `java/lang/String`)."""
    entry = resolve(pool, class_index, ConstantClass)
    return resolve_utf8(pool, entry.name_index)


def resolve_string(pool: Sequence[PoolSlot], index: int) -> str:
    """解析指向 String 条目的索引, 返回字符串字面量."""
    entry = resolve(pool, index, ConstantString)
    return resolve_utf8(pool, entry.string_index)


def resolve_name_and_type(pool: Sequence[PoolSlot], index: int) -> tuple[str, str]:
    """解析指向 NameAndType 条目的索引, 返回 (名称, 描述符)."""
    entry = resolve(pool, index, ConstantNameAndType)
    return resolve_utf8(pool, entry.name_index), resolve_utf8(
        pool, entry.descriptor_index
    )


def find_reference_errors(pool: Sequence[PoolSlot]) -> list[ConstantPoolIndexError]:
    """校验常量池内部的所有引用, 返回发现的全部错误.

    检查内容:
        - 每个索引字段都指向预期类型的条目.
        - Long/Double 之后紧跟保留槽位, 保留槽位只出现在它们之后.
    """
    errors: list[ConstantPoolIndexError] = []
    previous: PoolSlot | None = None
    for position, entry in enumerate(pool, start=1):
        wide_before = isinstance(previous, WIDE_ENTRIES)
        if wide_before and not isinstance(entry, ReservedSlot):
            errors.append(
                ConstantPoolIndexError(
                    f"#{position}: slot after {type(previous).__name__} "
                    f"#{position - 1} must be reserved",
                    position,
                    (ReservedSlot.__name__,),
                    entry,
                )
            )
        elif isinstance(entry, ReservedSlot) and not wide_before:
            errors.append(
                ConstantPoolIndexError(
                    f"#{position}: reserved slot does not follow a Long/Double",
                    position,
                    found=entry,
                )
            )

        for field_name, index, expected in iter_references(entry):
            try:
                resolve(pool, index, *expected)
            except ConstantPoolIndexError as e:
                errors.append(
                    ConstantPoolIndexError(
                        f"#{position} {type(entry).__name__}.{field_name}: {e}",
                        index,
                        e.expected,
                        e.found,
                    )
                )
        previous = entry

    if isinstance(previous, WIDE_ENTRIES):
        errors.append(
            ConstantPoolIndexError(
                f"#{len(pool)}: {type(previous).__name__} has no reserved slot",
                len(pool) + 1,
                (ReservedSlot.__name__,),
            )
        )
    return errors


def validate_constant_pool(pool: Sequence[PoolSlot]) -> None:
    """校验常量池引用, 发现错误时抛出第一个.

    Raises:
        ConstantPoolIndexError: 存在悬空或类型不符的引用.
    """
    errors = find_reference_errors(pool)
    if errors:
        raise errors[0]
