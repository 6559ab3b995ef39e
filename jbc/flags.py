"""访问标志 (access_flags) 定义.

类、字段、方法与方法参数各自拥有不同的标志词汇表.
所有标志类型都继承自 `IntFlag`, 未知位在解码与编码时原样保留,
以兼容未来版本的 class 文件.
"""

from enum import IntFlag


class ClassAccessFlags(IntFlag):
    """类级别访问标志."""

    PUBLIC = 0x0001
    FINAL = 0x0010
    SUPER = 0x0020
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000
    MODULE = 0x8000


class FieldAccessFlags(IntFlag):
    """字段级别访问标志."""

    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    VOLATILE = 0x0040
    TRANSIENT = 0x0080
    SYNTHETIC = 0x1000
    ENUM = 0x4000


class MethodAccessFlags(IntFlag):
    """方法级别访问标志."""

    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SYNCHRONIZED = 0x0020
    BRIDGE = 0x0040
    VARARGS = 0x0080
    NATIVE = 0x0100
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000


class MethodParameterAccessFlags(IntFlag):
    """`MethodParameters` 属性中单个参数的访问标志."""

    FINAL = 0x0010
    SYNTHETIC = 0x1000
    MANDATED = 0x8000


def flag_names(flags: int) -> list[str]:
    """返回已知标志位的名称列表, 未知位以十六进制形式追加.

    普通整数没有词汇表, 所有位都视为未知.
    """
    value = int(flags)
    members = list(type(flags)) if isinstance(flags, IntFlag) else []
    names = []
    known = 0
    for member in members:
        if value & member.value == member.value and member.value:
            names.append(str(member.name))
            known |= member.value
    unknown = value & ~known
    if unknown:
        names.append(f"0x{unknown:04x}")
    return names
