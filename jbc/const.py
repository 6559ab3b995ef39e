"""Class 文件格式常量.

该模块定义了 class 文件魔数、常量池标签 (Tag) 以及常用属性名称.
"""

from enum import IntEnum

# class 文件魔数
MAGIC = 0xCAFEBABE


class ConstantTag(IntEnum):
    """常量池条目的标签值 (1 字节)."""

    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELDREF = 9
    METHODREF = 10
    INTERFACE_METHODREF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    DYNAMIC = 17
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20


# 属性名称
ATTR_CONSTANT_VALUE = "ConstantValue"
ATTR_EXCEPTIONS = "Exceptions"
ATTR_SOURCE_FILE = "SourceFile"
ATTR_SIGNATURE = "Signature"
ATTR_METHOD_PARAMETERS = "MethodParameters"

# 没有父类的唯一类
JAVA_LANG_OBJECT = "java/lang/Object"

# 定长字段的取值范围
U8_MAX = 0xFF
U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF
U64_MAX = 0xFFFFFFFFFFFFFFFF
