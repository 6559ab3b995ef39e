"""JVM class 文件解析库.

提供 class 文件解码 (decode)、编码 (encode)、常量池索引解析以及
字段/方法描述符解析功能.
"""

from .api import decode, dump, encode, load
from .attributes import (
    AttributeRegistry,
    MethodParameter,
    MethodParametersAttribute,
    decode_attribute,
    default_registry,
    register_attribute,
)
from .classfile import AttributeInfo, ClassFile, FieldInfo, MemberInfo, MethodInfo
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
    ReservedSlot,
    find_reference_errors,
    resolve,
    resolve_class_name,
    resolve_name_and_type,
    resolve_string,
    resolve_utf8,
    validate_constant_pool,
)
from .descriptor import (
    ArrayType,
    BaseType,
    FieldType,
    MethodDescriptor,
    ObjectType,
    parse_field_type,
    parse_method_descriptor,
)
from .exceptions import (
    BadMagicError,
    ClassDecodeError,
    ClassEncodeError,
    ConstantPoolIndexError,
    DescriptorError,
    InvalidUtf8Error,
    JbcError,
    TrailingDataError,
    TruncatedError,
    UnknownConstantTagError,
)
from .flags import (
    ClassAccessFlags,
    FieldAccessFlags,
    MethodAccessFlags,
    MethodParameterAccessFlags,
)
from .options import JbcOption

__version__ = "0.1.0"

__all__ = [
    "MAGIC",
    "ArrayType",
    "AttributeInfo",
    "AttributeRegistry",
    "BadMagicError",
    "BaseType",
    "ClassAccessFlags",
    "ClassDecodeError",
    "ClassEncodeError",
    "ClassFile",
    "ConstantClass",
    "ConstantDouble",
    "ConstantDynamic",
    "ConstantFieldref",
    "ConstantFloat",
    "ConstantInteger",
    "ConstantInterfaceMethodref",
    "ConstantInvokeDynamic",
    "ConstantLong",
    "ConstantMethodHandle",
    "ConstantMethodType",
    "ConstantMethodref",
    "ConstantModule",
    "ConstantNameAndType",
    "ConstantPackage",
    "ConstantPool",
    "ConstantPoolEntry",
    "ConstantPoolIndexError",
    "ConstantString",
    "ConstantTag",
    "ConstantUtf8",
    "DescriptorError",
    "FieldAccessFlags",
    "FieldInfo",
    "FieldType",
    "InvalidUtf8Error",
    "JbcError",
    "JbcOption",
    "MemberInfo",
    "MethodAccessFlags",
    "MethodDescriptor",
    "MethodInfo",
    "MethodParameter",
    "MethodParameterAccessFlags",
    "MethodParametersAttribute",
    "ObjectType",
    "ReservedSlot",
    "TrailingDataError",
    "TruncatedError",
    "UnknownConstantTagError",
    "__version__",
    "decode",
    "decode_attribute",
    "default_registry",
    "dump",
    "encode",
    "find_reference_errors",
    "load",
    "parse_field_type",
    "parse_method_descriptor",
    "register_attribute",
    "resolve",
    "resolve_class_name",
    "resolve_name_and_type",
    "resolve_string",
    "resolve_utf8",
    "validate_constant_pool",
]
