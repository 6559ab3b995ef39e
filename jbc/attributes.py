"""属性负载解码.

结构解码阶段把属性保存为 "名称索引 + 不透明字节". 本模块提供第二阶段:
按解析出的属性名查找已注册的负载语法并解码. 未注册的属性名原样返回
负载字节, 这不是错误 (class 文件格式要求解析器忽略不认识的属性).

注册新的负载语法不需要修改结构解码器:

    >>> from jbc.attributes import register_attribute
    >>> @register_attribute("Deprecated")
    ... def read_deprecated(reader):
    ...     return True
"""

from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from .const import (
    ATTR_CONSTANT_VALUE,
    ATTR_EXCEPTIONS,
    ATTR_METHOD_PARAMETERS,
    ATTR_SIGNATURE,
    ATTR_SOURCE_FILE,
)
from .decoder import DataReader
from .exceptions import ClassDecodeError
from .flags import MethodParameterAccessFlags
from .log import logger
from .types import U16

AttributeParser = Callable[[DataReader], Any]

P = TypeVar("P", bound=AttributeParser)


class MethodParameter(BaseModel):
    """`MethodParameters` 属性中的单个参数.

    Attributes:
        name_index: 指向 Utf8 的参数名索引, 0 表示无名称.
        access_flags: 参数访问标志.
    """

    model_config = ConfigDict(frozen=True)

    name_index: U16
    access_flags: MethodParameterAccessFlags


class MethodParametersAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    parameters: tuple[MethodParameter, ...]


class SourceFileAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    sourcefile_index: U16


class SignatureAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    signature_index: U16


class ConstantValueAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    constantvalue_index: U16


class ExceptionsAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    exception_index_table: tuple[U16, ...]


class AttributeRegistry:
    """属性名到负载解析函数的映射.

    解析函数接收一个覆盖整个负载的 `DataReader`, 必须恰好消费全部字节.
    """

    def __init__(self, parsers: dict[str, AttributeParser] | None = None):
        self._parsers: dict[str, AttributeParser] = dict(parsers or {})

    def register(self, name: str) -> Callable[[P], P]:
        """装饰器: 为属性名注册负载解析函数, 已存在的注册会被覆盖.

        Args:
            name: 属性名, 如 "MethodParameters".
        """

        def decorator(parser: P) -> P:
            if name in self._parsers:
                logger.debug("[AttributeRegistry] 覆盖属性解析器: %s", name)
            self._parsers[name] = parser
            return parser

        return decorator

    def unregister(self, name: str) -> None:
        self._parsers.pop(name, None)

    def get(self, name: str) -> AttributeParser | None:
        return self._parsers.get(name)

    def copy(self) -> "AttributeRegistry":
        return AttributeRegistry(self._parsers)

    def __contains__(self, name: object) -> bool:
        return name in self._parsers

    def __iter__(self) -> Iterator[str]:
        return iter(self._parsers)

    def __len__(self) -> int:
        return len(self._parsers)

    def decode(self, name: str, info: bytes | bytearray | memoryview) -> Any:
        """解码属性负载.

        Args:
            name: 已解析的属性名.
            info: 属性负载字节.

        Returns:
            解析函数的返回值; 未注册的属性返回原始字节.

        Raises:
            ClassDecodeError: 负载不符合已注册的语法 (截断或有多余字节).
        """
        parser = self._parsers.get(name)
        if parser is None:
            return bytes(info)

        reader = DataReader(info)
        value = parser(reader)
        if not reader.eof:
            raise ClassDecodeError(
                f"{reader.remaining} bytes of trailing data in {name} attribute",
                reader.pos,
            )
        return value


default_registry = AttributeRegistry()


def register_attribute(name: str) -> Callable[[P], P]:
    """装饰器: 在默认注册表中注册属性负载解析函数."""
    return default_registry.register(name)


def decode_attribute(
    name: str,
    info: bytes | bytearray | memoryview,
    registry: AttributeRegistry | None = None,
) -> Any:
    """使用注册表 (默认为全局注册表) 解码属性负载."""
    registry = registry if registry is not None else default_registry
    return registry.decode(name, info)


@register_attribute(ATTR_METHOD_PARAMETERS)
def read_method_parameters(reader: DataReader) -> MethodParametersAttribute:
    """MethodParameters: 计数 + {name_index: u16, access_flags: u16}.

    JVMS 规定计数为 u1, 部分生成器写出 u16. 每个参数固定 4 字节,
    因此由负载长度即可确定计数宽度.
    """
    if reader.length % 4 == 1:
        count = reader.read_u8()
    else:
        count = reader.read_u16()

    parameters = []
    for _ in range(count):
        name_index = reader.read_u16()
        access_flags = MethodParameterAccessFlags(reader.read_u16())
        parameters.append(
            MethodParameter(name_index=name_index, access_flags=access_flags)
        )
    return MethodParametersAttribute(parameters=tuple(parameters))


@register_attribute(ATTR_SOURCE_FILE)
def read_source_file(reader: DataReader) -> SourceFileAttribute:
    return SourceFileAttribute(sourcefile_index=reader.read_u16())


@register_attribute(ATTR_SIGNATURE)
def read_signature(reader: DataReader) -> SignatureAttribute:
    return SignatureAttribute(signature_index=reader.read_u16())


@register_attribute(ATTR_CONSTANT_VALUE)
def read_constant_value(reader: DataReader) -> ConstantValueAttribute:
    return ConstantValueAttribute(constantvalue_index=reader.read_u16())


@register_attribute(ATTR_EXCEPTIONS)
def read_exceptions(reader: DataReader) -> ExceptionsAttribute:
    return ExceptionsAttribute(exception_index_table=reader.read_table(reader.read_u16))
