"""字段类型与方法描述符解析.

描述符语法 (JVMS §4.3):

    FieldType        = BaseType | "L" ClassName ";" | "[" FieldType
    BaseType         = "B" | "C" | "D" | "F" | "I" | "J" | "S" | "Z"
    MethodDescriptor = "(" FieldType* ")" ( FieldType | "V" )

解析是纯函数, 不依赖常量池或字节读取器. 任何语法错误都抛出
`DescriptorError`, 不会截断或用默认类型替代.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .exceptions import DescriptorError

# JVM 限制数组最多 255 维
MAX_ARRAY_DIMENSIONS = 255


class BaseType(Enum):
    """基本类型与 void."""

    BYTE = ("B", "byte")
    CHAR = ("C", "char")
    DOUBLE = ("D", "double")
    FLOAT = ("F", "float")
    INT = ("I", "int")
    LONG = ("J", "long")
    SHORT = ("S", "short")
    BOOLEAN = ("Z", "boolean")
    VOID = ("V", "void")

    def __init__(self, code: str, java_name: str):
        self.code = code
        self.java_name = java_name

    @property
    def descriptor(self) -> str:
        return self.code

    def __str__(self) -> str:
        return self.code


_BASE_TYPES = {t.code: t for t in BaseType}


@dataclass(frozen=True)
class ObjectType:
    """引用类型, `class_name` 为内部形式 (如 `java/lang/String`)."""

    class_name: str

    @property
    def descriptor(self) -> str:
        return f"L{self.class_name};"

    @property
    def java_name(self) -> str:
        return self.class_name.replace("/", ".")

    def __str__(self) -> str:
        return self.descriptor


@dataclass(frozen=True)
class ArrayType:
    """数组类型."""

    component_type: "FieldType"

    @property
    def descriptor(self) -> str:
        return f"[{self.component_type.descriptor}"

    @property
    def java_name(self) -> str:
        return f"{self.component_type.java_name}[]"

    @property
    def dimensions(self) -> int:
        """数组维数."""
        count = 1
        component = self.component_type
        while isinstance(component, ArrayType):
            count += 1
            component = component.component_type
        return count

    @property
    def element_type(self) -> "FieldType":
        """去掉所有数组维度后的元素类型."""
        component = self.component_type
        while isinstance(component, ArrayType):
            component = component.component_type
        return component

    def __str__(self) -> str:
        return self.descriptor


FieldType = Union[BaseType, ObjectType, ArrayType]


@dataclass(frozen=True)
class MethodDescriptor:
    """方法描述符: 参数类型列表与返回类型."""

    parameter_types: tuple[FieldType, ...]
    return_type: FieldType

    @property
    def descriptor(self) -> str:
        params = "".join(t.descriptor for t in self.parameter_types)
        return f"({params}){self.return_type.descriptor}"

    @property
    def parameter_slots(self) -> int:
        """参数占用的局部变量槽位数 (long/double 占 2 个)."""
        return sum(
            2 if t in (BaseType.LONG, BaseType.DOUBLE) else 1
            for t in self.parameter_types
        )

    def __str__(self) -> str:
        return self.descriptor


class _DescriptorReader:
    """在描述符字符串上前进的游标."""

    __slots__ = ("_pos", "_text")

    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    def error(self, msg: str, position: int | None = None) -> DescriptorError:
        return DescriptorError(
            msg, self._text, self._pos if position is None else position
        )

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._text)

    def peek(self) -> str | None:
        return None if self.at_end else self._text[self._pos]

    def expect(self, char: str) -> None:
        if self.peek() != char:
            found = self.peek()
            what = "end of descriptor" if found is None else repr(found)
            raise self.error(f"Expected {char!r}, found {what}")
        self._pos += 1

    def expect_end(self) -> None:
        if not self.at_end:
            raise self.error(
                f"Unexpected trailing characters {self._text[self._pos :]!r}"
            )

    def field_type(self) -> FieldType:
        start = self._pos
        dimensions = 0
        while self.peek() == "[":
            dimensions += 1
            self._pos += 1
        if dimensions > MAX_ARRAY_DIMENSIONS:
            raise self.error(
                f"Array type has {dimensions} dimensions, "
                f"at most {MAX_ARRAY_DIMENSIONS} allowed",
                start,
            )

        char = self.peek()
        if char is None:
            if dimensions:
                raise self.error("Unterminated array type")
            raise self.error("Expected field type, found end of descriptor")

        element: FieldType
        if char == "L":
            end = self._text.find(";", self._pos + 1)
            if end < 0:
                raise self.error("Unterminated class name, missing ';'")
            if end == self._pos + 1:
                raise self.error("Empty class name")
            element = ObjectType(self._text[self._pos + 1 : end])
            self._pos = end + 1
        else:
            base = _BASE_TYPES.get(char)
            if base is None:
                raise self.error(f"Unknown type character {char!r}")
            if base is BaseType.VOID:
                raise self.error("'V' is only valid as a method return type")
            element = base
            self._pos += 1

        for _ in range(dimensions):
            element = ArrayType(element)
        return element

    def return_type(self) -> FieldType:
        if self.peek() == "V":
            self._pos += 1
            return BaseType.VOID
        return self.field_type()

    def method_descriptor(self) -> MethodDescriptor:
        self.expect("(")
        parameters: list[FieldType] = []
        while self.peek() != ")":
            if self.at_end:
                raise self.error("Missing ')' after parameter types")
            parameters.append(self.field_type())
        self._pos += 1
        if self.at_end:
            raise self.error("Missing return type")
        return_type = self.return_type()
        return MethodDescriptor(tuple(parameters), return_type)


def parse_field_type(text: str) -> FieldType:
    """解析字段类型描述符.

    Args:
        text: 描述符, 如 `"I"` 或 `"[Ljava/lang/String;"`.

    Returns:
        FieldType: 解析出的类型树.

    Raises:
        DescriptorError: 描述符不符合语法.

    Examples:
        >>> parse_field_type("[[Ljava/lang/String;").java_name
        'java.lang.String[][]'
    """
    reader = _DescriptorReader(text)
    result = reader.field_type()
    reader.expect_end()
    return result


def parse_method_descriptor(text: str) -> MethodDescriptor:
    """解析方法描述符.

    Args:
        text: 描述符, 如 `"(IJLjava/lang/String;)Z"`.

    Returns:
        MethodDescriptor: 参数类型与返回类型.

    Raises:
        DescriptorError: 描述符不符合语法.
    """
    reader = _DescriptorReader(text)
    result = reader.method_descriptor()
    reader.expect_end()
    return result
