"""class 文件解析相关的异常类.

该模块为 jbc 库定义了异常层次结构.
"""

from typing import Any


class JbcError(Exception):
    """所有 jbc 异常的基类."""

    pass


class ClassDecodeError(JbcError):
    """class 文件结构解码失败时抛出.

    Case:
        - 输入数据被截断.
        - 魔数不匹配.
        - 常量池标签未知.
        - 字符串不是合法的 UTF-8.
    """

    def __init__(self, msg: str, offset: int | None = None) -> None:
        """初始化解码错误.

        Args:
            msg: 错误描述信息.
            offset: 错误发生处的字节偏移.
        """
        super().__init__(msg)
        self.offset = offset

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.offset is not None:
            return f"{base_msg} (at offset {self.offset})"
        return base_msg


class TruncatedError(ClassDecodeError):
    """数据在满足声明长度之前耗尽时抛出."""

    def __init__(
        self,
        msg: str,
        offset: int | None = None,
        needed: int | None = None,
        available: int | None = None,
    ) -> None:
        """初始化截断错误.

        Args:
            msg: 错误描述信息.
            offset: 读取开始处的字节偏移.
            needed: 需要的字节数.
            available: 剩余可读的字节数.
        """
        super().__init__(msg, offset)
        self.needed = needed
        self.available = available


class BadMagicError(ClassDecodeError):
    """魔数不是 0xCAFEBABE 时抛出, 表示输入不是 class 文件."""

    def __init__(self, magic: int, offset: int = 0) -> None:
        super().__init__(f"Bad magic number: 0x{magic:08X}", offset)
        self.magic = magic


class UnknownConstantTagError(ClassDecodeError):
    """常量池条目的标签无法识别时抛出.

    后续条目的位置依赖于当前条目的长度, 因此该错误对整个解码是致命的.
    """

    def __init__(self, tag: int, offset: int, index: int | None = None) -> None:
        msg = f"Unknown constant pool tag: {tag}"
        if index is not None:
            msg += f" in slot #{index}"
        super().__init__(msg, offset)
        self.tag = tag
        self.index = index


class InvalidUtf8Error(ClassDecodeError):
    """Utf8 常量的字节不是合法的 (modified) UTF-8 文本时抛出."""

    def __init__(
        self, msg: str, offset: int | None = None, data: bytes = b""
    ) -> None:
        super().__init__(msg, offset)
        self.data = data


class TrailingDataError(ClassDecodeError):
    """结构解码结束后仍有未消费的字节时抛出."""

    pass


class ClassEncodeError(JbcError):
    """ClassFile 无法写回为字节时抛出.

    Case:
        - 表长度超出 u16 范围.
        - 属性负载超出 u32 范围.
        - Long/Double 之后缺少保留槽位.
    """

    pass


class DescriptorError(JbcError, ValueError):
    """字段或方法描述符不符合语法时抛出."""

    def __init__(self, msg: str, descriptor: str, position: int) -> None:
        """初始化描述符错误.

        Args:
            msg: 错误描述信息.
            descriptor: 出错的完整描述符字符串.
            position: 出错字符在描述符中的位置.
        """
        super().__init__(msg)
        self.descriptor = descriptor
        self.position = position

    def __str__(self) -> str:
        return f"{super().__str__()} in {self.descriptor!r} at position {self.position}"


class ConstantPoolIndexError(JbcError, IndexError):
    """常量池索引越界或指向了非预期类型的条目时抛出.

    解码器本身不会抛出该错误, 它由索引解析辅助函数和引用校验抛出.
    """

    def __init__(
        self,
        msg: str,
        index: int,
        expected: tuple[str, ...] = (),
        found: Any = None,
    ) -> None:
        super().__init__(msg)
        self.index = index
        self.expected = expected
        self.found = found
