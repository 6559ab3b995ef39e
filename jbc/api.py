"""jbc API模块.

提供 class 文件解码与编码的高级接口 `decode`, `encode`, `load`, `dump`.
"""

from typing import IO

from .classfile import ClassFile
from .decoder import ClassDecoder, DataReader
from .encoder import ClassEncoder
from .options import JbcOption


def decode(
    data: bytes | bytearray | memoryview,
    option: JbcOption = JbcOption.NONE,
) -> ClassFile:
    """将 class 文件字节解码为 `ClassFile`.

    Args:
        data: class 文件的完整内容. 缓冲区只会被读取, 不会被修改.
        option: 解码选项 (如 `JbcOption.VALIDATE_REFERENCES`).

    Returns:
        ClassFile: 不可变的解码结果.

    Raises:
        ClassDecodeError: 结构错误 (截断、魔数错误、未知常量标签等).
        ConstantPoolIndexError: 启用 `VALIDATE_REFERENCES` 且存在无效引用.

    Examples:
        >>> from pathlib import Path
        >>> from jbc import decode
        >>> cf = decode(Path("Foo.class").read_bytes())
        >>> cf.major_version
        65
    """
    reader = DataReader(data)
    class_file = ClassDecoder(reader, option=option).decode()
    if option & JbcOption.VALIDATE_REFERENCES:
        class_file.validate_references()
    return class_file


def encode(class_file: ClassFile) -> bytes:
    """将 `ClassFile` 编码为 class 文件字节.

    Raises:
        ClassEncodeError: 值无法按 class 文件格式写出.
    """
    return ClassEncoder().encode(class_file)


def load(fp: IO[bytes], option: JbcOption = JbcOption.NONE) -> ClassFile:
    """从二进制文件对象读取并解码 class 文件."""
    return decode(fp.read(), option=option)


def dump(class_file: ClassFile, fp: IO[bytes]) -> None:
    """编码 class 文件并写入二进制文件对象."""
    fp.write(encode(class_file))
