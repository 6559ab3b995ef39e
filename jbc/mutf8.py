"""class 文件字符串编解码.

class 文件中的 Utf8 常量使用 "modified UTF-8":
  - U+0000 编码为两字节 `C0 80`, 不允许出现字节 `00`.
  - 增补平面字符拆分为代理对, 每个代理各占 3 字节, 不允许出现 4 字节序列
    (字节 `F0`-`FF`).

解码只接受 modified UTF-8, 因此 `encode(decode(data)) == data`.
"""

import re

_NUL = b"\xc0\x80"

# modified UTF-8 中永远不会出现的字节
_FORBIDDEN = re.compile(rb"[\x00\xf0-\xff]")


def decode(data: bytes | bytearray | memoryview) -> str:
    """将 modified UTF-8 字节解码为字符串.

    Raises:
        UnicodeDecodeError: 字节不是合法的 modified UTF-8, 错误位置相对于整个输入.
    """
    raw = bytes(data)
    forbidden = _FORBIDDEN.search(raw)
    if forbidden is not None:
        start = forbidden.start()
        reason = "raw NUL byte" if raw[start] == 0 else "byte not allowed"
        raise UnicodeDecodeError(
            "modified-utf-8", raw, start, start + 1, f"{reason} in modified UTF-8"
        )

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass

    parts = []
    offset = 0
    for chunk in raw.split(_NUL):
        try:
            parts.append(chunk.decode("utf-8", "surrogatepass"))
        except UnicodeDecodeError as e:
            raise UnicodeDecodeError(
                "modified-utf-8", raw, offset + e.start, offset + e.end, e.reason
            ) from None
        offset += len(chunk) + len(_NUL)

    # 合并成对的代理, 孤立代理原样保留
    return (
        "\x00".join(parts)
        .encode("utf-16-be", "surrogatepass")
        .decode("utf-16-be", "surrogatepass")
    )


def encode(text: str) -> bytes:
    """将字符串编码为 modified UTF-8 字节."""
    if text.isascii() and "\x00" not in text:
        return text.encode("ascii")

    out = bytearray()
    for char in text:
        code = ord(char)
        if code == 0:
            out += _NUL
        elif code < 0x10000:
            out += char.encode("utf-8", "surrogatepass")
        else:
            code -= 0x10000
            out += chr(0xD800 | (code >> 10)).encode("utf-8", "surrogatepass")
            out += chr(0xDC00 | (code & 0x3FF)).encode("utf-8", "surrogatepass")
    return bytes(out)
