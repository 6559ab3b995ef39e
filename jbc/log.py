"""jbc 日志记录器."""

import binascii
import logging

logger = logging.getLogger("jbc")


def get_hexdump(
    data: bytes | bytearray | memoryview, pos: int, window: int = 16
) -> str:
    """获取指定位置周围数据的十六进制转储."""
    start = max(0, min(pos, len(data)) - window)
    end = min(len(data), pos + window)
    chunk = bytes(data[start:end])

    hex_str = binascii.hexlify(chunk).decode("ascii")
    hex_str = " ".join(hex_str[i : i + 2] for i in range(0, len(hex_str), 2))

    return f"偏移 {pos} 的上下文 (显示 {start}-{end}):\n{hex_str}"
