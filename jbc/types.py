"""class 文件中的定长整数类型.

这些 `Annotated` 别名用于 pydantic 模型字段, 手工构造的值
如果无法按对应宽度写出, 会在构造时被拒绝.
"""

from typing import Annotated

from pydantic import Field

from .const import U8_MAX, U16_MAX, U32_MAX, U64_MAX

U8 = Annotated[int, Field(ge=0, le=U8_MAX)]
U16 = Annotated[int, Field(ge=0, le=U16_MAX)]
U32 = Annotated[int, Field(ge=0, le=U32_MAX)]
U64 = Annotated[int, Field(ge=0, le=U64_MAX)]
I32 = Annotated[int, Field(ge=-(2**31), le=2**31 - 1)]
I64 = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]

__all__ = ["I32", "I64", "U8", "U16", "U32", "U64"]
