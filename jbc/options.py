"""class 文件解码的配置选项.

该模块定义了用于控制 `decode` 和 `load` 函数行为的选项标志.
"""

from enum import IntFlag


class JbcOption(IntFlag):
    """解码选项标志.

    可以使用位运算组合多个选项:
        option = JbcOption.ALLOW_TRAILING_DATA | JbcOption.VALIDATE_REFERENCES
    """

    # 默认行为: 严格解码, 最后一个属性之后不允许有多余字节
    NONE = 0x0000

    # 忽略类属性表之后的多余字节
    ALLOW_TRAILING_DATA = 0x0001

    # 结构解码完成后校验常量池及类/成员中的所有索引引用
    VALIDATE_REFERENCES = 0x0002
