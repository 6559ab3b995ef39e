"""测试属性负载解码与注册表."""

import struct

import pytest

from jbc import (
    AttributeRegistry,
    ClassDecodeError,
    MethodParameter,
    MethodParameterAccessFlags,
    MethodParametersAttribute,
    TruncatedError,
    decode,
    decode_attribute,
    default_registry,
)
from jbc.attributes import (
    ConstantValueAttribute,
    ExceptionsAttribute,
    SignatureAttribute,
    SourceFileAttribute,
)

EXPECTED_PARAMETERS = MethodParametersAttribute(
    parameters=(
        MethodParameter(name_index=3, access_flags=MethodParameterAccessFlags.FINAL),
        MethodParameter(
            name_index=0,
            access_flags=MethodParameterAccessFlags.SYNTHETIC
            | MethodParameterAccessFlags.MANDATED,
        ),
    )
)


def test_builtin_attributes_registered() -> None:
    """默认注册表包含内置属性."""
    for name in (
        "MethodParameters",
        "SourceFile",
        "Signature",
        "ConstantValue",
        "Exceptions",
    ):
        assert name in default_registry
    assert "Code" not in default_registry


def test_method_parameters_u1_count() -> None:
    """JVMS 格式: 单字节计数."""
    info = b"\x02" + struct.pack(">HHHH", 3, 0x0010, 0, 0x9000)

    assert decode_attribute("MethodParameters", info) == EXPECTED_PARAMETERS


def test_method_parameters_u16_count() -> None:
    """双字节计数同样可以解码."""
    info = b"\x00\x02" + struct.pack(">HHHH", 3, 0x0010, 0, 0x9000)

    assert decode_attribute("MethodParameters", info) == EXPECTED_PARAMETERS


def test_method_parameters_empty() -> None:
    """没有参数的 MethodParameters."""
    result = decode_attribute("MethodParameters", b"\x00")

    assert result == MethodParametersAttribute(parameters=())


def test_simple_index_attributes() -> None:
    """只包含一个 u16 索引的属性."""
    assert decode_attribute("SourceFile", b"\x00\x07") == SourceFileAttribute(
        sourcefile_index=7
    )
    assert decode_attribute("Signature", b"\x00\x08") == SignatureAttribute(
        signature_index=8
    )
    assert decode_attribute("ConstantValue", b"\x01\x00") == ConstantValueAttribute(
        constantvalue_index=256
    )


def test_exceptions_attribute() -> None:
    """Exceptions 属性包含异常类索引表."""
    result = decode_attribute("Exceptions", b"\x00\x02\x00\x05\x00\x06")

    assert result == ExceptionsAttribute(exception_index_table=(5, 6))


def test_unknown_attribute_returns_bytes() -> None:
    """未注册的属性原样返回负载字节."""
    assert decode_attribute("Code", memoryview(b"\x01\x02")) == b"\x01\x02"
    assert decode_attribute("", b"") == b""


def test_truncated_payload() -> None:
    """负载不足时抛出 TruncatedError."""
    with pytest.raises(TruncatedError):
        decode_attribute("SourceFile", b"\x00")
    with pytest.raises(TruncatedError):
        decode_attribute("MethodParameters", b"\x00\x02\x00\x01")


def test_trailing_payload() -> None:
    """负载中有未消费的字节时报错."""
    with pytest.raises(ClassDecodeError, match="trailing data in SourceFile") as exc:
        decode_attribute("SourceFile", b"\x00\x07\x00")

    assert exc.value.offset == 2


def test_custom_registry() -> None:
    """自定义注册表不影响默认注册表."""
    registry = default_registry.copy()

    @registry.register("Deprecated")
    def read_deprecated(reader):
        return True

    @registry.register("SourceFile")
    def read_source_file_raw(reader):
        return reader.read_u16() + 1

    assert registry.decode("Deprecated", b"") is True
    assert registry.decode("SourceFile", b"\x00\x07") == 8
    assert "Deprecated" not in default_registry
    assert decode_attribute("Deprecated", b"") == b""
    assert decode_attribute("SourceFile", b"\x00\x07", registry=registry) == 8

    registry.unregister("Deprecated")
    registry.unregister("Deprecated")
    assert registry.get("Deprecated") is None
    assert len(registry) == len(default_registry)
    assert set(registry) == set(default_registry)


def test_empty_registry() -> None:
    """空注册表把所有属性视为未知."""
    registry = AttributeRegistry()

    assert len(registry) == 0
    assert registry.decode("SourceFile", b"\x00\x07") == b"\x00\x07"


def test_decode_attribute_with_registry(sample_class) -> None:
    """ClassFile.decode_attribute() 可以使用自定义注册表."""
    cf = decode(sample_class.data)

    assert cf.decode_attribute(cf.attributes[0], AttributeRegistry()) == b"\x00\x14"
