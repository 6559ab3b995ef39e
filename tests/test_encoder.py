"""测试 class 文件编码器与往返一致性."""

import io
import struct

import pytest

from jbc import (
    AttributeInfo,
    ClassAccessFlags,
    ClassEncodeError,
    ClassFile,
    ConstantClass,
    ConstantDouble,
    ConstantFloat,
    ConstantLong,
    ConstantUtf8,
    InvalidUtf8Error,
    MethodAccessFlags,
    MethodInfo,
    ReservedSlot,
    decode,
    dump,
    encode,
    load,
)
from jbc.encoder import ClassEncoder, DataWriter


def _class_file(**kwargs) -> ClassFile:
    values = {
        "minor_version": 0,
        "major_version": 52,
        "constant_pool": (ConstantUtf8(value="Foo"), ConstantClass(name_index=1)),
        "access_flags": ClassAccessFlags.PUBLIC,
        "this_class": 2,
        "super_class": 0,
    }
    values.update(kwargs)
    return ClassFile(**values)


# --- DataWriter 测试 ---


def test_writer_big_endian_numbers() -> None:
    """DataWriter 应按大端序写出定宽数值."""
    writer = DataWriter()
    writer.write_u8(0xFE)
    writer.write_u16(0xBEEF)
    writer.write_u32(0xCAFEBABE)
    writer.write_i32(-2)
    writer.write_i64(-1)
    writer.write_u64(2**64 - 1)

    assert writer.get_bytes() == (
        b"\xfe\xbe\xef\xca\xfe\xba\xbe\xff\xff\xff\xfe"
        + b"\xff" * 16
    )
    assert len(writer) == 27


@pytest.mark.parametrize(
    ("method", "value"),
    [
        ("write_u8", 256),
        ("write_u16", 0x10000),
        ("write_u16", -1),
        ("write_i32", 2**31),
    ],
)
def test_writer_out_of_range(method: str, value: int) -> None:
    """超出宽度范围的值应抛出 ClassEncodeError."""
    writer = DataWriter()

    with pytest.raises(ClassEncodeError):
        getattr(writer, method)(value)


# --- 往返测试 ---


def test_round_trip_sample(sample_class) -> None:
    """encode(decode(data)) 应逐字节还原输入."""
    assert encode(decode(sample_class.data)) == sample_class.data


def test_round_trip_object_class(minimal_object_class) -> None:
    """没有父类的类也能往返."""
    assert encode(decode(minimal_object_class)) == minimal_object_class


def test_round_trip_modified_utf8(builder) -> None:
    """modified UTF-8 字符串应以原始形式写回."""
    builder.utf8(b"a\xc0\x80b")
    builder.utf8(b"\xed\xa0\xbd\xed\xb8\x80")
    builder.utf8("中文".encode())
    data = builder.build(this_class=0, super_class=0)

    assert encode(decode(data)) == data


@pytest.mark.parametrize("text", [b"a\x00b", "\U0001f600".encode()])
def test_standard_utf8_only_forms_not_accepted(builder, text: bytes) -> None:
    """无法按原样写回的字符串在解码时即被拒绝, 不会产生不一致的往返."""
    builder.utf8(text)
    data = builder.build(this_class=0, super_class=0)

    with pytest.raises(InvalidUtf8Error):
        decode(data)


def test_round_trip_float_bit_patterns(builder) -> None:
    """非规范 NaN 与负零按原始位模式写回."""
    builder.raw(b"\x04" + struct.pack(">I", 0x7F800001))
    builder.raw(b"\x04" + struct.pack(">I", 0xFFC12345))
    builder.raw(b"\x06" + struct.pack(">Q", 0x7FF0000000000001), slots=2)
    builder.float_(-0.0)
    builder.double(-0.0)
    data = builder.build(this_class=0, super_class=0)

    assert encode(decode(data)) == data


def test_encode_float_from_value() -> None:
    """用 value 构造的浮点常量按 IEEE-754 写出."""
    cf = _class_file(
        constant_pool=(
            ConstantFloat(value=2.5),
            ConstantDouble(value=-1.25),
            ReservedSlot(),
        ),
        this_class=0,
    )

    data = encode(cf)

    assert data[10:15] == b"\x04" + struct.pack(">f", 2.5)
    assert data[15:24] == b"\x06" + struct.pack(">d", -1.25)


def test_round_trip_reference_constants(reference_constants) -> None:
    """标签 9, 11, 15-20 的常量逐字节往返."""
    cf = decode(reference_constants.data)

    assert encode(cf) == reference_constants.data


def test_round_trip_unknown_flags(builder) -> None:
    """未知标志位应原样写回."""
    this_class = builder.class_ref("Foo")
    data = builder.build(this_class=this_class, super_class=0, access_flags=0xFFFF)

    assert encode(decode(data)) == data


def test_encode_phantom_slot_emits_no_bytes() -> None:
    """保留槽位计入常量池计数但不输出字节."""
    cf = _class_file(
        constant_pool=(
            ConstantLong(value=1),
            ReservedSlot(),
            ConstantDouble(value=2.0),
            ReservedSlot(),
        ),
        this_class=0,
    )

    data = encode(cf)

    assert data[8:10] == b"\x00\x05"
    assert data[10:19] == b"\x05" + struct.pack(">q", 1)
    assert data[19:28] == b"\x06" + struct.pack(">d", 2.0)
    assert decode(data) == cf


def test_encode_missing_reserved_slot() -> None:
    """Long 之后缺少保留槽位应报错."""
    cf = _class_file(constant_pool=(ConstantLong(value=1), ConstantUtf8(value="x")))

    with pytest.raises(ClassEncodeError, match="must be reserved"):
        encode(cf)

    with pytest.raises(ClassEncodeError, match="no reserved slot"):
        encode(_class_file(constant_pool=(ConstantLong(value=1),)))


def test_encode_misplaced_reserved_slot() -> None:
    """不在 Long/Double 之后的保留槽位应报错."""
    cf = _class_file(constant_pool=(ConstantUtf8(value="x"), ReservedSlot()))

    with pytest.raises(ClassEncodeError, match="does not follow"):
        encode(cf)


def test_encode_utf8_too_long() -> None:
    """超过 65535 字节的 Utf8 常量无法写出."""
    cf = _class_file(constant_pool=(ConstantUtf8(value="x" * 0x10000),))

    with pytest.raises(ClassEncodeError, match="too long"):
        encode(cf)


def test_encode_members_and_attributes() -> None:
    """成员与属性按 class 文件布局写出."""
    method = MethodInfo(
        access_flags=MethodAccessFlags.PUBLIC,
        name_index=1,
        descriptor_index=1,
        attributes=(AttributeInfo(attribute_name_index=1, info=b"\x01\x02"),),
    )
    cf = _class_file(methods=(method,))

    data = ClassEncoder().encode(cf)

    # 常量池 (Utf8 "Foo" 6 字节 + Class 3 字节) 之后: 类头, 方法, 属性
    assert data[19:] == (
        b"\x00\x01\x00\x02\x00\x00\x00\x00\x00\x00\x00\x01"
        + b"\x00\x01\x00\x01\x00\x01\x00\x01"
        + b"\x00\x01\x00\x00\x00\x02\x01\x02"
        + b"\x00\x00"
    )


def test_dump_and_load(sample_class) -> None:
    """dump()/load() 应通过文件对象读写."""
    cf = decode(sample_class.data)
    buffer = io.BytesIO()

    dump(cf, buffer)
    buffer.seek(0)

    assert buffer.getvalue() == sample_class.data
    assert load(buffer) == cf
