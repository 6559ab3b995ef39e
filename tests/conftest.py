"""提供 jbc 测试的公共 Fixtures.

class 文件字节由 `ClassBytesBuilder` 直接用 struct 拼装, 不依赖 jbc 的编码器.
"""

import struct
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

Attribute = tuple[int, bytes]
Member = tuple[int, int, int, Sequence[Attribute]]


@dataclass
class ClassBytesBuilder:
    """逐条目构建 class 文件字节的辅助类."""

    entries: list[bytes] = field(default_factory=list)
    next_index: int = 1

    def raw(self, data: bytes, slots: int = 1) -> int:
        """追加一个原始常量池条目, 返回其索引."""
        index = self.next_index
        self.entries.append(data)
        self.next_index += slots
        return index

    def utf8(self, text: str | bytes) -> int:
        data = text.encode("utf-8") if isinstance(text, str) else text
        return self.raw(b"\x01" + struct.pack(">H", len(data)) + data)

    def class_ref(self, name: str) -> int:
        return self.raw(b"\x07" + struct.pack(">H", self.utf8(name)))

    def integer(self, value: int) -> int:
        return self.raw(b"\x03" + struct.pack(">i", value))

    def float_(self, value: float) -> int:
        return self.raw(b"\x04" + struct.pack(">f", value))

    def long(self, value: int) -> int:
        return self.raw(b"\x05" + struct.pack(">q", value), slots=2)

    def double(self, value: float) -> int:
        return self.raw(b"\x06" + struct.pack(">d", value), slots=2)

    def build(
        self,
        this_class: int,
        super_class: int,
        access_flags: int = 0x0021,
        interfaces: Sequence[int] = (),
        fields: Sequence[Member] = (),
        methods: Sequence[Member] = (),
        attributes: Sequence[Attribute] = (),
        magic: int = 0xCAFEBABE,
        minor_version: int = 0,
        major_version: int = 65,
    ) -> bytes:
        out = bytearray(struct.pack(">IHH", magic, minor_version, major_version))
        out += struct.pack(">H", self.next_index)
        for entry in self.entries:
            out += entry
        out += struct.pack(">HHH", access_flags, this_class, super_class)
        out += struct.pack(">H", len(interfaces))
        for index in interfaces:
            out += struct.pack(">H", index)
        for members in (fields, methods):
            out += struct.pack(">H", len(members))
            for flags, name_index, descriptor_index, member_attributes in members:
                out += struct.pack(">HHH", flags, name_index, descriptor_index)
                out += _attributes(member_attributes)
        out += _attributes(attributes)
        return bytes(out)


def _attributes(attributes: Sequence[Attribute]) -> bytes:
    out = bytearray(struct.pack(">H", len(attributes)))
    for name_index, info in attributes:
        out += struct.pack(">HI", name_index, len(info)) + info
    return bytes(out)


@dataclass
class SampleClass:
    """示例类 `com/example/Hello` 的字节以及关键索引."""

    data: bytes
    this_class: int
    super_class: int
    runnable: int
    long_index: int
    double_index: int
    after_double: int
    method_ref: int
    string_index: int


@pytest.fixture
def builder() -> ClassBytesBuilder:
    """提供一个空的 ClassBytesBuilder."""
    return ClassBytesBuilder()


@pytest.fixture
def sample_class() -> SampleClass:
    """构建一个包含 Long/Double 常量、字段、方法与属性的示例类.

    等价的 Java 源码:

        public class Hello implements Runnable {
            private static final long COUNT = 42L;
            public double RATIO;
            public void run() {}
            public static int add(final int a, int b) { ... }
        }
    """
    b = ClassBytesBuilder()
    this_class = b.class_ref("com/example/Hello")
    super_class = b.class_ref("java/lang/Object")
    runnable = b.class_ref("java/lang/Runnable")
    count_name = b.utf8("COUNT")
    count_desc = b.utf8("J")
    long_index = b.long(42)
    constant_value = b.utf8("ConstantValue")
    run_name = b.utf8("run")
    run_desc = b.utf8("()V")
    add_name = b.utf8("add")
    add_desc = b.utf8("(II)I")
    method_parameters = b.utf8("MethodParameters")
    param_a = b.utf8("a")
    param_b = b.utf8("b")
    source_file = b.utf8("SourceFile")
    source_name = b.utf8("Hello.java")
    double_index = b.double(1.5)
    ratio_name = b.utf8("RATIO")
    ratio_desc = b.utf8("D")
    name_and_type = b.raw(b"\x0c" + struct.pack(">HH", add_name, add_desc))
    method_ref = b.raw(b"\x0a" + struct.pack(">HH", this_class, name_and_type))
    string_index = b.raw(b"\x08" + struct.pack(">H", source_name))
    b.integer(-7)
    b.float_(2.5)

    data = b.build(
        this_class=this_class,
        super_class=super_class,
        interfaces=[runnable],
        fields=[
            (
                0x001A,
                count_name,
                count_desc,
                [(constant_value, struct.pack(">H", long_index))],
            ),
            (0x0001, ratio_name, ratio_desc, []),
        ],
        methods=[
            (0x0001, run_name, run_desc, []),
            (
                0x0009,
                add_name,
                add_desc,
                [
                    (
                        method_parameters,
                        b"\x02" + struct.pack(">HHHH", param_a, 0x0010, param_b, 0),
                    )
                ],
            ),
        ],
        attributes=[(source_file, struct.pack(">H", source_name))],
    )
    return SampleClass(
        data=data,
        this_class=this_class,
        super_class=super_class,
        runnable=runnable,
        long_index=long_index,
        double_index=double_index,
        after_double=ratio_name,
        method_ref=method_ref,
        string_index=string_index,
    )


@pytest.fixture
def minimal_object_class(builder: ClassBytesBuilder) -> bytes:
    """没有父类的 `java/lang/Object`."""
    this_class = builder.class_ref("java/lang/Object")
    return builder.build(this_class=this_class, super_class=0)


@dataclass
class ReferenceConstants:
    """包含每种引用类常量 (Fieldref 到 Package) 各一个的类."""

    data: bytes
    this_class: int
    name_and_type: int
    fieldref: int
    interface_methodref: int
    method_handle: int
    method_type: int
    dynamic: int
    invoke_dynamic: int
    module: int
    package: int


@pytest.fixture
def reference_constants(builder: ClassBytesBuilder) -> ReferenceConstants:
    """构建标签 9, 11, 15-20 的常量各一个."""
    this_class = builder.class_ref("com/example/Refs")
    name = builder.utf8("value")
    descriptor = builder.utf8("I")
    name_and_type = builder.raw(b"\x0c" + struct.pack(">HH", name, descriptor))
    fieldref = builder.raw(b"\x09" + struct.pack(">HH", this_class, name_and_type))
    interface_methodref = builder.raw(
        b"\x0b" + struct.pack(">HH", this_class, name_and_type)
    )
    # REF_getField
    method_handle = builder.raw(b"\x0f\x01" + struct.pack(">H", fieldref))
    method_type = builder.raw(b"\x10" + struct.pack(">H", descriptor))
    dynamic = builder.raw(b"\x11" + struct.pack(">HH", 0, name_and_type))
    invoke_dynamic = builder.raw(b"\x12" + struct.pack(">HH", 1, name_and_type))
    module = builder.raw(b"\x13" + struct.pack(">H", name))
    package = builder.raw(b"\x14" + struct.pack(">H", name))

    return ReferenceConstants(
        data=builder.build(this_class=this_class, super_class=0, access_flags=0x8000),
        this_class=this_class,
        name_and_type=name_and_type,
        fieldref=fieldref,
        interface_methodref=interface_methodref,
        method_handle=method_handle,
        method_type=method_type,
        dynamic=dynamic,
        invoke_dynamic=invoke_dynamic,
        module=module,
        package=package,
    )
