"""ClassFile 数据模型.

解码结果由一组不可变的 pydantic 模型表示. 结构解码阶段不解析任何
常量池索引, 本模块提供的辅助方法在调用方需要可读名称时按需解析.
"""

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, field_validator

from .const import JAVA_LANG_OBJECT
from .constant_pool import (
    ConstantClass,
    ConstantPool,
    ConstantUtf8,
    find_reference_errors,
    resolve,
    resolve_class_name,
    resolve_utf8,
)
from .descriptor import (
    FieldType,
    MethodDescriptor,
    parse_field_type,
    parse_method_descriptor,
)
from .exceptions import ConstantPoolIndexError
from .flags import ClassAccessFlags, FieldAccessFlags, MethodAccessFlags
from .types import U16

if TYPE_CHECKING:
    from .attributes import AttributeRegistry


class AttributeInfo(BaseModel):
    """属性: 名称索引 + 不透明的负载字节.

    Attributes:
        attribute_name_index: 指向 Utf8 条目的索引, 该字符串即属性名.
        info: 属性负载, 结构解码阶段不做解释.
    """

    model_config = ConfigDict(frozen=True)

    attribute_name_index: U16
    info: bytes = b""


class MemberInfo(BaseModel):
    """字段与方法共享的结构."""

    model_config = ConfigDict(frozen=True)

    access_flags: int
    name_index: U16
    descriptor_index: U16
    attributes: tuple[AttributeInfo, ...] = ()


class FieldInfo(MemberInfo):
    """field_info, 访问标志使用字段词汇表."""

    access_flags: FieldAccessFlags

    @field_validator("access_flags", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> Any:
        return FieldAccessFlags(value) if isinstance(value, int) else value


class MethodInfo(MemberInfo):
    """method_info, 访问标志使用方法词汇表."""

    access_flags: MethodAccessFlags

    @field_validator("access_flags", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> Any:
        return MethodAccessFlags(value) if isinstance(value, int) else value


class ClassFile(BaseModel):
    """一个完整解码的 class 文件.

    `constant_pool` 按 1 起始编号: `constant_pool[0]` 是 #1.
    使用 `jbc.resolve_utf8()` 等函数访问条目.

    Examples:
        >>> from jbc import decode
        >>> cf = decode(open("Foo.class", "rb").read())
        >>> cf.name
        'com/example/Foo'
        >>> [cf.member_name(m) for m in cf.methods]
        ['<init>', 'run']
    """

    model_config = ConfigDict(frozen=True)

    minor_version: U16
    major_version: U16
    constant_pool: ConstantPool = ()
    access_flags: ClassAccessFlags
    this_class: U16
    super_class: U16
    interfaces: tuple[U16, ...] = ()
    fields: tuple[FieldInfo, ...] = ()
    methods: tuple[MethodInfo, ...] = ()
    attributes: tuple[AttributeInfo, ...] = ()

    @field_validator("access_flags", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> Any:
        return ClassAccessFlags(value) if isinstance(value, int) else value

    @property
    def name(self) -> str:
        """当前类的内部名称."""
        return resolve_class_name(self.constant_pool, self.this_class)

    @property
    def super_name(self) -> str | None:
        """父类的内部名称, `super_class == 0` 时为 None."""
        if self.super_class == 0:
            return None
        return resolve_class_name(self.constant_pool, self.super_class)

    @property
    def interface_names(self) -> list[str]:
        """直接实现的接口名称列表."""
        return [resolve_class_name(self.constant_pool, i) for i in self.interfaces]

    def member_name(self, member: MemberInfo) -> str:
        return resolve_utf8(self.constant_pool, member.name_index)

    def member_descriptor(self, member: MemberInfo) -> str:
        return resolve_utf8(self.constant_pool, member.descriptor_index)

    def field_type(self, field: FieldInfo) -> FieldType:
        """解析字段的类型描述符."""
        return parse_field_type(self.member_descriptor(field))

    def method_descriptor(self, method: MethodInfo) -> MethodDescriptor:
        """解析方法的描述符."""
        return parse_method_descriptor(self.member_descriptor(method))

    def attribute_name(self, attribute: AttributeInfo) -> str:
        return resolve_utf8(self.constant_pool, attribute.attribute_name_index)

    def find_attribute(
        self, name: str, owner: MemberInfo | None = None
    ) -> AttributeInfo | None:
        """按名称查找属性.

        Args:
            name: 属性名, 如 "SourceFile".
            owner: 所属字段或方法, 为 None 时查找类级别属性.
        """
        attributes = self.attributes if owner is None else owner.attributes
        for attribute in attributes:
            if self.attribute_name(attribute) == name:
                return attribute
        return None

    def decode_attribute(
        self,
        attribute: AttributeInfo,
        registry: "AttributeRegistry | None" = None,
    ) -> Any:
        """按属性名解码属性负载.

        未注册的属性名返回原始负载字节.
        """
        from .attributes import default_registry

        registry = registry if registry is not None else default_registry
        return registry.decode(self.attribute_name(attribute), attribute.info)

    def find_reference_errors(self) -> list[ConstantPoolIndexError]:
        """校验常量池以及类、成员、属性中的所有索引引用."""
        pool = self.constant_pool
        errors = find_reference_errors(pool)

        def check(what: str, index: int, *expected: type[BaseModel]) -> None:
            try:
                resolve(pool, index, *expected)
            except ConstantPoolIndexError as e:
                errors.append(
                    ConstantPoolIndexError(
                        f"{what}: {e}", index, e.expected, e.found
                    )
                )

        def check_attributes(owner: str, attributes: tuple[AttributeInfo, ...]) -> None:
            for i, attribute in enumerate(attributes):
                check(
                    f"{owner}.attributes[{i}].attribute_name_index",
                    attribute.attribute_name_index,
                    ConstantUtf8,
                )

        check("this_class", self.this_class, ConstantClass)
        if self.super_class != 0:
            check("super_class", self.super_class, ConstantClass)
        elif not self.access_flags & ClassAccessFlags.MODULE:
            try:
                name = self.name
            except ConstantPoolIndexError:
                name = None
            if name is not None and name != JAVA_LANG_OBJECT:
                errors.append(
                    ConstantPoolIndexError(
                        f"super_class: 0 is only valid for {JAVA_LANG_OBJECT}, "
                        f"not {name}",
                        0,
                        (ConstantClass.__name__,),
                    )
                )
        for i, index in enumerate(self.interfaces):
            check(f"interfaces[{i}]", index, ConstantClass)
        for kind, members in (("fields", self.fields), ("methods", self.methods)):
            for i, member in enumerate(members):
                check(f"{kind}[{i}].name_index", member.name_index, ConstantUtf8)
                check(
                    f"{kind}[{i}].descriptor_index",
                    member.descriptor_index,
                    ConstantUtf8,
                )
                check_attributes(f"{kind}[{i}]", member.attributes)
        check_attributes("class", self.attributes)
        return errors

    def validate_references(self) -> None:
        """校验所有索引引用, 发现错误时抛出第一个.

        Raises:
            ConstantPoolIndexError: 存在悬空或类型不符的引用.
        """
        errors = self.find_reference_errors()
        if errors:
            raise errors[0]
