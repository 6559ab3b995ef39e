"""jbc 命令行工具."""

import json
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text
from rich.tree import Tree

from . import decode
from .classfile import AttributeInfo, ClassFile, FieldInfo, MemberInfo, MethodInfo
from .constant_pool import PoolSlot, ReservedSlot, resolve_class_name
from .exceptions import ConstantPoolIndexError, DescriptorError, JbcError
from .flags import flag_names
from .options import JbcOption

# 样式定义
STYLE_INDEX = "bold blue"
STYLE_KIND = "cyan"
STYLE_VALUE = "green"


def _read_input(file_path: Path, is_hex: bool, verbose: bool) -> bytes:
    """读取 class 文件内容.

    Args:
        file_path: 文件路径.
        is_hex: 文件内容是否为十六进制文本.
        verbose: 是否显示详细信息.

    Raises:
        click.BadParameter: 十六进制文本无效.
    """
    if not is_hex:
        data = file_path.read_bytes()
        if verbose:
            click.echo(f"[DEBUG] 读取二进制数据 {len(data)} 字节", err=True)
        return data

    cleaned = "".join(file_path.read_text(encoding="utf-8").split())
    try:
        data = bytes.fromhex(cleaned)
    except ValueError as e:
        raise click.BadParameter(f"无效的十六进制格式 - {e}") from e
    if verbose:
        click.echo(f"[DEBUG] 读取十六进制数据 {len(data)} 字节", err=True)
    return data


def _safe(resolve: Any, *args: Any) -> str:
    """解析索引用于显示, 无效索引显示为占位文本."""
    try:
        return str(resolve(*args))
    except (ConstantPoolIndexError, DescriptorError) as e:
        return f"<invalid: {e}>"


def _entry_kind(entry: PoolSlot) -> str:
    return type(entry).__name__.removeprefix("Constant")


def _entry_fields(entry: PoolSlot) -> dict[str, Any]:
    return entry.model_dump()


def _member_signature(class_file: ClassFile, member: MemberInfo) -> str:
    """生成类似 Java 源码的成员声明."""
    name = _safe(class_file.member_name, member)
    modifiers = " ".join(n.lower() for n in flag_names(member.access_flags))
    try:
        if isinstance(member, MethodInfo):
            desc = class_file.method_descriptor(member)
            params = ", ".join(t.java_name for t in desc.parameter_types)
            text = f"{desc.return_type.java_name} {name}({params})"
        elif isinstance(member, FieldInfo):
            text = f"{class_file.field_type(member).java_name} {name}"
        else:
            text = name
    except (ConstantPoolIndexError, DescriptorError) as e:
        text = f"{name} <invalid descriptor: {e}>"
    return f"{modifiers} {text}" if modifiers else text


def _add_attributes(
    class_file: ClassFile, tree: Tree, attributes: tuple[AttributeInfo, ...]
) -> None:
    for attribute in attributes:
        label = Text()
        label.append("@", style="dim")
        label.append(_safe(class_file.attribute_name, attribute), style=STYLE_KIND)
        label.append(f" ({len(attribute.info)} bytes)", style="dim")
        tree.add(label)


def _build_tree(class_file: ClassFile) -> Tree:
    """构建 class 文件的 Rich 树."""
    root = Tree(
        Text(f"ClassFile {_safe(lambda: class_file.name)}", style="bold white")
    )
    root.add(f"version {class_file.major_version}.{class_file.minor_version}")
    root.add(f"access_flags {' | '.join(flag_names(class_file.access_flags)) or '-'}")
    if class_file.super_class:
        root.add(f"extends {_safe(lambda: class_file.super_name)}")

    if class_file.interfaces:
        branch = root.add(Text("interfaces", style="bold yellow"))
        for index in class_file.interfaces:
            branch.add(_safe(resolve_class_name, class_file.constant_pool, index))

    pool_branch = root.add(
        Text(f"constant_pool ({len(class_file.constant_pool)})", style="bold yellow")
    )
    for index, entry in enumerate(class_file.constant_pool, start=1):
        label = Text()
        label.append(f"#{index} ", style=STYLE_INDEX)
        if isinstance(entry, ReservedSlot):
            label.append("(reserved)", style="dim")
        else:
            label.append(f"{_entry_kind(entry)} ", style=STYLE_KIND)
            fields = _entry_fields(entry)
            label.append(
                " ".join(f"{k}={v!r}" for k, v in fields.items()), style=STYLE_VALUE
            )
        pool_branch.add(label)

    sections = (("fields", class_file.fields), ("methods", class_file.methods))
    for kind, members in sections:
        branch = root.add(Text(f"{kind} ({len(members)})", style="bold yellow"))
        for member in members:
            member_branch = branch.add(
                Text(_member_signature(class_file, member), style=STYLE_VALUE)
            )
            _add_attributes(class_file, member_branch, member.attributes)

    if class_file.attributes:
        branch = root.add(Text("attributes", style="bold yellow"))
        _add_attributes(class_file, branch, class_file.attributes)
    return root


def _member_to_json(class_file: ClassFile, member: MemberInfo) -> dict[str, Any]:
    return {
        "name": _safe(class_file.member_name, member),
        "descriptor": _safe(class_file.member_descriptor, member),
        "access_flags": flag_names(member.access_flags),
        "attributes": [_attribute_to_json(class_file, a) for a in member.attributes],
    }


def _attribute_to_json(
    class_file: ClassFile, attribute: AttributeInfo
) -> dict[str, Any]:
    return {
        "name": _safe(class_file.attribute_name, attribute),
        "info": attribute.info.hex(),
    }


def _to_json(class_file: ClassFile) -> dict[str, Any]:
    pool = []
    for index, entry in enumerate(class_file.constant_pool, start=1):
        item: dict[str, Any] = {"index": index, "kind": _entry_kind(entry)}
        item.update(_entry_fields(entry))
        pool.append(item)

    return {
        "name": _safe(lambda: class_file.name),
        "super_name": (
            None
            if class_file.super_class == 0
            else _safe(lambda: class_file.super_name)
        ),
        "minor_version": class_file.minor_version,
        "major_version": class_file.major_version,
        "access_flags": flag_names(class_file.access_flags),
        "interfaces": [
            _safe(resolve_class_name, class_file.constant_pool, i)
            for i in class_file.interfaces
        ],
        "constant_pool": pool,
        "fields": [_member_to_json(class_file, f) for f in class_file.fields],
        "methods": [_member_to_json(class_file, m) for m in class_file.methods],
        "attributes": [
            _attribute_to_json(class_file, a) for a in class_file.attributes
        ],
    }


def _print_output(
    class_file: ClassFile, output_format: str, output_file: str | None
) -> None:
    if output_format == "json":
        text = json.dumps(
            _to_json(class_file), indent=2, ensure_ascii=False, default=str
        )
        if output_file:
            Path(output_file).write_text(text, encoding="utf-8")
            click.echo(f"结果已保存到: {output_file}", err=True)
        else:
            Console().print(Syntax(text, "json", theme="monokai", word_wrap=True))
        return

    tree = _build_tree(class_file)
    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            Console(file=f).print(tree)
        click.echo(f"结果已保存到: {output_file}", err=True)
    else:
        Console().print(tree)


@click.command(help="JVM class 文件查看工具")
@click.argument(
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--hex",
    "is_hex",
    is_flag=True,
    help="文件内容为十六进制文本",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["tree", "json"]),
    default="tree",
    show_default=True,
    help="输出格式",
)
@click.option(
    "-o",
    "--output",
    "output_file",
    type=click.Path(dir_okay=False, writable=True),
    help="将输出保存到文件 (如不指定则输出到控制台)",
)
@click.option(
    "--validate",
    is_flag=True,
    help="校验常量池及类/成员中的所有索引引用",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="显示详细的解码过程信息",
)
def cli(
    file_path: Path,
    is_hex: bool,
    output_format: str,
    output_file: str | None,
    validate: bool,
    verbose: bool,
) -> None:
    """JVM class 文件查看工具.

    Examples:
      # 以树形结构显示
      jbc Foo.class

      # 以 JSON 格式输出并校验引用
      jbc Foo.class --format json --validate
    """
    data = _read_input(file_path, is_hex, verbose)
    option = JbcOption.VALIDATE_REFERENCES if validate else JbcOption.NONE

    try:
        class_file = decode(data, option=option)
    except JbcError as e:
        if verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        raise click.ClickException(f"{type(e).__name__}: {e}") from e

    if verbose:
        click.echo(
            f"[DEBUG] 常量池 {len(class_file.constant_pool)} 个槽位, "
            f"{len(class_file.fields)} 个字段, {len(class_file.methods)} 个方法",
            err=True,
        )
    _print_output(class_file, output_format, output_file)


def main() -> None:
    """入口函数."""
    cli()


if __name__ == "__main__":
    main()
