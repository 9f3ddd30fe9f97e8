"""
Enum collapse transforms.

Generated models declare every string enum as a ``class XxxEnum(str, Enum)``.
These transforms rewrite such declarations into lighter aliases:

    union    ->  Status = Literal["active", "inactive"]
    branded  ->  Status = NewType("Status", str)

Two variants are registered, in this order:
    EnumUnionTransform   names ending in "Enum", any member count
    LargeEnumTransform   member count >= CODEGEN_ENUM_LIMIT, any name

The shape is "branded" when CODEGEN_ENUM_UNIONS=branded, or when it is "auto"
and the declaration has more string members than the limit; otherwise
"union". An enum with exactly ``limit`` members is eligible for the large
variant but still collapses to a union.

All edits are planned against the original text, then applied in reverse
position order. Auxiliary typing imports are added afterwards.
"""

import ast
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from sdkgen.config import DEFAULT_ENUM_LIMIT, CollapseMode
from sdkgen.errors import EditConflictError
from sdkgen.gen_logging import get_logger
from sdkgen.postprocess.edits import TextEdit, apply_edits, sort_edits

logger = get_logger(__name__)

ENUM_SUFFIX = "Enum"
ENUM_BASES = ("Enum", "StrEnum")

UNION = "union"
BRANDED = "branded"

# typing name each shape needs
SHAPE_IMPORTS = {UNION: "Literal", BRANDED: "NewType"}


@dataclass(frozen=True)
class TransformationRecord:
    """One planned declaration rewrite."""
    name: str
    new_name: str
    shape: str
    start: int
    end: int
    replacement_text: str
    original_text: str
    requires_auxiliary_import: bool

    @property
    def position(self) -> int:
        return self.start

    def to_edit(self) -> TextEdit:
        return TextEdit(self.start, self.end, self.replacement_text, self.original_text)


@dataclass
class EnumDeclaration:
    """A module-level enum class found in the source."""
    name: str
    start: int
    end: int
    member_count: int
    # (value, source spelling) per string member, in declaration order
    string_members: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def string_count(self) -> int:
        return len(self.string_members)


class SourceIndex:
    """Converts ast (line, byte column) positions into str offsets."""

    def __init__(self, text: str):
        self.text = text
        self.lines = text.split("\n")
        self.offsets = []
        offset = 0
        for line in self.lines:
            self.offsets.append(offset)
            offset += len(line) + 1

    def offset(self, lineno: int, col_offset: int) -> int:
        line = self.lines[lineno - 1]
        chars = len(line.encode("utf-8")[:col_offset].decode("utf-8"))
        return self.offsets[lineno - 1] + chars

    def node_range(self, node: ast.AST) -> Tuple[int, int]:
        return (
            self.offset(node.lineno, node.col_offset),
            self.offset(node.end_lineno, node.end_col_offset),
        )

    def segment(self, node: ast.AST) -> str:
        start, end = self.node_range(node)
        return self.text[start:end]


def _is_enum_base(base: ast.expr) -> bool:
    if isinstance(base, ast.Name):
        return base.id in ENUM_BASES
    if isinstance(base, ast.Attribute):
        return base.attr in ENUM_BASES and isinstance(base.value, ast.Name) and base.value.id == "enum"
    return False


def _member_target(stmt: ast.stmt) -> Optional[Tuple[str, Optional[ast.expr]]]:
    """(member name, value) for an enum member assignment, else None."""
    if isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
        name, value = stmt.targets[0].id, stmt.value
    elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name) and stmt.value is not None:
        name, value = stmt.target.id, stmt.value
    else:
        return None
    if name.startswith("_"):
        return None
    return name, value


def _module_bindings(tree: ast.Module) -> Set[str]:
    """Names bound by top-level statements."""
    names = set()
    for stmt in tree.body:
        if isinstance(stmt, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            names.add(stmt.name)
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                if isinstance(target, ast.Name):
                    names.add(target.id)
        elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            names.add(stmt.target.id)
        elif isinstance(stmt, (ast.Import, ast.ImportFrom)):
            for alias in stmt.names:
                names.add((alias.asname or alias.name).split(".")[0])
    return names


def _all_entries(tree: ast.Module) -> List[ast.Constant]:
    """String entries of a module-level ``__all__`` list or tuple."""
    entries = []
    for stmt in tree.body:
        if isinstance(stmt, (ast.Assign, ast.AugAssign, ast.AnnAssign)):
            targets = stmt.targets if isinstance(stmt, ast.Assign) else [stmt.target]
            if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
                continue
            if isinstance(stmt.value, (ast.List, ast.Tuple)):
                entries.extend(
                    e for e in stmt.value.elts if isinstance(e, ast.Constant) and isinstance(e.value, str)
                )
    return entries


def base_name(name: str) -> str:
    """Declaration name without its trailing "Enum" ("_StatusEnum" -> "_Status")."""
    if name.endswith(ENUM_SUFFIX):
        return name[:-len(ENUM_SUFFIX)]
    return name


def ensure_import(text: str, name: str, module: str = "typing") -> str:
    """
    Make sure ``from <module> import <name>`` binds *name* in *text*.

    The import goes after the last top-level import, or after the module
    docstring (top of file when there is none) if the file has no imports.
    """
    try:
        tree = ast.parse(text)
    except SyntaxError:
        return text

    last_import = None
    for stmt in tree.body:
        if isinstance(stmt, ast.ImportFrom) and stmt.module == module:
            if any(alias.name == name and alias.asname in (None, name) for alias in stmt.names):
                return text
        if isinstance(stmt, (ast.Import, ast.ImportFrom)):
            last_import = stmt

    index = SourceIndex(text)
    line = f"from {module} import {name}\n"
    anchor = last_import
    if anchor is None and tree.body and isinstance(tree.body[0], ast.Expr) \
            and isinstance(tree.body[0].value, ast.Constant) and isinstance(tree.body[0].value.value, str):
        anchor = tree.body[0]
        line = "\n" + line

    if anchor is None:
        position = 0
    elif anchor.end_lineno < len(index.lines):
        position = index.offsets[anchor.end_lineno]
    else:
        # anchor is on the last line, which has no trailing newline
        position = len(text)
        line = "\n" + line.rstrip("\n")

    logger.debug(f"[TRANSFORM] Adding import: from {module} import {name}")
    return apply_edits(text, [TextEdit(position, position, line, "")])


class EnumCollapseTransform:
    """
    Collapses enum class declarations into Literal unions or NewType aliases.

    Subclasses decide eligibility; this class finds declarations, plans the
    edits and applies them.
    """

    name = "enum-collapse"

    def __init__(self, limit: int = DEFAULT_ENUM_LIMIT, mode: CollapseMode = CollapseMode.AUTO):
        self.limit = limit
        self.mode = CollapseMode(mode)

    @classmethod
    def from_settings(cls, settings) -> "EnumCollapseTransform":
        return cls(limit=settings.CODEGEN_ENUM_LIMIT, mode=settings.CODEGEN_ENUM_UNIONS)

    def is_eligible(self, declaration: EnumDeclaration) -> bool:
        return True

    def shape_for(self, declaration: EnumDeclaration) -> str:
        if self.mode == CollapseMode.BRANDED:
            return BRANDED
        if self.mode == CollapseMode.AUTO and declaration.string_count > self.limit:
            return BRANDED
        return UNION

    # ------------------------------------------------------------------ #
    # Scanning
    # ------------------------------------------------------------------ #

    def find_declarations(self, tree: ast.Module, index: SourceIndex) -> List[EnumDeclaration]:
        declarations = []
        for stmt in tree.body:
            if not isinstance(stmt, ast.ClassDef) or not any(_is_enum_base(b) for b in stmt.bases):
                continue

            start = index.offset(stmt.lineno, stmt.col_offset)
            if stmt.decorator_list:
                first = stmt.decorator_list[0]
                at = index.text.rfind("@", index.offsets[first.lineno - 1],
                                      index.offset(first.lineno, first.col_offset))
                if at >= 0:
                    start = at
            end = index.offset(stmt.end_lineno, stmt.end_col_offset)

            declaration = EnumDeclaration(name=stmt.name, start=start, end=end, member_count=0)
            for member in stmt.body:
                target = _member_target(member)
                if target is None:
                    continue
                declaration.member_count += 1
                value = target[1]
                if isinstance(value, ast.Constant) and isinstance(value.value, str):
                    declaration.string_members.append((value.value, index.segment(value)))
            declarations.append(declaration)
        return declarations

    # ------------------------------------------------------------------ #
    # Planning
    # ------------------------------------------------------------------ #

    def plan(self, text: str, file_path=None) -> Tuple[List[TransformationRecord], List[TextEdit]]:
        """
        Plan the rewrite of every eligible declaration in *text*.

        Returns:
            (records, edits). Records are in descending position order;
            edits hold the declaration rewrites plus the renames of
            references and ``__all__`` entries.

        Raises:
            SyntaxError: *text* is not valid Python.
        """
        tree = ast.parse(text)
        index = SourceIndex(text)
        bound = _module_bindings(tree)

        records: List[TransformationRecord] = []
        renames: Dict[str, str] = {}
        for declaration in self.find_declarations(tree, index):
            if not self.is_eligible(declaration):
                continue
            new_name = base_name(declaration.name)
            if not new_name.strip("_"):
                logger.warning(
                    f"[WARN] {file_path}: cannot collapse {declaration.name}: empty name after "
                    f"removing the \"{ENUM_SUFFIX}\" suffix"
                )
                continue
            if new_name != declaration.name and new_name in bound:
                logger.warning(
                    f"[WARN] {file_path}: cannot collapse {declaration.name}: "
                    f"\"{new_name}\" is already defined"
                )
                continue
            if declaration.string_count == 0:
                logger.warning(f"[WARN] {file_path}: {declaration.name} has no string members, leaving it as is")
                continue

            shape = self.shape_for(declaration)
            if shape == BRANDED:
                replacement = f'{new_name} = NewType("{new_name}", str)'
            else:
                values = ", ".join(spelling for _, spelling in declaration.string_members)
                replacement = f"{new_name} = Literal[{values}]"

            records.append(TransformationRecord(
                name=declaration.name,
                new_name=new_name,
                shape=shape,
                start=declaration.start,
                end=declaration.end,
                replacement_text=replacement,
                original_text=text[declaration.start:declaration.end],
                requires_auxiliary_import=shape == BRANDED,
            ))
            bound.add(new_name)
            if new_name != declaration.name:
                renames[declaration.name] = new_name

        records.sort(key=lambda r: r.position, reverse=True)
        edits = [record.to_edit() for record in records]
        edits.extend(self._rename_edits(tree, index, renames, records))
        return records, sort_edits(edits)

    @staticmethod
    def _rename_edits(tree: ast.Module, index: SourceIndex, renames: Dict[str, str],
                      records: List[TransformationRecord]) -> List[TextEdit]:
        if not renames:
            return []

        def replaced(start: int, end: int) -> bool:
            return any(r.start <= start and end <= r.end for r in records)

        edits = []
        for node in ast.walk(tree):
            if isinstance(node, ast.Name) and node.id in renames:
                start, end = index.node_range(node)
                if not replaced(start, end):
                    edits.append(TextEdit(start, end, renames[node.id], node.id))

        for entry in _all_entries(tree):
            if entry.value in renames:
                start, end = index.node_range(entry)
                original = index.text[start:end]
                edits.append(TextEdit(start, end, original.replace(entry.value, renames[entry.value], 1), original))
        return edits

    # ------------------------------------------------------------------ #
    # CodeTransform
    # ------------------------------------------------------------------ #

    def process(self, text: str, file_path=None) -> Optional[str]:
        """Rewritten *text*, or None when nothing was collapsed."""
        try:
            records, edits = self.plan(text, file_path)
        except SyntaxError as exc:
            logger.warning(f"[WARN] {file_path}: skipping {self.name}, not valid Python ({exc.msg})")
            return None
        if not records:
            return None

        try:
            result = apply_edits(text, edits)
        except EditConflictError as exc:
            logger.warning(f"[WARN] {file_path}: {self.name} edits conflict, file left unchanged ({exc})")
            return None

        for shape in sorted({r.shape for r in records}):
            result = ensure_import(result, SHAPE_IMPORTS[shape])

        for record in records:
            logger.debug(
                f"[TRANSFORM] {file_path}: {record.name} -> {record.new_name} ({record.shape})"
            )
        logger.info(f"[TRANSFORM] {self.name}: collapsed {len(records)} enum(s) in {file_path}")
        return result


class EnumUnionTransform(EnumCollapseTransform):
    """Collapses every enum whose name ends in "Enum"."""

    name = "enum-union"

    def is_eligible(self, declaration: EnumDeclaration) -> bool:
        return declaration.name.endswith(ENUM_SUFFIX)


class LargeEnumTransform(EnumCollapseTransform):
    """Collapses every enum with at least ``limit`` members."""

    name = "large-enum"

    def is_eligible(self, declaration: EnumDeclaration) -> bool:
        return declaration.member_count >= self.limit
