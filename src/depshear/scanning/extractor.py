"""Per-file fact extraction from JS/TS syntax trees.

Every function here takes a parsed tree and returns plain data: import
bindings, identifier/namespace usage counts, local re-export declarations
and, for dependency entrypoints, the set of exported names.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..models import Location
from .models import (
    DEFAULT_EXPORT,
    WILDCARD,
    FileScan,
    ImportBinding,
    ImportKind,
    ReExportBinding,
    UncertainImport,
)
from .treesitter_parser import (
    ParsedSource,
    SyntaxNode,
    first_named_child,
    has_child_token,
    node_location,
    node_text,
    walk_named,
)

# Parents whose identifier children only ever introduce bindings.
_IMPORT_PARENTS = frozenset(
    {"import_specifier", "import_clause", "namespace_import", "named_imports", "import_statement"}
)
_PATTERN_PARENTS = frozenset(
    {
        "formal_parameters",
        "rest_parameter",
        "object_pattern",
        "array_pattern",
        "rest_pattern",
        "pair_pattern",
        "shorthand_property_identifier_pattern",
        "property_identifier",
    }
)
# Parents where only the ``name`` field is a declaration.
_NAMED_DECLARATIONS = frozenset(
    {
        "variable_declarator",
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "class_declaration",
        "class",
    }
)
# Parents with a single binding field; (parent type, field name).
_BINDING_FIELDS = {
    "required_parameter": "pattern",
    "optional_parameter": "pattern",
    "assignment_pattern": "left",
    "arrow_function": "parameter",
    "catch_clause": "parameter",
}

# Expression wrappers a require()/import() call may sit in while still
# being the value bound by a declarator.
_TRANSPARENT_WRAPPERS = frozenset(
    {
        "parenthesized_expression",
        "await_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
    }
)

_DECLARATION_NAME_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "function_signature",
        "interface_declaration",
        "type_alias_declaration",
        "enum_declaration",
    }
)


def analyze_source(parsed: ParsedSource) -> FileScan:
    """Extract all per-file facts for one parsed source file."""
    imports, uncertain = collect_import_bindings(parsed.root, parsed.content, parsed.path)
    return FileScan(
        path=parsed.path,
        imports=tuple(imports),
        identifier_usage=collect_identifier_usage(parsed.root, parsed.content),
        namespace_usage=collect_namespace_usage(parsed.root, parsed.content),
        reexports=tuple(collect_reexport_bindings(parsed.root, parsed.content, imports)),
        uncertain_imports=tuple(uncertain),
        has_parse_error=parsed.has_error,
    )


# ---------------------------------------------------------------------------
# String literals
# ---------------------------------------------------------------------------


def string_literal_value(node: Optional[SyntaxNode], content: bytes) -> Optional[str]:
    """Static value of a string or substitution-free template literal.

    Returns None for anything whose value is computed at runtime.
    """
    if node is None:
        return None
    if node.type == "string":
        return node_text(node, content)[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        return node_text(node, content)[1:-1]
    return None


def _name_text(node: Optional[SyntaxNode], content: bytes) -> str:
    """Text of an identifier-or-string name (``export { "a-b" as x }``)."""
    if node is None:
        return ""
    value = string_literal_value(node, content)
    if value is not None:
        return value
    return node_text(node, content)


def _location(node: SyntaxNode, path: str) -> Location:
    line, column = node_location(node)
    return Location(file=path, line=line, column=column)


# ---------------------------------------------------------------------------
# Import bindings
# ---------------------------------------------------------------------------


def collect_import_bindings(
    root: SyntaxNode, content: bytes, path: str
) -> tuple[list[ImportBinding], list[UncertainImport]]:
    """Collect ES import and CommonJS require bindings in source order.

    Returns:
        (bindings, uncertain) where ``uncertain`` holds require()/import()
        calls whose module argument is not a static string
    """
    bindings: list[ImportBinding] = []
    uncertain: list[UncertainImport] = []
    for node in walk_named(root):
        if node.type == "import_statement":
            bindings.extend(_import_statement_bindings(node, content, path))
        elif node.type == "call_expression":
            kind = _loader_call_kind(node, content)
            if kind is None:
                continue
            argument = _first_argument(node)
            if argument is None:
                continue
            module = string_literal_value(argument, content)
            if module is None:
                uncertain.append(
                    UncertainImport(
                        kind=kind,
                        expression=node_text(argument, content),
                        location=_location(node, path),
                    )
                )
                continue
            bindings.extend(_require_bindings(node, content, module, path))
    return bindings, uncertain


def _import_statement_bindings(node: SyntaxNode, content: bytes, path: str) -> list[ImportBinding]:
    module = string_literal_value(node.child_by_field_name("source"), content)
    if module is None:
        require_clause = first_named_child(node, "import_require_clause")
        if require_clause is None:
            return []
        return _import_require_clause_bindings(require_clause, content, path)

    clause = first_named_child(node, "import_clause")
    if clause is None:
        return [ImportBinding(module, WILDCARD, WILDCARD, ImportKind.NAMESPACE, _location(node, path))]

    bindings: list[ImportBinding] = []
    for child in clause.named_children:
        if child.type == "identifier":
            bindings.append(
                ImportBinding(
                    module, DEFAULT_EXPORT, node_text(child, content), ImportKind.DEFAULT, _location(child, path)
                )
            )
        elif child.type == "namespace_import":
            local = first_named_child(child, "identifier")
            if local is None:
                continue
            bindings.append(
                ImportBinding(
                    module, WILDCARD, node_text(local, content), ImportKind.NAMESPACE, _location(child, path)
                )
            )
        elif child.type == "named_imports":
            bindings.extend(_named_import_bindings(child, content, module, path))
    return bindings


def _named_import_bindings(node: SyntaxNode, content: bytes, module: str, path: str) -> list[ImportBinding]:
    bindings: list[ImportBinding] = []
    for spec in node.named_children:
        if spec.type != "import_specifier":
            continue
        name = _name_text(spec.child_by_field_name("name"), content)
        if not name:
            continue
        alias = spec.child_by_field_name("alias")
        local = node_text(alias, content) if alias is not None else name
        bindings.append(ImportBinding(module, name, local, ImportKind.NAMED, _location(spec, path)))
    return bindings


def _import_require_clause_bindings(clause: SyntaxNode, content: bytes, path: str) -> list[ImportBinding]:
    """TypeScript ``import x = require("mod")``."""
    module = string_literal_value(clause.child_by_field_name("source"), content)
    local = first_named_child(clause, "identifier")
    if module is None or local is None:
        return []
    return [ImportBinding(module, WILDCARD, node_text(local, content), ImportKind.NAMESPACE, _location(local, path))]


def _loader_call_kind(node: SyntaxNode, content: bytes) -> Optional[str]:
    """``"require"`` or ``"import"`` for module-loading calls, else None."""
    function = node.child_by_field_name("function")
    if function is None:
        return None
    if function.type == "import":
        return "import"
    if function.type == "identifier" and node_text(function, content) == "require":
        return "require"
    return None


def _first_argument(call: SyntaxNode) -> Optional[SyntaxNode]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return None
    for child in arguments.named_children:
        if child.type != "comment":
            return child
    return None


def _enclosing_declarator(call: SyntaxNode) -> Optional[SyntaxNode]:
    """The variable declarator whose value is ``call`` (through wrappers)."""
    current = call
    parent = current.parent
    while parent is not None and parent.type in _TRANSPARENT_WRAPPERS:
        current = parent
        parent = current.parent
    if parent is None or parent.type != "variable_declarator":
        return None
    value = parent.child_by_field_name("value")
    if value is None or value.id != current.id:
        return None
    return parent


def _require_bindings(call: SyntaxNode, content: bytes, module: str, path: str) -> list[ImportBinding]:
    declarator = _enclosing_declarator(call)
    name = declarator.child_by_field_name("name") if declarator is not None else None
    if name is not None and name.type == "identifier":
        return [ImportBinding(module, WILDCARD, node_text(name, content), ImportKind.NAMESPACE, _location(name, path))]
    if name is not None and name.type == "object_pattern":
        bindings = _object_pattern_bindings(name, content, module, path)
        if bindings:
            return bindings
    return [ImportBinding(module, WILDCARD, WILDCARD, ImportKind.NAMESPACE, _location(call, path))]


def _object_pattern_bindings(pattern: SyntaxNode, content: bytes, module: str, path: str) -> list[ImportBinding]:
    bindings: list[ImportBinding] = []
    for child in pattern.named_children:
        if child.type == "shorthand_property_identifier_pattern":
            name = node_text(child, content)
            bindings.append(ImportBinding(module, name, name, ImportKind.NAMED, _location(child, path)))
        elif child.type == "object_assignment_pattern":
            left = child.child_by_field_name("left")
            if left is not None and left.type == "shorthand_property_identifier_pattern":
                name = node_text(left, content)
                bindings.append(ImportBinding(module, name, name, ImportKind.NAMED, _location(child, path)))
        elif child.type == "pair_pattern":
            key = _name_text(child.child_by_field_name("key"), content)
            value = child.child_by_field_name("value")
            if value is not None and value.type == "assignment_pattern":
                value = value.child_by_field_name("left")
            if not key or value is None or value.type != "identifier":
                continue
            bindings.append(
                ImportBinding(module, key, node_text(value, content), ImportKind.NAMED, _location(child, path))
            )
    return bindings


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------


def is_identifier_usage(node: SyntaxNode) -> bool:
    """True when an identifier node reads a name rather than declaring one."""
    parent = node.parent
    if parent is None:
        return False
    ptype = parent.type
    if ptype in _IMPORT_PARENTS or ptype in _PATTERN_PARENTS:
        return False
    if ptype in _NAMED_DECLARATIONS:
        return not _is_field(parent, "name", node)
    binding_field = _BINDING_FIELDS.get(ptype)
    if binding_field is not None:
        return not _is_field(parent, binding_field, node)
    if ptype == "export_specifier":
        return _is_local_export_specifier_name(parent, node)
    return True


def _is_field(parent: SyntaxNode, field_name: str, node: SyntaxNode) -> bool:
    child = parent.child_by_field_name(field_name)
    return child is not None and child.id == node.id


def _is_local_export_specifier_name(specifier: SyntaxNode, node: SyntaxNode) -> bool:
    if not _is_field(specifier, "name", node):
        return False
    clause = specifier.parent
    statement = clause.parent if clause is not None else None
    return statement is None or statement.child_by_field_name("source") is None


def collect_identifier_usage(root: SyntaxNode, content: bytes) -> dict[str, int]:
    """Count reads of each name, skipping declaration positions."""
    counts: dict[str, int] = {}
    for node in walk_named(root):
        if node.type == "identifier":
            if not is_identifier_usage(node):
                continue
        elif node.type != "shorthand_property_identifier":
            continue
        name = node_text(node, content)
        if name:
            counts[name] = counts.get(name, 0) + 1
    return counts


def collect_namespace_usage(root: SyntaxNode, content: bytes) -> dict[str, dict[str, int]]:
    """Count ``local.prop`` and ``local["prop"]`` references per local name."""
    counts: dict[str, dict[str, int]] = {}
    for node in walk_named(root):
        if node.type == "member_expression":
            ref = _member_reference(node, content)
        elif node.type == "subscript_expression":
            ref = _subscript_reference(node, content)
        else:
            continue
        if ref is None:
            continue
        local, prop = ref
        entry = counts.setdefault(local, {})
        entry[prop] = entry.get(prop, 0) + 1
    return counts


def _member_reference(node: SyntaxNode, content: bytes) -> Optional[tuple[str, str]]:
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or obj.type != "identifier" or prop is None:
        return None
    if prop.type == "private_property_identifier":
        return None
    name = node_text(prop, content)
    if not name:
        return None
    return node_text(obj, content), name


def _subscript_reference(node: SyntaxNode, content: bytes) -> Optional[tuple[str, str]]:
    obj = node.child_by_field_name("object")
    index = node.child_by_field_name("index")
    if obj is None or obj.type != "identifier" or index is None:
        return None
    if index.type == "identifier":
        name = node_text(index, content)
    elif index.type == "string":
        name = node_text(index, content)[1:-1]
    else:
        return None
    if not name:
        return None
    return node_text(obj, content), name


# ---------------------------------------------------------------------------
# Re-exports
# ---------------------------------------------------------------------------


def collect_reexport_bindings(
    root: SyntaxNode, content: bytes, imports: Iterable[ImportBinding]
) -> list[ReExportBinding]:
    """Collect re-export declarations in source order.

    A source-less ``export { x as y }`` only counts when ``x`` was imported
    in the same file; the binding then points at that import's origin.
    """
    by_local: dict[str, ImportBinding] = {}
    for imp in imports:
        if not imp.is_side_effect:
            by_local.setdefault(imp.local_name, imp)

    reexports: list[ReExportBinding] = []
    for node in walk_named(root):
        if node.type == "export_statement":
            reexports.extend(_export_statement_reexports(node, content, by_local))
    return reexports


def _export_statement_reexports(
    node: SyntaxNode, content: bytes, by_local: dict[str, ImportBinding]
) -> list[ReExportBinding]:
    source = string_literal_value(node.child_by_field_name("source"), content)

    namespace_export = first_named_child(node, "namespace_export")
    if namespace_export is not None:
        name = _namespace_export_name(namespace_export, content)
        if source is None or not name:
            return []
        return [ReExportBinding(name, source, WILDCARD)]

    clause = first_named_child(node, "export_clause")
    if clause is not None:
        reexports: list[ReExportBinding] = []
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            name = _name_text(spec.child_by_field_name("name"), content)
            alias = spec.child_by_field_name("alias")
            exported = _name_text(alias, content) if alias is not None else name
            if not name:
                continue
            if source is not None:
                reexports.append(ReExportBinding(exported, source, name))
                continue
            imp = by_local.get(name)
            if imp is not None:
                reexports.append(ReExportBinding(exported, imp.module, imp.export_name))
        return reexports

    if source is not None:
        return [ReExportBinding(WILDCARD, source, WILDCARD)]

    if has_child_token(node, "default"):
        value = node.child_by_field_name("value")
        if value is not None and value.type == "identifier":
            imp = by_local.get(node_text(value, content))
            if imp is not None:
                return [ReExportBinding(DEFAULT_EXPORT, imp.module, imp.export_name)]
    return []


def _namespace_export_name(node: SyntaxNode, content: bytes) -> str:
    for child in node.named_children:
        if child.type in ("identifier", "string"):
            return _name_text(child, content)
    return ""


# ---------------------------------------------------------------------------
# Export names (dependency entrypoints)
# ---------------------------------------------------------------------------


def collect_export_names(root: SyntaxNode, content: bytes) -> list[str]:
    """Names an entrypoint exports, ``"*"`` standing for ``export * from``.

    Covers ES module syntax plus the common CommonJS shapes
    (``exports.x =``, ``module.exports.x =``, ``module.exports = { ... }``).
    """
    names: list[str] = []
    for node in walk_named(root):
        if node.type == "export_statement":
            names.extend(_export_statement_names(node, content))
        elif node.type == "assignment_expression":
            names.extend(_commonjs_export_names(node, content))
    return names


def _export_statement_names(node: SyntaxNode, content: bytes) -> list[str]:
    namespace_export = first_named_child(node, "namespace_export")
    if namespace_export is not None:
        name = _namespace_export_name(namespace_export, content)
        return [name] if name else []

    clause = first_named_child(node, "export_clause")
    if clause is not None:
        names = []
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            alias = spec.child_by_field_name("alias")
            name = _name_text(alias if alias is not None else spec.child_by_field_name("name"), content)
            if name:
                names.append(name)
        return names

    if has_child_token(node, "default"):
        return [DEFAULT_EXPORT]

    declaration = node.child_by_field_name("declaration")
    if declaration is not None:
        return _declaration_names(declaration, content)

    if node.child_by_field_name("value") is not None:
        return [DEFAULT_EXPORT]
    if node.child_by_field_name("source") is not None:
        return [WILDCARD]
    return []


def _declaration_names(node: SyntaxNode, content: bytes) -> list[str]:
    if node.type == "ambient_declaration":
        names: list[str] = []
        for child in node.named_children:
            names.extend(_declaration_names(child, content))
        return names
    if node.type in _DECLARATION_NAME_TYPES:
        name = node.child_by_field_name("name")
        return [node_text(name, content)] if name is not None else []
    if node.type in ("lexical_declaration", "variable_declaration"):
        names = []
        for declarator in node.named_children:
            if declarator.type == "variable_declarator":
                names.extend(binding_names(declarator.child_by_field_name("name"), content))
        return names
    return []


def binding_names(node: Optional[SyntaxNode], content: bytes) -> list[str]:
    """Every name a binding pattern introduces, recursing into nested patterns."""
    if node is None:
        return []
    if node.type in ("identifier", "shorthand_property_identifier_pattern"):
        return [node_text(node, content)]
    if node.type == "pair_pattern":
        return binding_names(node.child_by_field_name("value"), content)
    if node.type in ("assignment_pattern", "object_assignment_pattern"):
        return binding_names(node.child_by_field_name("left"), content)
    if node.type in ("object_pattern", "array_pattern", "rest_pattern"):
        names: list[str] = []
        for child in node.named_children:
            names.extend(binding_names(child, content))
        return names
    return []


def _commonjs_export_names(node: SyntaxNode, content: bytes) -> list[str]:
    left = node.child_by_field_name("left")
    if left is None or left.type != "member_expression":
        return []
    target = node_text(left.child_by_field_name("object"), content)
    prop = node_text(left.child_by_field_name("property"), content)
    if target in ("exports", "module.exports") and prop:
        return [] if prop == "__esModule" else [prop]
    if target == "module" and prop == "exports":
        right = node.child_by_field_name("right")
        if right is not None and right.type == "object":
            return _object_literal_keys(right, content)
    return []


def _object_literal_keys(node: SyntaxNode, content: bytes) -> list[str]:
    names: list[str] = []
    for child in node.named_children:
        if child.type == "shorthand_property_identifier":
            names.append(node_text(child, content))
        elif child.type in ("pair", "method_definition"):
            key = child.child_by_field_name("key" if child.type == "pair" else "name")
            if key is not None and key.type in ("property_identifier", "string"):
                names.append(_name_text(key, content))
    return names
