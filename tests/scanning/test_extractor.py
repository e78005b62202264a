"""Tests for per-file fact extraction."""

from depshear.scanning import DYNAMIC_MODULE, ImportKind, ReExportBinding, collect_export_names


def _bindings(scan):
    return [(b.module, b.export_name, b.local_name, b.kind) for b in scan.imports]


class TestEsImports:
    """ES module import statements."""

    def test_named_and_aliased_imports(self, scan_source):
        """Named specifiers keep their export name; aliases become the local name."""
        scan = scan_source('import { map, filter as keep } from "lodash";\nmap([]);\nkeep([]);\n')
        assert _bindings(scan) == [
            ("lodash", "map", "map", ImportKind.NAMED),
            ("lodash", "filter", "keep", ImportKind.NAMED),
        ]

    def test_default_and_namespace_imports(self, scan_source):
        """Default imports use the 'default' export, namespace imports use '*'."""
        scan = scan_source('import React from "react";\nimport * as fp from "lodash/fp";\n')
        assert _bindings(scan) == [
            ("react", "default", "React", ImportKind.DEFAULT),
            ("lodash/fp", "*", "fp", ImportKind.NAMESPACE),
        ]

    def test_side_effect_import(self, scan_source):
        """A bare import records one side-effect namespace binding."""
        scan = scan_source('import "reflect-metadata";\n')
        assert len(scan.imports) == 1
        assert scan.imports[0].is_side_effect

    def test_locations_are_one_based(self, scan_source):
        """Binding locations carry 1-based line and column."""
        scan = scan_source('\nimport { map } from "lodash";\n', path="src/a.ts")
        loc = scan.imports[0].location
        assert loc.file == "src/a.ts"
        assert loc.line == 2
        assert loc.column == 10


class TestRequire:
    """CommonJS require() calls."""

    def test_require_identifier(self, scan_source):
        """const x = require('m') binds a namespace."""
        scan = scan_source('const _ = require("lodash");\n_.map([]);\n', path="a.js")
        assert _bindings(scan) == [("lodash", "*", "_", ImportKind.NAMESPACE)]

    def test_require_destructuring(self, scan_source):
        """Destructured require binds named exports, renamed keys keep the export name."""
        scan = scan_source('const { map, filter: keep } = require("lodash");\n', path="a.js")
        assert _bindings(scan) == [
            ("lodash", "map", "map", ImportKind.NAMED),
            ("lodash", "filter", "keep", ImportKind.NAMED),
        ]

    def test_bare_require_is_side_effect(self, scan_source):
        """A require whose value is not bound is a side-effect import."""
        scan = scan_source('require("dotenv").config();\n', path="a.js")
        assert len(scan.imports) == 1
        assert scan.imports[0].is_side_effect

    def test_static_template_literal(self, scan_source):
        """Template literals without substitutions are static specifiers."""
        scan = scan_source("const x = require(`lodash`);\n", path="a.js")
        assert _bindings(scan) == [("lodash", "*", "x", ImportKind.NAMESPACE)]


class TestUncertainImports:
    """require()/import() calls with computed targets."""

    def test_computed_require_is_uncertain(self, scan_source):
        """A variable argument records an uncertain import, not a binding."""
        scan = scan_source("const name = 'x';\nconst m = require(name);\n", path="a.js")
        assert scan.imports == ()
        assert len(scan.uncertain_imports) == 1
        item = scan.uncertain_imports[0]
        assert item.kind == "require"
        assert item.expression == "name"
        assert item.module == DYNAMIC_MODULE
        assert item.location.line == 2

    def test_template_with_substitution_is_uncertain(self, scan_source):
        """import() with an interpolated template is uncertain."""
        scan = scan_source("async function f(n) { return import(`./locale/${n}`); }\n", path="a.js")
        assert [u.kind for u in scan.uncertain_imports] == ["import"]

    def test_static_dynamic_import_is_a_binding(self, scan_source):
        """import('m') with a string literal is treated like require."""
        scan = scan_source('async function f() { const m = await import("lodash"); }\n', path="a.js")
        assert _bindings(scan) == [("lodash", "*", "m", ImportKind.NAMESPACE)]
        assert scan.uncertain_imports == ()


class TestUsage:
    """Identifier and namespace usage counts."""

    def test_import_declarations_are_not_usage(self, scan_source):
        """Only reads count, not the import specifier itself."""
        scan = scan_source('import { map } from "lodash";\nmap([]);\nmap([]);\n')
        assert scan.identifier_usage.get("map") == 2

    def test_unused_import_has_no_usage(self, scan_source):
        """An imported but unreferenced name has no identifier usage."""
        scan = scan_source('import { debounce } from "lodash";\n')
        assert "debounce" not in scan.identifier_usage

    def test_namespace_members_are_counted(self, scan_source):
        """ns.prop and ns["prop"] are tallied per property."""
        scan = scan_source('import * as _ from "lodash";\n_.map([]);\n_["filter"]([]);\n_.map([]);\n')
        assert scan.namespace_usage["_"] == {"map": 2, "filter": 1}
        assert scan.direct_usage("_") == 0

    def test_direct_usage_excludes_member_access(self, scan_source):
        """Passing the namespace itself counts as direct usage."""
        scan = scan_source('import * as _ from "lodash";\n_.map([]);\nconsole.log(_);\n')
        assert scan.direct_usage("_") == 1

    def test_unsupported_member_forms_are_ignored(self, scan_source):
        """Numeric keys, private names and non-identifier objects are not tallied."""
        code = (
            'import * as ns from "lodash";\n'
            'const k = "x";\n'
            "ns[0];\n"
            "ns[k];\n"
            'ns["a"];\n'
            "f().b;\n"
            "class C { #p = 1; m() { return this.#p; } }\n"
        )
        scan = scan_source(code)
        assert scan.namespace_usage == {"ns": {"k": 1, "a": 1}}

    def test_declarations_are_not_usage(self, scan_source):
        """Function names and parameters are declarations."""
        scan = scan_source("function map(list) { return list; }\n", path="a.js")
        assert "map" not in scan.identifier_usage
        assert scan.identifier_usage.get("list") == 1


class TestReExports:
    """Re-export declarations."""

    def test_named_reexport(self, scan_source):
        """export { a as b } from 'm' forwards a under the name b."""
        scan = scan_source('export { map as each } from "lodash";\n')
        assert scan.reexports == (ReExportBinding("each", "lodash", "map"),)

    def test_star_reexports(self, scan_source):
        """export * and export * as ns both forward the whole module."""
        scan = scan_source('export * from "./a";\nexport * as b from "./b";\n')
        assert scan.reexports == (
            ReExportBinding("*", "./a", "*"),
            ReExportBinding("b", "./b", "*"),
        )

    def test_import_then_export(self, scan_source):
        """A local export of an imported name points at the import's origin."""
        scan = scan_source('import { map } from "lodash";\nexport { map as each };\n')
        assert scan.reexports == (ReExportBinding("each", "lodash", "map"),)

    def test_local_export_is_not_reexport(self, scan_source):
        """Exporting a locally declared name is not a re-export."""
        scan = scan_source("const x = 1;\nexport { x };\n")
        assert scan.reexports == ()


class TestExportNames:
    """Export names collected from dependency entrypoints."""

    def test_es_exports(self, parser):
        """Declarations, clauses, defaults and star re-exports are all named."""
        code = (
            "export function map() {}\n"
            "export const a = 1, { b, c: d } = {};\n"
            "export class Chain {}\n"
            "const x = 1;\n"
            "export { x as y };\n"
            "export default map;\n"
            'export * from "./more";\n'
        )
        parsed = parser.parse("index.js", code.encode())
        names = collect_export_names(parsed.root, parsed.content)
        assert names == ["map", "a", "b", "d", "Chain", "y", "default", "*"]

    def test_nested_destructuring_exports(self, parser):
        """Defaults, nested array patterns, holes and rest elements all bind names."""
        code = "export const { a = 1, b: [c, , ...d], ...e } = o;\nexport let [f = 2, ...g] = list;\n"
        parsed = parser.parse("index.js", code.encode())
        assert collect_export_names(parsed.root, parsed.content) == ["a", "c", "d", "e", "f", "g"]

    def test_commonjs_exports(self, parser):
        """exports.x, module.exports.x and module.exports = {...} are recognised."""
        code = (
            "exports.first = 1;\n"
            "module.exports.second = 2;\n"
            'Object.defineProperty(exports, "__esModule", { value: true });\n'
            "exports.__esModule = true;\n"
            "module.exports = { third, fourth: 4, fifth() {} };\n"
        )
        parsed = parser.parse("index.cjs", code.encode())
        names = collect_export_names(parsed.root, parsed.content)
        assert names == ["first", "second", "third", "fourth", "fifth"]

    def test_typescript_declarations(self, parser):
        """Type-only declarations in .d.ts files count as exports."""
        code = "export interface Options {}\nexport type Id = string;\nexport declare function run(): void;\n"
        parsed = parser.parse("index.d.ts", code.encode())
        names = collect_export_names(parsed.root, parsed.content)
        assert names == ["Options", "Id", "run"]
