"""Tests for re-export attribution."""

from depshear.analysis import ReExportResolver
from depshear.analysis.reexports import local_module_candidates, normalize_module_path
from depshear.scanning import scan_repo


def _binding(scan, path, local_name):
    file = scan.file(path)
    return next(b for b in file.imports if b.local_name == local_name)


class TestLocalModuleCandidates:
    """Probe order for relative specifiers."""

    def test_normalization(self):
        """Paths are cleaned to posix form."""
        assert normalize_module_path("src/./a/../b.ts") == "src/b.ts"
        assert normalize_module_path("src\\lib\\c.js") == "src/lib/c.js"

    def test_extensionless_probe_order(self):
        """Literal first, then extensions on the stem and on stem/index."""
        candidates = local_module_candidates("src/utils")
        assert candidates[:4] == ["src/utils", "src/utils.ts", "src/utils/index.ts", "src/utils.tsx"]
        assert "src/utils/index.cjs" in candidates

    def test_js_specifier_also_probes_ts(self):
        """A .js specifier can resolve to the .ts source beside it."""
        candidates = local_module_candidates("src/utils.js")
        assert candidates[:3] == ["src/utils.js", "src/utils", "src/utils.ts"]


class TestReExportResolver:
    """Attribution through local re-export chains."""

    def test_chain_provenance(self, make_repo, parser):
        """A named import through two barrels lands on the dependency export."""
        repo = make_repo(
            {
                "src/index.ts": 'import { each } from "./barrel";\neach([]);\n',
                "src/barrel.ts": 'export { each } from "./leaf";\n',
                "src/leaf.ts": 'export { map as each } from "lodash";\n',
            }
        )
        scan = scan_repo(repo, parser=parser)
        resolver = ReExportResolver(scan)
        result = resolver.resolve_import_attribution("src/index.ts", _binding(scan, "src/index.ts", "each"), "lodash")
        assert result.module == "lodash"
        assert result.export_name == "map"
        assert result.provenance == "src/index.ts -> src/barrel.ts -> src/leaf.ts -> lodash#map"
        assert resolver.warnings == []

    def test_wildcard_forwards_requested_name(self, make_repo, parser):
        """export * keeps the requested name and matches dependency subpaths."""
        repo = make_repo(
            {
                "app.js": 'import { debounce } from "./lib";\n',
                "lib/index.js": 'export * from "lodash/fp";\n',
            }
        )
        scan = scan_repo(repo, parser=parser)
        result = ReExportResolver(scan).resolve_import_attribution(
            "app.js", _binding(scan, "app.js", "debounce"), "lodash"
        )
        assert (result.module, result.export_name) == ("lodash/fp", "debounce")
        assert result.provenance == "app.js -> lib/index.js -> lodash/fp#debounce"

    def test_exact_match_preferred_over_wildcard(self, make_repo, parser):
        """An exact re-export wins even when a wildcard is declared first."""
        repo = make_repo(
            {
                "a.ts": 'import { pick } from "./b";\n',
                "b.ts": 'export * from "other";\nexport { pick } from "lodash";\n',
            }
        )
        scan = scan_repo(repo, parser=parser)
        result = ReExportResolver(scan).resolve_import_attribution("a.ts", _binding(scan, "a.ts", "pick"), "lodash")
        assert result.provenance == "a.ts -> b.ts -> lodash#pick"

    def test_default_import(self, make_repo, parser):
        """A default import requests the 'default' export."""
        repo = make_repo(
            {
                "a.ts": 'import Chart from "./chart";\n',
                "chart.ts": 'import Chart from "chart.js";\nexport default Chart;\n',
            }
        )
        scan = scan_repo(repo, parser=parser)
        result = ReExportResolver(scan).resolve_import_attribution(
            "a.ts", _binding(scan, "a.ts", "Chart"), "chart.js"
        )
        assert (result.module, result.export_name) == ("chart.js", "default")

    def test_namespace_reexport_forwards_requested_name(self, make_repo, parser):
        """export * as ns passes the imported name through to the dependency."""
        repo = make_repo(
            {
                "index.ts": 'import { ns } from "./barrel";\nns.map([]);\n',
                "barrel.ts": 'export * as ns from "lodash";\n',
            }
        )
        scan = scan_repo(repo, parser=parser)
        result = ReExportResolver(scan).resolve_import_attribution(
            "index.ts", _binding(scan, "index.ts", "ns"), "lodash"
        )
        assert (result.module, result.export_name) == ("lodash", "ns")
        assert result.provenance == "index.ts -> barrel.ts -> lodash#ns"

    def test_namespace_import_not_attributed(self, make_repo, parser):
        """Namespace imports of local modules are never attributed."""
        repo = make_repo({"a.ts": 'import * as lib from "./lib";\n', "lib.ts": 'export * from "lodash";\n'})
        scan = scan_repo(repo, parser=parser)
        resolver = ReExportResolver(scan)
        assert resolver.resolve_import_attribution("a.ts", _binding(scan, "a.ts", "lib"), "lodash") is None

    def test_bare_specifier_not_attributed(self, make_repo, parser):
        """Package imports are not local and are left alone."""
        repo = make_repo({"a.ts": 'import { map } from "lodash";\n'})
        scan = scan_repo(repo, parser=parser)
        assert ReExportResolver(scan).resolve_import_attribution("a.ts", _binding(scan, "a.ts", "map"), "lodash") is None

    def test_chain_to_other_dependency(self, make_repo, parser):
        """A chain ending in a different package does not resolve."""
        repo = make_repo({"a.ts": 'import { x } from "./b";\n', "b.ts": 'export { x } from "ramda";\n'})
        scan = scan_repo(repo, parser=parser)
        assert ReExportResolver(scan).resolve_import_attribution("a.ts", _binding(scan, "a.ts", "x"), "lodash") is None

    def test_cycle_records_single_warning(self, make_repo, parser):
        """A re-export cycle fails the branch and warns once with the whole path."""
        repo = make_repo(
            {
                "src/index.ts": 'import { loop } from "./a";\nloop();\n',
                "src/a.ts": 'export { loop } from "./b";\n',
                "src/b.ts": 'export { loop } from "./a";\n',
            }
        )
        scan = scan_repo(repo, parser=parser)
        resolver = ReExportResolver(scan)
        binding = _binding(scan, "src/index.ts", "loop")
        assert resolver.resolve_import_attribution("src/index.ts", binding, "lodash") is None
        assert resolver.resolve_import_attribution("src/index.ts", binding, "lodash") is None
        assert resolver.warnings == [
            're-export attribution cycle while resolving "loop" from src/index.ts: '
            "src/a.ts -> src/b.ts -> src/a.ts"
        ]

    def test_cycle_does_not_block_other_candidates(self, make_repo, parser):
        """After a cyclic candidate fails, later candidates are still tried."""
        repo = make_repo(
            {
                "a.ts": 'import { map } from "./b";\n',
                "b.ts": 'export * from "./c";\nexport * from "lodash";\n',
                "c.ts": 'export * from "./b";\n',
            }
        )
        scan = scan_repo(repo, parser=parser)
        resolver = ReExportResolver(scan)
        result = resolver.resolve_import_attribution("a.ts", _binding(scan, "a.ts", "map"), "lodash")
        assert result.provenance == "a.ts -> b.ts -> lodash#map"
        assert len(resolver.warnings) == 1

    def test_module_cache(self, make_repo, parser):
        """Local module lookups are memoised, misses included."""
        repo = make_repo({"a.ts": "", "b.ts": ""})
        resolver = ReExportResolver(scan_repo(repo, parser=parser))
        assert resolver.resolve_local_module("a.ts", "./b") == "b.ts"
        assert resolver.resolve_local_module("a.ts", "./b") == "b.ts"
        assert resolver.resolve_local_module("a.ts", "./missing") is None
        assert resolver.resolve_local_module("a.ts", "./missing") is None
        assert resolver.cache_misses == 2
