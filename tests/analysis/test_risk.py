"""Tests for risk cue heuristics."""

from depshear.analysis import ExportSurface, assess_risk_cues
from depshear.analysis.risk import (
    RISK_DEEP_GRAPH,
    RISK_DYNAMIC_LOADER,
    RISK_NATIVE_MODULE,
    estimate_transitive_depth,
    native_module_indicators,
)
from depshear.analysis.manifest import load_manifest
from depshear.models import Location
from depshear.scanning import UncertainImport


def _chain(length: int) -> dict:
    """node_modules packages p0 -> p1 -> ... -> p{length-1}."""
    files = {}
    for i in range(length):
        manifest = {"name": f"p{i}"}
        if i + 1 < length:
            manifest["dependencies"] = {f"p{i + 1}": "*"}
        files[f"node_modules/p{i}/package.json"] = manifest
    return files


class TestDynamicLoader:
    """Dynamic require/import in dependency entrypoints."""

    def test_samples_sorted_and_limited(self, tmp_path):
        """At most three sorted file:line samples appear in the message."""
        surface = ExportSurface(
            dynamic_imports=[
                UncertainImport("require", "x", Location("index.js", line, 1)) for line in (9, 3, 5, 1)
            ]
        )
        cues, _ = assess_risk_cues(tmp_path, "pkg", surface)
        [cue] = [c for c in cues if c.code == RISK_DYNAMIC_LOADER]
        assert cue.severity == "medium"
        assert cue.message == (
            "dynamic require/import usage found in 4 dependency entrypoint location(s) "
            "(index.js:1, index.js:3, index.js:5)"
        )

    def test_no_dynamic_imports(self, tmp_path):
        """A static surface produces no dynamic-loader cue."""
        cues, _ = assess_risk_cues(tmp_path, "pkg", ExportSurface())
        assert cues == []


class TestNativeModule:
    """Native addon detection."""

    def test_indicators(self, make_repo):
        """gypfile, build scripts, binding.gyp and .node binaries are all evidence."""
        repo = make_repo(
            {
                "node_modules/addon/package.json": {
                    "gypfile": True,
                    "scripts": {"install": "node-gyp rebuild", "test": "node-gyp nothing"},
                },
                "node_modules/addon/binding.gyp": "{}",
                "node_modules/addon/build/Release/addon.node": "",
            }
        )
        root = repo / "node_modules" / "addon"
        details = native_module_indicators(root, load_manifest(root))
        assert details == ["addon.node", "binding.gyp", "package.json:gypfile", "scripts.install"]

        cues, warnings = assess_risk_cues(repo, "addon", ExportSurface())
        assert [(c.code, c.severity) for c in cues] == [(RISK_NATIVE_MODULE, "high")]
        assert warnings == []

    def test_nested_node_modules_ignored(self, make_repo):
        """Binaries inside the package's own node_modules are not its evidence."""
        repo = make_repo(
            {
                "node_modules/pure/package.json": {},
                "node_modules/pure/node_modules/dep/x.node": "",
            }
        )
        root = repo / "node_modules" / "pure"
        assert native_module_indicators(root, load_manifest(root)) == []


class TestTransitiveDepth:
    """Dependency chain depth."""

    def test_depth_counts_package_itself(self, make_repo):
        """A package with no installed dependencies has depth 1."""
        repo = make_repo(_chain(1))
        root = repo / "node_modules" / "p0"
        assert estimate_transitive_depth(repo, root, load_manifest(root)) == 1

    def test_medium_and_high_thresholds(self, make_repo):
        """Depth 4 is medium, depth 7 is high."""
        repo = make_repo(_chain(7))
        cues, _ = assess_risk_cues(repo, "p3", ExportSurface())
        assert [(c.code, c.severity, c.message) for c in cues] == [
            (RISK_DEEP_GRAPH, "medium", "transitive dependency depth is 4 levels")
        ]
        cues, _ = assess_risk_cues(repo, "p0", ExportSurface())
        assert [(c.code, c.severity) for c in cues] == [(RISK_DEEP_GRAPH, "high")]

    def test_shallow_graph(self, make_repo):
        """Depth below 4 yields no cue."""
        repo = make_repo(_chain(3))
        cues, _ = assess_risk_cues(repo, "p0", ExportSurface())
        assert cues == []

    def test_cycles_terminate(self, make_repo):
        """Mutually dependent packages do not recurse forever."""
        repo = make_repo(
            {
                "node_modules/a/package.json": {"dependencies": {"b": "*"}},
                "node_modules/b/package.json": {"dependencies": {"a": "*"}},
            }
        )
        root = repo / "node_modules" / "a"
        assert estimate_transitive_depth(repo, root, load_manifest(root)) == 3


class TestMetadataWarnings:
    """Unreadable dependency metadata."""

    def test_missing_metadata(self, tmp_path):
        """A missing package.json warns and skips manifest-based cues."""
        cues, warnings = assess_risk_cues(tmp_path, "ghost", ExportSurface())
        assert cues == []
        assert warnings == [
            f"unable to read dependency metadata: {tmp_path / 'node_modules' / 'ghost' / 'package.json'}"
        ]

    def test_invalid_metadata(self, make_repo):
        """Invalid JSON gets its own warning."""
        repo = make_repo({"node_modules/bad/package.json": "{"})
        _, warnings = assess_risk_cues(repo, "bad", ExportSurface())
        assert warnings == [
            f"failed to parse dependency metadata: {repo / 'node_modules' / 'bad' / 'package.json'}"
        ]

    def test_invalid_dependency_name(self, tmp_path):
        """An invalid dependency name yields a single warning."""
        cues, warnings = assess_risk_cues(tmp_path, "@nope", ExportSurface())
        assert cues == []
        assert len(warnings) == 1
        assert warnings[0].startswith('unable to assess risk cues for "@nope"')
