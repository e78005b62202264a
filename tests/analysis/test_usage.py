"""Tests for usage aggregation."""

from depshear.analysis import collect_dependency_usage
from depshear.analysis.usage import AMBIGUOUS_IMPORTS_WARNING, no_used_exports_warning
from depshear.models import Location
from depshear.scanning import scan_repo


class TestNamedImports:
    """Named import usage."""

    def test_used_named_import_counts(self, make_repo, parser):
        """Each read of the local name counts toward its export."""
        repo = make_repo({"a.ts": 'import { map, filter } from "lodash";\nmap([]);\nmap([]);\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert usage.used_exports == {"map"}
        assert usage.counts == {"map": 2}
        assert [(u.module, u.name) for u in usage.used_imports] == [("lodash", "map")]
        assert [(u.module, u.name) for u in usage.unused_imports] == [("lodash", "filter")]
        assert usage.warnings == []

    def test_alias_counts_under_export_name(self, make_repo, parser):
        """Aliased imports tally under the exported name."""
        repo = make_repo({"a.ts": 'import { map as each } from "lodash";\neach([]);\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert usage.counts == {"map": 1}

    def test_subpath_imports_match(self, make_repo, parser):
        """Subpath specifiers belong to the dependency."""
        repo = make_repo({"a.js": 'const { get } = require("lodash/fp");\nget();\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert [(u.module, u.name) for u in usage.used_imports] == [("lodash/fp", "get")]

    def test_similar_names_do_not_match(self, make_repo, parser):
        """lodash-es is not lodash."""
        repo = make_repo({"a.ts": 'import { map } from "lodash-es";\nmap();\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert usage.used_imports == []
        assert usage.warnings == [no_used_exports_warning("lodash")]

    def test_no_used_exports_warning(self, make_repo, parser):
        """A dependency imported but never used warns."""
        repo = make_repo({"a.ts": 'import { map } from "lodash";\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert usage.used_exports == set()
        assert usage.warnings == ['no used exports found for dependency "lodash"']


class TestNamespaceAndDefault:
    """Namespace and default import precision."""

    def test_member_access_is_precise(self, make_repo, parser):
        """Property access counts per property and is not ambiguous."""
        repo = make_repo({"a.ts": 'import * as _ from "lodash";\n_.map([]);\n_.map([]);\n_.filter([]);\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert usage.counts == {"filter": 1, "map": 2}
        assert not usage.has_ambiguous_imports
        assert AMBIGUOUS_IMPORTS_WARNING not in usage.warnings

    def test_direct_use_is_ambiguous(self, make_repo, parser):
        """Using the namespace value itself tallies '*' and warns."""
        repo = make_repo({"a.ts": 'import * as _ from "lodash";\n_.map([]);\nwrap(_);\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert usage.counts == {"map": 1, "*": 1}
        assert usage.has_ambiguous_imports
        assert usage.warnings == [AMBIGUOUS_IMPORTS_WARNING]

    def test_default_direct_use(self, make_repo, parser):
        """A default import called directly tallies under 'default'."""
        repo = make_repo({"a.js": 'import axios from "axios";\naxios("/x");\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "axios")
        assert usage.counts == {"default": 1}
        assert usage.has_ambiguous_imports

    def test_unused_namespace(self, make_repo, parser):
        """A namespace import with no references is unused."""
        repo = make_repo({"a.ts": 'import * as _ from "lodash";\n'})
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert [(u.module, u.name) for u in usage.unused_imports] == [("lodash", "*")]


class TestMerging:
    """Merging import occurrences across files."""

    def test_locations_merge_sorted(self, make_repo, parser):
        """The same (module, name) from two files merges into one entry."""
        repo = make_repo(
            {
                "b.ts": 'import { map } from "lodash";\nmap();\n',
                "a.ts": '\nimport { map } from "lodash";\nmap();\n',
            }
        )
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert len(usage.used_imports) == 1
        assert usage.used_imports[0].locations == [Location("a.ts", 2, 10), Location("b.ts", 1, 10)]
        assert usage.counts == {"map": 2}

    def test_used_anywhere_is_not_unused(self, make_repo, parser):
        """An import used in one file and unused in another nets to used."""
        repo = make_repo(
            {
                "a.ts": 'import { map } from "lodash";\nmap();\n',
                "b.ts": 'import { map } from "lodash";\n',
            }
        )
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert [u.name for u in usage.used_imports] == ["map"]
        assert usage.unused_imports == []

    def test_attributed_imports_carry_provenance(self, make_repo, parser):
        """Imports through a barrel are credited to the dependency with provenance."""
        repo = make_repo(
            {
                "src/app.ts": 'import { each } from "./utils";\neach([]);\n',
                "src/other.ts": 'import { each } from "./utils";\neach([]);\n',
                "src/utils.ts": 'export { forEach as each } from "lodash";\n',
            }
        )
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert usage.counts == {"forEach": 2}
        [entry] = usage.used_imports
        assert (entry.module, entry.name) == ("lodash", "forEach")
        assert entry.provenance == [
            "src/app.ts -> src/utils.ts -> lodash#forEach",
            "src/other.ts -> src/utils.ts -> lodash#forEach",
        ]

    def test_top_symbols_ordering(self, make_repo, parser):
        """Top symbols sort by count descending, then name."""
        repo = make_repo(
            {"a.ts": 'import { b, a, c } from "lodash";\nb(); a(); c(); c();\n'}
        )
        usage = collect_dependency_usage(scan_repo(repo, parser=parser), "lodash")
        assert [(s.name, s.count) for s in usage.top_symbols(2)] == [("c", 2), ("a", 1)]
