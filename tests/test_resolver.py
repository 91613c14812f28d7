"""Tests for repository file resolver."""

from error_analyzer.resolver.file_resolver import FileResolver, resolve_files
from error_analyzer.models import FaultRecord, Language, RepositoryEntry


def _tree(*paths):
    return [RepositoryEntry(path=path) for path in paths]


class TestFileResolver:
    """Test cases for FileResolver."""

    def setup_method(self):
        """Set up test fixtures."""
        self.resolver = FileResolver()
        self.tree = _tree(
            "force-app/main/default/classes/AccountHandler.cls",
            "force-app/main/default/classes/AccountHandler.cls-meta.xml",
            "force-app/main/default/classes/AccountHandlerTest.cls",
            "force-app/main/default/classes/OpportunityService.cls",
            "force-app/main/default/triggers/AccountTrigger.trigger",
            "src/orders.js",
            "lib/orders.js",
            "legacy/orders.js",
            "package.xml",
        ) + [RepositoryEntry(path="force-app/main/default/classes", type="tree")]

    def test_file_name_tier(self):
        """Test that file name suffix matches are tier 1."""
        fault = FaultRecord(raw_message="x", file_name="src/orders.js", language=Language.JAVASCRIPT)
        result = self.resolver.resolve(fault, self.tree)

        assert [candidate.path for candidate in result] == ["src/orders.js"]
        assert result[0].priority_tier == 1

    def test_results_capped_at_two(self):
        """Test that at most two candidates are returned."""
        fault = FaultRecord(raw_message="x", file_name="orders.js")
        result = self.resolver.resolve(fault, self.tree)

        assert len(result) == 2
        assert all(candidate.priority_tier == 1 for candidate in result)

    def test_class_name_tier(self):
        """Test class name match against the base name without extension."""
        fault = FaultRecord(raw_message="x", class_name="AccountHandler", language=Language.APEX)
        result = self.resolver.resolve(fault, self.tree)

        assert [candidate.path for candidate in result] == [
            "force-app/main/default/classes/AccountHandler.cls",
            "force-app/main/default/classes/AccountHandler.cls-meta.xml",
        ]
        assert all(candidate.priority_tier == 2 for candidate in result)

    def test_higher_tier_excludes_lower_tiers(self):
        """Test that a tier 1 hit suppresses class and method matches."""
        fault = FaultRecord(
            raw_message="x",
            file_name="OpportunityService.cls",
            class_name="AccountHandler",
            method_name="orders"
        )
        result = self.resolver.resolve(fault, self.tree)

        assert [candidate.priority_tier for candidate in result] == [1]
        assert result[0].path.endswith("OpportunityService.cls")

    def test_method_name_tier(self):
        """Test method name substring fallback."""
        fault = FaultRecord(raw_message="x", class_name="Missing", method_name="AccountTrigger")
        result = self.resolver.resolve(fault, self.tree)

        assert [candidate.path for candidate in result] == [
            "force-app/main/default/triggers/AccountTrigger.trigger"
        ]
        assert result[0].priority_tier == 3

    def test_no_match(self):
        """Test that an unresolvable fault returns an empty list."""
        fault = FaultRecord(raw_message="x", class_name="Nothing")

        assert self.resolver.resolve(fault, self.tree) == []
        assert self.resolver.resolve(FaultRecord(raw_message="x"), self.tree) == []

    def test_directories_ignored(self):
        """Test that tree entries are never returned as candidates."""
        fault = FaultRecord(raw_message="x", method_name="classes")
        result = self.resolver.resolve(fault, self.tree)

        assert all(not candidate.path.endswith("/classes") for candidate in result)

    def test_related_components(self):
        """Test test class and metadata discovery for Apex classes."""
        fault = FaultRecord(raw_message="x", class_name="AccountHandler", language=Language.APEX)
        related = self.resolver.find_related_components(
            fault, self.tree, exclude=["force-app/main/default/classes/AccountHandler.cls"]
        )
        by_path = {component.path: component for component in related}

        assert by_path["force-app/main/default/classes/AccountHandlerTest.cls"].relationship == "test classes"
        assert by_path["force-app/main/default/classes/AccountHandler.cls-meta.xml"].relationship == "metadata"
        assert by_path["package.xml"].priority == "low"
        assert "force-app/main/default/classes/AccountHandler.cls" not in by_path

    def test_related_components_non_apex(self):
        """Test that related components are only searched for Apex."""
        fault = FaultRecord(raw_message="x", class_name="AccountHandler", language=Language.JAVA)

        assert self.resolver.find_related_components(fault, self.tree) == []

    def test_class_name_ignores_everything_after_first_dot(self):
        """Test that metadata siblings match on the part before the first dot."""
        tree = _tree("classes/Foo.cls", "classes/Foo.cls-meta.xml", "classes/FooBar.cls")
        fault = FaultRecord(raw_message="x", class_name="Foo", language=Language.APEX)

        result = self.resolver.resolve(fault, tree)

        assert [candidate.path for candidate in result] == [
            "classes/Foo.cls",
            "classes/Foo.cls-meta.xml",
        ]

    def test_resolve_is_idempotent(self):
        """Test that resolving the same fault twice gives equal candidates."""
        fault = FaultRecord(
            raw_message="x",
            class_name="AccountHandler",
            method_name="processAccounts",
            language=Language.APEX
        )

        first = self.resolver.resolve(fault, self.tree)
        second = self.resolver.resolve(fault, self.tree)

        assert first == second

    def test_convenience_function(self):
        """Test convenience function."""
        fault = FaultRecord(raw_message="x", file_name="AccountHandler.cls")

        assert resolve_files(fault, self.tree)[0].priority_tier == 1
