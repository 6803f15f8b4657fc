import tempfile
import unittest
from pathlib import Path

from manifests import SAMPLE_MANIFEST, write_manifest

from ssh_deploy.exceptions import ManifestResolutionError
from ssh_deploy.manifest import DependencyResolver, ManifestNode
from ssh_deploy.models import Dependency


class ManifestNodeTests(unittest.TestCase):
    def test_navigate_returns_none_on_missing_key(self) -> None:
        root = ManifestNode({"a": {"b": {"c": 1}}})
        self.assertEqual(root.navigate("a", "b", "c").value, 1)
        self.assertIsNone(root.navigate("a", "x", "c"))
        self.assertIsNone(root.navigate("a", "b", "c", "d"))

    def test_items_and_first_follow_document_order(self) -> None:
        root = ManifestNode({"z": 1, "a": 2})
        self.assertEqual([key for key, _ in root.items()], ["z", "a"])
        self.assertEqual(root.first()[0], "z")
        self.assertIsNone(ManifestNode("scalar").first())
        self.assertIsNone(ManifestNode({}).first())

    def test_find_matches_key_predicate(self) -> None:
        root = ManifestNode({"net/linux-x64": 1, "net/linux-arm": 2})
        key, node = root.find(lambda k: "linux-arm" in k)
        self.assertEqual(key, "net/linux-arm")
        self.assertEqual(node.value, 2)


class DependencyResolverTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.source = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_no_manifest_means_no_dependencies(self) -> None:
        (self.source / "App.dll").write_bytes(b"MZ")
        self.assertEqual(DependencyResolver().resolve(self.source), [])

    def test_resolves_runtime_assets_in_manifest_order(self) -> None:
        write_manifest(self.source)
        dependencies = DependencyResolver().resolve(self.source)
        self.assertEqual(
            dependencies,
            [
                Dependency("Newtonsoft.Json", "10.0.3", "lib/netstandard1.3/Newtonsoft.Json.dll"),
                Dependency("Native.Gpio", "2.1.0", "runtimes/linux-arm/lib/netstandard2.0/Native.Gpio.dll"),
            ],
        )

    def test_packages_without_runtime_section_are_skipped(self) -> None:
        write_manifest(self.source)
        names = [dep.name for dep in DependencyResolver().resolve(self.source)]
        self.assertNotIn("StyleCop.Analyzers", names)

    def test_only_first_runtime_asset_is_taken(self) -> None:
        write_manifest(self.source)
        gpio = [dep for dep in DependencyResolver().resolve(self.source) if dep.name == "Native.Gpio"]
        self.assertEqual(len(gpio), 1)
        self.assertTrue(gpio[0].path.endswith("Native.Gpio.dll"))

    def test_resolution_is_deterministic(self) -> None:
        write_manifest(self.source)
        resolver = DependencyResolver()
        self.assertEqual(resolver.resolve(self.source), resolver.resolve(self.source))

    def test_manifest_with_byte_order_mark(self) -> None:
        path = write_manifest(self.source)
        path.write_bytes(b"\xef\xbb\xbf" + path.read_bytes())
        self.assertEqual(len(DependencyResolver().resolve(self.source)), 2)

    def test_missing_targets_is_a_resolution_failure(self) -> None:
        write_manifest(self.source, {"runtimeTarget": {}})
        with self.assertRaises(ManifestResolutionError) as ctx:
            DependencyResolver().resolve(self.source)
        self.assertEqual(ctx.exception.missing, ("targets",))
        self.assertEqual(ctx.exception.manifest, "App.deps.json")

    def test_missing_platform_is_a_resolution_failure(self) -> None:
        write_manifest(self.source)
        with self.assertRaises(ManifestResolutionError) as ctx:
            DependencyResolver("win-x64").resolve(self.source)
        self.assertIn("*win-x64*", ctx.exception.missing)

    def test_empty_platform_target_is_a_resolution_failure(self) -> None:
        write_manifest(self.source, {"targets": {".NETCoreApp,Version=v2.0/linux-arm": {}}})
        with self.assertRaises(ManifestResolutionError):
            DependencyResolver().resolve(self.source)

    def test_invalid_json_is_a_resolution_failure(self) -> None:
        (self.source / "App.deps.json").write_text("{not json", encoding="utf-8")
        with self.assertRaises(ManifestResolutionError):
            DependencyResolver().resolve(self.source)

    def test_application_without_dependencies(self) -> None:
        write_manifest(self.source, {"targets": {"net/linux-arm": {"App/1.0.0": {"runtime": {"App.dll": {}}}}}})
        self.assertEqual(DependencyResolver().resolve(self.source), [])

    def test_other_runtime_identifier_selects_other_target(self) -> None:
        payload = {
            "targets": {
                "net/linux-arm": SAMPLE_MANIFEST["targets"][".NETCoreApp,Version=v2.0/linux-arm"],
                "net/linux-x64": {
                    "App/1.0.0": {"dependencies": {"Only.X64": "1.0.0"}},
                    "Only.X64/1.0.0": {"runtime": {"lib/Only.X64.dll": {}}},
                },
            }
        }
        write_manifest(self.source, payload)
        dependencies = DependencyResolver("linux-x64").resolve(self.source)
        self.assertEqual(dependencies, [Dependency("Only.X64", "1.0.0", "lib/Only.X64.dll")])

    def test_first_manifest_by_name_wins(self) -> None:
        write_manifest(self.source, name="B.deps.json")
        write_manifest(self.source, {"targets": {"net/linux-arm": {"A/1.0.0": {}}}}, name="A.deps.json")
        resolver = DependencyResolver()
        self.assertEqual(resolver.find_manifest(self.source).name, "A.deps.json")
        self.assertEqual(resolver.resolve(self.source), [])


if __name__ == "__main__":
    unittest.main()
