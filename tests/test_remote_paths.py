import unittest
from types import SimpleNamespace

from fakes import FakeFileChannel

from ssh_deploy.exceptions import RemotePreparationError
from ssh_deploy.sync import RemotePathPreparer, normalize_remote_path


class NormalizeTests(unittest.TestCase):
    def test_separators_and_redundant_segments(self) -> None:
        self.assertEqual(normalize_remote_path("\\home\\pi\\app\\"), "/home/pi/app")
        self.assertEqual(normalize_remote_path("  /home//pi/./app  "), "/home/pi/app")
        self.assertEqual(normalize_remote_path("apps\\web"), "apps/web")
        self.assertEqual(normalize_remote_path("/"), "/")

    def test_relative_root_collapses_to_dot(self) -> None:
        self.assertEqual(normalize_remote_path(""), ".")
        self.assertEqual(normalize_remote_path("./"), ".")


class EnsureDirectoryTests(unittest.TestCase):
    def test_creates_only_missing_segments(self) -> None:
        channel = FakeFileChannel(directories=("/", "/home"))
        RemotePathPreparer(channel).ensure_directory("/home/pi/app")
        self.assertEqual(channel.created, ["/home/pi", "/home/pi/app"])
        self.assertIn("/home/pi/app", channel.directories)

    def test_second_call_is_a_no_op(self) -> None:
        channel = FakeFileChannel()
        preparer = RemotePathPreparer(channel)
        preparer.ensure_directory("/srv/app")
        calls = list(channel.calls)
        preparer.ensure_directory("/srv/app")
        preparer.ensure_directory("/srv")
        self.assertEqual(channel.calls, calls)

    def test_existing_tree_is_not_recreated(self) -> None:
        channel = FakeFileChannel()
        RemotePathPreparer(channel).ensure_directory("/srv/app")
        RemotePathPreparer(channel).ensure_directory("/srv/app")
        self.assertEqual(channel.created, ["/srv", "/srv/app"])

    def test_windows_separators_are_translated(self) -> None:
        channel = FakeFileChannel()
        RemotePathPreparer(channel).ensure_directory("\\srv\\app")
        self.assertEqual(channel.created, ["/srv", "/srv/app"])

    def test_relative_paths(self) -> None:
        channel = FakeFileChannel(directories=())
        RemotePathPreparer(channel).ensure_directory("apps/web")
        self.assertEqual(channel.created, ["apps", "apps/web"])

    def test_ensure_within_keeps_segments_verbatim(self) -> None:
        channel = FakeFileChannel(directories=("/", "/srv"))
        path = RemotePathPreparer(channel).ensure_within("/srv", ["odd\\name", "tail "])
        self.assertEqual(path, "/srv/odd\\name/tail ")
        self.assertEqual(channel.created, ["/srv/odd\\name", "/srv/odd\\name/tail "])

    def test_failure_on_intermediate_segment(self) -> None:
        channel = FakeFileChannel()
        channel.fail_mkdir.add("/srv")
        with self.assertRaises(RemotePreparationError) as ctx:
            RemotePathPreparer(channel).ensure_directory("/srv/app/bin")
        self.assertEqual(ctx.exception.remote_path, "/srv")
        self.assertNotIn("/srv/app", channel.created)


class PrepareTargetTests(unittest.TestCase):
    def _options(self, target: str, clean: bool) -> SimpleNamespace:
        return SimpleNamespace(target_path=target, clean_target=clean)

    def test_without_clean_only_ensures(self) -> None:
        channel = FakeFileChannel(directories=("/", "/srv", "/srv/app"))
        channel.files["/srv/app/old.dll"] = b"old"
        RemotePathPreparer(channel).prepare_target(self._options("/srv/app", False))
        self.assertIn("/srv/app/old.dll", channel.files)
        self.assertEqual(channel.created, [])

    def test_clean_removes_and_recreates(self) -> None:
        channel = FakeFileChannel(directories=("/", "/srv", "/srv/app", "/srv/app/sub"))
        channel.files["/srv/app/old.dll"] = b"old"
        channel.files["/srv/app/sub/old.so"] = b"old"
        RemotePathPreparer(channel).prepare_target(self._options("/srv/app", True))
        self.assertEqual(channel.files, {})
        self.assertIn("/srv/app", channel.directories)
        self.assertNotIn("/srv/app/sub", channel.directories)
        self.assertEqual(channel.created, ["/srv/app"])

    def test_clean_on_missing_target_just_creates(self) -> None:
        channel = FakeFileChannel()
        RemotePathPreparer(channel).prepare_target(self._options("/srv/app", True))
        self.assertEqual(channel.created, ["/srv", "/srv/app"])

    def test_clean_failure_is_a_preparation_error(self) -> None:
        channel = FakeFileChannel(directories=("/", "/srv", "/srv/app"))
        channel.files["/srv/app/locked"] = b"x"

        def refuse(path: str) -> None:
            raise PermissionError(13, "Permission denied")

        channel.delete = refuse  # type: ignore[assignment]
        with self.assertRaises(RemotePreparationError):
            RemotePathPreparer(channel).prepare_target(self._options("/srv/app", True))


if __name__ == "__main__":
    unittest.main()
