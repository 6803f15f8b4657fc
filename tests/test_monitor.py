import os
import tempfile
import threading
import unittest
from pathlib import Path

from fakes import FakeCommandChannel, FakeFileChannel

from ssh_deploy.config import PushOptions
from ssh_deploy.models import DeploymentStatus
from ssh_deploy.monitor import MonitorService, TriggerFileWatcher
from ssh_deploy.orchestrator import DeploymentOrchestrator


class TriggerFileWatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.trigger = Path(self._tmp.name) / "sshdeploy.ready"
        self.fired = threading.Semaphore(0)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_creation_and_modification_fire(self) -> None:
        watcher = TriggerFileWatcher(self.trigger, self.fired.release)
        self.assertFalse(watcher.check())

        self.trigger.write_text("1", encoding="utf-8")
        self.assertTrue(watcher.check())
        self.assertTrue(self.fired.acquire(timeout=5))
        self.assertFalse(watcher.check())

        os.utime(self.trigger, ns=(1_000_000_000, 1_000_000_000))
        self.assertTrue(watcher.check())
        self.assertTrue(self.fired.acquire(timeout=5))
        watcher.stop()

    def test_existing_file_does_not_fire_until_changed(self) -> None:
        self.trigger.write_text("1", encoding="utf-8")
        watcher = TriggerFileWatcher(self.trigger, self.fired.release)
        self.assertFalse(watcher.check())

    def test_background_polling(self) -> None:
        watcher = TriggerFileWatcher(self.trigger, self.fired.release, poll_interval=0.01)
        watcher.start()
        try:
            self.trigger.write_text("go", encoding="utf-8")
            self.assertTrue(self.fired.acquire(timeout=5))
        finally:
            watcher.stop(timeout=5)


class RecordingWatcher:
    def __init__(self, path, callback, poll_interval) -> None:
        self.path = path
        self.callback = callback
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self, timeout=None) -> None:
        self.stopped = True


class MonitorServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.source = Path(self._tmp.name)
        (self.source / "App.dll").write_bytes(b"app")
        self.files = FakeFileChannel()
        self.commands = FakeCommandChannel()
        self.orchestrator = DeploymentOrchestrator(
            ssh_factory=lambda credentials: self.commands,
            sftp_factory=lambda credentials: self.files,
        )
        options = PushOptions(
            source_path=str(self.source), target_path="/srv/app", host="pi", username="pi",
            password="x", post_command="./run.sh", exclude_suffixes=[".ready"],
        )
        self.watchers = []

        def factory(path, callback, poll_interval):
            watcher = RecordingWatcher(path, callback, poll_interval)
            self.watchers.append(watcher)
            return watcher

        self.service = MonitorService(self.orchestrator, options, watcher_factory=factory)

    def tearDown(self) -> None:
        self.service.stop()
        self._tmp.cleanup()

    def test_start_connects_and_watches_trigger_file(self) -> None:
        self.service.start()
        self.assertTrue(self.files.is_connected)
        self.assertTrue(self.commands.is_connected)
        self.assertEqual(self.watchers[0].path, self.source / "sshdeploy.ready")
        self.assertTrue(self.watchers[0].started)

    def test_each_trigger_deploys_over_the_same_channels(self) -> None:
        self.service.start()
        first = self.watchers[0].callback()
        second = self.watchers[0].callback()
        self.assertTrue(first.ok)
        self.assertTrue(second.ok)
        self.assertEqual(self.orchestrator.state.deployment_number, 2)
        self.assertEqual(self.files.connect_count, 1)
        self.assertEqual(len(self.commands.shells), 1)
        self.assertEqual(self.commands.shell_commands, ["./run.sh", "./run.sh"])

    def test_dropped_channel_is_reconnected(self) -> None:
        self.service.start()
        self.files.close()
        outcome = self.service.deploy()
        self.assertTrue(outcome.ok)
        self.assertEqual(self.files.connect_count, 2)
        self.assertEqual(self.commands.connect_count, 1)

    def test_trigger_during_deployment_is_dropped(self) -> None:
        self.service.start()
        self.assertTrue(self.orchestrator.state.try_acquire())
        outcome = self.service.deploy()
        self.assertEqual(outcome.status, DeploymentStatus.SKIPPED)
        self.assertEqual(self.files.uploads, [])
        self.orchestrator.state.release(0.0)

    def test_missing_source_fails_without_locking(self) -> None:
        self.service.start()
        (self.source / "App.dll").unlink()
        self._tmp.cleanup()
        outcome = self.service.deploy()
        self.assertEqual(outcome.status, DeploymentStatus.FAILED)
        self.assertEqual(self.orchestrator.state.deployment_number, 0)
        self.assertFalse(self.orchestrator.state.is_deploying)

    def test_stop_closes_everything(self) -> None:
        self.service.start()
        self.service.deploy()
        self.service.stop()
        self.assertTrue(self.watchers[0].stopped)
        self.assertFalse(self.files.is_connected)
        self.assertFalse(self.commands.is_connected)
        self.assertTrue(self.commands.shells[0].closed)


if __name__ == "__main__":
    unittest.main()
