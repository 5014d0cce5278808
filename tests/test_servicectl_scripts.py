from contextlib import redirect_stderr, redirect_stdout
from inspect import cleandoc
import io
import os
import unittest
from unittest.mock import patch

from servicectl.__main__ import main
from servicectl.plumbing.common import State
from servicectl.plumbing.systemd import Controller, Service
from servicectl.scripts import service
from servicectl.scripts.utils import ENTRYPOINTS

from .fake import FakeServiceManager
from .scripts import no_args, with_controller, with_service, with_services


def status(name):
    return ["--lines=0", "status", name]


class TestEntrypoint(unittest.TestCase):

    def test_entrypoints(self):
        self.assertIn("servicectl-no-args=tests.scripts:no_args", ENTRYPOINTS)
        self.assertIn("servicectl-status=servicectl.scripts.service:status", ENTRYPOINTS)
        self.assertIn("servicectl-restart=servicectl.scripts.service:restart", ENTRYPOINTS)

    def test_doc(self):
        self.assertEqual(cleandoc(no_args.__doc__), "Usage: servicectl-no-args")

    def test_args_service(self):
        self.assertEqual(with_service({"SERVICE": "nginx"}), Service("nginx"))

    def test_args_services(self):
        self.assertEqual(with_services({"SERVICE": ["nginx", "cron"]}),
                         [Service("nginx"), Service("cron")])

    @patch.dict(os.environ, {"SERVICECTL_TIMEOUT": "7"})
    def test_args_controller_env(self):
        ctl = with_controller({})
        self.assertIsInstance(ctl, Controller)
        self.assertEqual(ctl.config.timeout, 7.0)

    @patch.dict(os.environ, {"SERVICECTL_TIMEOUT": "7"})
    def test_args_controller_options(self):
        ctl = with_controller({"--command": "systemctl --user", "--no-sudo": True,
                               "--timeout": "5"})
        self.assertEqual(ctl.config.command, "systemctl --user")
        self.assertFalse(ctl.config.sudo)
        self.assertEqual(ctl.config.timeout, 5.0)

    def test_args_controller_invalid(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
            with_controller({"--timeout": "-1"})
        self.assertEqual(ctx.exception.code, 2)

    def test_args_controller_nan(self):
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            with_controller({"--timeout": "nan"})
        self.assertEqual(ctx.exception.code, 2)


class TestServiceScripts(unittest.TestCase):

    def setUp(self):
        self.fake = FakeServiceManager()
        self.opts = {"--command": self.fake.command, "--no-sudo": True}
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def tearDown(self):
        self.fake.cleanup()

    def run_script(self, script, *names):
        with redirect_stdout(self.stdout), redirect_stderr(self.stderr):
            return script(dict(self.opts, SERVICE=list(names)))

    def test_status(self):
        self.fake.expect(status("one"), 0)
        self.fake.expect(status("two"), Controller.STATUS_STOPPED)
        self.run_script(service.status, "one", "two")
        self.assertEqual(self.stdout.getvalue(), "one: running\ntwo: stopped\n")

    def test_start(self):
        self.fake.expect(status("one"), Controller.STATUS_STOPPED)
        self.fake.expect(["start", "one"], 0)
        self.fake.expect(status("two"), 0)
        result = self.run_script(service.start, "one", "two")
        self.assertEqual(result.state, State.success)
        self.assertEqual(self.stdout.getvalue(), "one: started\ntwo: already running\n")

    def test_stop(self):
        self.fake.expect(status("one"), 0)
        self.fake.expect(["stop", "one"], 0)
        self.run_script(service.stop, "one")
        self.assertEqual(self.stdout.getvalue(), "one: stopped\n")

    def test_restart_failure(self):
        self.fake.expect(["restart", "one"], 6, stderr="Job failed.")
        self.fake.expect(["restart", "two"], 0)
        with self.assertRaises(SystemExit) as ctx:
            self.run_script(service.restart, "one", "two")
        self.assertEqual(ctx.exception.code, 1)
        self.assertEqual(self.stdout.getvalue(), "two: restarted\n")
        self.assertIn("Job failed.", self.stderr.getvalue())
        self.assertIn("1 of 2 services failed", self.stderr.getvalue())


class TestMain(unittest.TestCase):

    def setUp(self):
        self.fake = FakeServiceManager()

    def tearDown(self):
        self.fake.cleanup()

    def test_dispatch(self):
        self.fake.expect(["restart", "one"], 0)
        with redirect_stdout(io.StringIO()) as stdout:
            result = main(["--no-sudo", "--command", self.fake.command, "restart", "one"])
        self.assertEqual(result.state, State.success)
        self.assertEqual(stdout.getvalue(), "one: restarted\n")
        self.assertEqual(self.fake.calls, [["restart", "one"]])

    def test_unknown_action(self):
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            main(["enable", "one"])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
