"""Stand-ins for requests, boto3 and subprocess used across the tests."""

import json
import subprocess


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b"", reason="OK", json_error=None):
        self.status_code = status_code
        self.reason = reason
        self.content = content
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class FakeSession:
    """Serves canned responses by URL and records every GET."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


class FakeS3:
    def __init__(self, error=None):
        self.objects = {}
        self.calls = []
        self.error = error

    def put_object(self, **params):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        self.objects[params["Key"]] = params


class FakeRunner:
    """Records wrangler invocations and answers slug lookups from ``existing``."""

    def __init__(self, existing=None, fail_on=None):
        self.existing = existing or {}
        self.fail_on = fail_on
        self.commands = []
        self.scripts = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        if self.fail_on and self.fail_on in cmd:
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="boom")
        if "--file" in cmd:
            path = cmd[cmd.index("--file") + 1]
            with open(path, encoding="utf-8") as f:
                self.scripts.append((path, f.read()))
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        if "--command" in cmd:
            sql = cmd[cmd.index("--command") + 1]
            table = sql.split(" FROM ")[1].split(" ")[0]
            rows = [{"slug": s} for s in self.existing.get(table, []) if f"'{s}'" in sql]
            stdout = json.dumps([{"results": rows, "success": True}])
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")
        return subprocess.CompletedProcess(cmd, 0, stdout="3.0.0", stderr="")
