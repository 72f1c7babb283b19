"""
Shared fixtures: a fake Piston service behind httpx.MockTransport and a controllable clock.
Run from the project root: python -m pytest tests/ -v
"""
import json

import httpx
import pytest

from code_relay.services.execution import PistonClient, PistonExecutor, RuntimeCache

BASE_URL = "http://piston.test/api/v2/piston"

RUNTIMES = [
    {"language": "python", "version": "3.10.0", "aliases": ["py", "py3"]},
    {"language": "c++", "version": "10.2.0", "aliases": ["cpp", "g++"]},
    {"language": "c", "version": "10.2.0", "aliases": ["gcc"]},
    {"language": "java", "version": "15.0.2", "aliases": []},
]


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakePiston:
    """Answers /runtimes and /execute from canned data and records every request."""

    def __init__(self):
        self.runtimes = list(RUNTIMES)
        self.runtimes_status = 200
        self.responses = []
        self.requests = []

    def handler(self, request):
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/runtimes"):
            if self.runtimes_status != 200:
                return httpx.Response(self.runtimes_status, json={"message": "runtimes unavailable"})
            return httpx.Response(200, json=self.runtimes)

        if path.endswith("/execute"):
            item = self.responses.pop(0) if self.responses else self._run_body("")
            if isinstance(item, Exception):
                raise item
            if isinstance(item, httpx.Response):
                return item
            return httpx.Response(200, json=item)

        return httpx.Response(404, json={"message": f"no route for {path}"})

    @staticmethod
    def _run_body(stdout, stderr="", code=0, signal=None):
        return {
            "language": "python",
            "version": "3.10.0",
            "run": {"stdout": stdout, "stderr": stderr, "code": code, "signal": signal,
                    "output": stdout + stderr},
        }

    def queue_run(self, stdout="", stderr="", code=0, signal=None):
        self.responses.append(self._run_body(stdout, stderr, code, signal))

    def queue_compile_error(self, stderr="", output="", code=1):
        body = self._run_body("")
        body["compile"] = {"stdout": "", "stderr": stderr, "output": output, "code": code, "signal": None}
        self.responses.append(body)

    def queue(self, item):
        self.responses.append(item)

    def calls(self, suffix):
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    def execute_payloads(self):
        return [json.loads(r.content) for r in self.calls("/execute")]


@pytest.fixture
def piston():
    return FakePiston()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def executor(piston, clock):
    client = PistonClient(base_url=BASE_URL, transport=httpx.MockTransport(piston.handler))
    cache = RuntimeCache(client.fetch_runtimes, ttl=3600, clock=clock, source=BASE_URL)
    return PistonExecutor(client=client, runtime_cache=cache)
