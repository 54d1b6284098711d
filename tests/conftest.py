import json

import pytest
import requests

from live_visualizer.client import VisualizerClient
from live_visualizer.config import ClientSettings


class FakeResponse:
    def __init__(self, *, status_code=200, text=None, json_payload=None, chunks=None, encoding="utf-8"):
        self.status_code = status_code
        if text is None:
            text = json.dumps(json_payload) if json_payload is not None else ""
        self.encoding = encoding
        self._chunks = chunks if chunks is not None else [text.encode("utf-8")]
        self.closed = False

    def iter_content(self, chunk_size=1):  # noqa: D401 - mimic requests response
        for chunk in self._chunks:
            if isinstance(chunk, Exception):
                raise chunk
            if callable(chunk):
                chunk = chunk()
            yield chunk

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self):
        self.calls = []
        self.to_return = []
        self.closed = False

    def queue(self, payload, status_code=200):
        if isinstance(payload, (FakeResponse, Exception)):
            self.to_return.append(payload)
            return
        if isinstance(payload, str):
            self.to_return.append(FakeResponse(status_code=status_code, text=payload))
            return
        self.to_return.append(FakeResponse(status_code=status_code, json_payload=payload))

    def request(self, method, url, headers=None, data=None, timeout=None, stream=False):
        self.calls.append(
            {"method": method, "url": url, "headers": headers, "data": data, "timeout": timeout, "stream": stream}
        )
        if not self.to_return:
            raise requests.ConnectionError("no response queued")
        outcome = self.to_return.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self):
        self.closed = True

    def bodies(self):
        return [json.loads(call["data"]) if call["data"] is not None else None for call in self.calls]


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return VisualizerClient(ClientSettings(base_url="http://viz.test:5000/"), session=session)


@pytest.fixture
def fake_response():
    return FakeResponse
