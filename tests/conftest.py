import os
import sys
from pathlib import Path

import pytest

# Ensure project root is importable during pytest collection
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Settings are read at import time, so defaults must be in place before app modules load
os.environ.setdefault('STORAGE_BACKEND', 'local')
os.environ.setdefault('LOCAL_STORAGE_PATH', os.path.join(os.getcwd(), '.test_storage'))
os.environ.setdefault('BACKEND_API_URL', '')
os.environ.setdefault('THCLOUD_API_BASE', 'https://cdn.example.com')


class DummyResponse:
    def __init__(self, status_code=200, content=b'', text='', json_data=None, reason_phrase='OK'):
        self.status_code = status_code
        self.content = content
        self.text = text
        self.reason_phrase = reason_phrase
        self._json = json_data

    def json(self):
        return self._json


class DummyClient:
    """Stand-in for httpx.AsyncClient; tests set the class-level routes and read the recorded calls."""
    get_responses = {}
    post_responses = {}
    requests = []
    raise_on_request = None

    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def get(self, url, headers=None):
        DummyClient.requests.append(('GET', url, headers, None))
        if DummyClient.raise_on_request:
            raise DummyClient.raise_on_request
        return DummyClient.get_responses.get(url, DummyResponse(status_code=404, reason_phrase='Not Found'))

    async def post(self, url, content=None, json=None, headers=None):
        DummyClient.requests.append(('POST', url, headers, json if json is not None else content))
        if DummyClient.raise_on_request:
            raise DummyClient.raise_on_request
        return DummyClient.post_responses.get(url, DummyResponse(status_code=200))


class RecordingStorage:
    def __init__(self, piece_cid='bagaexamplepiece0123456789', fail_before=None, fail_after=None):
        self.piece_cid = piece_cid
        self.fail_before = fail_before
        self.fail_after = fail_after
        self.calls = []

    async def upload(self, data, on_upload_complete):
        self.calls.append(data)
        if self.fail_before:
            raise self.fail_before
        on_upload_complete(self.piece_cid)
        if self.fail_after:
            raise self.fail_after


@pytest.fixture
def dummy_http(monkeypatch):
    DummyClient.get_responses = {}
    DummyClient.post_responses = {}
    DummyClient.requests = []
    DummyClient.raise_on_request = None
    monkeypatch.setattr('apps.uploader.services.httpx.AsyncClient', DummyClient)
    return DummyClient


@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch):
    """Every test stores into its own directory and sends no backend notifications by default."""
    import apps.uploader.services as svc

    monkeypatch.setattr(svc, 'STORAGE_BACKEND', 'local')
    monkeypatch.setattr(svc, 'LOCAL_STORAGE_PATH', str(tmp_path))
    monkeypatch.setattr(svc, 'BACKEND_API_URL', '')
    monkeypatch.setattr(svc, 'BACKEND_API_KEY', '')
    return tmp_path
