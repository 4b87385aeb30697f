"""Tests for the HTTP chart endpoints."""

from beatchart.analysis.engine import ChartEngine
from tests.conftest import generate_spike_track, wav_bytes


def _upload(client, data, filename="song.wav", params=None):
    return client.post(
        "/api/chart",
        files={"file": (filename, data, "audio/wav")},
        params=params or {},
    )


def test_health_endpoint(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_chart_upload_returns_chart_record(client):
    audio = generate_spike_track(bpm=120, duration_seconds=10.0, sr=44100)
    response = _upload(client, wav_bytes(audio, 44100), filename="spikes.wav")

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "spikes"
    assert data["bpm"] == 120
    assert set(data["structure"]) == {"totalDurSec", "introEndSec", "outroStartSec"}
    assert data["structure"]["totalDurSec"] == 10.0
    assert set(data["patterns"]) == {"easy", "hard"}
    assert "markers" not in data

    hard = data["patterns"]["hard"]
    assert hard
    assert data["patterns"]["easy"] == hard[::2]
    for note in hard:
        assert 0 <= note["lane"] <= 3
        if note["type"] == "tap":
            assert "endBeat" not in note
        else:
            assert note["type"] == "long"
            assert note["endBeat"] > note["beat"]


def test_chart_upload_with_markers(client):
    audio = generate_spike_track(bpm=120, duration_seconds=10.0, sr=44100)
    response = _upload(client, wav_bytes(audio, 44100), params={"markers": "true"})
    assert response.status_code == 200
    markers = response.json()["markers"]
    assert [m["lane"] for m in markers] == [4, 4]
    assert all(m["type"] == "marker" for m in markers)


def test_chart_upload_rejects_extension(client):
    response = _upload(client, b"abc", filename="notes.txt")
    assert response.status_code == 400
    assert "Unsupported format" in response.json()["detail"]


def test_chart_upload_rejects_oversized_file(client, monkeypatch):
    from beatchart.config import settings

    monkeypatch.setattr(settings, "max_upload_mb", 1)
    response = _upload(client, b"x" * (1024 * 1024 + 1))
    assert response.status_code == 400
    assert "File too large" in response.json()["detail"]


def test_chart_upload_undecodable_audio(client):
    response = _upload(client, b"this is not audio")
    assert response.status_code == 422


def test_chart_upload_internal_failure_is_generic(client, monkeypatch):
    def _boom(self, *args, **kwargs):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(ChartEngine, "analyze_source", _boom)
    audio = generate_spike_track(bpm=120, duration_seconds=2.0, sr=22050)
    response = _upload(client, wav_bytes(audio, 22050))

    assert response.status_code == 500
    assert response.json()["detail"] == "Chart generation failed"


def test_chart_url_rejects_non_http(client):
    response = client.post("/api/chart/url", json={"url": "file:///etc/passwd"})
    assert response.status_code == 400


def test_chart_url_fetch_failure(client, monkeypatch):
    import urllib.error

    from beatchart.audio import loader

    def _refuse(*args, **kwargs):
        raise urllib.error.URLError("unreachable")

    monkeypatch.setattr(loader.urllib.request, "urlopen", _refuse)
    response = client.post("/api/chart/url", json={"url": "https://example.com/a.mp3"})
    assert response.status_code == 400
    assert "unreachable" in response.json()["detail"]


def test_slow_url_fetch_does_not_block_other_requests(monkeypatch):
    import threading
    import urllib.error

    from fastapi.testclient import TestClient

    from beatchart.audio import loader
    from beatchart.main import app

    started = threading.Event()
    release = threading.Event()
    waited = {}

    def _slow(*args, **kwargs):
        started.set()
        waited["released"] = release.wait(5)
        raise urllib.error.URLError("slow host")

    monkeypatch.setattr(loader.urllib.request, "urlopen", _slow)

    with TestClient(app) as c:
        result = {}

        def _fetch():
            result["response"] = c.post("/api/chart/url", json={"url": "https://example.com/a.mp3"})

        worker = threading.Thread(target=_fetch)
        worker.start()
        assert started.wait(5)
        try:
            assert c.get("/api/health").status_code == 200
        finally:
            release.set()
            worker.join(10)

    assert waited["released"]
    assert result["response"].status_code == 400
