import pytest

from ivy_chat import TranscriptController, create_app
from ivy_chat.enums import Action
from ivy_chat.models import ActionEvent, ContentEvent, EndEvent, ErrorEvent
from ivy_chat.streaming.decoder import StreamDecoder


@pytest.fixture()
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("ENABLE_STREAMING", "true")
    app = create_app()
    app.config.update(TESTING=True)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


class FlaskClientTransport:
    """Feeds the dev endpoint's body to the controller in small slices."""

    def __init__(self, client, slice_size=5):
        self.client = client
        self.slice_size = slice_size

    def stream(self, message):
        rv = self.client.post("/api/chat-stream", json={"message": message})
        body = rv.get_data()
        for i in range(0, len(body), self.slice_size):
            yield body[i:i + self.slice_size]


def _events(rv):
    return list(StreamDecoder().decode([rv.get_data()]))


def test_health(client):
    rv = client.get("/health")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["status"] == "healthy"
    assert data["streaming"] is True


def test_echo_reply_streams_content_records(client):
    rv = client.post("/api/chat-stream", json={"message": "hello world"})
    assert rv.status_code == 200
    assert rv.headers.get("Content-Type", "").startswith("text/event-stream")

    events = _events(rv)
    assert isinstance(events[-1], EndEvent)
    assert all(isinstance(e, ContentEvent) for e in events[:-1])
    assert "".join(e.text for e in events[:-1]) == "You said: hello world"


def test_booking_keyword_emits_action(client):
    events = _events(client.post("/api/chat-stream", json={"message": "Can I book a call?"}))
    assert ActionEvent(Action.BOOKING) in events
    idx = events.index(ActionEvent(Action.BOOKING))
    assert idx > 0 and all(isinstance(e, ContentEvent) for e in events[:idx])


def test_empty_message_emits_error_record(client):
    events = _events(client.post("/api/chat-stream", json={"message": "   "}))
    assert events == [ErrorEvent("Message cannot be empty"), EndEvent()]


def test_disabled_after_startup_returns_400(client, monkeypatch):
    monkeypatch.setenv("ENABLE_STREAMING", "false")
    rv = client.post("/api/chat-stream", json={"message": "hi"})
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "Streaming disabled"


def test_route_not_registered_when_disabled(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("ENABLE_STREAMING", "false")
    client = create_app().test_client()

    rv = client.post("/api/chat-stream", json={"message": "hi"})
    assert rv.status_code in (404, 405)
    assert client.get("/health").get_json()["streaming"] is False


def test_controller_against_dev_endpoint(client):
    ctl = TranscriptController(FlaskClientTransport(client, slice_size=3))

    ctl.submit("hello")
    ctl.submit("please schedule a meeting")

    assert [m.to_dict() for m in ctl.transcript] == [
        {"content": "hello", "sender": "user"},
        {"content": "You said: hello", "sender": "bot"},
        {"content": "please schedule a meeting", "sender": "user"},
    ]
    assert ctl.show_booking is True
    assert ctl.streaming is False
