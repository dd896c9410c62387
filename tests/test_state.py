import base64
import json

import pytest

from respot.state import AppState, Credentials


def test_read_empty_directory(tmp_path):
    state = AppState()
    state.read(tmp_path)
    assert state.device_id == ""
    assert state.credentials == Credentials()
    assert state.path == tmp_path / "state.json"


def test_write_then_read_round_trip(tmp_path):
    state = AppState()
    state.read(tmp_path)
    state.device_id = "device"
    state.event_manager = {"queue": [1, 2]}
    state.credentials = Credentials(username="someone", data=b"\x00\x01\xfe")
    state.write()

    loaded = AppState()
    loaded.read(tmp_path)
    assert loaded == state


def test_written_document_layout(tmp_path):
    state = AppState()
    state.read(tmp_path)
    state.device_id = "device"
    state.credentials = Credentials(username="someone", data=b"blob")
    state.write()

    doc = json.loads((tmp_path / "state.json").read_text())
    assert list(doc) == ["device_id", "event_manager", "credentials"]
    assert doc["event_manager"] is None
    assert doc["credentials"]["username"] == "someone"
    assert base64.b64decode(doc["credentials"]["data"]) == b"blob"


def test_empty_credentials_data_is_null(tmp_path):
    state = AppState()
    state.read(tmp_path)
    state.write()
    doc = json.loads((tmp_path / "state.json").read_text())
    assert doc["credentials"] == {"username": "", "data": None}


def test_write_leaves_no_temporary_files(tmp_path):
    state = AppState()
    state.read(tmp_path)
    state.write()
    state.write()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["state.json"]


def test_legacy_credentials_file_is_used(tmp_path):
    data = b"legacy"
    (tmp_path / "credentials.json").write_text(
        json.dumps({"username": "olduser", "data": base64.b64encode(data).decode()})
    )
    state = AppState()
    state.read(tmp_path)
    assert state.credentials.username == "olduser"
    assert state.credentials.data == data


def test_state_credentials_take_precedence(tmp_path):
    (tmp_path / "state.json").write_text(
        json.dumps({"device_id": "d", "credentials": {"username": "newuser", "data": None}})
    )
    (tmp_path / "credentials.json").write_text(json.dumps({"username": "olduser"}))
    state = AppState()
    state.read(tmp_path)
    assert state.credentials.username == "newuser"
    assert state.device_id == "d"


def test_invalid_state_file_raises(tmp_path):
    (tmp_path / "state.json").write_text("{not json")
    with pytest.raises(ValueError, match="failed unmarshalling state file"):
        AppState().read(tmp_path)


def test_invalid_credentials_file_raises(tmp_path):
    (tmp_path / "credentials.json").write_text(json.dumps({"data": "!!not base64!!"}))
    with pytest.raises(ValueError, match="stored credentials file"):
        AppState().read(tmp_path)


def test_write_without_read_raises():
    with pytest.raises(RuntimeError):
        AppState().write()