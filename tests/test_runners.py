import json
import os

import httpx
import pytest

import run_dispatcher
import run_voice_server
from voicequeue.models import Command
from voicequeue.monday import MondayClient
from voicequeue.queue_store import TaskQueue


def make_command(task):
    return Command(kind="create_task", workspace="Ops", task=task, due_date="2024-06-07", status="todo")


def write_config(tmp_path, **overrides):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"queue_file": str(tmp_path / "queue.json"), **overrides}))
    return str(cfg)


# ── Voice server ────────────────────────────────────────────────────

def test_missing_model_exits_without_creating_queue(tmp_path):
    cfg = write_config(tmp_path, model_path=str(tmp_path / "missing-model"), capture_command=["true"])

    assert run_voice_server.main(["--config", cfg]) == 1
    assert not (tmp_path / "queue.json").exists()


def test_missing_capture_binary_exits_without_creating_queue(tmp_path):
    cfg = write_config(tmp_path, capture_command=["voicequeue-no-such-capture-binary"])

    assert run_voice_server.main(["--config", cfg]) == 1
    assert not (tmp_path / "queue.json").exists()


# ── Dispatcher ──────────────────────────────────────────────────────

@pytest.fixture
def env(monkeypatch):
    environ = dict(os.environ)
    environ.pop("MONDAY_API_TOKEN", None)
    environ.pop("DEFAULT_BOARD_ID", None)
    monkeypatch.setattr(os, "environ", environ)
    return environ


@pytest.fixture
def queue(tmp_path):
    q = TaskQueue(tmp_path / "queue.json")
    q.init()
    return q


def dispatch_args(tmp_path, *extra):
    return ["--config", write_config(tmp_path), "--env-file", str(tmp_path / "missing.env"), *extra]


def use_transport(monkeypatch, handler):
    def client(credentials, **kwargs):
        return MondayClient(credentials, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(run_dispatcher, "MondayClient", client)


def test_dry_run_lists_without_sending(tmp_path, queue, env):
    queue.append(make_command("one"))
    before = queue.path.read_bytes()

    assert run_dispatcher.main(dispatch_args(tmp_path, "--dry-run")) == 0
    assert queue.path.read_bytes() == before


def test_dry_run_on_malformed_queue_fails(tmp_path, queue, env):
    queue.path.write_text('[{"command": "create_task"}]')

    assert run_dispatcher.main(dispatch_args(tmp_path, "--dry-run")) == 1


def test_missing_credentials_fail(tmp_path, queue, env):
    queue.append(make_command("one"))
    before = queue.path.read_bytes()

    assert run_dispatcher.main(dispatch_args(tmp_path)) == 1
    assert queue.path.read_bytes() == before


def test_exit_status_reflects_failures(tmp_path, queue, env, monkeypatch):
    env.update(MONDAY_API_TOKEN="secret", DEFAULT_BOARD_ID="123")
    queue.append(make_command("one"))
    queue.append(make_command("two"))

    def handler(request):
        name = json.loads(request.content)["variables"]["name"]
        if name == "two":
            return httpx.Response(200, json={"error_message": "Board not found"})
        return httpx.Response(200, json={"data": {"create_item": {"id": "1"}}})

    use_transport(monkeypatch, handler)
    assert run_dispatcher.main(dispatch_args(tmp_path)) == 2
    assert [c.task for c in queue.read_all()] == ["two"]

    use_transport(monkeypatch, lambda request: httpx.Response(200, json={"data": {"create_item": {"id": "2"}}}))
    assert run_dispatcher.main(dispatch_args(tmp_path)) == 0
    assert queue.read_all() == []
