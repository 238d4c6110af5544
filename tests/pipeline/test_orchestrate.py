# tests/pipeline/test_orchestrate.py
from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

import progressed_hashing.pipeline.orchestrate as orch
from progressed_hashing import (
    CollectionError,
    Error,
    ErrorKind,
    FileHashError,
    HashingConfig,
    Progress,
    Result,
    Started,
    begin_hashing,
    hash_directory,
)

needs_unprivileged = pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="permission bits are not enforced for root",
)


async def _drain(stream):
    return [status async for status in stream]


def _write(root: Path, files: dict) -> None:
    for name, content in files.items():
        p = root / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content)


@pytest.mark.asyncio
async def test_three_files_scenario(tmp_path: Path):
    _write(tmp_path, {"a": "x", "b": "y", "c": "x"})

    events = await _drain(begin_hashing(tmp_path))

    assert events[0] == Started(3)
    assert all(isinstance(ev, Progress) for ev in events[1:4])
    assert isinstance(events[-1], Result)
    assert len(events) == 5

    digests = events[-1].digests
    a, b, c = (str(tmp_path / n) for n in "abc")
    assert set(digests) == {a, b, c}
    assert digests[a] == digests[c] != digests[b]
    assert {ev.update.current_file for ev in events[1:4]} == {a, b, c}


@pytest.mark.asyncio
async def test_empty_directory(tmp_path: Path):
    events = await _drain(begin_hashing(tmp_path))
    assert events == [Started(0), Result({})]


@pytest.mark.asyncio
async def test_missing_root_emits_single_collection_error(tmp_path: Path):
    missing = tmp_path / "does-not-exist"

    events = await _drain(begin_hashing(missing))

    assert len(events) == 1
    (event,) = events
    assert isinstance(event, Error)
    assert event.error.kind is ErrorKind.NOT_FOUND
    assert event.error.is_collection_failure


@needs_unprivileged
@pytest.mark.asyncio
async def test_unreadable_root_emits_permission_denied(tmp_path: Path):
    locked = tmp_path / "locked"
    locked.mkdir()
    (locked / "f").write_text("x")
    locked.chmod(0)
    try:
        events = await _drain(begin_hashing(locked))
    finally:
        locked.chmod(0o755)

    assert len(events) == 1
    assert events[0].error.kind is ErrorKind.PERMISSION_DENIED


@pytest.mark.asyncio
async def test_counter_values_form_a_contiguous_range(tmp_path: Path):
    _write(tmp_path, {f"d{i % 5}/f{i}": f"payload {i}" for i in range(60)})

    events = await _drain(begin_hashing(tmp_path, num_workers=4))

    assert events[0] == Started(60)
    progress = [ev for ev in events if isinstance(ev, Progress)]
    assert len(progress) == 60
    assert sorted(ev.update.total_hashed_files for ev in progress) == list(range(60))
    assert len(events[-1].digests) == 60


@pytest.mark.asyncio
async def test_same_file_hashes_identically_across_runs(tmp_path: Path):
    _write(tmp_path, {"stable.txt": "unchanged"})

    first = (await _drain(begin_hashing(tmp_path)))[-1].digests
    second = (await _drain(begin_hashing(tmp_path)))[-1].digests

    assert first == second


@pytest.mark.asyncio
async def test_failed_file_is_reported_and_sentinel_recorded(tmp_path: Path, monkeypatch):
    _write(tmp_path, {"ok1": "1", "ok2": "2"})
    missing = str(tmp_path / "vanished")
    listing = [str(tmp_path / "ok1"), missing, str(tmp_path / "ok2")]
    monkeypatch.setattr(orch, "collect_files_in_dir", lambda *a, **k: list(listing))

    events = await _drain(begin_hashing(tmp_path))

    assert events[0] == Started(3)
    middle = events[1:-1]
    assert len(middle) == 3
    errors = [ev for ev in middle if isinstance(ev, Error)]
    assert len(errors) == 1
    assert errors[0].error.kind is ErrorKind.FILE_HASH_FAILED
    assert errors[0].error.path == missing

    result = events[-1]
    assert isinstance(result, Result)
    assert len(result.digests) == 3
    assert result.digests[missing] == ""
    assert sorted(
        ev.update.total_hashed_files for ev in middle if isinstance(ev, Progress)
    ) == [0, 1]


@pytest.mark.asyncio
async def test_abort_policy_ends_without_result(tmp_path: Path, monkeypatch):
    _write(tmp_path, {"ok1": "1", "ok2": "2"})
    missing = str(tmp_path / "vanished")
    listing = [str(tmp_path / "ok1"), missing, str(tmp_path / "ok2")]
    monkeypatch.setattr(orch, "collect_files_in_dir", lambda *a, **k: list(listing))

    config = HashingConfig(num_workers=1, in_flight_factor=1, failure_policy="abort")
    events = await _drain(begin_hashing(tmp_path, config))

    assert [type(ev) for ev in events] == [Started, Progress, Error]
    assert events[-1].error.path == missing


@pytest.mark.asyncio
async def test_abort_with_busy_workers_ends_at_the_error(tmp_path: Path, monkeypatch):
    missing = str(tmp_path / "missing")
    listing = [missing]
    for i in range(3):
        p = tmp_path / f"big{i}"
        p.write_bytes(b"\0" * (16 << 20))
        listing.append(str(p))
    monkeypatch.setattr(orch, "collect_files_in_dir", lambda *a, **k: list(listing))

    config = HashingConfig(num_workers=4, failure_policy="abort")
    events = await _drain(begin_hashing(tmp_path, config))

    assert events[0] == Started(4)
    first_error = next(i for i, ev in enumerate(events) if isinstance(ev, Error))
    assert events[first_error].error.path == missing
    assert events[first_error + 1:] == []


@pytest.mark.asyncio
async def test_stream_is_lazy_and_single_use(tmp_path: Path, monkeypatch):
    calls = []
    real = orch.collect_files_in_dir

    def spy(*args, **kwargs):
        calls.append(args)
        return real(*args, **kwargs)

    monkeypatch.setattr(orch, "collect_files_in_dir", spy)
    _write(tmp_path, {"a": "x"})

    stream = begin_hashing(tmp_path)
    await asyncio.sleep(0.05)
    assert calls == []

    events = await _drain(stream)
    assert len(calls) == 1
    assert len(events) == 3

    assert await _drain(stream) == []


@pytest.mark.asyncio
async def test_dropping_consumer_does_not_break_producer(tmp_path: Path):
    _write(tmp_path, {f"f{i}": "z" * 1000 for i in range(40)})

    stream = begin_hashing(tmp_path, num_workers=2)
    async with stream:
        first = await stream.__anext__()
        assert first == Started(40)

    # Producer runs to completion; its remaining events are discarded
    await asyncio.wait_for(stream._task, timeout=30)
    assert stream._channel.is_closed
    assert await _drain(stream) == []


@pytest.mark.asyncio
async def test_unexpected_failure_surfaces_to_consumer(tmp_path: Path, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("worker pool exploded")

    monkeypatch.setattr(orch, "process_files", boom)
    _write(tmp_path, {"a": "x"})

    stream = begin_hashing(tmp_path)
    assert await stream.__anext__() == Started(1)
    with pytest.raises(RuntimeError, match="exploded"):
        await stream.__anext__()


def test_overrides_apply_on_top_of_config(tmp_path: Path):
    stream = begin_hashing(tmp_path, HashingConfig(num_workers=3), algorithm="sha256")
    assert stream.config.num_workers == 3
    assert stream.config.algorithm == "sha256"


def test_hash_directory_returns_mapping(tmp_path: Path):
    _write(tmp_path, {"a": "x", "sub/b": "y"})

    digests = hash_directory(tmp_path, show_progress=False)

    assert set(digests) == {str(tmp_path / "a"), str(tmp_path / "sub" / "b")}
    assert all(len(d) == 64 for d in digests.values())


def test_hash_directory_raises_on_collection_failure(tmp_path: Path):
    with pytest.raises(CollectionError) as info:
        hash_directory(tmp_path / "missing", show_progress=False)
    assert info.value.kind is ErrorKind.NOT_FOUND


def test_hash_directory_raises_on_abort(tmp_path: Path, monkeypatch):
    missing = str(tmp_path / "vanished")
    monkeypatch.setattr(orch, "collect_files_in_dir", lambda *a, **k: [missing])

    with pytest.raises(FileHashError) as info:
        hash_directory(
            tmp_path, HashingConfig(failure_policy="abort"), show_progress=False
        )
    assert info.value.path == missing


def test_hash_directory_keeps_sentinel_under_continue(tmp_path: Path, monkeypatch):
    missing = str(tmp_path / "vanished")
    monkeypatch.setattr(orch, "collect_files_in_dir", lambda *a, **k: [missing])

    digests = hash_directory(
        tmp_path, HashingConfig(sentinel_digest="-"), show_progress=False
    )
    assert digests == {missing: "-"}
