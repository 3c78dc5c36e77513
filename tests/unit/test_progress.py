import pytest

from gemlisting.application.progress import (
    RemoveProgress,
    SetProgress,
    UploadProgressTracker,
    reduce_progress,
)


def test_reducer_returns_new_maps():
    start = {"image-0-a.jpg": 10}
    updated = reduce_progress(start, SetProgress("image-1-b.jpg", 40))
    assert start == {"image-0-a.jpg": 10}
    assert updated == {"image-0-a.jpg": 10, "image-1-b.jpg": 40}

    assert reduce_progress(updated, RemoveProgress(("image-0-a.jpg",))) == {"image-1-b.jpg": 40}


def test_reducer_clamps_percentages():
    assert reduce_progress({}, SetProgress("k", 140)) == {"k": 100}
    assert reduce_progress({}, SetProgress("k", -3)) == {"k": 0}


def test_reducer_rejects_unknown_actions():
    with pytest.raises(TypeError):
        reduce_progress({}, "reset")


def test_tracker_overall_is_mean_of_entries():
    snapshots = []
    tracker = UploadProgressTracker(listener=snapshots.append)
    assert tracker.overall == 0

    tracker.set("a", 100)
    tracker.set("b", 50)
    tracker.set("c", 0)
    assert tracker.overall == 50
    assert snapshots[-1] == {"a": 100, "b": 50, "c": 0}

    tracker.remove(["a"])
    assert tracker.overall == 25

    tracker.clear()
    assert tracker.snapshot() == {}
    assert tracker.get("b") is None
