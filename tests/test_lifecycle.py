import pytest

from mcam_recorder.lifecycle import transient_buffers
from mcam_recorder.session import SessionManager

from conftest import solid_frame


def test_session_set_closes_on_exception(config, hardware):
    sessions = SessionManager(config, hardware.capture_factory, hardware.writer_factory).open_all([0, 1])

    with pytest.raises(RuntimeError):
        with sessions:
            raise RuntimeError("boom")

    assert all(s.closed for s in sessions)
    assert all(w.released == 1 for w in hardware.writers)
    assert all(c.released == 1 for c in hardware.captures)


def test_session_set_close_twice(config, hardware):
    sessions = SessionManager(config, hardware.capture_factory, hardware.writer_factory).open_all([0])
    with sessions:
        pass
    sessions.close()
    assert hardware.captures[0].released == 1


def test_session_set_is_ordered_and_fixed(config, hardware):
    sessions = SessionManager(config, hardware.capture_factory, hardware.writer_factory).open_all([2, 0, 1])
    assert sessions.device_ids == [2, 0, 1]
    assert [s.device_id for s in sessions] == [2, 0, 1]
    assert len(sessions) == 3
    assert not hasattr(sessions, "append")


def test_transient_buffers_released_on_normal_exit():
    with transient_buffers() as buffers:
        buffers.tiles.extend([solid_frame(1), solid_frame(2)])
        buffers.output = solid_frame(3)
    assert buffers.released


def test_transient_buffers_released_on_error():
    with pytest.raises(ValueError):
        with transient_buffers() as buffers:
            buffers.tiles.append(solid_frame(1))
            buffers.output = solid_frame(1)
            raise ValueError("render failed")
    assert buffers.released
