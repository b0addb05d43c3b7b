from unittest import mock

from ndmserver.user import MAX_CONNECTION_TIMEOUT, User


def test_new_user_is_connected():
    user = User()
    assert user.can_close() is False


def test_closed_user_can_close():
    user = User()
    user.is_closed = True
    assert user.can_close() is True


def test_idle_user_times_out():
    with mock.patch("time.monotonic", return_value=100.0):
        user = User()
    with mock.patch("time.monotonic", return_value=100.0 + MAX_CONNECTION_TIMEOUT + 1):
        assert user.can_close() is True


def test_update_time_reopens_and_refreshes():
    with mock.patch("time.monotonic", return_value=10.0):
        user = User()
    user.is_closed = True
    with mock.patch("time.monotonic", return_value=50.0):
        user.update_time()
        assert user.is_closed is False
        assert user.last_time == 50.0
        assert user.can_close() is False