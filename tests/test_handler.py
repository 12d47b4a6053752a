import gzip
import logging
from datetime import datetime
from unittest.mock import Mock

import pytest

from conftest import RecordingClient
from s3rolling.config import S3RollingConfig
from s3rolling.rolling.handler import S3TimedRotatingFileHandler
from s3rolling.rolling.policy import S3RollingPolicy
from s3rolling.rolling.storage import S3ClientProvider


@pytest.fixture
def handler_setup(tmp_path):
    config = S3RollingConfig(s3_bucket_name="test-logs", s3_folder_name="app")
    client = RecordingClient()
    hooks: list = []
    active = tmp_path / "app.log"
    policy = S3RollingPolicy(
        config,
        active_file_name=str(active),
        file_name_pattern=str(tmp_path / "app.%d.log.gz"),
        client_provider=S3ClientProvider(config, factory=lambda *_a, **_kw: client),
        register_hook=hooks.append,
    )
    handler = S3TimedRotatingFileHandler(str(active), policy=policy)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger = logging.getLogger(f"test-handler-{id(handler)}")
    logger.propagate = False
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    try:
        yield handler, policy, client, hooks, logger, active
    finally:
        logger.removeHandler(handler)
        handler.close()


@pytest.mark.integration
def test_do_rollover_ships_file_and_reopens(handler_setup) -> None:
    handler, policy, client, hooks, logger, active = handler_setup
    logger.info("before rollover")
    expected_day = handler._period_start().strftime("%Y-%m-%d")
    previous_rollover_at = handler.rolloverAt

    handler.doRollover()
    logger.info("after rollover")
    handler.flush()

    assert policy.upload_executor.drain(5)
    key = f"app/app.{expected_day}.log.gz"
    assert client.keys == [key]
    assert gzip.decompress(client.bodies[key]) == b"before rollover\n"
    assert active.read_text() == "after rollover\n"
    assert handler.rolloverAt >= previous_rollover_at
    assert hooks == [policy.shutdown]


@pytest.mark.integration
def test_rename_failure_keeps_handler_writing(handler_setup, monkeypatch) -> None:
    handler, policy, client, _hooks, logger, active = handler_setup
    logger.info("kept")
    handle_error = Mock()
    monkeypatch.setattr(handler, "handleError", handle_error)
    monkeypatch.setattr(handler, "shouldRollover", lambda _record: True)
    monkeypatch.setattr(
        "s3rolling.rolling.renamer.os.rename",
        Mock(side_effect=PermissionError(13, "Permission denied")),
    )

    logger.info("triggers failed rollover")
    monkeypatch.undo()
    logger.info("still writing")
    handler.flush()

    handle_error.assert_called_once()
    assert active.read_text() == "kept\nstill writing\n"
    assert client.calls == []


@pytest.mark.integration
def test_exit_rollover_closes_stream_first(handler_setup) -> None:
    handler, policy, client, hooks, logger, active = handler_setup
    logger.info("final line")

    policy.shutdown()

    assert handler.stream is None
    assert not active.exists()
    assert len(client.keys) == 1
    assert gzip.decompress(client.bodies[client.keys[0]]) == b"final line\n"


@pytest.mark.integration
def test_exit_upload_flushes_active_file(tmp_path) -> None:
    config = S3RollingConfig(s3_bucket_name="test-logs", rolling_on_exit=False)
    client = RecordingClient()
    active = tmp_path / "svc.log"
    policy = S3RollingPolicy(
        config,
        active_file_name=str(active),
        file_name_pattern=str(tmp_path / "svc.%d.log"),
        client_provider=S3ClientProvider(config, factory=lambda *_a, **_kw: client),
        register_hook=lambda _cb: None,
    )
    handler = S3TimedRotatingFileHandler(str(active), policy=policy)
    handler.setFormatter(logging.Formatter("%(message)s"))
    record = logging.LogRecord("svc", logging.INFO, __file__, 1, "buffered", None, None)
    try:
        handler.emit(record)
        policy.shutdown()
    finally:
        handler.close()

    assert client.keys == ["svc.log"]
    assert client.bodies["svc.log"] == b"buffered\n"


@pytest.mark.unit
def test_requires_pattern_and_config_without_policy(tmp_path) -> None:
    with pytest.raises(ValueError, match="required"):
        S3TimedRotatingFileHandler(str(tmp_path / "app.log"), file_name_pattern="app.%d")


@pytest.mark.unit
def test_rejects_pattern_alongside_policy(handler_setup) -> None:
    _handler, policy, *_rest = handler_setup

    with pytest.raises(ValueError, match="not both"):
        S3TimedRotatingFileHandler(
            policy.active_file_name, file_name_pattern="other.%d", policy=policy
        )


@pytest.mark.unit
def test_rejects_policy_for_another_file(handler_setup, tmp_path) -> None:
    _handler, policy, *_rest = handler_setup

    with pytest.raises(ValueError, match="handler writes"):
        S3TimedRotatingFileHandler(str(tmp_path / "other.log"), policy=policy)


@pytest.mark.unit
@pytest.mark.parametrize(
    "dst_before_boundary, expected_shift",
    [(True, 3600), (False, -3600)],
)
def test_midnight_rollover_adjusts_for_dst_change(
    handler_setup, monkeypatch, dst_before_boundary, expected_shift
) -> None:
    handler = handler_setup[0]
    day = 24 * 60 * 60
    now = 1_000_000
    boundary = now + day // 2
    monkeypatch.setattr(handler, "computeRollover", lambda current: current + day)
    monkeypatch.setattr(
        handler, "_is_dst", lambda t: (t < boundary) == dst_before_boundary
    )

    assert handler._next_rollover_at(now) == now + day + expected_shift


@pytest.mark.unit
def test_midnight_rollover_unchanged_without_dst_change(handler_setup, monkeypatch) -> None:
    handler = handler_setup[0]
    monkeypatch.setattr(handler, "computeRollover", lambda current: current + 86400)
    monkeypatch.setattr(handler, "_is_dst", lambda _t: False)

    assert handler._next_rollover_at(1_000_000) == 1_086_400


@pytest.mark.unit
def test_period_start_names_file_in_its_own_dst_offset(handler_setup, monkeypatch) -> None:
    handler = handler_setup[0]
    handler.rolloverAt = 2_000_000
    period_start = handler.rolloverAt - handler.interval
    monkeypatch.setattr(handler, "_is_dst", lambda t: t >= 1_990_000)

    assert handler._period_start(2_000_000) == datetime.fromtimestamp(period_start + 3600)
