import pytest

from s3rolling.errors import RolloverFailure
from s3rolling.rolling.renamer import Renamer


@pytest.mark.unit
def test_rename_moves_file(tmp_path) -> None:
    source = tmp_path / "app.log"
    source.write_text("line\n")
    target = tmp_path / "app.log123.tmp"

    Renamer().rename(str(source), str(target))

    assert not source.exists()
    assert target.read_text() == "line\n"


@pytest.mark.unit
def test_rename_missing_source_fails(tmp_path) -> None:
    with pytest.raises(RolloverFailure):
        Renamer().rename(str(tmp_path / "missing.log"), str(tmp_path / "x.tmp"))


@pytest.mark.unit
def test_rename_onto_existing_target_fails_and_keeps_source(tmp_path) -> None:
    source = tmp_path / "app.log"
    source.write_text("active")
    target = tmp_path / "taken.tmp"
    target.write_text("other")

    with pytest.raises(RolloverFailure):
        Renamer().rename(str(source), str(target))

    assert source.read_text() == "active"
    assert target.read_text() == "other"


@pytest.mark.unit
def test_rename_os_error_is_wrapped(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = tmp_path / "app.log"
    source.write_text("active")

    def deny(_src, _dst):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("s3rolling.rolling.renamer.os.rename", deny)

    with pytest.raises(RolloverFailure) as excinfo:
        Renamer().rename(str(source), str(tmp_path / "app.log1.tmp"))

    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert source.read_text() == "active"


@pytest.mark.unit
def test_rename_cross_device_is_reported(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    import errno

    source = tmp_path / "app.log"
    source.write_text("active")

    def cross_device(_src, _dst):
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr("s3rolling.rolling.renamer.os.rename", cross_device)

    with pytest.raises(RolloverFailure, match="different file systems"):
        Renamer().rename(str(source), str(tmp_path / "other" / "app.log"))

    assert source.exists()
