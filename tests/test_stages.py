# tests/test_stages.py

import pytest

from conftest import FakeRunner, MemorySink
from devdrive.core.exceptions import (
    BackingFileExistsError,
    CommandError,
    ProvisioningError,
)
from devdrive.core.stages import (
    CreatePartitionStage,
    CreateVirtualDiskStage,
    ExportEnvironmentStage,
    FormatVolumeStage,
    InitializeDiskStage,
    MountVirtualDiskStage,
    VerifyVolumeStage,
    WorkspaceStage,
)
from devdrive.core.volume import DEV_DRIVE_SIZE, Volume


def make_state(runner=None, **volume_fields):
    fields = {
        "backing_path": "C:/does-not-exist/pixi_dev_drive.vhdx",
        "size_bytes": DEV_DRIVE_SIZE,
        "filesystem": "ReFS",
    }
    fields.update(volume_fields)
    return {
        "volume": Volume(**fields),
        "runner": runner or FakeRunner(),
        "sink": MemorySink(),
        "step_timeout": 42,
    }


@pytest.mark.asyncio
async def test_create_refuses_existing_backing_file(tmp_path):
    backing = tmp_path / "pixi_dev_drive.vhdx"
    backing.write_bytes(b"")
    runner = FakeRunner()
    stage = CreateVirtualDiskStage(make_state(runner, backing_path=str(backing)))

    assert await stage.run() is False
    assert isinstance(stage.error, BackingFileExistsError)
    assert runner.calls == []


@pytest.mark.asyncio
async def test_create_passes_path_size_and_timeout(backing_path):
    runner = FakeRunner()
    state = make_state(runner, backing_path=backing_path)

    assert await CreateVirtualDiskStage(state).run() is True

    step, script, timeout = runner.calls[0]
    assert step == "New-VHD"
    assert f"-Path '{backing_path}'" in script
    assert f"-SizeBytes {DEV_DRIVE_SIZE}" in script
    assert timeout == 42
    assert state["completed_stages"] == ["CreateVirtualDiskStage"]


@pytest.mark.asyncio
async def test_create_rejects_invalid_request(backing_path):
    stage = CreateVirtualDiskStage(make_state(backing_path=backing_path, size_bytes=0))
    assert await stage.run() is False
    assert "size must be positive" in str(stage.error)


@pytest.mark.asyncio
async def test_mount_records_disk_number():
    state = make_state()
    assert await MountVirtualDiskStage(state).run() is True
    assert state["volume"].disk_number == 3


@pytest.mark.asyncio
async def test_mount_without_disk_number_fails():
    runner = FakeRunner(responses={"Mount-VHD": {"Attached": True}})
    stage = MountVirtualDiskStage(make_state(runner))
    assert await stage.run() is False
    assert isinstance(stage.error, ProvisioningError)
    assert "DiskNumber" in str(stage.error)


@pytest.mark.asyncio
async def test_initialize_uses_mounted_disk():
    runner = FakeRunner()
    state = make_state(runner, disk_number=7)

    assert await InitializeDiskStage(state).run() is True

    assert "-Number 7" in runner.calls[0][1]
    assert "-PartitionStyle GPT" in runner.calls[0][1]
    assert state["volume"].disk_size == DEV_DRIVE_SIZE
    assert state["volume"].partition_style == "GPT"


@pytest.mark.asyncio
async def test_partition_assigns_drive_letter():
    runner = FakeRunner(responses={"New-Partition": [{"DriveLetter": "f", "Size": 1}]})
    state = make_state(runner, disk_number=3)

    assert await CreatePartitionStage(state).run() is True

    assert "-AssignDriveLetter -UseMaximumSize" in runner.calls[0][1]
    assert state["volume"].drive_letter == "F"
    assert state["volume"].mount_path == "F:"


@pytest.mark.asyncio
@pytest.mark.parametrize("letter", ["", " ", "EF", "1"])
async def test_partition_without_usable_letter_fails(letter):
    runner = FakeRunner(responses={"New-Partition": {"DriveLetter": letter}})
    state = make_state(runner, disk_number=3)
    stage = CreatePartitionStage(state)

    assert await stage.run() is False
    assert isinstance(stage.error, ProvisioningError)
    assert state["volume"].drive_letter is None


@pytest.mark.asyncio
async def test_format_records_filesystem():
    runner = FakeRunner()
    state = make_state(runner, drive_letter="E")

    assert await FormatVolumeStage(state).run() is True

    script = runner.calls[0][1]
    assert "-DriveLetter E" in script
    assert "-FileSystem 'ReFS'" in script
    assert "-Confirm:$false -Force" in script
    assert state["volume"].reported_filesystem == "ReFS"
    assert state["volume"].volume_size == 21273509888


@pytest.mark.asyncio
@pytest.mark.parametrize("filesystem,expected", [
    ("ReFS; Remove-Item C:/x", "-FileSystem 'ReFS; Remove-Item C:/x' -Confirm"),
    ("Re'FS", "-FileSystem 'Re''FS' -Confirm"),
])
async def test_format_quotes_filesystem(filesystem, expected):
    runner = FakeRunner()
    state = make_state(runner, drive_letter="E", filesystem=filesystem)

    await FormatVolumeStage(state).run()

    assert expected in runner.calls[0][1]


@pytest.mark.asyncio
async def test_format_failure_surfaces_os_message():
    error = CommandError("Format-Volume", "The requested file system is not supported", 1)
    runner = FakeRunner(failures={"Format-Volume": error})
    stage = FormatVolumeStage(make_state(runner, drive_letter="E"))

    assert await stage.run() is False
    assert stage.error is error


@pytest.mark.asyncio
async def test_verify_accepts_matching_volume():
    state = make_state(drive_letter="E", disk_size=DEV_DRIVE_SIZE, reported_filesystem="refs")
    assert await VerifyVolumeStage(state).run() is True


@pytest.mark.asyncio
async def test_verify_rejects_small_disk():
    state = make_state(drive_letter="E", disk_size=DEV_DRIVE_SIZE - 1, reported_filesystem="ReFS")
    stage = VerifyVolumeStage(state)
    assert await stage.run() is False
    assert "smaller than requested" in str(stage.error)


@pytest.mark.asyncio
async def test_verify_rejects_wrong_filesystem():
    state = make_state(drive_letter="E", disk_size=DEV_DRIVE_SIZE, reported_filesystem="NTFS")
    stage = VerifyVolumeStage(state)
    assert await stage.run() is False
    assert "NTFS" in str(stage.error)


@pytest.mark.asyncio
async def test_workspace_creates_tmp_dir(drive_root):
    state = make_state(drive_letter="E")

    assert await WorkspaceStage(state).run() is True

    assert state["mount_path"] == "E:"
    assert state["tmp_dir"] == "E:/pixi-tmp"
    assert (drive_root / "E:" / "pixi-tmp").is_dir()


@pytest.mark.asyncio
async def test_workspace_keeps_existing_tmp_dir(drive_root):
    existing = drive_root / "E:" / "pixi-tmp"
    existing.mkdir()
    (existing / "keep.txt").write_text("x")

    assert await WorkspaceStage(make_state(drive_letter="E")).run() is True
    assert (existing / "keep.txt").exists()


@pytest.mark.asyncio
async def test_workspace_fails_when_file_occupies_tmp_dir(drive_root):
    (drive_root / "E:" / "pixi-tmp").write_text("not a directory")
    stage = WorkspaceStage(make_state(drive_letter="E"))

    assert await stage.run() is False
    assert isinstance(stage.error, ProvisioningError)


@pytest.mark.asyncio
async def test_workspace_requires_drive_letter():
    stage = WorkspaceStage(make_state())
    assert await stage.run() is False
    assert "no drive letter" in str(stage.error)


@pytest.mark.asyncio
async def test_export_writes_to_sink():
    state = make_state()
    state["mount_path"] = "E:"

    assert await ExportEnvironmentStage(state).run() is True

    assert state["sink"].lines == [
        "DEV_DRIVE=E:",
        "RUSTUP_HOME=E:/.rustup",
        "CARGO_HOME=E:/.cargo",
        "PIXI_WORKSPACE=E:/pixi",
    ]
    assert state["environment"]["CARGO_HOME"] == "E:/.cargo"
