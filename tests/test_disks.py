import pytest

from vmpanel.disks import DiskImageError, HardDiskManager, parse_image_info

RAW_OUTPUT = (
    "image: disk.img\n"
    "file format: raw\n"
    "virtual size: 10G (10737418240 bytes)\n"
    "disk size: 0\n"
)

QCOW_OUTPUT = (
    "image: disk.qcow\n"
    "file format: qcow2\n"
    "virtual size: 4.0G (4294967296 bytes)\n"
    "disk size: 1.2M\n"
    "cluster_size: 65536\n"
    "Snapshot list:\n"
    "ID        TAG                 VM SIZE                DATE       VM CLOCK\n"
    "1         Default                1.2M 2008-01-01 12:00:00   00:00:01.000\n"
)


def test_parse_raw_image():
    info = parse_image_info(RAW_OUTPUT, 123)
    assert info.format == "raw"
    assert info.upgradable is True
    assert info.suspendable is False
    assert info.resumable is False
    assert info.virtual_size == 10737418240
    assert info.physical_size == 123


def test_parse_qcow2_with_default_snapshot():
    info = parse_image_info(QCOW_OUTPUT)
    assert info.format == "qcow2"
    assert info.upgradable is False
    assert info.suspendable is True
    assert info.resumable is True
    assert info.virtual_size == 4294967296


def test_snapshot_mode_disables_suspend_and_resume():
    info = parse_image_info(QCOW_OUTPUT, snapshot=True)
    assert info.suspendable is False
    assert info.resumable is False


def test_parse_garbage_raises():
    with pytest.raises(DiskImageError):
        parse_image_info("nothing")


def test_missing_image_reports_none(tmp_path):
    manager = HardDiskManager(programs=["qemu-img"], runner=lambda args: (0, ""))
    info = manager.test_image(tmp_path / "absent.img")
    assert info.format == "none"
    assert info.virtual_size == 0
    assert manager.is_suspendable() is False


def test_test_image_falls_back_to_second_program(tmp_path):
    image = tmp_path / "disk.qcow"
    image.write_bytes(b"abcd")
    calls = []

    def runner(args):
        calls.append(args[0])
        if args[0] == "qemu-img":
            raise FileNotFoundError(args[0])
        return 0, QCOW_OUTPUT

    manager = HardDiskManager(programs=["qemu-img", "kvm-img"], runner=runner)
    info = manager.test_image(image)
    assert calls == ["qemu-img", "kvm-img"]
    assert info.physical_size == 4
    assert manager.is_suspendable() is True


def test_test_image_without_tool_raises(tmp_path):
    image = tmp_path / "disk.img"
    image.write_bytes(b"x")

    def runner(args):
        raise FileNotFoundError(args[0])

    manager = HardDiskManager(programs=["qemu-img"], runner=runner)
    with pytest.raises(DiskImageError):
        manager.test_image(image)


def test_upgrade_image_arguments(tmp_path):
    image = tmp_path / "disk.img"
    seen = []

    def runner(args):
        seen.append(list(args))
        return 0, ""

    manager = HardDiskManager(programs=["qemu-img"], runner=runner)
    target = manager.upgrade_image(image)
    assert target == tmp_path / "disk.qcow"
    assert seen == [["qemu-img", "convert", str(image), "-O", "qcow2", str(target)]]


def test_upgrade_failure_raises(tmp_path):
    manager = HardDiskManager(programs=["qemu-img"], runner=lambda args: (1, ""))
    with pytest.raises(DiskImageError):
        manager.upgrade_image(tmp_path / "disk.img")