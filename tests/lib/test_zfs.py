"""Tests for ZFS dataset row synthesis."""

import subprocess

from mountprobe.lib.tables import MountTableRow
from mountprobe.lib.zfs import list_datasets_command, parse_dataset_rows, synthesize_zfs_rows
from mountprobe.targets import discover_targets
from tests.conftest import MockContext, load_fixture


DATASET_DIRS = ["/tank", "/tank/home", "/tank/off", "/tank/zone", "/tank/later"]
ZFS_CMD = tuple(list_datasets_command("zoned"))


class TestListDatasetsCommand:
    """Tests for the zfs list command line."""

    def test_without_delegation(self):
        assert list_datasets_command() == [
            "zfs", "list", "-H", "-t", "filesystem", "-o", "name,mountpoint,canmount,readonly",
        ]

    def test_with_delegation(self):
        assert list_datasets_command("jailed")[-1] == "name,mountpoint,canmount,readonly,jailed"


class TestParseDatasetRows:
    """Tests for parse_dataset_rows."""

    def rows(self, existing=None):
        ctx = MockContext(directories=DATASET_DIRS)
        return parse_dataset_rows(load_fixture("zfs", "zfs_list.txt"), existing or set(), ctx, "zoned")

    def test_qualifying_datasets(self):
        assert [r.mountpoint for r in self.rows()] == ["/tank", "/tank/home", "/tank/later"]

    def test_row_shape(self):
        row = self.rows()[0]
        assert row == MountTableRow(device="tank", mountpoint="/tank", fstype="zfs", options=["rw"])

    def test_readonly_dataset(self):
        assert self.rows()[1].options == ["ro"]

    def test_noauto_dataset_marked(self):
        assert self.rows()[2].options == ["rw", "noauto"]

    def test_skips_existing_mountpoints(self):
        assert "/tank/home" not in [r.mountpoint for r in self.rows({"/tank/home"})]

    def test_delegated_dataset_skipped(self):
        assert "/tank/zone" not in [r.mountpoint for r in self.rows()]

    def test_missing_path_skipped(self):
        assert "/tank/gone" not in [r.mountpoint for r in self.rows()]


class TestSynthesizeZfsRows:
    """Tests for synthesize_zfs_rows."""

    def test_no_zfs_tool(self):
        ctx = MockContext(tools_available=[])
        assert synthesize_zfs_rows([], ctx, "zoned") == []
        assert ctx.commands_run == []

    def test_appends_rows(self):
        ctx = MockContext(
            tools_available=["zfs"],
            command_outputs={ZFS_CMD: load_fixture("zfs", "zfs_list.txt")},
            directories=DATASET_DIRS,
        )
        config = [MountTableRow("fs:/x", "/tank", "nfs", ["rw"])]

        rows = synthesize_zfs_rows(config, ctx, "zoned")

        assert [r.mountpoint for r in rows] == ["/tank/home", "/tank/later"]

    def test_command_failure_yields_nothing(self):
        ctx = MockContext(
            tools_available=["zfs"],
            command_outputs={ZFS_CMD: subprocess.CalledProcessError(1, "zfs")},
        )
        assert synthesize_zfs_rows([], ctx, "zoned") == []

    def test_synthetic_rows_are_discoverable(self):
        """Pool rows go through the same filters as native rows."""
        ctx = MockContext(directories=DATASET_DIRS)
        rows = parse_dataset_rows(load_fixture("zfs", "zfs_list.txt"), set(), ctx, "zoned")

        assert discover_targets(rows) == ["/tank", "/tank/home", "/tank/later"]
        assert discover_targets(rows, exclude_noauto=True) == ["/tank", "/tank/home"]
        assert discover_targets(rows, exclude="home") == ["/tank", "/tank/later"]
